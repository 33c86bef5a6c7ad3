"""
flagtree command layer: build command trees and dispatch invocations through them.

What this module provides
- Command: a node of a command tree. Each node may define flags bound to the
  shared parameter object, bind those flags to environment variables, validate
  the merged result, run an action, and delegate to named subcommands.
- Provenance: per-flag record of where its final value came from.
- command(...): build a Command from an action function, or a decorator doing so.
- invoke(command, params) / main(command, params): run a tree against the process.

Precedence (per flag, resolved independently)
 1. the command line
 2. the bound environment variable
 3. the flag's default

Lifecycle of Command.execute(env)
- a fresh FlagSet is built and the flags hook defines flags on it;
- at least one argument is required (the command's own name), otherwise
  "no arguments provided" (FAILURE);
- arguments after the first are parsed; -h/-help prints usage and help (SUCCESS),
  any parse error prints usage and the parser's message (USAGE);
- unset flags are resolved from their bound variables in name order; a bad
  variable value aborts with a decorated message (USAGE);
- the after hook validates the parameters; a FlagValueError is reported with the
  offending value and its origin, any other ValueError as is (USAGE);
- env.args becomes the leftover positional arguments; if the first names a
  subcommand, that subcommand executes with the same env; otherwise the action
  runs; without an action, "missing command" or "unknown command" (FAILURE).

Every error writes "<usage>\\n<message>\\n" to env.err. Nothing is retried or
rolled back: values already written into the parameter object stay there.

Quick start
    class Params:
        env = "production"
        port = 0

    def serve(context, env):
        env.printf("serving %s on %d\\n", env.params.env, env.params.port)

    root = Command(
        name="foo",
        usage="usage: foo [flags] command",
        flags=lambda fs, p: fs.string(p, "env", "production"),
        subcommands=[
            Command(
                name="serve",
                usage="usage: foo serve [flags]",
                flags=lambda fs, p: fs.uint(p, "port", 5000),
                vars={"port": "FOO_PORT"},
                action=serve,
            ),
        ],
    )

    if __name__ == "__main__":
        main(root, Params())
"""
import logging
import sys
from types import MappingProxyType

from rich.pretty import pretty_repr
from rich.tree import Tree

from .env import Env
from .faults import *
from .flags import FlagSet
from .utils import Unset, coalesce, rename

logger = logging.getLogger(__name__)


class Provenance:
    """
    Where one flag's value came from during the current invocation.

    - value: the flag's text after parsing (or the variable's raw text).
    - source: Source.DEFAULT, Source.FLAG or Source.VAR.
    - var_name: the variable the value was read from, "" unless source is VAR.
    - is_bool: whether the flag is boolean-valued; only affects message wording.
    """
    __slots__ = ("flag_name", "value", "source", "var_name", "is_bool")

    def __init__(self, flag_name, value, source=Source.DEFAULT, var_name="", is_bool=False):
        self.flag_name = flag_name
        self.value = value
        self.source = source
        self.var_name = var_name
        self.is_bool = is_bool

    def __eq__(self, other):
        if not isinstance(other, Provenance):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    __hash__ = None

    def __rich_repr__(self):
        yield self.flag_name
        yield "value", self.value
        yield "source", str(self.source)
        yield "var_name", self.var_name, ""
        yield "is_bool", self.is_bool, False

    def __repr__(self):
        return pretty_repr(self)


class Command:
    """
    A node of a command tree.

    Fields
    - name: token selecting this command among its parent's subcommands.
    - usage, help: verbatim text; usage precedes every error, usage and help are
      printed together on -h/-help.
    - flags(fs, params): defines flags on the node's FlagSet, bound to params.
    - vars: mapping of flag name to environment variable name.
    - after(params): validation hook; raise FlagValueError(name, cause) to reject
      a flag's value, or any other ValueError for a general rejection.
    - action(context, env): terminal behavior; returns an ExitStatus (None means
      SUCCESS). `context` is whatever was passed to execute(), untouched.
    - subcommands: ordered children, matched by exact name, first match wins.

    Usage constraint
    - A tree holds per-invocation state (the FlagSet and provenance table of each
      node). Sequential executions are independent, but a tree must not be
      executed by two threads at once; build one tree per thread instead.
    """

    def __init__(
            self,
            name="",
            usage="",
            help="",
            flags=None,
            vars=None,
            after=None,
            action=None,
            subcommands=(),
    ):
        self.name = name
        self.usage = usage
        self.help = help
        self.flags = flags
        self.vars = vars
        self.after = after
        self.action = action
        self.subcommands = []
        for child in subcommands:
            self.add(child)

        self._flagset = None
        self._provenance = {}

    @property
    def flagset(self):
        """The FlagSet of the latest execution, or None before the first one."""
        return self._flagset

    @property
    def provenance(self):
        """Read-only view of the provenance table of the latest execution."""
        return MappingProxyType(self._provenance)

    def add(self, child, /):
        """Append a subcommand, rejecting names already in use. Returns the child."""
        if not isinstance(child, Command):
            raise TypeError("add() argument must be a command")
        if self.lookup(child.name) is not None:
            raise ValueError(f"subcommand name {child.name!r} is already in use")
        self.subcommands.append(child)
        return child

    def command(self, action=Unset, /, **options):
        """
        Create a subcommand from an action function, or return a decorator that will.

            @root.command(usage="usage: foo serve")
            def serve(context, env): ...

        The subcommand's name defaults to the function name.
        """
        @rename("command")
        def wrapper(action, /):
            return self.add(command(action, **options))

        return wrapper(action) if action is not Unset else wrapper

    def lookup(self, name, /):
        """Return the first subcommand called `name`, or None."""
        for child in self.subcommands:
            if child.name == name:
                return child
        return None

    def execute(self, env, /, context=None):
        """
        Run this command (and, through delegation, its subcommands) against env.

        Returns the ExitStatus of the node that finished the invocation.
        """
        fs = self._reset(env)

        if not env.args:
            return self._fail(env, NoArgumentsError())

        logger.debug("%s: parsing %r", self._label, env.args[1:])
        try:
            fs.parse(env.args[1:])
        except HelpRequested:
            env.printf("%s\n\n%s\n", self.usage, self.help)
            return ExitStatus.SUCCESS
        except FlagError as error:
            return self._fail(env, error, ExitStatus.USAGE)

        self._track(fs)

        try:
            self._resolve(fs, env)
        except DecoratedValueError as error:
            return self._fail(env, error, ExitStatus.USAGE)

        if self.after is not None:
            logger.debug("%s: validating", self._label)
            try:
                self.after(env.params)
            except FlagValueError as error:
                return self._fail(env, self._decorate(error), ExitStatus.USAGE)
            except ValueError as error:
                return self._fail(env, error, ExitStatus.USAGE)

        env.args = fs.args()

        if env.args:
            child = self.lookup(env.args[0])
            if child is not None:
                logger.debug("%s: delegating to %r", self._label, child.name)
                return child.execute(env, context)

        if self.action is not None:
            logger.debug("%s: running action with %r", self._label, env.args)
            return _status(self.action(context, env))

        if not env.args:
            return self._fail(env, MissingCommandError())
        return self._fail(env, UnknownCommandError())

    @property
    def _label(self):
        return self.name or "<root>"

    def _reset(self, env):
        # Both are rebuilt on every call so nothing leaks between invocations.
        self._flagset = fs = FlagSet(self.name)
        self._provenance = {}
        if self.flags is not None:
            self.flags(fs, env.params)
        return fs

    def _track(self, fs):
        table = {}
        for flag in fs.visit_all():
            table[flag.name] = Provenance(flag.name, str(flag.value), Source.DEFAULT, is_bool=flag.is_bool)
        # Only a second pass can tell which flags the parser actually saw.
        for flag in fs.visit():
            table[flag.name].source = Source.FLAG
        self._provenance = table

    def _resolve(self, fs, env):
        bindings = self.vars or {}
        for name in sorted(self._provenance):
            record = self._provenance[name]
            if record.source is not Source.DEFAULT:
                continue
            var_name = bindings.get(name)
            if var_name is None:
                continue
            value, is_set = env.getvar(var_name)
            if not is_set:
                continue
            try:
                fs.set(name, value)
            except ValueError as error:
                raise DecoratedValueError(
                    value,
                    flag_name=name,
                    var_name=var_name,
                    source=Source.VAR,
                    is_bool=record.is_bool,
                    cause=error,
                ) from error
            record.var_name = var_name
            record.value = value
            record.source = Source.VAR
            logger.debug("%s: flag %r set from $%s", self._label, name, var_name)

    def _decorate(self, error):
        record = self._provenance.get(error.name)
        if record is None:
            # Unknown flag names fall back to the bare cause.
            return error
        return DecoratedValueError(
            record.value,
            flag_name=record.flag_name,
            var_name=record.var_name,
            source=record.source,
            is_bool=record.is_bool,
            cause=error.cause,
        )

    def _fail(self, env, error, status=Unset):
        status = coalesce(status, getattr(error, "status", ExitStatus.FAILURE))
        logger.debug("%s: %s (%s)", self._label, error, status.name)
        env.errorf("%s\n", self.usage)
        env.report(error)
        return status

    def __rich__(self):
        tree = Tree(self._label)

        def branch(node, command):
            for child in command.subcommands:
                branch(node.add(child.name), child)

        branch(tree, self)
        return tree

    def __rich_repr__(self):
        yield "name", self.name
        yield "usage", self.usage, ""
        yield "vars", None if self.vars is None else dict(self.vars), None
        yield "subcommands", [child.name for child in self.subcommands], []

    def __repr__(self):
        return pretty_repr(self)


def _status(result):
    if result is None:
        return ExitStatus.SUCCESS
    if not isinstance(result, int):
        raise TypeError("action must return an ExitStatus, int or None")
    try:
        return ExitStatus(result)
    except ValueError:
        return result


def command(action=Unset, /, **options):
    """
    Create a Command from an action function, or return a decorator to do so later.

        serve = command(serve_action, usage="usage: foo serve")

        @command(usage="usage: foo serve")
        def serve(context, env): ...

    The command's name defaults to the function name.
    """
    @rename("command")
    def wrapper(action, /):
        if not callable(action):
            raise TypeError("@command() must be applied to a callable")
        return Command(**{"name": action.__name__} | options | {"action": action})

    return wrapper(action) if action is not Unset else wrapper


def invoke(command, params=None, /, *, context=None):
    """
    Execute `command` against the running process and return the exit status as an int.

    The environment is snapshotted once (sys.argv, os.environ, the standard streams).
    """
    if not isinstance(command, Command):
        raise TypeError("invoke() first argument must be a command")
    return int(command.execute(Env.default(params), context))


def main(command, params=None, /, *, context=None):
    """Like invoke(), then exit the process with the resulting status."""
    sys.exit(invoke(command, params, context=context))


__all__ = (
    "Command",
    "Provenance",
    "command",
    "invoke",
    "main",
)
