"""
flagtree flag sets: define, parse, and inspect named command-line flags.

A FlagSet is the flag-parsing capability a Command relies on. It knows nothing
about environment variables or command trees; it only turns an argument list
into assignments on the parameter object and reports what happened.

Capabilities used by the command layer
- visit_all(): every defined flag, sorted by name.
- visit(): only the flags set explicitly (on the command line or via set()).
- parse(arguments): consume flags from the front of the list.
- set(name, text): assign a flag from text (used for environment fallbacks).
- args(): the non-flag arguments left after parsing.
- Flag.is_bool: the boolean predicate (delegates to Value.is_bool_flag()).

Syntax accepted by parse()
    -flag          boolean flags only, means -flag=true
    --flag         same as -flag
    -flag=value
    -flag value    non-boolean flags only

Parsing stops just before the first non-flag argument ("-" is a non-flag
argument) or just after the terminator "--". When -h or -help is given and no
flag of that name is defined, HelpRequested is raised.

Binding
    fs = FlagSet("serve")
    fs.uint(params, "port", 5000, "port to listen on")
    fs.bool(params, "v", False, "verbose output", attr="verbose")

Definition helpers write the default into the parameter object immediately, so
the object always holds a usable value even if parsing is never reached.
"""
import logging

from rich.pretty import pretty_repr

from .faults import FlagError, HelpRequested, quote
from .utils import Unset, coalesce
from .values import StringValue, IntValue, UintValue, FloatValue, BoolValue, FuncValue

logger = logging.getLogger(__name__)


class Flag:
    """A defined flag: its name, usage text, value and default text."""
    __slots__ = ("name", "usage", "value", "default")

    def __init__(self, name, usage, value, default):
        self.name = name
        self.usage = usage
        self.value = value
        self.default = default

    @property
    def is_bool(self):
        predicate = getattr(self.value, "is_bool_flag", None)
        return callable(predicate) and bool(predicate())

    def __str__(self):
        return str(self.value)

    def __rich_repr__(self):
        yield "name", self.name
        yield "value", str(self.value)
        yield "default", self.default
        yield "usage", self.usage, ""

    def __repr__(self):
        return pretty_repr(self)


class FlagSet:
    """
    A set of named flags and the arguments left over after parsing them.

    A FlagSet is single-use: build one per invocation, define its flags, parse once.
    """

    def __init__(self, name=""):
        self.name = name
        self.parsed = False
        self._formal = {}
        self._actual = {}
        self._args = []

    def __rich_repr__(self):
        yield "name", self.name, ""
        yield "flags", sorted(self._formal)
        yield "set", sorted(self._actual), []
        yield "args", list(self._args), []

    def __repr__(self):
        return pretty_repr(self)

    # --- definition -------------------------------------------------------

    def var(self, value, name, usage="", /):
        """
        Register a custom Value under `name`.

        The flag's default text is whatever the value prints as at this moment.
        """
        if not isinstance(name, str):
            raise TypeError("var() name must be a string")
        if not name or name.startswith("-") or "=" in name:
            raise ValueError(f"flag {name!r} begins with - or contains =")
        if name in self._formal:
            message = f"{self.name} flag redefined: {name}" if self.name else f"flag redefined: {name}"
            raise ValueError(message)
        self._formal[name] = flag = Flag(name, usage, value, str(value))
        return flag

    def string(self, target, name, default="", usage="", /, *, attr=Unset):
        return self.var(StringValue(target, _attribute(name, attr), default), name, usage)

    def int(self, target, name, default=0, usage="", /, *, attr=Unset):
        return self.var(IntValue(target, _attribute(name, attr), default), name, usage)

    def uint(self, target, name, default=0, usage="", /, *, attr=Unset):
        if default < 0:
            raise ValueError("uint() default must not be negative")
        return self.var(UintValue(target, _attribute(name, attr), default), name, usage)

    def float(self, target, name, default=0.0, usage="", /, *, attr=Unset):
        return self.var(FloatValue(target, _attribute(name, attr), default), name, usage)

    def bool(self, target, name, default=False, usage="", /, *, attr=Unset):
        return self.var(BoolValue(target, _attribute(name, attr), default), name, usage)

    def func(self, name, usage, callback, /):
        return self.var(FuncValue(callback), name, usage)

    # --- inspection -------------------------------------------------------

    def lookup(self, name, /):
        return self._formal.get(name)

    def visit_all(self):
        for name in sorted(self._formal):
            yield self._formal[name]

    def visit(self):
        for name in sorted(self._actual):
            yield self._actual[name]

    def nflag(self):
        return len(self._actual)

    def args(self):
        return list(self._args)

    def narg(self):
        return len(self._args)

    def arg(self, index, /):
        try:
            return self._args[index]
        except IndexError:
            return ""

    # --- assignment -------------------------------------------------------

    def set(self, name, text, /):
        """
        Assign `text` to flag `name` and mark it as explicitly set.

        The value's own ValueError propagates unchanged so callers can report it
        with their own framing.
        """
        flag = self._formal.get(name)
        if flag is None:
            raise FlagError(f"no such flag -{name}")
        flag.value.set(text)
        self._actual[name] = flag

    def parse(self, arguments, /):
        """
        Parse flags from the front of `arguments`.

        Must be called after all flags are defined and before any flag is read.
        Raises FlagError (or HelpRequested) on the first offending argument.
        """
        self.parsed = True
        self._args = list(arguments)
        while self._parse_one():
            pass
        logger.debug("flag set %r parsed %d flag(s), %d argument(s) left", self.name, len(self._actual), len(self._args))

    def _parse_one(self):
        if not self._args:
            return False
        token = self._args[0]
        if len(token) < 2 or token[0] != "-":
            return False
        dashes = 1
        if token[1] == "-":
            dashes += 1
            if len(token) == 2:
                # "--" terminates the flags
                del self._args[0]
                return False
        name = token[dashes:]
        if not name or name[0] in "-=":
            raise FlagError(f"bad flag syntax: {token}")

        del self._args[0]
        name, separator, value = name.partition("=")
        has_value = bool(separator)

        flag = self._formal.get(name)
        if flag is None:
            if name in ("help", "h"):
                raise HelpRequested()
            raise FlagError(f"flag provided but not defined: -{name}")

        if flag.is_bool:
            if has_value:
                try:
                    flag.value.set(value)
                except ValueError as error:
                    raise FlagError(f"invalid boolean value {quote(value)} for -{name}: {error}") from error
            else:
                try:
                    flag.value.set("true")
                except ValueError as error:
                    raise FlagError(f"invalid boolean flag {name}: {error}") from error
        else:
            if not has_value and self._args:
                has_value = True
                value = self._args.pop(0)
            if not has_value:
                raise FlagError(f"flag needs an argument: -{name}")
            try:
                flag.value.set(value)
            except ValueError as error:
                raise FlagError(f"invalid value {quote(value)} for flag -{name}: {error}") from error

        self._actual[name] = flag
        return True


def _attribute(name, attr):
    return coalesce(attr, name.replace("-", "_"))


__all__ = (
    "Flag",
    "FlagSet",
)
