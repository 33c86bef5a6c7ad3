"""
flagtree execution environment.

An Env carries everything a command tree needs from the outside world for one
invocation: where to write output and errors, the argument list, the
environment variables, and the caller's parameter object.

    params = Params()
    env = Env.default(params)          # process streams, sys.argv, os.environ
    env = Env(out=buffer, args=["tool", "-v"], vars={}, params=params)

Sinks
- Any object with a write(str) method, e.g. sys.stdout or io.StringIO.
- A rich Console; text is written through Console.out with highlighting off,
  and rich renderables (faults implement __rich__) are printed with styling.
- None: writes are discarded silently.

Arguments and variables
- args is mutated in place as each command level consumes its flags and the
  subcommand name; after dispatch it holds the positional arguments left for
  the action.
- vars = None behaves like an empty mapping: no variable is ever set.
"""
import os
import sys

from rich.console import Console
from rich.pretty import pretty_repr


class Env:
    """Execution environment of a Command: sinks, arguments, variables, parameters."""

    def __init__(self, out=None, err=None, args=None, vars=None, params=None):
        self.out = out
        self.err = err
        self.args = args
        self.vars = vars
        self.params = params

    @classmethod
    def default(cls, params=None, /):
        """
        Return an Env built from the running process.

        Uses sys.stdout and sys.stderr, a copy of sys.argv, and a snapshot of
        os.environ taken now; later changes to the process environment are not seen.
        """
        return cls(
            out=sys.stdout,
            err=sys.stderr,
            args=list(sys.argv),
            vars=dict(os.environ),
            params=params,
        )

    def printf(self, format, /, *args):
        """Format and write a message to the output sink, returning the characters written."""
        return _write(self.out, format % args if args else format)

    def errorf(self, format, /, *args):
        """Format and write a message to the error sink, returning the characters written."""
        return _write(self.err, format % args if args else format)

    def report(self, renderable, /):
        """
        Write one error line to the error sink.

        Console sinks get the renderable itself (styled when it implements __rich__),
        text sinks get its str().
        """
        if isinstance(self.err, Console):
            self.err.print(renderable, highlight=False, soft_wrap=True)
            return len(str(renderable)) + 1
        return _write(self.err, f"{renderable}\n")

    def getvar(self, name, /):
        """Return (value, is_set) for environment variable `name`."""
        if self.vars is None:
            return "", False
        try:
            return self.vars[name], True
        except KeyError:
            return "", False

    def __rich_repr__(self):
        yield "args", self.args
        yield "vars", None if self.vars is None else sorted(self.vars), None
        yield "params", self.params, None

    def __repr__(self):
        return pretty_repr(self)


def _write(sink, text):
    if sink is None:
        return 0
    if isinstance(sink, Console):
        sink.out(text, end="", highlight=False)
        return len(text)
    sink.write(text)
    return len(text)


__all__ = (
    "Env",
)
