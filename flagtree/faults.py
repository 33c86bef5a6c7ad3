"""
flagtree faults: exit statuses, value sources, errors and their rendering.

Scope
- ExitStatus: the complete contract with the hosting process (0, 1, 2).
- Source: where a flag's final value came from (default, flag, var).
- FlagError / HelpRequested: raised by the flag parser (flagtree.flags).
- FlagValueError: the tagged error a validation hook raises to point at a flag.
- DecoratedValueError: the provenance-aware message built from a tagged error,
  or from a malformed environment variable.
- CommandFault and subclasses: structural dispatch failures, each carrying the
  exit status it maps to.

Message shapes
- invalid value "8o" for flag port: parse error
- invalid value "99999" for var $FOO_PORT: cannot exceed 65535
- invalid boolean value "maybe" for verbose: parse error
- invalid boolean value "maybe" for $FOO_VERBOSE: parse error

Rendering
- Every fault has a plain str() used for text sinks.
- DecoratedValueError and CommandFault also implement __rich__ so console sinks
  get the same words with styling.
"""
from enum import IntEnum, StrEnum

from rich.text import Text

_STYLES = {
    "value": "bold #FF4DA6",
    "source": "bold #00E5FF",
    "cause": "#C8C8D0",
    "fault": "bold #FF4DA6",
}


class ExitStatus(IntEnum):
    """
    Result of command execution.

    - SUCCESS: execution succeeded, including help requests.
    - FAILURE: structural errors (no arguments, missing or unknown command).
    - USAGE: invalid user input (flag parsing, variables, validation).
    """
    SUCCESS = 0
    FAILURE = 1
    USAGE = 2


class Source(StrEnum):
    """Provenance of a flag's final value."""
    DEFAULT = "default"
    FLAG = "flag"
    VAR = "var"


class FlagError(Exception):
    """Error raised by a FlagSet while parsing or assigning flags."""

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class HelpRequested(FlagError):
    """-h or -help was given and no flag of that name is defined."""

    def __init__(self, message="flag: help requested", /):
        super().__init__(message)


class FlagValueError(ValueError):
    """
    Tagged validation error: the value of flag `name` was rejected because of `cause`.

    Raise it from a validation hook to have the message reported together with the
    offending text and where it came from. Its own str() is the cause alone, which is
    also what gets reported when `name` is not a flag of the command.
    """

    def __init__(self, name, cause, /):
        if isinstance(cause, str):
            cause = ValueError(cause)
        super().__init__(name, cause)
        self.name = name
        self.cause = cause

    def __str__(self):
        return str(self.cause)


class DecoratedValueError(ValueError):
    def __init__(self, value, /, *, flag_name="", var_name="", source=Source.DEFAULT, is_bool=False, cause=None):
        super().__init__(value, flag_name, var_name, source, cause)
        self.value = value
        self.flag_name = flag_name
        self.var_name = var_name
        self.source = Source(source)
        self.is_bool = is_bool
        self.cause = cause

    def _parts(self):
        kind = "boolean value" if self.is_bool else "value"
        if self.source is Source.VAR:
            qualifier, name = "var ", "$" + self.var_name
        else:
            # Default-sourced values have no origin of their own, the flag names them.
            qualifier, name = "flag ", self.flag_name
        if self.is_bool:
            qualifier = ""
        return kind, qualifier + name

    def __str__(self):
        kind, origin = self._parts()
        return f"invalid {kind} {quote(self.value)} for {origin}: {self.cause}"

    def __rich__(self):
        kind, origin = self._parts()
        return Text.assemble(
            f"invalid {kind} ",
            (quote(self.value), _STYLES["value"]),
            " for ",
            (origin, _STYLES["source"]),
            ": ",
            (str(self.cause), _STYLES["cause"]),
        )


class CommandFault(Exception):
    """Structural failure while dispatching a command tree."""
    status = ExitStatus.FAILURE
    message = "command failed"

    def __init__(self, message=None, /):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def __str__(self):
        return self.message

    def __rich__(self):
        return Text(self.message, style=_STYLES["fault"])


class NoArgumentsError(CommandFault):
    message = "no arguments provided"


class MissingCommandError(CommandFault):
    message = "missing command"


class UnknownCommandError(CommandFault):
    message = "unknown command"


def quote(text, /):
    """Double-quote text, escaping backslashes, quotes and control characters."""
    escaped = []
    for char in text:
        if char in '"\\':
            escaped.append("\\" + char)
        elif char == "\n":
            escaped.append("\\n")
        elif char == "\t":
            escaped.append("\\t")
        elif char == "\r":
            escaped.append("\\r")
        elif char.isprintable():
            escaped.append(char)
        elif ord(char) < 0x100:
            escaped.append(f"\\x{ord(char):02x}")
        elif ord(char) < 0x10000:
            escaped.append(f"\\u{ord(char):04x}")
        else:
            escaped.append(f"\\U{ord(char):08x}")
    return '"' + "".join(escaped) + '"'


__all__ = (
    "ExitStatus",
    "Source",
    "FlagError",
    "HelpRequested",
    "FlagValueError",
    "DecoratedValueError",
    "CommandFault",
    "NoArgumentsError",
    "MissingCommandError",
    "UnknownCommandError",
    "quote",
)

