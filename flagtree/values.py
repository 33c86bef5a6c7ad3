"""
flagtree flag values.

A Value is the typed payload behind a flag: it converts command-line text into a
Python object, writes the result into a field of the parameter object, and gives
back a canonical text form for diagnostics.

Provided
- StringValue, IntValue, UintValue, FloatValue, BoolValue: bound to a field
  (attribute or mapping key) of a parameter object.
- FuncValue: hands every assignment to a callback; keeps no state of its own.
- Value: base class for custom types (override parse/format or set/__str__).

Conversion contract
- set(text) raises ValueError("parse error") for malformed text and
  ValueError("value out of range") for text outside the type's bounds.
- is_bool_flag() is True only for boolean values; the flag parser lets boolean
  flags appear without a value ("-v" means "-v=true").

Integers follow the conventional literal rules: optional sign, base prefixes
0x/0o/0b, a leading 0 for octal, and digit-group underscores.
"""
import math
import re
from collections.abc import Mapping

from .utils import Unset, store

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7_]+")


def _parse_error():
    return ValueError("parse error")


def _range_error():
    return ValueError("value out of range")


def parse_int(text, /, *, signed=True):
    """
    Parse an integer literal, returning a Python int.

    Whitespace is never trimmed; "0x", "0o", "0b" and a leading "0" select the base.
    """
    if not text or text != text.strip():
        raise _parse_error()
    if not signed and text[0] in "+-":
        raise _parse_error()
    try:
        if _LEGACY_OCTAL.fullmatch(text):
            number = int(text, 8)
        else:
            number = int(text, 0)
    except ValueError:
        raise _parse_error() from None
    return number


def parse_bool(text, /):
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise _parse_error()


def parse_float(text, /):
    if not text or text != text.strip():
        raise _parse_error()
    try:
        number = float(text)
    except ValueError:
        try:
            number = float.fromhex(text)
        except ValueError:
            raise _parse_error() from None
    if math.isinf(number) and "inf" not in text.lower():
        raise _range_error()
    return number


def format_float(number, /):
    text = repr(float(number))
    return text[:-2] if text.endswith(".0") else text


class Value:
    """
    Base class for flag values.

    Subclasses either override parse()/format() and inherit the binding behavior,
    or override set()/__str__ directly for values that are not bound to a field.
    """

    def __init__(self, target=Unset, key=Unset, default=Unset, /):
        self._target = target
        self._key = key
        if target is not Unset and default is not Unset:
            store(target, key, default)

    def parse(self, text, /):
        return text

    def format(self, value, /):
        return str(value)

    def get(self):
        if self._target is Unset:
            return None
        if isinstance(self._target, Mapping):
            return self._target.get(self._key)
        return getattr(self._target, self._key, None)

    def set(self, text, /):
        store(self._target, self._key, self.parse(text))

    def is_bool_flag(self):
        return False

    def __str__(self):
        value = self.get()
        return "" if value is None else self.format(value)

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class StringValue(Value):
    pass


class IntValue(Value):
    def parse(self, text, /):
        number = parse_int(text)
        if not INT64_MIN <= number <= INT64_MAX:
            raise _range_error()
        return number


class UintValue(Value):
    def parse(self, text, /):
        number = parse_int(text, signed=False)
        if number > UINT64_MAX:
            raise _range_error()
        return number


class FloatValue(Value):
    def parse(self, text, /):
        return parse_float(text)

    def format(self, value, /):
        return format_float(value)


class BoolValue(Value):
    def parse(self, text, /):
        return parse_bool(text)

    def format(self, value, /):
        return "true" if value else "false"

    def is_bool_flag(self):
        return True


class FuncValue(Value):
    """
    Value that forwards each assignment to a callback.

    The callback receives the raw text and rejects it by raising ValueError.
    It has no stored state, so its text form is always empty.
    """

    def __init__(self, callback, /):
        super().__init__()
        self._callback = callback

    def set(self, text, /):
        self._callback(text)

    def __str__(self):
        return ""


__all__ = (
    "Value",
    "StringValue",
    "IntValue",
    "UintValue",
    "FloatValue",
    "BoolValue",
    "FuncValue",
    "parse_int",
    "parse_bool",
    "parse_float",
)
