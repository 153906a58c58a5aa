# src/rhosocial/mysqldump/codec.py
"""
Value codec: typed values to MySQL literals and back.

``encode_value`` produces text that can be placed directly inside a
``VALUES (...)`` clause. ``decode_literal`` is its inverse and follows the
literal rules MySQL applies when the dump is executed again.
"""

import datetime
import re
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from .adapters import to_typed_value
from .errors import LiteralDecodeError
from .types import (
    NULL,
    ByteString,
    DateTime,
    Double,
    Float,
    Integer,
    Null,
    Time,
    TypedValue,
    ValueKind,
)

# Applied in order; the backslash must come first so the escapes introduced
# by the later substitutions are not escaped again.
_STRING_ESCAPES = (
    ("\\", "\\\\"),
    ("'", "\\'"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\x00", "\\0"),
    ("\x1a", "\\Z"),
)

# MySQL string literal escapes; any other escaped character stands for itself
_STRING_UNESCAPES = {
    "0": "\x00",
    "'": "'",
    '"': '"',
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
    "\\": "\\",
}
# Kept with their backslash so LIKE patterns survive
_PATTERN_ESCAPES = ("%", "_")

ROW_SEPARATOR = ",\n"
BATCH_TERMINATOR = ";\n\n"

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_DATETIME_PATTERN = re.compile(
    r"^(\d{4})-(\d{1,2})-(\d{1,2})"
    r"(?:[ T](\d{1,2}):(\d{1,2}):(\d{1,2})(?:\.(\d{1,6}))?)?$"
)
_TIME_PATTERN = re.compile(r"^(-?)(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d{1,6}))?$")


def escape_string(text: str) -> str:
    """Escape ``text`` for use inside a single-quoted MySQL string literal."""
    for target, replacement in _STRING_ESCAPES:
        text = text.replace(target, replacement)
    return text


def encode_bytes(data: bytes, encoding: str = "utf-8") -> str:
    """Encode a byte string as a quoted literal.

    Bytes that do not decode are carried as surrogate escapes so that a
    writer using ``errors='surrogateescape'`` reproduces them exactly.
    """
    return f"'{escape_string(data.decode(encoding, 'surrogateescape'))}'"


def format_float(value: float) -> str:
    """Plain decimal form of ``value``.

    Keeps the shortest digits that read back as the same float (``repr``) but
    expands any exponent. Integral results keep a ``.0`` so they still parse
    as a floating point literal.
    """
    text = repr(float(value))
    if "e" not in text:
        return text
    text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


def format_datetime(value: DateTime) -> str:
    return (f"'{value.year:04d}-{value.month:02d}-{value.day:02d} "
            f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond:06d}'")


def format_time(value: Time) -> str:
    # Days fold into the hour count, as accepted by TIME literals
    sign = "-" if value.negative else ""
    return (f"'{sign}{value.total_hours}:{value.minutes:02d}:{value.seconds:02d}"
            f".{value.microseconds:06d}'")


def encode_value(value: Any) -> str:
    """Encode a single value as a MySQL literal.

    Args:
        value: A typed value, or a driver value that the default adapters
            can convert (``None``, ``int``, ``str``, ``bytes``, ``datetime`` ...)

    Returns:
        str: Literal text such as ``NULL``, ``42`` or ``'it\\'s'``
    """
    typed = to_typed_value(value)

    if isinstance(typed, Null):
        return "NULL"
    if isinstance(typed, Integer):
        return str(typed.value)
    if isinstance(typed, (Float, Double)):
        return format_float(typed.value)
    if isinstance(typed, ByteString):
        return encode_bytes(typed.value)
    if isinstance(typed, DateTime):
        return format_datetime(typed)
    if isinstance(typed, Time):
        return format_time(typed)
    raise TypeError(f"Unhandled typed value: {typed!r}")


def format_row(values: Iterable[Any]) -> str:
    """Format one row tuple as ``(v1, v2, ...)``."""
    return "(" + ", ".join(encode_value(value) for value in values) + ")"


def format_rows(rows: Sequence[Iterable[Any]]) -> str:
    """Format rows for a multi-row VALUES clause.

    Rows are separated by ``,\\n``; the last one is closed with ``;\\n\\n``.
    Returns an empty string for an empty row set.
    """
    if not rows:
        return ""
    return ROW_SEPARATOR.join(format_row(row) for row in rows) + BATCH_TERMINATOR


def unescape_string(body: str, quote: str = "'") -> str:
    """Undo MySQL string escaping for the body of a quoted literal."""
    result = []
    index = 0
    length = len(body)
    while index < length:
        char = body[index]
        if char == "\\":
            if index + 1 >= length:
                raise LiteralDecodeError("Dangling backslash at end of string literal")
            escaped = body[index + 1]
            if escaped in _PATTERN_ESCAPES:
                result.append("\\" + escaped)
            else:
                result.append(_STRING_UNESCAPES.get(escaped, escaped))
            index += 2
            continue
        if char == quote:
            if index + 1 < length and body[index + 1] == quote:
                result.append(quote)
                index += 2
                continue
            raise LiteralDecodeError(f"Unescaped quote inside string literal at offset {index}")
        result.append(char)
        index += 1
    return "".join(result)


def _fraction_to_microseconds(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    return int(fraction.ljust(6, "0"))


def _parse_datetime(text: str) -> DateTime:
    match = _DATETIME_PATTERN.match(text)
    if not match:
        raise LiteralDecodeError(f"Invalid DATETIME literal: {text!r}")
    value = DateTime(*(int(part or 0) for part in match.groups()[:6]),
                     _fraction_to_microseconds(match.group(7)))
    if not _is_valid_datetime(value):
        raise LiteralDecodeError(f"DATETIME literal out of range: {text!r}")
    return value


def _is_valid_datetime(value: DateTime) -> bool:
    if value.hour > 23 or value.minute > 59 or value.second > 59:
        return False
    if 0 in (value.year, value.month, value.day):
        # Zero dates and zero parts are stored by MySQL as written
        return value.month <= 12 and value.day <= 31
    try:
        datetime.date(value.year, value.month, value.day)
    except ValueError:
        return False
    return True


def _parse_time(text: str) -> Time:
    match = _TIME_PATTERN.match(text)
    if not match:
        raise LiteralDecodeError(f"Invalid TIME literal: {text!r}")
    sign, hours, minutes, seconds, fraction = match.groups()
    if int(minutes) > 59 or int(seconds) > 59:
        raise LiteralDecodeError(f"TIME literal out of range: {text!r}")
    days, hours = divmod(int(hours), 24)
    return Time(sign == "-", days, hours, int(minutes), int(seconds),
                _fraction_to_microseconds(fraction))


def decode_literal(text: str, kind: Optional[ValueKind] = None) -> TypedValue:
    """Parse a literal produced by :func:`encode_value` back into a typed value.

    Quoted literals decode to ByteString unless ``kind`` asks for DATETIME or
    TIME. Unquoted numbers decode to Integer when integral, otherwise to
    Double (or Float when ``kind`` is FLOAT).

    Args:
        text: Literal text
        kind: Optional expected kind of the column

    Returns:
        TypedValue: The decoded value

    Raises:
        LiteralDecodeError: If the text is not a valid literal
    """
    literal = text.strip()
    if not literal:
        raise LiteralDecodeError("Empty literal")

    if literal.upper() == "NULL":
        return NULL

    if literal[0] in ("'", '"'):
        quote = literal[0]
        if len(literal) < 2 or literal[-1] != quote:
            raise LiteralDecodeError(f"Unterminated string literal: {literal!r}")
        body = unescape_string(literal[1:-1], quote)
        if kind is ValueKind.DATETIME:
            return _parse_datetime(body)
        if kind is ValueKind.TIME:
            return _parse_time(body)
        return ByteString.from_text(body)

    if _INTEGER_PATTERN.match(literal) and kind not in (ValueKind.FLOAT, ValueKind.DOUBLE):
        try:
            return Integer(int(literal))
        except ValueError as e:
            raise LiteralDecodeError(str(e)) from e
    try:
        number = float(literal)
    except ValueError:
        raise LiteralDecodeError(f"Invalid literal: {literal!r}")
    if kind is ValueKind.FLOAT:
        return Float(number)
    return Double(number)
