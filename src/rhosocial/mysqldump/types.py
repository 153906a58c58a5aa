# src/rhosocial/mysqldump/types.py
"""
Typed row values.

The variant set below is closed: every value read from a result set is one of
these, and the codec handles each of them. ``TypedValue`` is the union of all
variants and is what functions in :mod:`.codec` accept and return.
"""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Union

INT64_MIN = -(2 ** 63)
# Upper bound covers BIGINT UNSIGNED
UINT64_MAX = 2 ** 64 - 1


class ValueKind(Enum):
    """Discriminator of the typed value variants"""
    NULL = "NULL"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    BYTES = "BYTES"
    DATETIME = "DATETIME"
    TIME = "TIME"


@dataclass(frozen=True)
class Null:
    """SQL NULL"""
    kind = ValueKind.NULL


@dataclass(frozen=True)
class Integer:
    """Integer within the signed or unsigned 64-bit range"""
    value: int
    kind = ValueKind.INTEGER

    def __post_init__(self):
        if not INT64_MIN <= self.value <= UINT64_MAX:
            raise ValueError(f"Integer out of 64-bit range: {self.value}")


@dataclass(frozen=True)
class Float:
    """Single precision floating point number"""
    value: float
    kind = ValueKind.FLOAT


@dataclass(frozen=True)
class Double:
    """Double precision floating point number"""
    value: float
    kind = ValueKind.DOUBLE


@dataclass(frozen=True)
class ByteString:
    """Raw byte sequence, used for both text and binary columns"""
    value: bytes
    kind = ValueKind.BYTES

    @classmethod
    def from_text(cls, text: str, encoding: str = "utf-8") -> "ByteString":
        return cls(text.encode(encoding, "surrogateescape"))


@dataclass(frozen=True)
class DateTime:
    """Calendar date and wall clock time with microsecond fraction"""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    microsecond: int = 0
    kind = ValueKind.DATETIME

    @classmethod
    def from_datetime(cls, value: datetime.datetime) -> "DateTime":
        return cls(value.year, value.month, value.day,
                   value.hour, value.minute, value.second, value.microsecond)

    @classmethod
    def from_date(cls, value: datetime.date) -> "DateTime":
        return cls(value.year, value.month, value.day)

    def to_datetime(self) -> datetime.datetime:
        return datetime.datetime(self.year, self.month, self.day,
                                 self.hour, self.minute, self.second, self.microsecond)


@dataclass(frozen=True)
class Time:
    """Signed duration; the sign is kept apart from the magnitude fields.

    MySQL TIME values range beyond 24 hours, so a day count is carried
    separately and ``hours`` stays within 0-23.
    """
    negative: bool
    days: int
    hours: int
    minutes: int
    seconds: int
    microseconds: int = 0
    kind = ValueKind.TIME

    @property
    def total_hours(self) -> int:
        return self.days * 24 + self.hours

    @classmethod
    def from_timedelta(cls, value: datetime.timedelta) -> "Time":
        negative = value < datetime.timedelta(0)
        magnitude = -value if negative else value
        hours, remainder = divmod(magnitude.seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        return cls(negative, magnitude.days, hours, minutes, seconds, magnitude.microseconds)

    @classmethod
    def from_time(cls, value: datetime.time) -> "Time":
        return cls(False, 0, value.hour, value.minute, value.second, value.microsecond)

    def to_timedelta(self) -> datetime.timedelta:
        magnitude = datetime.timedelta(days=self.days, hours=self.hours, minutes=self.minutes,
                                       seconds=self.seconds, microseconds=self.microseconds)
        return -magnitude if self.negative else magnitude


TypedValue = Union[Null, Integer, Float, Double, ByteString, DateTime, Time]

NULL = Null()
