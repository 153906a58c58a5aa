# src/rhosocial/mysqldump/converters.py
"""
Driver-level conversion of MySQL column values.

mysql-connector-python turns DATE, DATETIME and TIMESTAMP values that Python
cannot represent (``0000-00-00``, ``2024-00-10 ...``) into ``None``, which a
dump would then write as NULL. :class:`MySQLDumpConverter` keeps them as
:class:`~.types.DateTime` values carrying the original fields instead.
The backends install it through the ``converter_class`` connection argument.
"""

import re
from typing import Any, Optional

from mysql.connector.conversion import MySQLConverter

from .types import DateTime

_TEMPORAL_PATTERN = re.compile(
    rb"^(\d{4})-(\d{2})-(\d{2})"
    rb"(?: (\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,6}))?)?$"
)


def parse_temporal(value: bytes) -> Optional[DateTime]:
    """Parse the text protocol form of a DATE/DATETIME/TIMESTAMP value.

    Returns:
        DateTime with the fields as sent by the server, or None when the
        value does not have the expected shape
    """
    match = _TEMPORAL_PATTERN.match(bytes(value).strip())
    if not match:
        return None
    year, month, day, hour, minute, second, fraction = match.groups()
    microsecond = int(fraction.ljust(6, b"0")) if fraction else 0
    return DateTime(int(year), int(month), int(day),
                    int(hour or 0), int(minute or 0), int(second or 0), microsecond)


class MySQLDumpConverter(MySQLConverter):
    """MySQLConverter that keeps zero and partially zero dates."""

    def _date_to_python(self, value: Any, dsc: Any = None) -> Any:
        converted = super()._date_to_python(value, dsc)
        if converted is None and isinstance(value, (bytes, bytearray)):
            return parse_temporal(value)
        return converted

    def _datetime_to_python(self, value: Any, dsc: Any = None) -> Any:
        converted = super()._datetime_to_python(value, dsc)
        if converted is None and isinstance(value, (bytes, bytearray)):
            return parse_temporal(value)
        return converted

    # The base class aliases TIMESTAMP to the DATETIME conversion at class level
    _timestamp_to_python = _datetime_to_python
