# src/rhosocial/mysqldump/adapters.py
"""
Adapters from driver row values to typed values.

mysql-connector-python hands back plain Python objects (``int``, ``Decimal``,
``datetime.timedelta`` for TIME columns, ``bytearray`` for blobs, ...). Each
adapter below claims a set of Python types and converts them into one of the
variants of :mod:`.types`.
"""

import datetime
import json
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Type

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

_TYPED_VARIANTS = (Null, Integer, Float, Double, ByteString, DateTime, Time)


class MySQLValueAdapter:
    """Base class for driver value adapters."""

    @property
    def supported_types(self) -> Tuple[Type, ...]:
        raise NotImplementedError

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        raise NotImplementedError


class MySQLIntegerAdapter(MySQLValueAdapter):
    """
    Adapts ``int`` (and ``bool`` from TINYINT(1)) to Integer.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (int,)

    def from_database(self, value: int, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return Integer(int(value))


class MySQLFloatAdapter(MySQLValueAdapter):
    """
    Adapts ``float`` to Double, or to Float when the column is single precision.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (float,)

    def from_database(self, value: float, source_kind: Optional[ValueKind] = None) -> TypedValue:
        if source_kind is ValueKind.FLOAT:
            return Float(value)
        return Double(value)


class MySQLBlobAdapter(MySQLValueAdapter):
    """
    Adapts ``bytes``/``bytearray`` (BLOB, BINARY, and text in raw mode) to ByteString.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (bytes, bytearray, memoryview)

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString(bytes(value))


class MySQLTextAdapter(MySQLValueAdapter):
    """
    Adapts ``str`` to ByteString using UTF-8.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (str,)

    def from_database(self, value: str, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString.from_text(value)


class MySQLDecimalAdapter(MySQLValueAdapter):
    """
    Adapts ``Decimal`` to its exact text form, which MySQL accepts quoted.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (Decimal,)

    def from_database(self, value: Decimal, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString.from_text(str(value))


class MySQLUUIDAdapter(MySQLValueAdapter):
    """
    Adapts ``uuid.UUID`` to its CHAR(36) text form.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (uuid.UUID,)

    def from_database(self, value: uuid.UUID, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString.from_text(str(value))


class MySQLJSONAdapter(MySQLValueAdapter):
    """
    Adapts ``dict``/``list`` (JSON columns) to their serialized text.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (dict, list)

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString.from_text(json.dumps(value, ensure_ascii=False))


class MySQLSetAdapter(MySQLValueAdapter):
    """
    Adapts ``set`` (SET columns) to the comma separated member list MySQL accepts.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (set, frozenset)

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        return ByteString.from_text(",".join(sorted(value)))


class MySQLDatetimeAdapter(MySQLValueAdapter):
    """
    Adapts ``datetime``/``date`` to DateTime.

    Aware datetimes are normalized to UTC before the timezone is dropped,
    matching the ``SET time_zone = "+00:00"`` prologue of a dump.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (datetime.datetime, datetime.date)

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        if isinstance(value, datetime.datetime):
            if value.tzinfo is not None:
                value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
            return DateTime.from_datetime(value)
        return DateTime.from_date(value)


class MySQLTimeAdapter(MySQLValueAdapter):
    """
    Adapts ``timedelta`` (what the driver returns for TIME) and ``time`` to Time.
    """
    @property
    def supported_types(self) -> Tuple[Type, ...]:
        return (datetime.timedelta, datetime.time)

    def from_database(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        if isinstance(value, datetime.timedelta):
            return Time.from_timedelta(value)
        return Time.from_time(value)


DEFAULT_ADAPTERS: List[MySQLValueAdapter] = [
    MySQLIntegerAdapter(),
    MySQLFloatAdapter(),
    MySQLBlobAdapter(),
    MySQLTextAdapter(),
    MySQLDecimalAdapter(),
    MySQLUUIDAdapter(),
    MySQLJSONAdapter(),
    MySQLSetAdapter(),
    MySQLDatetimeAdapter(),
    MySQLTimeAdapter(),
]


class AdapterRegistry:
    """Looks up the adapter for a Python value by exact type, then by MRO."""

    def __init__(self, adapters: Optional[List[MySQLValueAdapter]] = None):
        self._adapters: Dict[Type, MySQLValueAdapter] = {}
        for adapter in adapters if adapters is not None else DEFAULT_ADAPTERS:
            self.register(adapter)

    def register(self, adapter: MySQLValueAdapter) -> None:
        for py_type in adapter.supported_types:
            self._adapters[py_type] = adapter

    def get_adapter(self, py_type: Type) -> Optional[MySQLValueAdapter]:
        for candidate in py_type.__mro__:
            adapter = self._adapters.get(candidate)
            if adapter is not None:
                return adapter
        return None

    def to_typed_value(self, value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
        """Convert a driver value to a typed value.

        Args:
            value: Value as returned by the driver
            source_kind: Optional column kind hint derived from the result metadata

        Returns:
            TypedValue: The matching variant

        Raises:
            TypeError: If no adapter handles the value's type
        """
        if value is None:
            return NULL
        if isinstance(value, _TYPED_VARIANTS):
            return value
        adapter = self.get_adapter(type(value))
        if adapter is None:
            raise TypeError(f"No adapter for value of type {type(value).__name__}")
        return adapter.from_database(value, source_kind)


default_registry = AdapterRegistry()


def to_typed_value(value: Any, source_kind: Optional[ValueKind] = None) -> TypedValue:
    """Convert a driver value to a typed value using the default adapters."""
    return default_registry.to_typed_value(value, source_kind)
