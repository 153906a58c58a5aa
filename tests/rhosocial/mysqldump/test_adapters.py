# tests/rhosocial/mysqldump/test_adapters.py
import datetime
import uuid
from decimal import Decimal

import pytest

from rhosocial.mysqldump.adapters import (
    AdapterRegistry,
    MySQLValueAdapter,
    to_typed_value,
)
from rhosocial.mysqldump.types import (
    NULL,
    ByteString,
    DateTime,
    Double,
    Float,
    Integer,
    Time,
    ValueKind,
)


class TestDriverValueConversion:
    """Conversion of values returned by mysql-connector-python"""

    def test_none(self):
        assert to_typed_value(None) is NULL

    def test_typed_values_pass_through(self):
        value = ByteString(b"x")
        assert to_typed_value(value) is value

    def test_int_and_bool(self):
        assert to_typed_value(7) == Integer(7)
        assert to_typed_value(True) == Integer(1)
        assert to_typed_value(False) == Integer(0)

    def test_unsigned_bigint(self):
        assert to_typed_value(18446744073709551615) == Integer(18446744073709551615)

    def test_float_defaults_to_double(self):
        assert to_typed_value(3.5) == Double(3.5)

    def test_float_column_hint(self):
        assert to_typed_value(3.5, ValueKind.FLOAT) == Float(3.5)

    def test_decimal_keeps_exact_text(self):
        assert to_typed_value(Decimal("12.30")) == ByteString(b"12.30")

    def test_binary_values(self):
        assert to_typed_value(bytearray(b"\x00\x01")) == ByteString(b"\x00\x01")
        assert to_typed_value(b"\xff") == ByteString(b"\xff")

    def test_text(self):
        assert to_typed_value("héllo") == ByteString("héllo".encode("utf-8"))

    def test_uuid(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert to_typed_value(value) == ByteString(b"12345678-1234-5678-1234-567812345678")

    def test_json(self):
        assert to_typed_value({"a": [1, "ü"]}) == ByteString('{"a": [1, "ü"]}'.encode("utf-8"))

    def test_set_members_are_sorted_and_joined(self):
        assert to_typed_value({"b", "a", "c"}) == ByteString(b"a,b,c")
        assert to_typed_value(frozenset({"x"})) == ByteString(b"x")
        assert to_typed_value(set()) == ByteString(b"")

    def test_naive_datetime(self):
        value = datetime.datetime(2024, 1, 5, 9, 3, 7, 12)
        assert to_typed_value(value) == DateTime(2024, 1, 5, 9, 3, 7, 12)

    def test_aware_datetime_is_normalized_to_utc(self):
        tz = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2024, 1, 1, 12, 0, 0, tzinfo=tz)
        assert to_typed_value(value) == DateTime(2024, 1, 1, 10, 0, 0)

    def test_date(self):
        assert to_typed_value(datetime.date(2024, 2, 29)) == DateTime(2024, 2, 29)

    def test_time(self):
        assert to_typed_value(datetime.time(1, 2, 3, 4)) == Time(False, 0, 1, 2, 3, 4)

    def test_timedelta(self):
        assert to_typed_value(datetime.timedelta(days=1, hours=2, seconds=5, microseconds=7)) == \
            Time(False, 1, 2, 0, 5, 7)

    def test_negative_timedelta(self):
        # -1 second is stored by timedelta as days=-1, seconds=86399
        assert to_typed_value(datetime.timedelta(seconds=-1)) == Time(True, 0, 0, 0, 1, 0)
        assert to_typed_value(datetime.timedelta(hours=-30, microseconds=-5)) == Time(True, 1, 6, 0, 0, 5)

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            to_typed_value(object())


class TestTypedValues:
    """Variant invariants"""

    def test_integer_range(self):
        assert Integer(2 ** 64 - 1).value == 18446744073709551615
        with pytest.raises(ValueError):
            Integer(2 ** 64)
        with pytest.raises(ValueError):
            Integer(-2 ** 63 - 1)

    def test_time_timedelta_round_trip(self):
        for delta in (datetime.timedelta(hours=838, minutes=59, seconds=59),
                      datetime.timedelta(hours=-838, minutes=-59, seconds=-59),
                      datetime.timedelta(microseconds=1)):
            assert Time.from_timedelta(delta).to_timedelta() == delta

    def test_total_hours(self):
        assert Time(False, 2, 5, 0, 0).total_hours == 53

    def test_datetime_conversion(self):
        value = datetime.datetime(2020, 5, 6, 7, 8, 9, 10)
        assert DateTime.from_datetime(value).to_datetime() == value

    def test_values_are_immutable(self):
        value = Integer(1)
        with pytest.raises(AttributeError):
            value.value = 2


class TestAdapterRegistry:
    """Custom adapter registration"""

    def test_custom_adapter(self):
        class Point:
            def __init__(self, x, y):
                self.x, self.y = x, y

        class PointAdapter(MySQLValueAdapter):
            @property
            def supported_types(self):
                return (Point,)

            def from_database(self, value, source_kind=None):
                return ByteString.from_text(f"POINT({value.x} {value.y})")

        registry = AdapterRegistry()
        registry.register(PointAdapter())
        assert registry.to_typed_value(Point(1, 2)) == ByteString(b"POINT(1 2)")

    def test_subclass_lookup(self):
        class MyStr(str):
            pass

        assert AdapterRegistry().to_typed_value(MyStr("x")) == ByteString(b"x")

    def test_empty_registry(self):
        with pytest.raises(TypeError):
            AdapterRegistry(adapters=[]).to_typed_value(1)
