"""Tests for type converters and the converter registry."""

import threading
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fluentmasker.converters.registry import (
    FunctionConverter,
    TypeConverterRegistry,
    get_default_registry,
    reset_default_registry,
)
from fluentmasker.core.exceptions import ConversionError, InvalidArgumentError


class TestBuiltinConverters:
    def test_int(self, registry):
        converter = registry.get(int, str)
        assert converter.convert(-42) == "-42"
        assert converter.convert_back("-42") == -42

    def test_decimal_keeps_exponent(self, registry):
        converter = registry.get(Decimal, str)
        assert converter.convert(Decimal("1.10")) == "1.10"
        assert converter.convert_back("1E+3") == Decimal("1E+3")
        assert str(converter.convert_back("1E+3")) == "1E+3"

    def test_float_uses_shortest_repr(self, registry):
        converter = registry.get(float, str)
        assert converter.convert(0.1) == "0.1"
        assert converter.convert_back("0.1") == 0.1

    def test_datetime_keeps_offset(self, registry):
        value = datetime(2024, 3, 1, 8, 0, tzinfo=timezone(timedelta(hours=-5)))
        converter = registry.get(datetime, str)
        text = converter.convert(value)
        assert text == "2024-03-01T08:00:00-05:00"
        assert converter.convert_back(text).utcoffset() == timedelta(hours=-5)

    def test_date(self, registry):
        converter = registry.get(date, str)
        assert converter.convert(date(2024, 2, 29)) == "2024-02-29"

    def test_convert_back_none_raises(self, registry):
        with pytest.raises(ConversionError, match="Cannot convert None back"):
            registry.get(int, str).convert_back(None)

    def test_bad_text_raises_conversion_error(self, registry):
        with pytest.raises(ConversionError, match="back to int"):
            registry.get(int, str).convert_back("12a")
        with pytest.raises(ConversionError):
            registry.get(Decimal, str).convert_back("not a number")


class TestRegistry:
    def test_register_overwrites_pair(self, registry):
        registry.register_functions(int, str, lambda v: f"#{v}", lambda t: int(t[1:]))
        assert registry.get(int, str).convert(5) == "#5"

    def test_register_none_rejected(self, registry):
        with pytest.raises(InvalidArgumentError, match="cannot be None"):
            registry.register(None)

    def test_register_non_converter_rejected(self, registry):
        with pytest.raises(InvalidArgumentError, match="Expected a TypeConverter"):
            registry.register(object())

    def test_function_converter_validates_types(self):
        with pytest.raises(InvalidArgumentError):
            FunctionConverter("int", str, str, int)

    def test_has_converter_and_get(self, registry):
        assert registry.has_converter(int, str)
        assert not registry.has_converter(str, int)
        assert registry.get(str, int) is None
        assert (int, str) in registry

    def test_find_path_identity(self, registry):
        path = registry.find_path(str, str)
        assert path.forward("x") == "x"
        assert path.description == "identity"

    def test_find_path_direct(self, registry):
        path = registry.find_path(int, str)
        assert path.forward(7) == "7"
        assert path.backward("7") == 7

    def test_find_path_reversed(self, registry):
        path = registry.find_path(str, int)
        assert path.forward("7") == 7
        assert path.backward(7) == "7"

    def test_find_path_bridges_through_text(self, registry):
        path = registry.find_path(int, Decimal)
        assert path.forward(12) == Decimal("12")
        assert path.backward(Decimal("12")) == 12
        assert "str" in path.description

    def test_find_path_date_to_datetime(self, registry):
        path = registry.find_path(date, datetime)
        assert path.forward(date(2024, 1, 2)) == datetime(2024, 1, 2)
        assert path.backward(datetime(2024, 1, 2, 15)) == date(2024, 1, 2)

    def test_find_path_missing(self, registry):
        assert registry.find_path(uuid.UUID, int) is None

    def test_custom_type_through_text(self, registry):
        registry.register_functions(uuid.UUID, str, str, uuid.UUID)
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        path = registry.find_path(uuid.UUID, str)
        assert path.backward(path.forward(value)) == value


class TestDefaultRegistry:
    def test_default_registry_is_shared(self):
        assert get_default_registry() is get_default_registry()

    def test_reset(self):
        first = get_default_registry()
        reset_default_registry()
        assert get_default_registry() is not first

    def test_concurrent_first_use_builds_once(self):
        seen = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            seen.append(get_default_registry())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len({id(registry) for registry in seen}) == 1
