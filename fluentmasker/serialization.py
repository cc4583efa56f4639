"""JSON rendering of masked records."""

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Mapping, Optional

import simplejson

from .compilation.property_accessor import get_property_accessor
from .converters.registry import TypeConverterRegistry, get_default_registry


def to_jsonable(value: Any, registry: Optional[TypeConverterRegistry] = None) -> Any:
    """Convert a staged value into plain JSON-compatible Python data.

    Numbers stay numbers: integral ``Decimal`` values become ints and other
    finite ones are kept as ``Decimal`` so ``dumps`` writes their exact
    digits. Non-finite decimals become None. Dates and datetimes become
    ISO 8601 strings and enums their value. Dataclasses and pydantic models
    are expanded through their accessor. Any other value is rendered with
    the registry's converter to ``str`` when there is one, else ``str``.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        if value == value.to_integral_value():
            return int(value)
        return value
    if isinstance(value, Fraction):
        return value.numerator if value.denominator == 1 else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return to_jsonable(value.value, registry)
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item, registry) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=repr) if isinstance(value, (set, frozenset)) else value
        return [to_jsonable(item, registry) for item in items]
    if isinstance(value, bytes):
        return value.hex()

    if _is_record(value):
        accessor = get_property_accessor(type(value))
        return {name: to_jsonable(item, registry) for name, item in accessor.to_dict(value).items()}

    converter = (registry or get_default_registry()).get(type(value), str)
    if converter is not None:
        return converter.convert(value)
    return str(value)


def dumps(value: Any, indent: Optional[int] = None, registry: Optional[TypeConverterRegistry] = None) -> str:
    """Serialize a staged record (or list of records) to JSON text.

    Decimals are written with their exact digits and NaN or infinite
    floats as null, so the output is always valid JSON.
    """
    return simplejson.dumps(
        to_jsonable(value, registry),
        indent=indent,
        ensure_ascii=False,
        use_decimal=True,
        ignore_nan=True,
    )


def _is_record(value: Any) -> bool:
    record_type = type(value)
    if dataclasses.is_dataclass(record_type):
        return True
    return isinstance(getattr(record_type, "model_fields", None), dict)
