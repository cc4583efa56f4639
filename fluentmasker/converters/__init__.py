"""Type converters."""

from .registry import (
    ConversionPath,
    FunctionConverter,
    TypeConverter,
    TypeConverterRegistry,
    builtin_converters,
    get_default_registry,
    reset_default_registry,
)

__all__ = [
    "TypeConverter",
    "FunctionConverter",
    "ConversionPath",
    "TypeConverterRegistry",
    "builtin_converters",
    "get_default_registry",
    "reset_default_registry",
]
