"""Compiled property access."""

from .property_accessor import PropertyAccessor, PropertyInfo, clear_accessor_cache, get_property_accessor

__all__ = ["PropertyAccessor", "PropertyInfo", "get_property_accessor", "clear_accessor_cache"]
