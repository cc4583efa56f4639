"""Compiled, cached property access for record types.

A ``PropertyAccessor`` is built once per record type. Building it inspects
the type (dataclass fields, pydantic model fields, annotated attributes and
``property`` objects) and keeps, per property, a getter and, when the
property is writable, a setter. After that, reads and writes go straight
through those callables with no further inspection of the type.
"""

import dataclasses
import logging
import operator
import sys
import types
import typing
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Optional

from pydantic import BaseModel

from ..core.exceptions import (
    ImmutablePropertyError,
    InvalidArgumentError,
    PropertyNotFoundError,
)

logger = logging.getLogger(__name__)

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]

_ACCESSOR_CACHE: dict[type, "PropertyAccessor"] = {}
_ACCESSOR_LOCK = Lock()


@dataclass(frozen=True)
class PropertyInfo:
    """Type descriptor for one compiled property.

    Attributes:
        name: Property name
        value_type: Declared type with Optional unwrapped, None when undeclared
        nullable: Whether the declaration allows None
        writable: Whether the property has a setter
        source: Where the property came from (field|property|attribute)
    """

    name: str
    value_type: Optional[Any]
    nullable: bool = False
    writable: bool = True
    source: str = "field"

    @property
    def base_type(self) -> Optional[type]:
        """Runtime class of the declared type (``list`` for ``list[int]``)."""
        if self.value_type is None:
            return None
        origin = typing.get_origin(self.value_type)
        candidate = origin if origin is not None else self.value_type
        return candidate if isinstance(candidate, type) else None


@dataclass(frozen=True)
class _CompiledProperty:
    info: PropertyInfo
    getter: Getter
    setter: Optional[Setter]


class PropertyAccessor:
    """Get/set bridge for the named properties of one record type.

    Use ``get_property_accessor(cls)`` (or ``PropertyAccessor.for_type``) to
    share one compiled accessor per type across the process.

    Examples:
        accessor = get_property_accessor(Person)
        accessor.get_value(person, "email")
        accessor.set_value(person, "email", "j***@example.com")
    """

    def __init__(self, record_type: type) -> None:
        if not isinstance(record_type, type):
            raise InvalidArgumentError(
                f"PropertyAccessor requires a class, got {type(record_type).__name__}",
                argument_name="record_type",
            )
        self.record_type = record_type
        self._properties: dict[str, _CompiledProperty] = _compile(record_type)
        self._names: tuple[str, ...] = tuple(self._properties)
        logger.debug(
            f"Compiled accessor for {record_type.__name__} with {len(self._names)} properties"
        )

    @classmethod
    def for_type(cls, record_type: type) -> "PropertyAccessor":
        """Return the shared, cached accessor for ``record_type``."""
        return get_property_accessor(record_type)

    def get_value(self, instance: Any, property_name: str) -> Any:
        """Read ``property_name`` from ``instance``."""
        return self._lookup(property_name).getter(instance)

    def set_value(self, instance: Any, property_name: str, value: Any) -> None:
        """Write ``value`` to ``property_name`` on ``instance``.

        Raises:
            PropertyNotFoundError: If the property is unknown
            ImmutablePropertyError: If the property has no setter
        """
        compiled = self._lookup(property_name)
        if compiled.setter is None:
            raise ImmutablePropertyError(
                f"Property '{property_name}' of {self.record_type.__name__} is read-only",
                property_name=property_name,
                record_type=self.record_type.__name__,
            )
        compiled.setter(instance, value)

    def has_property(self, property_name: str) -> bool:
        return property_name in self._properties

    def get_property_names(self) -> tuple[str, ...]:
        """Property names in declaration order."""
        return self._names

    def get_property_info(self, property_name: str) -> PropertyInfo:
        return self._lookup(property_name).info

    def is_writable(self, property_name: str) -> bool:
        return self._lookup(property_name).setter is not None

    def to_dict(self, instance: Any) -> dict[str, Any]:
        """Read every property of ``instance`` into a dict."""
        return {name: compiled.getter(instance) for name, compiled in self._properties.items()}

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"PropertyAccessor({self.record_type.__name__}, properties={list(self._names)})"

    def _lookup(self, property_name: str) -> _CompiledProperty:
        try:
            return self._properties[property_name]
        except KeyError:
            raise PropertyNotFoundError(
                f"Property '{property_name}' not found on {self.record_type.__name__}",
                property_name=property_name,
                record_type=self.record_type.__name__,
                recovery_suggestions=[f"Known properties: {', '.join(self._names) or '(none)'}"],
            ) from None


def get_property_accessor(record_type: type) -> PropertyAccessor:
    """Return the cached accessor for ``record_type``, compiling it on first use.

    Concurrent first calls for the same type compile it exactly once.
    """
    accessor = _ACCESSOR_CACHE.get(record_type)
    if accessor is not None:
        return accessor

    with _ACCESSOR_LOCK:
        accessor = _ACCESSOR_CACHE.get(record_type)
        if accessor is None:
            accessor = PropertyAccessor(record_type)
            _ACCESSOR_CACHE[record_type] = accessor
        return accessor


def clear_accessor_cache() -> None:
    """Drop every cached accessor. Intended for tests."""
    with _ACCESSOR_LOCK:
        _ACCESSOR_CACHE.clear()


def _compile(record_type: type) -> dict[str, _CompiledProperty]:
    hints = _resolve_hints(record_type)
    compiled: dict[str, _CompiledProperty] = {}

    if dataclasses.is_dataclass(record_type):
        frozen = record_type.__dataclass_params__.frozen
        for dc_field in dataclasses.fields(record_type):
            if dc_field.name.startswith("_"):
                continue
            compiled[dc_field.name] = _compile_field(
                dc_field.name, hints.get(dc_field.name), writable=not frozen, source="field"
            )
    elif isinstance(getattr(record_type, "model_fields", None), dict):
        # pydantic models
        frozen = bool(getattr(record_type, "model_config", {}).get("frozen", False))
        for name, model_field in record_type.model_fields.items():
            if name.startswith("_"):
                continue
            compiled[name] = _compile_field(
                name, hints.get(name, model_field.annotation), writable=not frozen, source="field"
            )
    else:
        for name, hint in hints.items():
            if name.startswith("_") or _is_classvar(hint):
                continue
            if isinstance(_class_attribute(record_type, name), (property, types.FunctionType)):
                continue
            compiled[name] = _compile_field(name, hint, writable=True, source="attribute")

    for name, prop in _public_properties(record_type):
        if name in compiled:
            continue
        compiled[name] = _compile_property(name, prop)

    return compiled


def _compile_field(name: str, hint: Any, writable: bool, source: str) -> _CompiledProperty:
    value_type, nullable = _unwrap_optional(hint)
    setter = _make_setter(name) if writable else None
    return _CompiledProperty(
        info=PropertyInfo(
            name=name,
            value_type=value_type,
            nullable=nullable,
            writable=writable,
            source=source,
        ),
        getter=operator.attrgetter(name),
        setter=setter,
    )


def _compile_property(name: str, prop: property) -> _CompiledProperty:
    hint = None
    if prop.fget is not None:
        try:
            hint = typing.get_type_hints(prop.fget).get("return")
        except (NameError, TypeError):
            hint = getattr(prop.fget, "__annotations__", {}).get("return")
            if isinstance(hint, str):
                hint = None
    value_type, nullable = _unwrap_optional(hint)
    return _CompiledProperty(
        info=PropertyInfo(
            name=name,
            value_type=value_type,
            nullable=nullable,
            writable=prop.fset is not None,
            source="property",
        ),
        getter=prop.fget if prop.fget is not None else operator.attrgetter(name),
        setter=prop.fset,
    )


def _make_setter(name: str) -> Setter:
    def setter(instance: Any, value: Any) -> None:
        setattr(instance, name, value)

    setter.__name__ = f"set_{name}"
    return setter


def _resolve_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError) as e:
        logger.debug(
            f"Could not resolve type hints of {record_type.__name__} ({e}), "
            f"unresolved annotations are treated as undeclared"
        )

    hints: dict[str, Any] = {}
    for klass in reversed(record_type.__mro__):
        annotations = klass.__dict__.get("__annotations__", {})
        module_globals = getattr(sys.modules.get(klass.__module__), "__dict__", {})
        for name, annotation in annotations.items():
            if isinstance(annotation, str):
                annotation = module_globals.get(annotation)
            hints[name] = annotation
    return hints


def _unwrap_optional(hint: Any) -> tuple[Optional[Any], bool]:
    if hint is None or hint is Any or hint is object or hint is type(None):
        return None, True

    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        nullable = len(args) != len(typing.get_args(hint))
        if len(args) == 1:
            inner, _ = _unwrap_optional(args[0])
            return inner, nullable
        # a union of several kinds has no single declared type
        return None, nullable

    if origin is typing.Annotated:
        return _unwrap_optional(typing.get_args(hint)[0])

    return hint, False


def _is_classvar(hint: Any) -> bool:
    return hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar


def _class_attribute(record_type: type, name: str) -> Any:
    for klass in record_type.__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return None


def _public_properties(record_type: type) -> list[tuple[str, property]]:
    found: dict[str, property] = {}
    for klass in reversed(record_type.__mro__):
        if issubclass(BaseModel, klass):
            # object, BaseModel and its bases contribute no record properties
            continue
        for name, value in klass.__dict__.items():
            if isinstance(value, property) and not name.startswith("_"):
                found[name] = value
    return list(found.items())
