"""Bidirectional type converters and the registry that holds them.

Converters let a rule written for one value kind run against a property of
another kind: a string rule on an ``int`` property goes ``int -> str``,
through the rule, then ``str -> int``. Every built-in converter bridges a
value kind to its canonical ``str`` form and round-trips exactly.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from threading import Lock
from typing import Any, Callable, Generic, Optional, TypeVar

from ..core.exceptions import ConversionError, InvalidArgumentError

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


class TypeConverter(ABC, Generic[S, T]):
    """Converts values of ``source_type`` to ``target_type`` and back.

    Implementations must be deterministic and ``convert_back(convert(s)) == s``
    for every value ``s`` in their domain.
    """

    source_type: type
    target_type: type

    @abstractmethod
    def convert(self, value: S) -> T:
        """Convert a source value to the target type."""

    @abstractmethod
    def convert_back(self, value: T) -> S:
        """Convert a target value back to the source type."""

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"({self.source_type.__name__} <-> {self.target_type.__name__})"
        )


class FunctionConverter(TypeConverter[S, T]):
    """Converter built from a pair of plain functions."""

    def __init__(
        self,
        source_type: type,
        target_type: type,
        convert: Callable[[S], T],
        convert_back: Callable[[T], S],
    ) -> None:
        if not isinstance(source_type, type) or not isinstance(target_type, type):
            raise InvalidArgumentError(
                "Converter source_type and target_type must be classes",
                argument_name="source_type",
            )
        if not callable(convert) or not callable(convert_back):
            raise InvalidArgumentError(
                "Converter functions must be callable",
                argument_name="convert",
            )
        self.source_type = source_type
        self.target_type = target_type
        self._convert = convert
        self._convert_back = convert_back

    def convert(self, value: S) -> T:
        if value is None:
            raise ConversionError(
                "Cannot convert None",
                source_type=self.source_type,
                target_type=self.target_type,
            )
        return self._convert(value)

    def convert_back(self, value: T) -> S:
        if value is None:
            raise ConversionError(
                "Cannot convert None back",
                source_type=self.target_type,
                target_type=self.source_type,
            )
        try:
            return self._convert_back(value)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise ConversionError(
                f"Cannot convert {value!r} back to {self.source_type.__name__}: {e}",
                source_type=self.target_type,
                target_type=self.source_type,
            ) from e


@dataclass(frozen=True)
class ConversionPath:
    """Resolved route between two types.

    ``forward`` takes a value of the source type to the target type,
    ``backward`` takes it back.
    """

    source_type: type
    target_type: type
    forward: Callable[[Any], Any]
    backward: Callable[[Any], Any]
    description: str


def _identity(value: Any) -> Any:
    return value


class TypeConverterRegistry:
    """Registry of converters keyed by ``(source_type, target_type)``.

    Reads never lock: registration swaps in a new mapping under a lock, so
    a reader sees either the old or the new mapping, never a partial one.

    Examples:
        registry = TypeConverterRegistry.with_builtins()
        registry.register_functions(UUID, str, str, UUID)
        registry.get(int, str).convert(42)  # "42"
    """

    def __init__(self) -> None:
        self._converters: dict[tuple[type, type], TypeConverter] = {}
        self._lock = Lock()

    @classmethod
    def with_builtins(cls) -> "TypeConverterRegistry":
        """Create a registry pre-populated with the built-in converters."""
        registry = cls()
        for converter in builtin_converters():
            registry.register(converter)
        return registry

    def register(self, converter: TypeConverter) -> None:
        """Register ``converter``, replacing any converter for the same type pair."""
        if converter is None:
            raise InvalidArgumentError("Converter cannot be None", argument_name="converter")
        if not isinstance(converter, TypeConverter):
            raise InvalidArgumentError(
                f"Expected a TypeConverter, got {type(converter).__name__}",
                argument_name="converter",
            )

        key = (converter.source_type, converter.target_type)
        with self._lock:
            converters = dict(self._converters)
            replaced = key in converters
            converters[key] = converter
            self._converters = converters

        logger.debug(
            f"{'Replaced' if replaced else 'Registered'} converter "
            f"{key[0].__name__} -> {key[1].__name__}"
        )

    def register_functions(
        self,
        source_type: type,
        target_type: type,
        convert: Callable[[Any], Any],
        convert_back: Callable[[Any], Any],
    ) -> None:
        """Register a converter made from two functions."""
        self.register(FunctionConverter(source_type, target_type, convert, convert_back))

    def get(self, source_type: type, target_type: type) -> Optional[TypeConverter]:
        """Return the converter for exactly this ordered pair, or None."""
        return self._converters.get((source_type, target_type))

    def has_converter(self, source_type: type, target_type: type) -> bool:
        return (source_type, target_type) in self._converters

    def find_path(self, source_type: type, target_type: type) -> Optional[ConversionPath]:
        """Find a route from ``source_type`` to ``target_type`` and back.

        Tries, in order: identical types, a converter registered for the pair,
        a converter registered for the reversed pair, and a bridge through
        both types' canonical ``str`` forms.
        """
        if source_type is target_type:
            return ConversionPath(source_type, target_type, _identity, _identity, "identity")

        converters = self._converters

        direct = converters.get((source_type, target_type))
        if direct is not None:
            return ConversionPath(
                source_type, target_type, direct.convert, direct.convert_back, repr(direct)
            )

        reverse = converters.get((target_type, source_type))
        if reverse is not None:
            return ConversionPath(
                source_type, target_type, reverse.convert_back, reverse.convert, repr(reverse)
            )

        to_text = self._text_leg(converters, source_type)
        from_text = self._text_leg(converters, target_type)
        if to_text is not None and from_text is not None:
            source_to_text, text_to_source = to_text
            target_to_text, text_to_target = from_text
            return ConversionPath(
                source_type,
                target_type,
                lambda value: text_to_target(source_to_text(value)),
                lambda value: text_to_source(target_to_text(value)),
                f"{source_type.__name__} -> str -> {target_type.__name__}",
            )

        return None

    @staticmethod
    def _text_leg(
        converters: dict[tuple[type, type], TypeConverter], value_type: type
    ) -> Optional[tuple[Callable[[Any], Any], Callable[[Any], Any]]]:
        if value_type is str:
            return _identity, _identity
        converter = converters.get((value_type, str))
        if converter is not None:
            return converter.convert, converter.convert_back
        converter = converters.get((str, value_type))
        if converter is not None:
            return converter.convert_back, converter.convert
        return None

    def registered_pairs(self) -> list[tuple[type, type]]:
        return list(self._converters)

    def __len__(self) -> int:
        return len(self._converters)

    def __contains__(self, pair: tuple[type, type]) -> bool:
        return pair in self._converters


def _decimal_from_text(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal literal {text!r}") from e


def _date_to_datetime(value: date) -> datetime:
    return datetime(value.year, value.month, value.day)


def builtin_converters() -> list[TypeConverter]:
    """The converters every default registry starts with.

    ``datetime`` covers both naive values and values with a UTC offset; the
    ISO 8601 text keeps the offset so it round-trips. ``date`` also converts
    directly to midnight ``datetime`` so date rules run on date properties.
    """
    return [
        FunctionConverter(int, str, str, int),
        FunctionConverter(Decimal, str, str, _decimal_from_text),
        FunctionConverter(float, str, repr, float),
        FunctionConverter(datetime, str, datetime.isoformat, datetime.fromisoformat),
        FunctionConverter(date, str, date.isoformat, date.fromisoformat),
        FunctionConverter(date, datetime, _date_to_datetime, datetime.date),
    ]


_default_registry: Optional[TypeConverterRegistry] = None
_DEFAULT_REGISTRY_LOCK = Lock()


def get_default_registry() -> TypeConverterRegistry:
    """Get the process-wide default registry, building it on first use."""
    global _default_registry
    registry = _default_registry
    if registry is not None:
        return registry

    with _DEFAULT_REGISTRY_LOCK:
        if _default_registry is None:
            _default_registry = TypeConverterRegistry.with_builtins()
            logger.debug(f"Built default converter registry with {len(_default_registry)} converters")
        return _default_registry


def reset_default_registry() -> None:
    """Discard the default registry for testing purposes."""
    global _default_registry
    with _DEFAULT_REGISTRY_LOCK:
        _default_registry = None
