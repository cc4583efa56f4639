"""Rule abstraction shared by every masking rule.

A rule turns one value into its masked form through ``apply``. The engine
never looks inside a rule; it only asks which value kind the rule takes
(``accepts`` / ``input_type``) and which kind it returns
(``output_type_for``) so it can route values through the converter
registry before the rule runs.
"""

import random
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from fractions import Fraction
from typing import Any, Iterable, Optional

from ..core.exceptions import InvalidArgumentError, RuleApplicationError
from .seeding import SeedProvider, unseeded_random, validate_seed

NUMERIC_TYPES: tuple[type, ...] = (int, float, Decimal, Fraction)


def is_numeric_type(value_type: Any) -> bool:
    """Whether ``value_type`` is an ordered numeric kind (``bool`` is not)."""
    return (
        isinstance(value_type, type)
        and issubclass(value_type, NUMERIC_TYPES)
        and not issubclass(value_type, bool)
    )


class MaskRule(ABC):
    """A single masking transformation.

    Subclasses implement ``apply``. A rule holds nothing but its own
    configuration (and, for seeded rules, a seed provider).
    """

    input_type: type = object
    output_type: type = object

    @abstractmethod
    def apply(self, value: Any) -> Any:
        """Return the masked form of ``value``."""

    def accepts(self, value_type: Any) -> bool:
        """Whether values of ``value_type`` can be passed to ``apply`` as-is."""
        return isinstance(value_type, type) and issubclass(value_type, self.input_type)

    def output_type_for(self, input_type: type) -> type:
        """Type ``apply`` returns when given a value of ``input_type``."""
        return self.output_type

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def __repr__(self) -> str:
        settings = ", ".join(
            f"{key.lstrip('_')}={value!r}"
            for key, value in vars(self).items()
            if not key.startswith("__") and key != "_seed_provider"
        )
        return f"{self.name}({settings})"


class StringMaskRule(MaskRule):
    """Rule from ``str`` to ``str``."""

    input_type = str
    output_type = str


class NumericMaskRule(MaskRule):
    """Rule from a numeric kind to the same numeric kind.

    Args:
        value_type: Pin the rule to one numeric kind. When omitted the rule
            accepts ``int``, ``float``, ``Decimal`` and ``Fraction`` and returns
            the kind it was given; values of other kinds are converted to
            ``Decimal``.
    """

    def __init__(self, value_type: Optional[type] = None) -> None:
        if value_type is not None and not is_numeric_type(value_type):
            raise InvalidArgumentError(
                f"value_type must be a numeric type, got {value_type!r}",
                argument_name="value_type",
            )
        self.value_type = value_type

    @property
    def input_type(self) -> type:  # type: ignore[override]
        return self.value_type or Decimal

    @property
    def output_type(self) -> type:  # type: ignore[override]
        return self.input_type

    def accepts(self, value_type: Any) -> bool:
        if self.value_type is not None:
            return value_type is self.value_type
        return is_numeric_type(value_type)

    def output_type_for(self, input_type: type) -> type:
        return input_type if self.accepts(input_type) else self.input_type


class DateTimeMaskRule(MaskRule):
    """Rule from ``datetime`` to ``datetime``; offset-aware values keep their offset."""

    input_type = datetime
    output_type = datetime

    def output_type_for(self, input_type: type) -> type:
        return input_type if self.accepts(input_type) else datetime


class SeededMaskRule(MaskRule):
    """Mixin for rules whose randomness can be made deterministic.

    ``seed_provider`` starts empty. Builders fill it from their pending seed
    (see ``MaskingBuilder.with_random_seed``); callers may also set it
    directly.
    """

    _seed_provider: Optional[SeedProvider] = None

    @property
    def seed_provider(self) -> Optional[SeedProvider]:
        return self._seed_provider

    @seed_provider.setter
    def seed_provider(self, provider: Optional[SeedProvider]) -> None:
        if provider is not None and not callable(provider):
            raise InvalidArgumentError(
                f"Seed provider must be callable, got {type(provider).__name__}",
                argument_name="seed_provider",
            )
        self._seed_provider = provider

    def random_for(self, value: Any) -> random.Random:
        """Random source for masking ``value``.

        Seeded from ``seed_provider(value)`` when a provider is set, otherwise
        the shared unseeded source.
        """
        if self._seed_provider is None:
            return unseeded_random()
        seed = self._seed_provider(value)
        try:
            validate_seed(seed, argument_name="seed_provider")
        except InvalidArgumentError as e:
            raise RuleApplicationError(
                f"Seed provider of {self.name} returned an invalid seed: {e.message}",
                rule_name=self.name,
            ) from e
        return random.Random(seed)


def apply_rules(rules: Iterable[MaskRule], value: Any) -> Any:
    """Pipe ``value`` through ``rules`` in order.

    Stops at the first rule that returns None, since no rule masks an absent
    value.
    """
    for rule in rules:
        if value is None:
            break
        value = rule.apply(value)
    return value


def require_non_negative(value: Any, argument_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f"{argument_name} must be an integer, got {type(value).__name__}",
            argument_name=argument_name,
        )
    if value < 0:
        raise InvalidArgumentError(
            f"{argument_name} must be non-negative, got {value}",
            argument_name=argument_name,
        )
    return value


def require_mask_char(mask_char: Any, argument_name: str = "mask_char") -> str:
    if not isinstance(mask_char, str) or len(mask_char) != 1:
        raise InvalidArgumentError(
            f"{argument_name} must be a single character, got {mask_char!r}",
            argument_name=argument_name,
        )
    return mask_char
