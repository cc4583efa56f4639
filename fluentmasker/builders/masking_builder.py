"""Fluent builders that compose ordered rule sequences for one value kind."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from ..core.exceptions import InvalidArgumentError
from ..rules.base import DateTimeMaskRule, MaskRule, NumericMaskRule, SeededMaskRule, StringMaskRule, is_numeric_type
from ..rules.identifiers import (
    CardMaskRule,
    EmailDomainStrategy,
    EmailMaskRule,
    HashAlgorithm,
    HashOutputFormat,
    HashRule,
    IbanMaskRule,
    NationalIdMaskRule,
    PhoneMaskRule,
    SaltMode,
    UrlMaskRule,
)
from ..rules.numeric import NoiseAdditiveRule, NoiseDistribution, RoundToRule
from ..rules.patterns import (
    BlacklistCharsRule,
    CharClass,
    MaskCharClassRule,
    RegexMaskGroupRule,
    RegexReplaceRule,
    TemplateMaskRule,
    WhitelistCharsRule,
)
from ..rules.seeding import SeedProvider, constant_seed
from ..rules.temporal import DateAgeMaskRule, DateMaskingMode, DateShiftRule, Granularity, TimeBucketRule
from ..rules.text import (
    KeepFirstRule,
    KeepLastRule,
    MaskEndRule,
    MaskFrom,
    MaskMiddleRule,
    MaskPercentageRule,
    MaskRangeRule,
    MaskStartRule,
    NullOutRule,
    RedactRule,
    TruncateRule,
)

logger = logging.getLogger(__name__)

Seed = Union[int, SeedProvider]


def _seed_provider_from(seed: Any) -> SeedProvider:
    if seed is None:
        raise InvalidArgumentError("Seed cannot be None", argument_name="seed")
    if isinstance(seed, bool):
        raise InvalidArgumentError("Seed must be an int or a callable, got bool", argument_name="seed")
    if isinstance(seed, int):
        return constant_seed(seed)
    if callable(seed):
        return seed
    raise InvalidArgumentError(
        f"Seed must be an int or a callable, got {type(seed).__name__}",
        argument_name="seed",
    )


class MaskingBuilder:
    """Ordered list of rules of one kind, with a single pending seed slot.

    ``with_random_seed`` stores a seed provider that the next seed-aware rule
    added consumes. Rules without randomness leave it pending, and a second
    call before it is consumed replaces it.

    Examples:
        rules = (
            StringMaskingBuilder()
            .with_random_seed(42)
            .date_age_mask(DateMaskingMode.DATE_SHIFT)
            .build()
        )
    """

    rule_kind: type = MaskRule

    def __init__(self) -> None:
        self._rules: list[MaskRule] = []
        self._pending_seed: Optional[SeedProvider] = None

    @property
    def pending_seed_provider(self) -> Optional[SeedProvider]:
        return self._pending_seed

    def _check_rule(self, rule: Any) -> None:
        if rule is None:
            raise InvalidArgumentError("Rule cannot be None", argument_name="rule")
        if not isinstance(rule, self.rule_kind):
            raise InvalidArgumentError(
                f"{self.__class__.__name__} only accepts {self.rule_kind.__name__} rules, "
                f"got {type(rule).__name__}",
                argument_name="rule",
            )

    def add_rule(self, rule: MaskRule) -> "MaskingBuilder":
        """Append ``rule``, handing it the pending seed if it uses randomness.

        Returns:
            Self for method chaining

        Raises:
            InvalidArgumentError: If ``rule`` is None or of another kind
        """
        self._check_rule(rule)
        if self._pending_seed is not None and isinstance(rule, SeededMaskRule):
            rule.seed_provider = self._pending_seed
            self._pending_seed = None
            logger.debug(f"Pending seed provider consumed by {rule.name}")
        self._rules.append(rule)
        return self

    def add_rules(self, rules: Iterable[MaskRule]) -> "MaskingBuilder":
        for rule in rules:
            self.add_rule(rule)
        return self

    def with_random_seed(self, seed: Seed) -> "MaskingBuilder":
        """Set the pending seed: a fixed int or a ``value -> int`` function."""
        self._pending_seed = _seed_provider_from(seed)
        return self

    def build(self) -> tuple[MaskRule, ...]:
        """Snapshot of the rules added so far."""
        return tuple(self._rules)

    def reset(self) -> "MaskingBuilder":
        """Drop all rules and any pending seed."""
        self._rules.clear()
        self._pending_seed = None
        return self

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={self._rules!r})"


def with_random_seed(builder: Optional[MaskingBuilder], seed: Seed) -> MaskingBuilder:
    """Function form of ``MaskingBuilder.with_random_seed``."""
    if builder is None:
        raise InvalidArgumentError("Builder cannot be None", argument_name="builder")
    return builder.with_random_seed(seed)


class StringMaskingBuilder(MaskingBuilder):
    """Builder for ``str`` rules, with a shortcut for every string rule."""

    rule_kind = StringMaskRule

    # Positional

    def mask_start(self, count: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(MaskStartRule(count, mask_char))

    def mask_end(self, count: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(MaskEndRule(count, mask_char))

    def mask_middle(self, keep_first: int, keep_last: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(MaskMiddleRule(keep_first, keep_last, mask_char))

    def keep_first(self, count: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(KeepFirstRule(count, mask_char))

    def keep_last(self, count: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(KeepLastRule(count, mask_char))

    def mask_range(self, start: int, length: int, mask_char: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(MaskRangeRule(start, length, mask_char))

    def mask_percentage(
        self, percentage: float, mask_from: MaskFrom = MaskFrom.START, mask_char: str = "*"
    ) -> "StringMaskingBuilder":
        return self.add_rule(MaskPercentageRule(percentage, mask_from, mask_char))

    def null_out(self) -> "StringMaskingBuilder":
        return self.add_rule(NullOutRule())

    def redact(self, replacement: str = "[REDACTED]") -> "StringMaskingBuilder":
        return self.add_rule(RedactRule(replacement))

    def truncate(self, max_length: int, suffix: str = "…") -> "StringMaskingBuilder":
        return self.add_rule(TruncateRule(max_length, suffix))

    # Patterns

    def template(self, template: str) -> "StringMaskingBuilder":
        return self.add_rule(TemplateMaskRule(template))

    def regex_replace(self, pattern: str, replacement: str, flags: int = 0) -> "StringMaskingBuilder":
        return self.add_rule(RegexReplaceRule(pattern, replacement, flags))

    def regex_mask_group(
        self, pattern: str, group: Union[int, str] = 1, mask_char: str = "*", flags: int = 0
    ) -> "StringMaskingBuilder":
        return self.add_rule(RegexMaskGroupRule(pattern, group, mask_char, flags))

    def whitelist_chars(self, allowed: Iterable[str], replace_with: str = "") -> "StringMaskingBuilder":
        return self.add_rule(WhitelistCharsRule(allowed, replace_with))

    def blacklist_chars(self, chars: Iterable[str], replace_with: str = "*") -> "StringMaskingBuilder":
        return self.add_rule(BlacklistCharsRule(chars, replace_with))

    def mask_char_class(self, char_class: CharClass, mask_char: Optional[str] = None) -> "StringMaskingBuilder":
        return self.add_rule(MaskCharClassRule(char_class, mask_char))

    # Identifiers

    def email_mask(
        self,
        local_keep: int = 1,
        domain_strategy: EmailDomainStrategy = EmailDomainStrategy.KEEP_ROOT,
        mask_char: str = "*",
        validate_format: bool = True,
    ) -> "StringMaskingBuilder":
        return self.add_rule(EmailMaskRule(local_keep, domain_strategy, mask_char, validate_format))

    def phone_mask(
        self,
        keep_last: int = 2,
        preserve_separators: bool = True,
        country_hint: Optional[str] = None,
        mask_char: str = "*",
    ) -> "StringMaskingBuilder":
        return self.add_rule(PhoneMaskRule(keep_last, preserve_separators, country_hint, mask_char))

    def card_mask(
        self,
        keep_first: int = 0,
        keep_last: int = 4,
        preserve_grouping: bool = True,
        validate_luhn: bool = False,
        mask_char: str = "*",
    ) -> "StringMaskingBuilder":
        return self.add_rule(CardMaskRule(keep_first, keep_last, preserve_grouping, validate_luhn, mask_char))

    def hash(
        self,
        algorithm: HashAlgorithm = HashAlgorithm.SHA256,
        salt_mode: SaltMode = SaltMode.STATIC,
        output_format: HashOutputFormat = HashOutputFormat.HEX,
        static_salt: Optional[bytes] = None,
        field_name: Optional[str] = None,
    ) -> "StringMaskingBuilder":
        return self.add_rule(HashRule(algorithm, salt_mode, output_format, static_salt, field_name))

    def iban_mask(
        self, keep_last: int = 4, preserve_grouping: bool = True, mask_char: str = "*"
    ) -> "StringMaskingBuilder":
        return self.add_rule(IbanMaskRule(keep_last, preserve_grouping, mask_char))

    def national_id_mask(
        self,
        country_code: Optional[str] = "US",
        keep_first: Optional[int] = None,
        keep_last: Optional[int] = None,
        mask_char: str = "*",
    ) -> "StringMaskingBuilder":
        return self.add_rule(NationalIdMaskRule(country_code, keep_first, keep_last, mask_char))

    def url_mask(
        self,
        hide_query: bool = False,
        mask_query_keys: Iterable[str] = (),
        mask_path_segments: Iterable[int] = (),
        mask_value: str = "***",
    ) -> "StringMaskingBuilder":
        return self.add_rule(UrlMaskRule(hide_query, mask_query_keys, mask_path_segments, mask_value))

    # Dates held as text

    def date_age_mask(
        self,
        mode: DateMaskingMode = DateMaskingMode.YEAR_ONLY,
        days_range: int = 180,
        age_bucketing: bool = False,
        age_breaks: Optional[Sequence[int]] = None,
        age_labels: Optional[Sequence[str]] = None,
        mask_char: str = "*",
        separator: str = "-",
    ) -> "StringMaskingBuilder":
        return self.add_rule(
            DateAgeMaskRule(mode, days_range, age_bucketing, age_breaks, age_labels, mask_char, separator)
        )


class NumericMaskingBuilder(MaskingBuilder):
    """Builder for numeric rules.

    Args:
        value_type: Numeric kind the built rules are pinned to (``int``,
            ``float``, ``Decimal`` or ``Fraction``); None accepts any.
    """

    rule_kind = NumericMaskRule

    def __init__(self, value_type: Optional[type] = None) -> None:
        super().__init__()
        if value_type is not None and not is_numeric_type(value_type):
            raise InvalidArgumentError(
                f"value_type must be a numeric type, got {value_type!r}", argument_name="value_type"
            )
        self.value_type = value_type

    def _check_rule(self, rule: Any) -> None:
        super()._check_rule(rule)
        if self.value_type is not None and rule.value_type not in (None, self.value_type):
            raise InvalidArgumentError(
                f"Rule is pinned to {rule.value_type.__name__}, builder to {self.value_type.__name__}",
                argument_name="rule",
            )

    def noise_additive(
        self, max_abs: Union[int, float, Decimal], distribution: NoiseDistribution = NoiseDistribution.UNIFORM
    ) -> "NumericMaskingBuilder":
        return self.add_rule(NoiseAdditiveRule(max_abs, distribution, self.value_type))

    def round_to(self, increment: Union[int, float, Decimal]) -> "NumericMaskingBuilder":
        return self.add_rule(RoundToRule(increment, self.value_type))


class DateTimeMaskingBuilder(MaskingBuilder):
    rule_kind = DateTimeMaskRule

    def date_shift(self, days_range: int, preserve_time: bool = True) -> "DateTimeMaskingBuilder":
        return self.add_rule(DateShiftRule(days_range, preserve_time))

    def time_bucket(self, granularity: Granularity) -> "DateTimeMaskingBuilder":
        return self.add_rule(TimeBucketRule(granularity))


BuilderConfigurator = Callable[[MaskingBuilder], MaskingBuilder]


def builder_for_type(value_type: Optional[type]) -> MaskingBuilder:
    """Pick the builder whose rule kind matches ``value_type``.

    Dates and datetimes get a ``DateTimeMaskingBuilder``, numbers a
    ``NumericMaskingBuilder`` pinned to their kind, everything else
    (including undeclared types) a ``StringMaskingBuilder``.
    """
    if isinstance(value_type, type) and issubclass(value_type, date):
        return DateTimeMaskingBuilder()
    if is_numeric_type(value_type):
        return NumericMaskingBuilder(value_type)
    return StringMaskingBuilder()
