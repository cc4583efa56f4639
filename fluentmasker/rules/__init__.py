"""Masking rules: the rule abstraction, seed providers and the leaf rule catalogue."""

from .base import (
    NUMERIC_TYPES,
    DateTimeMaskRule,
    MaskRule,
    NumericMaskRule,
    SeededMaskRule,
    StringMaskRule,
    apply_rules,
    is_numeric_type,
)
from .identifiers import (
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
from .numeric import (
    BUCKET_PRESETS,
    BucketizeRule,
    NoiseAdditiveRule,
    NoiseDistribution,
    RoundToRule,
    calculate_mean,
    calculate_std_dev,
    calculate_variance,
    validate_mean_preservation,
    validate_std_dev_preservation,
)
from .patterns import (
    BlacklistCharsRule,
    CharClass,
    MaskCharClassRule,
    RegexMaskGroupRule,
    RegexReplaceRule,
    TemplateMaskRule,
    WhitelistCharsRule,
)
from .seeding import SeedProvider, constant_seed, salted_seed, stable_seed, validate_seed
from .temporal import DateAgeMaskRule, DateMaskingMode, DateShiftRule, Granularity, TimeBucketRule
from .text import (
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

__all__ = [
    # Abstraction
    "MaskRule",
    "StringMaskRule",
    "NumericMaskRule",
    "DateTimeMaskRule",
    "SeededMaskRule",
    "NUMERIC_TYPES",
    "apply_rules",
    "is_numeric_type",
    # Seeding
    "SeedProvider",
    "constant_seed",
    "salted_seed",
    "stable_seed",
    "validate_seed",
    # Text
    "MaskStartRule",
    "MaskEndRule",
    "MaskMiddleRule",
    "KeepFirstRule",
    "KeepLastRule",
    "MaskRangeRule",
    "MaskFrom",
    "MaskPercentageRule",
    "NullOutRule",
    "RedactRule",
    "TruncateRule",
    # Patterns
    "TemplateMaskRule",
    "RegexReplaceRule",
    "RegexMaskGroupRule",
    "WhitelistCharsRule",
    "BlacklistCharsRule",
    "CharClass",
    "MaskCharClassRule",
    # Identifiers
    "EmailDomainStrategy",
    "EmailMaskRule",
    "PhoneMaskRule",
    "CardMaskRule",
    "HashAlgorithm",
    "SaltMode",
    "HashOutputFormat",
    "HashRule",
    "IbanMaskRule",
    "NationalIdMaskRule",
    "UrlMaskRule",
    # Numeric
    "NoiseDistribution",
    "NoiseAdditiveRule",
    "RoundToRule",
    "BucketizeRule",
    "BUCKET_PRESETS",
    "calculate_mean",
    "calculate_variance",
    "calculate_std_dev",
    "validate_mean_preservation",
    "validate_std_dev_preservation",
    # Temporal
    "DateShiftRule",
    "Granularity",
    "TimeBucketRule",
    "DateMaskingMode",
    "DateAgeMaskRule",
]
