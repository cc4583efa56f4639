"""FluentMasker: declarative, rule-based masking of structured records.

Bind masking rules to the properties of a record type with a fluent API,
then mask instances into JSON. Unbound properties are either passed through
or nulled depending on the masker's coverage mode, and per-property failures
are reported in the result instead of aborting the call.
"""

__version__ = "0.1.0"

from .builders import (
    DateTimeMaskingBuilder,
    MaskingBuilder,
    NumericMaskingBuilder,
    StringMaskingBuilder,
    builder_for_type,
    with_random_seed,
)
from .compilation import PropertyAccessor, get_property_accessor
from .converters import TypeConverter, TypeConverterRegistry, get_default_registry
from .core import (
    BindingError,
    CoverageMode,
    FluentMaskerError,
    MaskerConfig,
    MaskingError,
    MaskingStats,
    MaskResult,
    PartialMaskingError,
    ProfileError,
    get_masker_config,
)
from .masker import CollectionBinding, Masker, RuleBinding
from .observability import MaskingLogFilter, configure_logging
from .profiles import CompiledProfile, MaskingProfile, build_masker, compile_profile, load_profile
from .rules import (
    MaskRule,
    SeededMaskRule,
    constant_seed,
    salted_seed,
    stable_seed,
)

__all__ = [
    "__version__",
    # Masking
    "Masker",
    "RuleBinding",
    "CollectionBinding",
    "MaskResult",
    "MaskingStats",
    "CoverageMode",
    # Builders
    "MaskingBuilder",
    "StringMaskingBuilder",
    "NumericMaskingBuilder",
    "DateTimeMaskingBuilder",
    "builder_for_type",
    "with_random_seed",
    # Rules and seeding
    "MaskRule",
    "SeededMaskRule",
    "constant_seed",
    "stable_seed",
    "salted_seed",
    # Plumbing
    "PropertyAccessor",
    "get_property_accessor",
    "TypeConverter",
    "TypeConverterRegistry",
    "get_default_registry",
    # Profiles
    "MaskingProfile",
    "CompiledProfile",
    "load_profile",
    "compile_profile",
    "build_masker",
    # Configuration and logging
    "MaskerConfig",
    "get_masker_config",
    "configure_logging",
    "MaskingLogFilter",
    # Errors
    "FluentMaskerError",
    "BindingError",
    "MaskingError",
    "PartialMaskingError",
    "ProfileError",
]
