"""Core types, configuration, results and errors for FluentMasker."""

from .config import MaskerConfig, get_masker_config, reset_masker_config
from .error_handling import ErrorCollector, ErrorRecord
from .exceptions import (
    BindingError,
    ConfigurationError,
    ConversionError,
    FluentMaskerError,
    ImmutablePropertyError,
    InvalidArgumentError,
    InvalidFormatError,
    MaskingError,
    NoConverterAvailableError,
    PartialMaskingError,
    ProfileError,
    PropertyAccessError,
    PropertyNotFoundError,
    RuleApplicationError,
    ValidationError,
)
from .results import MaskingStats, MaskResult, OperationStatus
from .types import CoverageMode

__all__ = [
    # Configuration
    "MaskerConfig",
    "get_masker_config",
    "reset_masker_config",
    # Types and results
    "CoverageMode",
    "MaskResult",
    "MaskingStats",
    "OperationStatus",
    # Error handling
    "ErrorCollector",
    "ErrorRecord",
    # Exceptions
    "FluentMaskerError",
    "ValidationError",
    "ConfigurationError",
    "InvalidArgumentError",
    "BindingError",
    "PropertyAccessError",
    "PropertyNotFoundError",
    "ImmutablePropertyError",
    "ConversionError",
    "NoConverterAvailableError",
    "RuleApplicationError",
    "InvalidFormatError",
    "MaskingError",
    "PartialMaskingError",
    "ProfileError",
]
