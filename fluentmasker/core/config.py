"""Runtime configuration from environment variables.

Centralizes the few process-wide knobs FluentMasker has: the coverage mode
used when a masker does not choose one, logging level and format, and the
indentation of serialized masked data.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

VALID_COVERAGE_MODES = {"exclude", "include"}
VALID_LOG_FORMATS = {"text", "json"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class MaskerConfig:
    """Process-wide FluentMasker configuration.

    Attributes:
        default_coverage_mode: Coverage mode for maskers that do not set one
            (exclude|include)
        log_level: Level applied by ``configure_logging``
        log_format: Log output format (text|json)
        json_indent: Indentation for serialized masked data, None for compact
    """

    default_coverage_mode: str = "exclude"
    log_level: str = "WARNING"
    log_format: str = "text"
    json_indent: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_coverage_mode()
        self._validate_log_settings()
        self._validate_json_indent()

        logger.debug(
            f"MaskerConfig initialized: coverage={self.default_coverage_mode}, "
            f"log_level={self.log_level}, log_format={self.log_format}"
        )

    def _validate_coverage_mode(self) -> None:
        self.default_coverage_mode = str(self.default_coverage_mode).lower()
        if self.default_coverage_mode not in VALID_COVERAGE_MODES:
            logger.warning(
                f"Invalid default_coverage_mode '{self.default_coverage_mode}', "
                f"using 'exclude'. Valid: {sorted(VALID_COVERAGE_MODES)}"
            )
            self.default_coverage_mode = "exclude"

    def _validate_log_settings(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in VALID_LOG_LEVELS:
            logger.warning(f"Invalid log_level '{self.log_level}', using 'WARNING'")
            self.log_level = "WARNING"

        self.log_format = str(self.log_format).lower()
        if self.log_format not in VALID_LOG_FORMATS:
            logger.warning(f"Invalid log_format '{self.log_format}', using 'text'")
            self.log_format = "text"

    def _validate_json_indent(self) -> None:
        if self.json_indent is not None:
            if not isinstance(self.json_indent, int) or self.json_indent < 0:
                logger.warning(
                    f"json_indent must be a non-negative integer or None, got "
                    f"{self.json_indent}, using None"
                )
                self.json_indent = None

    @classmethod
    def from_environment(cls) -> "MaskerConfig":
        """Load configuration from environment variables.

        Environment Variables:
            FLUENTMASKER_COVERAGE_MODE: Default coverage mode (exclude|include)
            FLUENTMASKER_LOG_LEVEL: Logging level name
            FLUENTMASKER_LOG_FORMAT: Logging format (text|json)
            FLUENTMASKER_JSON_INDENT: Indentation of masked JSON (non-negative integer)

        Returns:
            MaskerConfig instance with values from environment or defaults
        """
        config = cls(
            default_coverage_mode=cls._get_env_string("FLUENTMASKER_COVERAGE_MODE", "exclude"),
            log_level=cls._get_env_string("FLUENTMASKER_LOG_LEVEL", "WARNING"),
            log_format=cls._get_env_string("FLUENTMASKER_LOG_FORMAT", "text"),
            json_indent=cls._get_env_int("FLUENTMASKER_JSON_INDENT", None),
        )
        logger.info(f"Loaded configuration from environment: {config}")
        return config

    @staticmethod
    def _get_env_string(key: str, default: str) -> str:
        """Get string value from environment with default fallback."""
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    @staticmethod
    def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
        """Get non-negative integer value from environment with default fallback."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = int(value.strip())
        except ValueError:
            logger.warning(
                f"Environment variable {key}={value} is not a valid integer, "
                f"using default {default}"
            )
            return default
        if parsed < 0:
            logger.warning(
                f"Environment variable {key}={value} must not be negative, using default {default}"
            )
            return default
        return parsed

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "default_coverage_mode": self.default_coverage_mode,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "json_indent": self.json_indent,
        }


# Loaded lazily so tests can swap the environment first
_masker_config: Optional[MaskerConfig] = None


def get_masker_config() -> MaskerConfig:
    """Get the global configuration, creating it if needed."""
    global _masker_config
    if _masker_config is None:
        _masker_config = MaskerConfig.from_environment()
    return _masker_config


def reset_masker_config() -> None:
    """Reset the global configuration for testing purposes."""
    global _masker_config
    _masker_config = None
