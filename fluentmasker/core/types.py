"""Small shared value types."""

from enum import Enum
from typing import Union


class CoverageMode(Enum):
    """How a masker treats properties that have no bound rule."""

    EXCLUDE = "exclude"  # unbound properties become None
    INCLUDE = "include"  # unbound properties pass through unchanged

    @classmethod
    def parse(cls, value: Union["CoverageMode", str]) -> "CoverageMode":
        """Accept a CoverageMode or its case-insensitive name/value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for mode in cls:
                if mode.value == normalized:
                    return mode
        valid = [mode.value for mode in cls]
        raise ValueError(f"Invalid coverage mode {value!r}. Valid modes: {valid}")
