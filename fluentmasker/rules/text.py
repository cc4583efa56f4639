"""Positional string rules: mask or keep characters by position."""

import math
from enum import Enum
from typing import Optional

from ..core.exceptions import InvalidArgumentError
from .base import StringMaskRule, require_mask_char, require_non_negative


class MaskStartRule(StringMaskRule):
    """Mask the first ``count`` characters."""

    def __init__(self, count: int, mask_char: str = "*") -> None:
        self.count = require_non_negative(count, "count")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        count = min(self.count, len(value))
        return self.mask_char * count + value[count:]


class MaskEndRule(StringMaskRule):
    """Mask the last ``count`` characters."""

    def __init__(self, count: int, mask_char: str = "*") -> None:
        self.count = require_non_negative(count, "count")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        count = min(self.count, len(value))
        return value[: len(value) - count] + self.mask_char * count


class MaskMiddleRule(StringMaskRule):
    """Keep ``keep_first`` and ``keep_last`` characters, mask everything between.

    Values too short to have a middle are returned unchanged.
    """

    def __init__(self, keep_first: int, keep_last: int, mask_char: str = "*") -> None:
        self.keep_first = require_non_negative(keep_first, "keep_first")
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        length = len(value)
        if self.keep_first + self.keep_last >= length:
            return value
        middle = length - self.keep_first - self.keep_last
        return (
            value[: self.keep_first]
            + self.mask_char * middle
            + value[length - self.keep_last :]
        )


class KeepFirstRule(StringMaskRule):
    """Keep the first ``count`` characters and mask the rest."""

    def __init__(self, count: int, mask_char: str = "*") -> None:
        self.count = require_non_negative(count, "count")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value or self.count >= len(value):
            return value
        return value[: self.count] + self.mask_char * (len(value) - self.count)


class KeepLastRule(StringMaskRule):
    """Keep the last ``count`` characters and mask the rest."""

    def __init__(self, count: int, mask_char: str = "*") -> None:
        self.count = require_non_negative(count, "count")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value or self.count >= len(value):
            return value
        masked = len(value) - self.count
        return self.mask_char * masked + value[masked:]


class MaskRangeRule(StringMaskRule):
    """Mask ``length`` characters starting at ``start``; the range is clamped to the value."""

    def __init__(self, start: int, length: int, mask_char: str = "*") -> None:
        self.start = require_non_negative(start, "start")
        self.length = require_non_negative(length, "length")
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value or self.start >= len(value) or self.length == 0:
            return value
        end = min(len(value), self.start + self.length)
        return value[: self.start] + self.mask_char * (end - self.start) + value[end:]


class MaskFrom(Enum):
    START = "start"
    END = "end"
    MIDDLE = "middle"


class MaskPercentageRule(StringMaskRule):
    """Mask a share of the characters, rounded up, from the start, end or middle."""

    def __init__(
        self,
        percentage: float,
        mask_from: MaskFrom = MaskFrom.START,
        mask_char: str = "*",
    ) -> None:
        if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
            raise InvalidArgumentError("percentage must be a number", argument_name="percentage")
        if not 0.0 <= percentage <= 1.0:
            raise InvalidArgumentError(
                f"percentage must be between 0.0 and 1.0, got {percentage}",
                argument_name="percentage",
            )
        self.percentage = float(percentage)
        self.mask_from = MaskFrom(mask_from)
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        mask_count = math.ceil(len(value) * self.percentage)
        if self.mask_from is MaskFrom.START:
            return MaskStartRule(mask_count, self.mask_char).apply(value)
        if self.mask_from is MaskFrom.END:
            return MaskEndRule(mask_count, self.mask_char).apply(value)
        keep = (len(value) - mask_count) // 2
        return MaskMiddleRule(keep, keep, self.mask_char).apply(value)


class NullOutRule(StringMaskRule):
    """Replace the value with None."""

    def apply(self, value: Optional[str]) -> None:
        return None


class RedactRule(StringMaskRule):
    """Replace the whole value with a fixed marker."""

    def __init__(self, replacement: str = "[REDACTED]") -> None:
        if not isinstance(replacement, str):
            raise InvalidArgumentError("replacement must be a string", argument_name="replacement")
        self.replacement = replacement

    def apply(self, value: Optional[str]) -> str:
        return self.replacement


class TruncateRule(StringMaskRule):
    """Cut the value to ``max_length`` characters, suffix included."""

    def __init__(self, max_length: int, suffix: str = "…") -> None:
        self.max_length = require_non_negative(max_length, "max_length")
        if not isinstance(suffix, str):
            raise InvalidArgumentError("suffix must be a string", argument_name="suffix")
        self.suffix = suffix

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value or len(value) <= self.max_length:
            return value
        keep = max(0, self.max_length - len(self.suffix))
        return value[:keep] + self.suffix
