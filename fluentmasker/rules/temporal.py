"""Date and time rules: shifting, bucketing and HIPAA-style date-of-birth masking."""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Sequence

from ..core.exceptions import InvalidArgumentError
from .base import DateTimeMaskRule, SeededMaskRule, StringMaskRule, require_mask_char, require_non_negative
from .numeric import BucketizeRule

logger = logging.getLogger(__name__)


class DateShiftRule(SeededMaskRule, DateTimeMaskRule):
    """Shift a datetime by a random whole number of days in ``[-days_range, days_range]``.

    Args:
        days_range: Maximum shift in days
        preserve_time: Keep the time of day; otherwise truncate to midnight

    With a seed provider every occurrence of a value shifts by the same
    amount, which keeps intervals between related dates consistent when the
    provider is keyed on a record identifier.
    """

    def __init__(self, days_range: int, preserve_time: bool = True) -> None:
        self.days_range = require_non_negative(days_range, "days_range")
        self.preserve_time = preserve_time

    def apply(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        shift = 0
        if self.days_range:
            shift = self.random_for(value).randint(-self.days_range, self.days_range)
        shifted = value + timedelta(days=shift)
        if not self.preserve_time:
            shifted = shifted.replace(hour=0, minute=0, second=0, microsecond=0)
        return shifted


class Granularity(Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class TimeBucketRule(DateTimeMaskRule):
    """Floor a datetime to the start of its hour, day, week, month, quarter or year.

    Weeks start on Monday. The UTC offset of aware values is kept.
    """

    def __init__(self, granularity: Granularity) -> None:
        self.granularity = Granularity(granularity)

    def apply(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if self.granularity is Granularity.HOUR:
            return value.replace(minute=0, second=0, microsecond=0)

        midnight = value.replace(hour=0, minute=0, second=0, microsecond=0)
        if self.granularity is Granularity.DAY:
            return midnight
        if self.granularity is Granularity.WEEK:
            return midnight - timedelta(days=midnight.weekday())
        if self.granularity is Granularity.MONTH:
            return midnight.replace(day=1)
        if self.granularity is Granularity.QUARTER:
            return midnight.replace(month=(midnight.month - 1) // 3 * 3 + 1, day=1)
        return midnight.replace(month=1, day=1)


class DateMaskingMode(Enum):
    YEAR_ONLY = "year_only"
    DATE_SHIFT = "date_shift"
    REDACT = "redact"


# HIPAA Safe Harbor: ages over 89 are aggregated
DEFAULT_AGE_BREAKS = (0, 6, 11, 21, 31, 41, 51, 61, 71, 81, 90, 150)
DEFAULT_AGE_LABELS = ("0-5", "6-10", "11-20", "21-30", "31-40", "41-50", "51-60", "61-70", "71-80", "81-89", "90+")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%m-%d-%Y",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
)


def parse_date(text: str) -> Optional[datetime]:
    """Parse ISO 8601 or one of a few common day/month orders; None if nothing fits."""
    text = text.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def calculate_age(date_of_birth: date, reference: date) -> int:
    age = reference.year - date_of_birth.year
    if (reference.month, reference.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class DateAgeMaskRule(SeededMaskRule, StringMaskRule):
    """Mask a date of birth held as text.

    Modes:
        YEAR_ONLY: ``"1985-03-15"`` becomes ``"1985-**-**"``
        DATE_SHIFT: random shift of up to ``days_range`` days, ``YYYY-MM-DD``
        REDACT: ``"[REDACTED]"``

    Text that is not a recognisable date is returned unchanged.
    ``apply_age`` masks an already computed age, enforcing the 90+ rule.
    """

    def __init__(
        self,
        mode: DateMaskingMode = DateMaskingMode.YEAR_ONLY,
        days_range: int = 180,
        age_bucketing: bool = False,
        age_breaks: Optional[Sequence[int]] = None,
        age_labels: Optional[Sequence[str]] = None,
        mask_char: str = "*",
        separator: str = "-",
    ) -> None:
        self.mode = DateMaskingMode(mode)
        self.days_range = require_non_negative(days_range, "days_range")
        self.age_bucketing = age_bucketing
        self.mask_char = require_mask_char(mask_char)
        self.separator = separator

        if (age_breaks is None) != (age_labels is None):
            raise InvalidArgumentError(
                "age_breaks and age_labels must be given together", argument_name="age_breaks"
            )
        if age_breaks is None:
            age_breaks, age_labels = DEFAULT_AGE_BREAKS, DEFAULT_AGE_LABELS
        self._age_buckets = BucketizeRule(age_breaks, age_labels)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value or not value.strip():
            return value
        parsed = parse_date(value)
        if parsed is None:
            logger.debug("DateAgeMaskRule left an unparseable value unchanged")
            return value

        if self.mode is DateMaskingMode.YEAR_ONLY:
            masked = self.mask_char * 2
            return f"{parsed.year:04d}{self.separator}{masked}{self.separator}{masked}"
        if self.mode is DateMaskingMode.DATE_SHIFT:
            shift = 0
            if self.days_range:
                shift = self.random_for(value).randint(-self.days_range, self.days_range)
            return (parsed + timedelta(days=shift)).strftime("%Y-%m-%d")
        return "[REDACTED]"

    def apply_age(self, age: int) -> str:
        if self.age_bucketing:
            return self._age_buckets.apply(age)
        if age >= 90:
            return "90+"
        return str(age)

    def calculate_and_mask_age(self, date_of_birth: date, reference_date: Optional[date] = None) -> str:
        reference = reference_date or date.today()
        return self.apply_age(calculate_age(date_of_birth, reference))
