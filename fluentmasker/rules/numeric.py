"""Numeric rules: additive noise, rounding and bucketing.

Noise and rounding keep the numeric kind they are given (``int`` stays
``int``, ``Decimal`` stays ``Decimal``). Bucketing generalizes a number into
a text label.
"""

import bisect
import math
import statistics
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Iterable, Optional, Sequence

from ..core.exceptions import InvalidArgumentError
from .base import MaskRule, NumericMaskRule, SeededMaskRule, is_numeric_type

_LAPLACE_CLAMP = 0.5 - 1e-10


def coerce_number(number: Any, target_type: type) -> Any:
    """Convert ``number`` to ``target_type`` without going through binary floats for Decimal."""
    if isinstance(number, target_type) and not isinstance(number, bool):
        return number
    if target_type is Decimal:
        if isinstance(number, float):
            return Decimal(repr(number))
        if isinstance(number, Fraction):
            return Decimal(number.numerator) / Decimal(number.denominator)
        return Decimal(number)
    if target_type is Fraction:
        return Fraction(number)
    if target_type is int:
        return int(number)
    return target_type(number)


class NoiseDistribution(Enum):
    UNIFORM = "uniform"
    LAPLACE = "laplace"


class NoiseAdditiveRule(SeededMaskRule, NumericMaskRule):
    """Add bounded random noise to a number.

    Uniform noise is drawn from ``[-max_abs, max_abs]``. Laplace noise uses
    scale ``max_abs / ln 2`` and is heavier tailed, as in differential
    privacy mechanisms. Integer results are truncated toward zero.

    With a seed provider the same value always receives the same noise.
    """

    def __init__(
        self,
        max_abs: float,
        distribution: NoiseDistribution = NoiseDistribution.UNIFORM,
        value_type: Optional[type] = None,
    ) -> None:
        super().__init__(value_type)
        if isinstance(max_abs, bool) or not isinstance(max_abs, (int, float, Decimal, Fraction)):
            raise InvalidArgumentError("max_abs must be a number", argument_name="max_abs")
        if max_abs < 0 or not math.isfinite(max_abs):
            raise InvalidArgumentError(
                f"max_abs must be a non-negative finite number, got {max_abs}",
                argument_name="max_abs",
            )
        self.max_abs = float(max_abs)
        self.distribution = NoiseDistribution(distribution)

    def apply(self, value: Any) -> Any:
        if value is None or self.max_abs == 0:
            return value
        rng = self.random_for(value)
        noise = self._draw(rng.random())
        if isinstance(value, int):
            return value + int(noise)
        return value + coerce_number(noise, type(value))

    def _draw(self, u: float) -> float:
        if self.distribution is NoiseDistribution.UNIFORM:
            return u * 2 * self.max_abs - self.max_abs
        scale = self.max_abs / math.log(2)
        u -= 0.5
        sign = 1.0 if u >= 0 else -1.0
        magnitude = min(abs(u), _LAPLACE_CLAMP)
        return -scale * sign * math.log(1 - 2 * magnitude)


class RoundToRule(NumericMaskRule):
    """Round to the nearest multiple of ``increment`` (ties to even).

    Examples:
        RoundToRule(5).apply(47)  # 45
        RoundToRule(Decimal("0.5")).apply(Decimal("1.74"))  # Decimal("1.5")
    """

    def __init__(self, increment: Any, value_type: Optional[type] = None) -> None:
        super().__init__(value_type)
        if isinstance(increment, bool) or not isinstance(increment, (int, float, Decimal, Fraction)):
            raise InvalidArgumentError("increment must be a number", argument_name="increment")
        self.increment = abs(increment)

    def apply(self, value: Any) -> Any:
        if value is None or self.increment == 0:
            return value
        value_type = type(value)
        increment = coerce_number(self.increment, value_type)

        if isinstance(value, Decimal):
            steps = (value / increment).quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
            return steps * increment
        if isinstance(value, int):
            exact = Fraction(value) / Fraction(self.increment)
            return int(round(exact) * Fraction(self.increment))
        # round() on float and Fraction is half-even
        return value_type(round(value / increment) * increment)


class BucketizeRule(MaskRule):
    """Replace a number with the label of the range it falls into.

    ``breaks`` are strictly ascending and have one more entry than
    ``labels``; label ``i`` covers ``breaks[i] <= value < breaks[i + 1]``.
    Values below the first break get the first label and values at or
    above the last break get the last one.
    """

    input_type = Decimal
    output_type = str

    def __init__(self, breaks: Sequence[Any], labels: Sequence[str]) -> None:
        if breaks is None or labels is None:
            raise InvalidArgumentError("breaks and labels are required", argument_name="breaks")
        breaks = list(breaks)
        labels = list(labels)
        if not breaks or not labels:
            raise InvalidArgumentError("breaks and labels cannot be empty", argument_name="breaks")
        if len(breaks) != len(labels) + 1:
            raise InvalidArgumentError(
                "breaks must have exactly one more element than labels: expected "
                f"{len(labels) + 1} breaks for {len(labels)} labels, got {len(breaks)}",
                argument_name="breaks",
            )
        for i, (low, high) in enumerate(zip(breaks, breaks[1:])):
            if low >= high:
                raise InvalidArgumentError(
                    "breaks must be strictly ascending: "
                    f"breaks[{i}] = {low} >= breaks[{i + 1}] = {high}",
                    argument_name="breaks",
                )
        self.breaks = tuple(breaks)
        self.labels = tuple(labels)

    def accepts(self, value_type: Any) -> bool:
        return is_numeric_type(value_type)

    def apply(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        index = bisect.bisect_right(self.breaks, value) - 1
        return self.labels[min(max(index, 0), len(self.labels) - 1)]


def age_buckets() -> BucketizeRule:
    return BucketizeRule([0, 18, 30, 45, 60, 100], ["<18", "18-29", "30-44", "45-59", "60+"])


def detailed_age_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0, 18, 30, 40, 50, 60, 70, 120],
        ["<18", "18-29", "30-39", "40-49", "50-59", "60-69", "70+"],
    )


def salary_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0, 30_000, 60_000, 90_000, 120_000, 150_000, math.inf],
        ["<30k", "30-60k", "60-90k", "90-120k", "120-150k", "150k+"],
    )


def senior_salary_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0, 50_000, 75_000, 100_000, 150_000, 200_000, 300_000, math.inf],
        ["<50k", "50-75k", "75-100k", "100-150k", "150-200k", "200-300k", "300k+"],
    )


def credit_score_buckets() -> BucketizeRule:
    return BucketizeRule(
        [300, 580, 670, 740, 800, 850],
        ["Poor", "Fair", "Good", "Very Good", "Excellent"],
    )


def tax_bracket_buckets() -> BucketizeRule:
    """2024 US federal brackets, single filer."""
    return BucketizeRule(
        [0, 11_600, 47_150, 100_525, 191_950, 243_725, 609_350, math.inf],
        ["10%", "12%", "22%", "24%", "32%", "35%", "37%"],
    )


def housing_price_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0, 100_000, 200_000, 300_000, 500_000, 750_000, 1_000_000, math.inf],
        ["<100k", "100-200k", "200-300k", "300-500k", "500-750k", "750k-1M", "1M+"],
    )


def percentage_quintiles() -> BucketizeRule:
    return BucketizeRule(
        [0.0, 0.2, 0.4, 0.6, 0.8, 1.0],
        ["0-20%", "20-40%", "40-60%", "60-80%", "80-100%"],
    )


def transaction_amount_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0, 10, 50, 100, 500, 1_000, 5_000, math.inf],
        ["<$10", "$10-50", "$50-100", "$100-500", "$500-1k", "$1k-5k", "$5k+"],
    )


def bmi_buckets() -> BucketizeRule:
    return BucketizeRule(
        [0.0, 18.5, 25.0, 30.0, 35.0, 40.0, 100.0],
        ["Underweight", "Normal", "Overweight", "Obese Class I", "Obese Class II", "Obese Class III"],
    )


BUCKET_PRESETS = {
    "age": age_buckets,
    "detailed_age": detailed_age_buckets,
    "salary": salary_buckets,
    "senior_salary": senior_salary_buckets,
    "credit_score": credit_score_buckets,
    "tax_bracket": tax_bracket_buckets,
    "housing_price": housing_price_buckets,
    "percentage_quintiles": percentage_quintiles,
    "transaction_amount": transaction_amount_buckets,
    "bmi": bmi_buckets,
}


# Statistics helpers used to check that noise keeps aggregate properties


def calculate_mean(values: Iterable[Any]) -> float:
    values = [float(v) for v in values]
    if not values:
        raise InvalidArgumentError("Cannot calculate mean of an empty sequence", argument_name="values")
    return statistics.fmean(values)


def calculate_std_dev(values: Iterable[Any]) -> float:
    """Sample standard deviation (n - 1)."""
    values = [float(v) for v in values]
    if len(values) < 2:
        raise InvalidArgumentError(
            "Cannot calculate standard deviation with less than 2 values", argument_name="values"
        )
    return statistics.stdev(values)


def calculate_variance(values: Iterable[Any]) -> float:
    return calculate_std_dev(values) ** 2


def _within_tolerance(expected: float, actual: float, tolerance_percent: float) -> bool:
    if abs(expected) < 5e-324:
        return abs(actual - expected) <= tolerance_percent
    return abs((actual - expected) / expected) <= tolerance_percent / 100.0


def validate_mean_preservation(mean1: float, mean2: float, tolerance_percent: float) -> bool:
    """Whether ``mean2`` is within ``tolerance_percent`` percent of ``mean1``.

    A zero ``mean1`` compares the absolute difference instead.
    """
    return _within_tolerance(mean1, mean2, tolerance_percent)


def validate_std_dev_preservation(std_dev1: float, std_dev2: float, tolerance_percent: float) -> bool:
    return _within_tolerance(std_dev1, std_dev2, tolerance_percent)
