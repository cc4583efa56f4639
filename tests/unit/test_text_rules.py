"""Tests for positional string rules."""

import pytest

from fluentmasker.core.exceptions import InvalidArgumentError
from fluentmasker.rules.text import (
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


class TestMaskStartAndEnd:
    def test_mask_start(self):
        assert MaskStartRule(3).apply("secret") == "***ret"

    def test_mask_start_count_exceeds_length_masks_all(self):
        assert MaskStartRule(10, "#").apply("abc") == "###"

    def test_mask_end(self):
        assert MaskEndRule(2).apply("secret") == "secr**"

    def test_zero_count_is_unchanged(self):
        assert MaskStartRule(0).apply("abc") == "abc"
        assert MaskEndRule(0).apply("abc") == "abc"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input_returned_unchanged(self, value):
        assert MaskStartRule(2).apply(value) == value
        assert MaskEndRule(2).apply(value) == value

    def test_negative_count_rejected(self):
        with pytest.raises(InvalidArgumentError, match="non-negative"):
            MaskStartRule(-1)

    def test_multi_character_mask_rejected(self):
        with pytest.raises(InvalidArgumentError, match="single character"):
            MaskEndRule(2, mask_char="**")


class TestMaskMiddle:
    def test_keeps_both_ends(self):
        assert MaskMiddleRule(2, 2).apply("4111111111111111") == "41************11"

    def test_too_short_is_unchanged(self):
        assert MaskMiddleRule(2, 2).apply("abcd") == "abcd"
        assert MaskMiddleRule(3, 3).apply("abcd") == "abcd"


class TestKeepFirstAndLast:
    def test_keep_first(self):
        assert KeepFirstRule(1).apply("Johnson") == "J******"

    def test_keep_last(self):
        assert KeepLastRule(4).apply("123456789") == "*****6789"

    def test_zero_masks_everything(self):
        assert KeepFirstRule(0).apply("abc") == "***"
        assert KeepLastRule(0).apply("abc") == "***"

    def test_count_at_least_length_is_unchanged(self):
        assert KeepFirstRule(5).apply("abc") == "abc"
        assert KeepLastRule(3).apply("abc") == "abc"


class TestMaskRange:
    def test_masks_range(self):
        assert MaskRangeRule(2, 3).apply("abcdefg") == "ab***fg"

    def test_range_is_clamped(self):
        assert MaskRangeRule(4, 10).apply("abcdef") == "abcd**"

    def test_start_beyond_value_is_unchanged(self):
        assert MaskRangeRule(6, 2).apply("abcdef") == "abcdef"

    def test_zero_length_is_unchanged(self):
        assert MaskRangeRule(1, 0).apply("abcdef") == "abcdef"


class TestMaskPercentage:
    def test_from_start_rounds_up(self):
        # ceil(7 * 0.5) = 4
        assert MaskPercentageRule(0.5).apply("abcdefg") == "****efg"

    def test_from_end(self):
        assert MaskPercentageRule(0.25, MaskFrom.END).apply("abcdefgh") == "abcdef**"

    def test_from_middle(self):
        assert MaskPercentageRule(0.5, MaskFrom.MIDDLE).apply("abcdefgh") == "ab****gh"

    def test_accepts_enum_value(self):
        assert MaskPercentageRule(1.0, "end").apply("abc") == "***"

    @pytest.mark.parametrize("percentage", [-0.1, 1.5])
    def test_out_of_range_rejected(self, percentage):
        with pytest.raises(InvalidArgumentError, match="between 0.0 and 1.0"):
            MaskPercentageRule(percentage)


class TestReplacementRules:
    def test_null_out(self):
        assert NullOutRule().apply("anything") is None

    def test_redact_default(self):
        assert RedactRule().apply("secret") == "[REDACTED]"

    def test_redact_custom_replacement(self):
        assert RedactRule("<hidden>").apply("secret") == "<hidden>"

    def test_truncate(self):
        assert TruncateRule(5).apply("Hello, World") == "Hell…"

    def test_truncate_short_value_unchanged(self):
        assert TruncateRule(20).apply("Hello") == "Hello"

    def test_truncate_suffix_longer_than_limit(self):
        assert TruncateRule(2, suffix="...").apply("Hello") == "..."

    def test_rule_name_and_repr(self):
        rule = MaskStartRule(2, "#")
        assert rule.name == "MaskStartRule"
        assert repr(rule) == "MaskStartRule(count=2, mask_char='#')"
