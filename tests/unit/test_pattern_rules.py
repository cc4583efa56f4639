"""Tests for template, regex and character-set rules."""

import re

import pytest

from fluentmasker.core.exceptions import InvalidArgumentError
from fluentmasker.rules.patterns import (
    BlacklistCharsRule,
    CharClass,
    MaskCharClassRule,
    RegexMaskGroupRule,
    RegexReplaceRule,
    TemplateMaskRule,
    WhitelistCharsRule,
)


class TestTemplateMaskRule:
    def test_first_last_and_asterisks(self):
        assert TemplateMaskRule("{{F}}{{*x6}}{{L}}").apply("JohnDoe") == "J******e"

    def test_first_and_last_counts(self):
        assert TemplateMaskRule("{{F|2}}..{{L|3}}").apply("abcdefgh") == "ab..fgh"

    def test_last_digits(self):
        assert TemplateMaskRule("***-**-{{digits|-4}}").apply("123-45-6789") == "***-**-6789"

    def test_digit_range(self):
        assert TemplateMaskRule("{{digits|0-3}}").apply("a1b2c3d4") == "123"

    def test_letters(self):
        assert TemplateMaskRule("{{letters}}").apply("a1b2c3") == "abc"

    def test_unknown_token_kept(self):
        assert TemplateMaskRule("{{unknown}}-{{F}}").apply("xyz") == "{{unknown}}-x"

    def test_empty_value_unchanged(self):
        assert TemplateMaskRule("{{F}}").apply("") == ""


class TestRegexReplaceRule:
    def test_replaces_all_matches(self):
        rule = RegexReplaceRule(r"\d", "#")
        assert rule.apply("call 555-1234") == "call ###-####"

    def test_group_references(self):
        rule = RegexReplaceRule(r"(\w+)@(\w+)\.com", r"\1@***.com")
        assert rule.apply("mail bob@corp.com now") == "mail bob@***.com now"

    def test_flags(self):
        rule = RegexReplaceRule(r"secret", "x", flags=re.IGNORECASE)
        assert rule.apply("SECRET and Secret") == "x and x"

    @pytest.mark.parametrize("pattern", ["", "([unclosed"])
    def test_bad_pattern_rejected(self, pattern):
        with pytest.raises(InvalidArgumentError):
            RegexReplaceRule(pattern, "x")


class TestRegexMaskGroupRule:
    def test_masks_indexed_group(self):
        rule = RegexMaskGroupRule(r"(\d{3})-(\d{4})", group=1)
        assert rule.apply("555-1234 and 666-9876") == "***-1234 and ***-9876"

    def test_masks_named_group(self):
        rule = RegexMaskGroupRule(r"user=(?P<user>\w+)", group="user", mask_char="#")
        assert rule.apply("id=7 user=alice") == "id=7 user=#####"

    def test_unknown_group_name_rejected(self):
        with pytest.raises(InvalidArgumentError, match="no group named"):
            RegexMaskGroupRule(r"(\d+)", group="missing")

    def test_non_participating_group_left_alone(self):
        rule = RegexMaskGroupRule(r"a(b)?c", group=1)
        assert rule.apply("ac abc") == "ac a*c"


class TestCharacterSetRules:
    def test_whitelist_removes_others(self):
        assert WhitelistCharsRule("abc").apply("aXbYc") == "abc"

    def test_whitelist_replaces_others(self):
        assert WhitelistCharsRule("0123456789", replace_with="*").apply("12-34") == "12*34"

    def test_whitelist_digits(self):
        assert WhitelistCharsRule.digits().apply("+1 (555) 010-9999") == "15550109999"

    def test_whitelist_alphanumeric(self):
        assert WhitelistCharsRule.alphanumeric("_").apply("a-b c") == "a_b_c"

    def test_blacklist(self):
        assert BlacklistCharsRule("aeiou").apply("password") == "p*ssw*rd"

    def test_empty_sets_rejected(self):
        with pytest.raises(InvalidArgumentError):
            WhitelistCharsRule("")
        with pytest.raises(InvalidArgumentError):
            BlacklistCharsRule(None)


class TestMaskCharClassRule:
    @pytest.mark.parametrize(
        "char_class, expected",
        [
            (CharClass.DIGIT, "Ab-** c"),
            (CharClass.LETTER, "**-12 *"),
            (CharClass.LETTER_OR_DIGIT, "**-** *"),
            (CharClass.PUNCTUATION, "Ab*12 c"),
            (CharClass.UPPER, "*b-12 c"),
            (CharClass.LOWER, "A*-12 *"),
        ],
    )
    def test_char_classes(self, char_class, expected):
        assert MaskCharClassRule(char_class).apply("Ab-12 c") == expected

    def test_whitespace_defaults_to_underscore(self):
        assert MaskCharClassRule(CharClass.WHITESPACE).apply("a b\tc") == "a_b_c"

    def test_explicit_mask_char(self):
        assert MaskCharClassRule("digit", mask_char="#").apply("a1") == "a#"
