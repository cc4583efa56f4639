"""Tests for email, phone, card, hash, IBAN, national ID and URL rules."""

import base64
import hashlib
import logging

import pytest

from fluentmasker.core.exceptions import InvalidArgumentError, InvalidFormatError
from fluentmasker.rules.identifiers import (
    NATIONAL_ID_PATTERNS,
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
    iban_valid,
    luhn_valid,
)


class TestEmailMaskRule:
    def test_default_keeps_first_char_and_root_domain(self):
        assert EmailMaskRule().apply("john.doe@mail.example.com") == "j*******@example.com"

    def test_local_keep(self):
        assert EmailMaskRule(local_keep=3).apply("johnny@example.com") == "joh***@example.com"

    def test_plus_tag_kept(self):
        assert EmailMaskRule().apply("john+news@example.com") == "j***+news@example.com"

    def test_keep_full_domain(self):
        rule = EmailMaskRule(domain_strategy=EmailDomainStrategy.KEEP_FULL)
        assert rule.apply("ann@mail.corp.example.com") == "a**@mail.corp.example.com"

    def test_mask_all_domain(self):
        rule = EmailMaskRule(domain_strategy="mask_all")
        assert rule.apply("ann@example.com") == "a**@e******.c**"

    def test_short_local_part_unchanged(self):
        assert EmailMaskRule(local_keep=2).apply("al@example.com") == "al@example.com"

    @pytest.mark.parametrize("value", ["not-an-email", "a@b", "two@@example.com", "sp ace@example.com"])
    def test_invalid_format_rejected(self, value):
        with pytest.raises(InvalidFormatError, match="Invalid email format"):
            EmailMaskRule().apply(value)

    def test_validation_can_be_disabled(self):
        assert EmailMaskRule(validate_format=False).apply("not-an-email") == "not-an-email"


class TestPhoneMaskRule:
    def test_preserves_separators(self):
        assert PhoneMaskRule().apply("+1 (555) 123-4567") == "+* (***) ***-**67"

    def test_keep_last_four(self):
        assert PhoneMaskRule(keep_last=4).apply("555.123.4567") == "***.***.4567"

    def test_digits_only(self):
        assert PhoneMaskRule(preserve_separators=False).apply("(555) 123-4567") == "********67"

    def test_no_digits_unchanged(self):
        assert PhoneMaskRule().apply("unknown") == "unknown"


class TestCardMaskRule:
    def test_default_keeps_last_four_and_grouping(self):
        assert CardMaskRule().apply("4111 1111 1111 1111") == "**** **** **** 1111"

    def test_keep_bin_and_last_four(self):
        assert CardMaskRule(keep_first=6).apply("4111-1111-1111-1111") == "4111-11**-****-1111"

    def test_without_grouping(self):
        assert CardMaskRule(preserve_grouping=False).apply("4111 1111 1111 1111") == "************1111"

    def test_pci_limit(self):
        with pytest.raises(InvalidArgumentError, match="PCI DSS"):
            CardMaskRule(keep_first=6, keep_last=5)

    def test_luhn_validation(self):
        rule = CardMaskRule(validate_luhn=True)
        assert rule.apply("4111111111111111") == "************1111"
        with pytest.raises(InvalidFormatError, match="Luhn"):
            rule.apply("4111111111111112")

    def test_luhn(self):
        assert luhn_valid("79927398713")
        assert not luhn_valid("79927398710")
        assert not luhn_valid("")


class TestHashRule:
    def test_static_salt_is_deterministic(self):
        rule = HashRule(static_salt=b"pepper")
        expected = hashlib.sha256(b"pepper" + "alice".encode("utf-8")).hexdigest()
        assert rule.apply("alice") == expected
        assert rule.apply("alice") == rule.apply("alice")

    def test_random_static_salt_differs_between_rules(self):
        assert HashRule().apply("alice") != HashRule().apply("alice")

    def test_per_record_salt_is_not_linkable(self):
        rule = HashRule(salt_mode=SaltMode.PER_RECORD)
        assert rule.apply("alice") != rule.apply("alice")

    def test_per_field_salt(self):
        rule = HashRule(salt_mode=SaltMode.PER_FIELD, field_name="email")
        salt = hashlib.sha256(b"email").digest()
        assert rule.apply("alice") == hashlib.sha256(salt + b"alice").hexdigest()

    def test_per_field_requires_field_name(self):
        with pytest.raises(InvalidArgumentError, match="field_name"):
            HashRule(salt_mode=SaltMode.PER_FIELD)

    def test_sha512_base64(self):
        rule = HashRule(HashAlgorithm.SHA512, output_format=HashOutputFormat.BASE64, static_salt=b"s")
        digest = hashlib.sha512(b"sv").digest()
        assert rule.apply("v") == base64.b64encode(digest).decode("ascii")

    def test_base64url_has_no_padding(self):
        rule = HashRule(output_format=HashOutputFormat.BASE64URL, static_salt=b"s")
        output = rule.apply("value")
        assert "=" not in output
        assert "+" not in output and "/" not in output

    def test_md5_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fluentmasker"):
            HashRule(HashAlgorithm.MD5, static_salt=b"s")
        assert "MD5 is cryptographically broken" in caplog.text

    def test_static_salt_must_be_bytes(self):
        with pytest.raises(InvalidArgumentError, match="bytes"):
            HashRule(static_salt="text")


class TestIbanMaskRule:
    def test_masks_grouped_iban(self):
        masked = IbanMaskRule().apply("GB82 WEST 1234 5698 7654 32")
        assert masked == "GB82 **** **** **** **54 32"

    def test_masks_compact_iban(self):
        assert IbanMaskRule(keep_last=2).apply("DE89370400440532013000") == "DE89****************00"

    def test_invalid_iban_unchanged(self):
        assert IbanMaskRule().apply("GB82 WEST 1234 5698 7654 33") == "GB82 WEST 1234 5698 7654 33"

    def test_iban_valid(self):
        assert iban_valid("GB82WEST12345698765432")
        assert not iban_valid("GB82WEST1234569876543")  # wrong length for GB
        assert not iban_valid("1234")


class TestNationalIdMaskRule:
    def test_us_ssn(self):
        assert NationalIdMaskRule("US").apply("123-45-6789") == "***-**-6789"

    def test_uk_nino_keeps_prefix(self):
        assert NationalIdMaskRule("UK").apply("AB123456C") == "AB******C"

    def test_non_matching_value_unchanged(self):
        assert NationalIdMaskRule("US").apply("12-345-6789") == "12-345-6789"

    def test_unknown_country_unchanged(self):
        assert NationalIdMaskRule("ZZ").apply("123-45-6789") == "123-45-6789"

    def test_auto_detect(self):
        assert NationalIdMaskRule(None).apply("123-45-6789") == "***-**-6789"

    def test_override_keep_counts(self):
        assert NationalIdMaskRule("US", keep_first=3, keep_last=0).apply("123-45-6789") == "123-**-****"

    def test_lowercase_country_code(self):
        assert NationalIdMaskRule("us").country_code == "US"

    def test_pattern_table_covers_major_countries(self):
        for code in ("US", "UK", "CA", "DE", "FR", "IN", "BR", "JP"):
            assert code in NATIONAL_ID_PATTERNS


class TestUrlMaskRule:
    def test_hide_query(self):
        rule = UrlMaskRule(hide_query=True)
        assert rule.apply("https://example.com/a?token=abc#top") == "https://example.com/a#top"

    def test_mask_query_keys(self):
        rule = UrlMaskRule(mask_query_keys=["token"])
        assert rule.apply("https://example.com/a?token=abc&page=2") == "https://example.com/a?token=***&page=2"

    def test_mask_path_segments(self):
        rule = UrlMaskRule(mask_path_segments=[1])
        assert rule.apply("https://example.com/users/42/profile") == "https://example.com/users/***/profile"

    def test_relative_url_unchanged(self):
        assert UrlMaskRule(hide_query=True).apply("/users?id=1") == "/users?id=1"
