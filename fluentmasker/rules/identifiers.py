"""Format-aware rules for common identifiers.

Emails, phone numbers, payment cards, IBANs, national IDs, URLs and salted
hashes. Rules that validate (email, card with Luhn) raise
``InvalidFormatError`` on malformed input; the others return input they do
not recognise unchanged.
"""

import base64
import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from ..core.exceptions import InvalidArgumentError, InvalidFormatError
from .base import StringMaskRule, require_mask_char, require_non_negative

logger = logging.getLogger(__name__)


class EmailDomainStrategy(Enum):
    KEEP_ROOT = "keep_root"  # keep the last two labels
    KEEP_FULL = "keep_full"
    MASK_ALL = "mask_all"  # keep only the first character of each label


_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", re.IGNORECASE)


class EmailMaskRule(StringMaskRule):
    """Mask the local part of an email address and optionally the domain.

    A ``+tag`` suffix on the local part is kept after the masked base.

    Examples:
        EmailMaskRule().apply("john.doe@mail.example.com")  # "j*******@example.com"
    """

    def __init__(
        self,
        local_keep: int = 1,
        domain_strategy: EmailDomainStrategy = EmailDomainStrategy.KEEP_ROOT,
        mask_char: str = "*",
        validate_format: bool = True,
    ) -> None:
        self.local_keep = require_non_negative(local_keep, "local_keep")
        self.domain_strategy = EmailDomainStrategy(domain_strategy)
        self.mask_char = require_mask_char(mask_char)
        self.validate_format = validate_format

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        if self.validate_format and not _EMAIL_PATTERN.match(value):
            raise InvalidFormatError(f"Invalid email format: {value}", rule_name=self.name)

        parts = value.split("@")
        if len(parts) != 2:
            return value
        local, domain = parts
        return f"{self._mask_local(local)}@{self._mask_domain(domain)}"

    def _mask_local(self, local: str) -> str:
        plus = local.find("+")
        base, tag = (local[:plus], local[plus:]) if plus > 0 else (local, "")
        if self.local_keep >= len(base):
            return local
        return base[: self.local_keep] + self.mask_char * (len(base) - self.local_keep) + tag

    def _mask_domain(self, domain: str) -> str:
        if self.domain_strategy is EmailDomainStrategy.KEEP_FULL:
            return domain
        labels = domain.split(".")
        if self.domain_strategy is EmailDomainStrategy.KEEP_ROOT:
            return ".".join(labels[-2:]) if len(labels) > 2 else domain
        return ".".join(
            label if len(label) <= 1 else label[0] + self.mask_char * (len(label) - 1)
            for label in labels
        )


class PhoneMaskRule(StringMaskRule):
    """Mask the digits of a phone number except the last ``keep_last``.

    With ``preserve_separators`` the original punctuation and spacing stay in
    place; without it only the (masked) digits are returned.
    """

    def __init__(
        self,
        keep_last: int = 2,
        preserve_separators: bool = True,
        country_hint: Optional[str] = None,
        mask_char: str = "*",
    ) -> None:
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.preserve_separators = preserve_separators
        self.country_hint = country_hint
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value

        if not self.preserve_separators:
            digits = "".join(ch for ch in value if ch.isdigit())
            if self.keep_last >= len(digits):
                return digits
            masked = len(digits) - self.keep_last
            return self.mask_char * masked + digits[masked:]

        positions = [i for i, ch in enumerate(value) if ch.isdigit()]
        if not positions:
            return value
        chars = list(value)
        for position in positions[: max(0, len(positions) - self.keep_last)]:
            chars[position] = self.mask_char
        return "".join(chars)


def luhn_valid(digits: str) -> bool:
    """Luhn mod-10 check over a string of digits."""
    if not digits:
        return False
    total = 0
    for index, ch in enumerate(reversed(digits)):
        digit = int(ch)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


class CardMaskRule(StringMaskRule):
    """Mask a payment card number, keeping at most 10 digits visible (PCI DSS).

    Args:
        keep_first: Leading digits to keep (the BIN is at most 6)
        keep_last: Trailing digits to keep
        preserve_grouping: Keep spaces and dashes where they were
        validate_luhn: Reject numbers failing the Luhn check
        mask_char: Replacement character
    """

    MAX_VISIBLE_DIGITS = 10

    def __init__(
        self,
        keep_first: int = 0,
        keep_last: int = 4,
        preserve_grouping: bool = True,
        validate_luhn: bool = False,
        mask_char: str = "*",
    ) -> None:
        self.keep_first = require_non_negative(keep_first, "keep_first")
        self.keep_last = require_non_negative(keep_last, "keep_last")
        if self.keep_first + self.keep_last > self.MAX_VISIBLE_DIGITS:
            raise InvalidArgumentError(
                "Total visible digits (keep_first + keep_last) must not exceed "
                f"{self.MAX_VISIBLE_DIGITS} (PCI DSS limit)",
                argument_name="keep_first",
            )
        self.preserve_grouping = preserve_grouping
        self.validate_luhn = validate_luhn
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        digits = "".join(ch for ch in value if ch.isdigit())
        if not digits:
            return value
        if self.validate_luhn and not luhn_valid(digits):
            raise InvalidFormatError("Invalid card number (Luhn check failed)", rule_name=self.name)

        masked = self._mask_digits(digits)
        if not self.preserve_grouping:
            return masked

        replacements = iter(masked)
        return "".join(next(replacements) if ch.isdigit() else ch for ch in value)

    def _mask_digits(self, digits: str) -> str:
        if self.keep_first + self.keep_last >= len(digits):
            return digits
        hidden = len(digits) - self.keep_first - self.keep_last
        return (
            digits[: self.keep_first]
            + self.mask_char * hidden
            + digits[self.keep_first + hidden :]
        )


class HashAlgorithm(Enum):
    SHA256 = "sha256"
    SHA512 = "sha512"
    MD5 = "md5"


class SaltMode(Enum):
    STATIC = "static"  # one salt for the rule's lifetime
    PER_RECORD = "per_record"  # fresh random salt per value, not linkable
    PER_FIELD = "per_field"  # sha256 of the field name


class HashOutputFormat(Enum):
    HEX = "hex"
    BASE64 = "base64"
    BASE64URL = "base64url"


class HashRule(StringMaskRule):
    """Replace the value with a salted digest of it.

    The digest covers ``salt || utf8(value)``. Without ``static_salt`` the
    static mode draws a random 16-byte salt when the rule is created, so two
    rule instances never produce linkable hashes.
    """

    def __init__(
        self,
        algorithm: HashAlgorithm = HashAlgorithm.SHA256,
        salt_mode: SaltMode = SaltMode.STATIC,
        output_format: HashOutputFormat = HashOutputFormat.HEX,
        static_salt: Optional[bytes] = None,
        field_name: Optional[str] = None,
    ) -> None:
        self.algorithm = HashAlgorithm(algorithm)
        self.salt_mode = SaltMode(salt_mode)
        self.output_format = HashOutputFormat(output_format)
        self.field_name = field_name

        if self.algorithm is HashAlgorithm.MD5:
            logger.warning("MD5 is cryptographically broken and should not be used for security purposes")

        self._salt: Optional[bytes] = None
        if self.salt_mode is SaltMode.STATIC:
            if static_salt is not None and not isinstance(static_salt, (bytes, bytearray)):
                raise InvalidArgumentError("static_salt must be bytes", argument_name="static_salt")
            self._salt = bytes(static_salt) if static_salt is not None else secrets.token_bytes(16)
        elif self.salt_mode is SaltMode.PER_FIELD:
            if not field_name:
                raise InvalidArgumentError(
                    "field_name is required for the per-field salt mode",
                    argument_name="field_name",
                )
            self._salt = hashlib.sha256(field_name.encode("utf-8")).digest()

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        salt = self._salt if self._salt is not None else secrets.token_bytes(16)
        digest = hashlib.new(self.algorithm.value, salt + value.encode("utf-8")).digest()
        return self._format(digest)

    def _format(self, digest: bytes) -> str:
        if self.output_format is HashOutputFormat.HEX:
            return digest.hex()
        if self.output_format is HashOutputFormat.BASE64:
            return base64.b64encode(digest).decode("ascii")
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


IBAN_LENGTHS: dict[str, int] = {
    "AD": 24, "AE": 23, "AL": 28, "AT": 20, "AZ": 28, "BA": 20, "BE": 16,
    "BG": 22, "BH": 22, "BR": 29, "BY": 28, "CH": 21, "CR": 22, "CY": 28,
    "CZ": 24, "DE": 22, "DK": 18, "DO": 28, "EE": 20, "EG": 29, "ES": 24,
    "FI": 18, "FO": 18, "FR": 27, "GB": 22, "GE": 22, "GI": 23, "GL": 18,
    "GR": 27, "GT": 28, "HR": 21, "HU": 28, "IE": 22, "IL": 23, "IS": 26,
    "IT": 27, "JO": 30, "KW": 30, "KZ": 20, "LB": 28, "LC": 32, "LI": 21,
    "LT": 20, "LU": 20, "LV": 21, "MC": 27, "MD": 24, "ME": 22, "MK": 19,
    "MR": 27, "MT": 31, "MU": 30, "NL": 18, "NO": 15, "PK": 24, "PL": 28,
    "PS": 29, "PT": 25, "QA": 29, "RO": 24, "RS": 22, "SA": 24, "SE": 24,
    "SI": 19, "SK": 24, "SM": 27, "TN": 24, "TR": 26, "UA": 29, "VA": 22,
    "VG": 24, "XK": 20,
}


def iban_valid(iban: str) -> bool:
    """Structure, per-country length and mod-97 check of a normalized IBAN."""
    if not 15 <= len(iban) <= 34:
        return False
    if not (iban[:2].isalpha() and iban[:2].isascii() and iban[2:4].isdigit()):
        return False
    expected = IBAN_LENGTHS.get(iban[:2])
    if expected is not None and len(iban) != expected:
        return False
    if not (iban[4:].isalnum() and iban.isascii()):
        return False

    remainder = 0
    for ch in iban[4:] + iban[:4]:
        number = int(ch) if ch.isdigit() else ord(ch) - ord("A") + 10
        for digit in str(number):
            remainder = (remainder * 10 + int(digit)) % 97
    return remainder == 1


class IbanMaskRule(StringMaskRule):
    """Mask an IBAN, keeping the country code, check digits and the last characters.

    Values that are not valid IBANs are returned unchanged.
    """

    def __init__(self, keep_last: int = 4, preserve_grouping: bool = True, mask_char: str = "*") -> None:
        self.keep_last = require_non_negative(keep_last, "keep_last")
        self.preserve_grouping = preserve_grouping
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        grouped = " " in value
        normalized = value.replace(" ", "").upper()
        if not iban_valid(normalized):
            return value

        mask_end = len(normalized) - self.keep_last
        if mask_end <= 4:
            return value
        masked = normalized[:4] + self.mask_char * (mask_end - 4) + normalized[mask_end:]

        if self.preserve_grouping and grouped:
            return " ".join(masked[i : i + 4] for i in range(0, len(masked), 4))
        return masked


@dataclass(frozen=True)
class NationalIdPattern:
    regex: re.Pattern
    keep_first: int
    keep_last: int


def _pattern(regex: str, keep_first: int, keep_last: int) -> NationalIdPattern:
    return NationalIdPattern(re.compile(regex), keep_first, keep_last)


# Syntax only: checksums are not verified
NATIONAL_ID_PATTERNS: dict[str, NationalIdPattern] = {
    # European Union
    "AT": _pattern(r"^\d{10}$", 0, 4),
    "BE": _pattern(r"^\d{6}[-.\s]?\d{3}[-.\s]?\d{2}$", 0, 4),
    "BG": _pattern(r"^\d{10}$", 0, 4),
    "HR": _pattern(r"^\d{11}$", 0, 4),
    "CY": _pattern(r"^\d{8}[A-Z]$", 0, 3),
    "CZ": _pattern(r"^\d{2}[0-1]\d[0-3]\d/?\d{3,4}$", 0, 4),
    "DK": _pattern(r"^\d{6}-?\d{4}$", 0, 4),
    "EE": _pattern(r"^\d{11}$", 0, 4),
    "FI": _pattern(r"^\d{6}[+\-A]\d{3}[0-9A-Z]$", 0, 4),
    "FR": _pattern(r"^\d{13}(\s?\d{2})?$", 0, 4),
    "DE": _pattern(r"^\d{11}$", 0, 4),
    "GR": _pattern(r"^\d{9}$", 0, 3),
    "HU": _pattern(r"^\d{10}$", 0, 4),
    "IE": _pattern(r"^\d{7}[A-Z]{1,2}$", 0, 3),
    "IT": _pattern(r"^[A-Z]{6}\d{2}[A-Z]\d{2}[A-Z]\d{3}[A-Z]$", 3, 3),
    "LV": _pattern(r"^\d{11}$", 0, 4),
    "LT": _pattern(r"^\d{11}$", 0, 4),
    "LU": _pattern(r"^\d{13}$", 0, 4),
    "MT": _pattern(r"^\d{7}[A-Z]$", 0, 3),
    "NL": _pattern(r"^\d{9}$", 0, 3),
    "PL": _pattern(r"^\d{11}$", 0, 4),
    "PT": _pattern(r"^\d{9}$", 0, 3),
    "RO": _pattern(r"^\d{13}$", 0, 4),
    "SK": _pattern(r"^\d{2}[0-1]\d[0-3]\d/?\d{3,4}$", 0, 4),
    "SI": _pattern(r"^\d{8}$", 0, 3),
    "ES": _pattern(r"^\d{8}[A-Z]$|^[XYZ]\d{7}[A-Z]$", 0, 3),
    "SE": _pattern(r"^\d{6}[-+]?\d{4}$", 0, 4),
    # North America and the UK
    "US": _pattern(r"^\d{3}-\d{2}-\d{4}$", 0, 4),
    "US_UNFORMATTED": _pattern(r"^\d{9}$", 0, 4),
    "UK": _pattern(r"^[A-CEGHJ-PR-TW-Z]{2}\d{6}[A-D]$", 2, 1),
    "CA": _pattern(r"^\d{3}-\d{3}-\d{3}$", 0, 3),
    # Europe outside the EU
    "CH": _pattern(r"^756\.\d{4}\.\d{4}\.\d{2}$|^756\d{10}$", 3, 2),
    "NO": _pattern(r"^\d{11}$", 0, 4),
    "IS": _pattern(r"^\d{6}-?\d{4}$", 0, 4),
    "RU": _pattern(r"^\d{3}-?\d{3}-?\d{3}\s?\d{2}$|^\d{11}$", 0, 2),
    "TR": _pattern(r"^[1-9]\d{10}$", 0, 4),
    "UA": _pattern(r"^\d{10}$", 0, 4),
    # Americas
    "MX": _pattern(r"^[A-Z]{4}\d{6}[HM][A-Z]{5}\d{2}$", 4, 2),
    "BR": _pattern(r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$", 0, 4),
    "AR": _pattern(r"^\d{7,8}$", 0, 3),
    "CL": _pattern(r"^\d{1,2}\.?\d{3}\.?\d{3}-?[\dkK]$", 0, 3),
    "CO": _pattern(r"^\d{6,10}$", 0, 3),
    "PE": _pattern(r"^\d{8}$", 0, 3),
    "UY": _pattern(r"^\d{7}-?\d$", 0, 2),
    "EC": _pattern(r"^\d{10}$", 0, 3),
    "VE": _pattern(r"^[VE]-?\d{7,9}$", 0, 3),
    # Asia-Pacific
    "AU": _pattern(r"^\d{8,9}$", 0, 3),
    "NZ": _pattern(r"^\d{8,9}$", 0, 3),
    "JP": _pattern(r"^\d{12}$", 0, 4),
    "CN": _pattern(r"^\d{17}[\dXx]$", 0, 4),
    "KR": _pattern(r"^\d{6}-?\d{7}$", 0, 4),
    "IN": _pattern(r"^\d{4}\s?\d{4}\s?\d{4}$", 0, 4),
    "SG": _pattern(r"^[STFG]\d{7}[A-Z]$", 1, 1),
    "HK": _pattern(r"^[A-Z]{1,2}\d{6}\([0-9A]\)$", 1, 2),
    "TW": _pattern(r"^[A-Z][12]\d{8}$", 1, 2),
    "MY": _pattern(r"^\d{6}-?\d{2}-?\d{4}$", 0, 4),
    "TH": _pattern(r"^\d{13}$", 0, 4),
    "PH": _pattern(r"^\d{3}-?\d{3}-?\d{3}-?\d{3}$", 0, 4),
    # Middle East and Africa
    "IL": _pattern(r"^\d{9}$", 0, 3),
    "SA": _pattern(r"^[12]\d{9}$", 0, 4),
    "AE": _pattern(r"^784-\d{4}-\d{7}-\d$", 3, 1),
    "EG": _pattern(r"^\d{14}$", 0, 4),
    "ZA": _pattern(r"^\d{13}$", 0, 4),
    "NG": _pattern(r"^\d{11}$", 0, 4),
    "KE": _pattern(r"^\d{5,8}$", 0, 3),
    "GH": _pattern(r"^[A-Z]{2}\d{9}$", 2, 2),
}


class NationalIdMaskRule(StringMaskRule):
    """Mask a national identifier according to its country format.

    Only letters and digits are masked; separators stay. Unknown countries
    and values that do not match the country's format are returned
    unchanged. With ``country_code=None`` the first matching format wins.

    Examples:
        NationalIdMaskRule("US").apply("123-45-6789")  # "***-**-6789"
    """

    def __init__(
        self,
        country_code: Optional[str] = "US",
        keep_first: Optional[int] = None,
        keep_last: Optional[int] = None,
        mask_char: str = "*",
    ) -> None:
        if keep_first is not None:
            require_non_negative(keep_first, "keep_first")
        if keep_last is not None:
            require_non_negative(keep_last, "keep_last")
        self.country_code = country_code.upper() if country_code else None
        self.keep_first = keep_first
        self.keep_last = keep_last
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        pattern = self._match(value)
        if pattern is None:
            return value

        keep_first = self.keep_first if self.keep_first is not None else pattern.keep_first
        keep_last = self.keep_last if self.keep_last is not None else pattern.keep_last

        positions = [i for i, ch in enumerate(value) if ch.isalnum()]
        if keep_first + keep_last >= len(positions):
            return value
        chars = list(value)
        for position in positions[keep_first : len(positions) - keep_last]:
            chars[position] = self.mask_char
        return "".join(chars)

    def _match(self, value: str) -> Optional[NationalIdPattern]:
        if self.country_code is not None:
            pattern = NATIONAL_ID_PATTERNS.get(self.country_code)
            if pattern is None or not pattern.regex.match(value):
                return None
            return pattern
        for pattern in NATIONAL_ID_PATTERNS.values():
            if pattern.regex.match(value):
                return pattern
        return None


class UrlMaskRule(StringMaskRule):
    """Hide or mask the sensitive parts of an absolute URL.

    Args:
        hide_query: Drop the whole query string
        mask_query_keys: Query parameters whose values are replaced
        mask_path_segments: Zero-based indexes of path segments to replace
        mask_value: Replacement text
    """

    def __init__(
        self,
        hide_query: bool = False,
        mask_query_keys: Iterable[str] = (),
        mask_path_segments: Iterable[int] = (),
        mask_value: str = "***",
    ) -> None:
        self.hide_query = hide_query
        self.mask_query_keys = frozenset(mask_query_keys or ())
        self.mask_path_segments = frozenset(i for i in (mask_path_segments or ()) if i >= 0)
        self.mask_value = mask_value if mask_value is not None else "***"

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            return value

        query = parts.query
        if self.hide_query:
            query = ""
        elif self.mask_query_keys and query:
            pairs = parse_qsl(query, keep_blank_values=True)
            query = urlencode(
                [(key, self.mask_value if key in self.mask_query_keys else item) for key, item in pairs],
                safe="*",
                quote_via=quote,
            )

        path = parts.path
        if self.mask_path_segments and path not in ("", "/"):
            segments = path.split("/")
            index = 0
            for position, segment in enumerate(segments):
                if not segment:
                    continue
                if index in self.mask_path_segments:
                    segments[position] = self.mask_value
                index += 1
            path = "/".join(segments)

        return urlunsplit((parts.scheme, parts.netloc, path, query, parts.fragment))
