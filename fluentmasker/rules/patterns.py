"""Pattern-driven string rules: templates, regular expressions and character sets."""

import re
import unicodedata
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from ..core.exceptions import InvalidArgumentError
from .base import StringMaskRule, require_mask_char, require_non_negative

_TOKEN_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


class TemplateMaskRule(StringMaskRule):
    """Render a template whose ``{{...}}`` tokens pull pieces of the value.

    Tokens:
        ``{{F}}`` / ``{{F|n}}``: first n characters (default 1)
        ``{{L}}`` / ``{{L|n}}``: last n characters (default 1)
        ``{{*xN}}``: N asterisks
        ``{{digits}}`` / ``{{digits|a-b}}`` / ``{{digits|-n}}``: the value's digits,
            optionally sliced (``-n`` keeps the last n)
        ``{{letters|...}}``: same, for letters

    Unknown tokens are left in the output as written.

    Examples:
        TemplateMaskRule("{{F}}{{*x6}}{{L}}").apply("JohnDoe")  # "J******e"
        TemplateMaskRule("***-**-{{digits|-4}}").apply("123-45-6789")  # "***-**-6789"
    """

    def __init__(self, template: str) -> None:
        if not isinstance(template, str):
            raise InvalidArgumentError("template must be a string", argument_name="template")
        self.template = template

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return _TOKEN_PATTERN.sub(lambda match: self._render(match.group(1), value), self.template)

    def _render(self, token: str, value: str) -> str:
        command, _, argument = token.partition("|")
        if command == "F":
            return value[: _count(argument)]
        if command == "L":
            count = _count(argument)
            return value[-count:] if count else ""
        if command.startswith("*x") and command[2:].isdigit():
            return "*" * int(command[2:])
        if command == "digits":
            return _slice("".join(ch for ch in value if ch.isdigit()), argument)
        if command == "letters":
            return _slice("".join(ch for ch in value if ch.isalpha()), argument)
        return "{{" + token + "}}"


def _count(argument: str) -> int:
    return int(argument) if argument else 1


def _slice(text: str, spec: str) -> str:
    if not spec:
        return text
    start_text, _, end_text = spec.partition("-")
    if not start_text and end_text:
        return text[max(0, len(text) - int(end_text)) :]
    start = int(start_text) if start_text else 0
    end = int(end_text) if end_text else len(text)
    start = max(0, min(start, len(text)))
    end = max(0, min(end, len(text)))
    return text[start:max(start, end)]


def _compile_pattern(pattern: str, flags: int) -> re.Pattern:
    if not isinstance(pattern, str) or not pattern:
        raise InvalidArgumentError("pattern cannot be empty", argument_name="pattern")
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise InvalidArgumentError(
            f"Invalid regex pattern {pattern!r}: {e}", argument_name="pattern"
        ) from e


class RegexReplaceRule(StringMaskRule):
    """Replace every match of ``pattern`` with ``replacement``.

    ``replacement`` uses ``re.sub`` syntax, so ``\\1`` and ``\\g<name>``
    refer to groups.
    """

    def __init__(self, pattern: str, replacement: str, flags: int = 0) -> None:
        self.pattern = _compile_pattern(pattern, flags)
        if not isinstance(replacement, str):
            raise InvalidArgumentError("replacement must be a string", argument_name="replacement")
        self.replacement = replacement

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return self.pattern.sub(self.replacement, value)


class RegexMaskGroupRule(StringMaskRule):
    """Mask only one capture group inside every match of ``pattern``.

    Matches where the group did not participate are left alone.
    """

    def __init__(
        self,
        pattern: str,
        group: Union[int, str] = 1,
        mask_char: str = "*",
        flags: int = 0,
    ) -> None:
        self.pattern = _compile_pattern(pattern, flags)
        if isinstance(group, int) and not isinstance(group, bool):
            require_non_negative(group, "group")
        elif isinstance(group, str):
            if group not in self.pattern.groupindex:
                raise InvalidArgumentError(
                    f"Pattern has no group named {group!r}", argument_name="group"
                )
        else:
            raise InvalidArgumentError("group must be an index or a name", argument_name="group")
        self.group = group
        self.mask_char = require_mask_char(mask_char)

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return self.pattern.sub(self._mask_match, value)

    def _mask_match(self, match: re.Match) -> str:
        if isinstance(self.group, int) and self.group > (match.re.groups):
            return match.group(0)
        start, end = match.span(self.group)
        if start < 0:
            return match.group(0)
        text = match.group(0)
        offset = match.start()
        return (
            text[: start - offset]
            + self.mask_char * (end - start)
            + text[end - offset :]
        )


class WhitelistCharsRule(StringMaskRule):
    """Keep only allowed characters; others become ``replace_with`` (removed by default)."""

    def __init__(self, allowed: Iterable[str], replace_with: str = "") -> None:
        if allowed is None:
            raise InvalidArgumentError("allowed cannot be None", argument_name="allowed")
        self.allowed = frozenset(allowed)
        if isinstance(allowed, str) and not allowed:
            raise InvalidArgumentError("allowed cannot be empty", argument_name="allowed")
        self.replace_with = replace_with or ""

    @classmethod
    def alphanumeric(cls, replace_with: str = "") -> "WhitelistCharsRule":
        return _PredicateWhitelist(str.isalnum, replace_with)

    @classmethod
    def digits(cls, replace_with: str = "") -> "WhitelistCharsRule":
        return _PredicateWhitelist(str.isdigit, replace_with)

    def _allowed(self, ch: str) -> bool:
        return ch in self.allowed

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return "".join(ch if self._allowed(ch) else self.replace_with for ch in value)


class _PredicateWhitelist(WhitelistCharsRule):
    def __init__(self, predicate: Callable[[str], bool], replace_with: str = "") -> None:
        self.allowed = frozenset()
        self.predicate = predicate
        self.replace_with = replace_with or ""

    def _allowed(self, ch: str) -> bool:
        return self.predicate(ch)


class BlacklistCharsRule(StringMaskRule):
    """Replace every listed character with ``replace_with``."""

    def __init__(self, chars: Iterable[str], replace_with: str = "*") -> None:
        if chars is None:
            raise InvalidArgumentError("chars cannot be None", argument_name="chars")
        if isinstance(chars, str) and not chars:
            raise InvalidArgumentError("chars cannot be empty", argument_name="chars")
        self.chars = frozenset(chars)
        self.replace_with = replace_with or ""

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return "".join(self.replace_with if ch in self.chars else ch for ch in value)


class CharClass(Enum):
    DIGIT = "digit"
    LETTER = "letter"
    LETTER_OR_DIGIT = "letter_or_digit"
    WHITESPACE = "whitespace"
    PUNCTUATION = "punctuation"
    UPPER = "upper"
    LOWER = "lower"


def _is_punctuation(ch: str) -> bool:
    return unicodedata.category(ch).startswith("P")


_CHAR_CLASS_PREDICATES: dict[CharClass, Callable[[str], bool]] = {
    CharClass.DIGIT: str.isdigit,
    CharClass.LETTER: str.isalpha,
    CharClass.LETTER_OR_DIGIT: str.isalnum,
    CharClass.WHITESPACE: str.isspace,
    CharClass.PUNCTUATION: _is_punctuation,
    CharClass.UPPER: str.isupper,
    CharClass.LOWER: str.islower,
}


class MaskCharClassRule(StringMaskRule):
    """Mask every character belonging to one character class."""

    def __init__(self, char_class: CharClass, mask_char: Optional[str] = None) -> None:
        self.char_class = CharClass(char_class)
        if mask_char is None:
            mask_char = "_" if self.char_class is CharClass.WHITESPACE else "*"
        self.mask_char = require_mask_char(mask_char)
        self._predicate = _CHAR_CLASS_PREDICATES[self.char_class]

    def apply(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        predicate = self._predicate
        return "".join(self.mask_char if predicate(ch) else ch for ch in value)
