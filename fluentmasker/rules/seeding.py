"""Seed providers for rules that use randomness.

A seed provider maps the value being masked to an integer seed. Rules that
receive one derive all of their randomness from ``random.Random(seed)``, so
the same value always masks the same way. Without one they draw from a
single process-wide unseeded source.
"""

import hashlib
import random
from typing import Any, Callable

from ..core.exceptions import InvalidArgumentError

SeedProvider = Callable[[Any], int]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_UNSEEDED = random.SystemRandom()


def unseeded_random() -> random.Random:
    """The shared source used when a rule has no seed provider."""
    return _UNSEEDED


def validate_seed(seed: Any, argument_name: str = "seed") -> int:
    """Check that ``seed`` is a signed 64-bit integer and return it."""
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise InvalidArgumentError(
            f"Seed must be an integer, got {type(seed).__name__}",
            argument_name=argument_name,
        )
    if not INT64_MIN <= seed <= INT64_MAX:
        raise InvalidArgumentError(
            f"Seed {seed} is outside the signed 64-bit range",
            argument_name=argument_name,
        )
    return seed


def constant_seed(seed: int) -> SeedProvider:
    """Seed provider that returns ``seed`` for every value."""
    validate_seed(seed)

    def provider(_value: Any) -> int:
        return seed

    provider.__name__ = f"constant_seed_{seed}"
    return provider


def stable_seed(value: Any) -> int:
    """Process-independent 64-bit seed derived from ``str(value)``.

    ``hash()`` is salted per interpreter for strings, so it cannot be used
    when masked output has to match across runs.
    """
    digest = hashlib.sha256(str(value).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


def salted_seed(salt: str) -> SeedProvider:
    """Seed provider like ``stable_seed`` but namespaced by ``salt``.

    Two fields seeded with different salts shift independently even when
    they hold the same value.
    """
    if not isinstance(salt, str):
        raise InvalidArgumentError("Salt must be a string", argument_name="salt")

    def provider(value: Any) -> int:
        return stable_seed(f"{salt}\x00{value}")

    return provider
