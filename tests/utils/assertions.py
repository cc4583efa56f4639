"""Custom assertion helpers for FluentMasker testing."""

import json
from typing import Any

from fluentmasker.core.results import MaskResult


def assert_mask_succeeded(result: MaskResult) -> dict[str, Any]:
    """Assert a clean mask result and return its decoded JSON."""
    assert result.is_success, f"Masking should succeed, got errors: {result.errors}"
    assert result.masked_data is not None, "Masked data should be present"
    return json.loads(result.masked_data)


def assert_same_properties(result: MaskResult, expected: list[str]) -> None:
    """Assert the masked JSON has exactly the record's property set, in order."""
    data = json.loads(result.masked_data)
    assert list(data) == expected, f"Masked properties {list(data)} should match {expected}"


def assert_property_failed(result: MaskResult, path: str, fragment: str = "") -> None:
    """Assert one error names ``path`` and the property was staged as None."""
    prefix = f"Error masking property {path}: "
    matching = [error for error in result.errors if error.startswith(prefix)]
    assert matching, f"Expected an error for {path}, got {result.errors}"
    if fragment:
        assert any(fragment in error for error in matching), (
            f"Expected '{fragment}' in the error for {path}, got {matching}"
        )
    if "." not in path and "[" not in path:
        assert json.loads(result.masked_data)[path] is None, f"{path} should be staged as None"


def assert_fully_masked(value: str, original: str, mask_char: str = "*") -> None:
    assert len(value) == len(original), "Masking should preserve length"
    assert set(value) == {mask_char}, f"Every character should be masked: {value!r}"
