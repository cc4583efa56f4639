"""Result data structures for masking operations."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class OperationStatus(Enum):
    """Status of a masking operation."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some properties failed, the rest were masked


@dataclass(frozen=True)
class MaskingStats:
    """Per-call counts of what happened to each property."""

    properties_total: int = 0
    properties_masked: int = 0
    properties_passed_through: int = 0
    properties_nulled: int = 0
    properties_failed: int = 0

    @property
    def success_rate(self) -> float:
        """Share of bound properties that were masked without error."""
        attempted = self.properties_masked + self.properties_failed
        if attempted == 0:
            return 1.0
        return self.properties_masked / attempted

    @property
    def properties_by_outcome(self) -> dict[str, int]:
        """Get a breakdown of properties by processing outcome."""
        return {
            "masked": self.properties_masked,
            "passed_through": self.properties_passed_through,
            "nulled": self.properties_nulled,
            "failed": self.properties_failed,
        }


@dataclass(frozen=True)
class MaskResult:
    """Outcome of masking one record.

    ``masked_data`` is the serialized masked record. It mirrors the input's
    property set exactly, but callers should not rely on it when
    ``is_success`` is False.

    Attributes:
        masked_data: JSON text of the masked record
        errors: Ordered error messages, one per failed property
        record: Read-only mapping of the staged (masked) values
        stats: Counts of masked, passed-through, nulled and failed properties
        error_details: Structured form of each error
    """

    masked_data: Optional[str]
    errors: tuple[str, ...] = ()
    record: Mapping[str, Any] = field(default_factory=dict)
    stats: MaskingStats = field(default_factory=MaskingStats)
    error_details: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "error_details", tuple(self.error_details))
        object.__setattr__(self, "record", MappingProxyType(dict(self.record)))

    @property
    def is_success(self) -> bool:
        """True only when no property failed."""
        return len(self.errors) == 0

    @property
    def status(self) -> OperationStatus:
        return OperationStatus.SUCCESS if self.is_success else OperationStatus.PARTIAL

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a plain dictionary for reporting."""
        return {
            "is_success": self.is_success,
            "status": self.status.value,
            "errors": list(self.errors),
            "masked_data": self.masked_data,
            "stats": self.stats.properties_by_outcome,
        }
