"""Per-field error collection for masking calls.

A masking call keeps going after a property fails. Every failure is captured
as an ``ErrorRecord`` carrying the property path, so the final result can
report exactly which properties were affected.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from .exceptions import FluentMaskerError

logger = logging.getLogger(__name__)

ERROR_MESSAGE_FORMAT = "Error masking property {path}: {message}"


@dataclass
class ErrorRecord:
    """Record of a single error that occurred while masking one property."""

    error: Exception
    property_path: str
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)
    component: str = "masking"

    @property
    def message(self) -> str:
        """Message formatted for ``MaskResult.errors``."""
        detail = self.error.message if isinstance(self.error, FluentMaskerError) else str(self.error)
        return ERROR_MESSAGE_FORMAT.format(path=self.property_path, message=detail)

    def with_prefix(self, prefix: str) -> "ErrorRecord":
        """Return a copy whose property path is nested under ``prefix``."""
        return ErrorRecord(
            error=self.error,
            property_path=f"{prefix}{self.property_path}",
            timestamp=self.timestamp,
            context=dict(self.context),
            component=self.component,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error record to dictionary for serialization."""
        data = {
            "error_type": type(self.error).__name__,
            "property": self.property_path,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": self.context,
            "component": self.component,
        }
        if isinstance(self.error, FluentMaskerError):
            data["error_code"] = self.error.error_code
        return data


class ErrorCollector:
    """Collects per-property outcomes during one masking call."""

    def __init__(self) -> None:
        self.errors: list[ErrorRecord] = []
        self.success_count = 0
        self.total_operations = 0

    def record_success(self, property_path: str | None = None) -> None:
        """Record a property that was masked without error."""
        self.success_count += 1
        self.total_operations += 1

    def record_error(
        self,
        error: Exception,
        property_path: str,
        context: dict[str, Any] | None = None,
        component: str = "masking",
    ) -> ErrorRecord:
        """Record an error that occurred while masking ``property_path``."""
        record = ErrorRecord(
            error=error,
            property_path=property_path,
            context=context or {},
            component=component,
        )
        self.errors.append(record)
        self.total_operations += 1

        logger.warning(
            f"Error recorded for property {property_path}: {error} "
            f"(total: {self.total_operations}, failures: {len(self.errors)})"
        )
        return record

    def merge(self, other: "ErrorCollector", prefix: str) -> None:
        """Fold the outcomes of a nested collector into this one."""
        self.errors.extend(record.with_prefix(prefix) for record in other.errors)
        self.success_count += other.success_count
        self.total_operations += other.total_operations

    def get_failure_rate(self) -> float:
        """Calculate current failure rate."""
        if self.total_operations == 0:
            return 0.0
        return len(self.errors) / self.total_operations

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def messages(self) -> list[str]:
        """Formatted error messages in the order they were recorded."""
        return [record.message for record in self.errors]

    def get_error_summary(self) -> dict[str, Any]:
        """Get summary of all recorded errors."""
        error_types: dict[str, int] = {}
        properties: dict[str, int] = {}

        for error_record in self.errors:
            error_type = type(error_record.error).__name__
            error_types[error_type] = error_types.get(error_type, 0) + 1
            properties[error_record.property_path] = properties.get(error_record.property_path, 0) + 1

        return {
            "total_errors": len(self.errors),
            "total_operations": self.total_operations,
            "success_count": self.success_count,
            "failure_rate": self.get_failure_rate(),
            "error_types": error_types,
            "properties": properties,
        }

    def clear(self) -> None:
        """Clear all recorded errors and reset counters."""
        self.errors.clear()
        self.success_count = 0
        self.total_operations = 0
