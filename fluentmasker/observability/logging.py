"""Logging setup and a filter that masks records passed to log calls."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from ..core.config import MaskerConfig, get_masker_config

if TYPE_CHECKING:
    from ..masker import Masker

_STANDARD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for standard logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineno": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(config: Optional[MaskerConfig] = None) -> None:
    """Configure the ``fluentmasker`` logger from ``config`` (or the environment).

    Only the package logger is touched; the root logger is left to the
    application.
    """
    if config is None:
        config = get_masker_config()

    if config.log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("fluentmasker")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, config.log_level.upper(), logging.WARNING))
    package_logger.propagate = False


class MaskingLogFilter(logging.Filter):
    """Replace records in log calls with their masked JSON.

    Any argument (or message object) whose type has a registered masker is
    swapped for ``masker.mask(value).masked_data`` before handlers format it,
    so unmasked records never reach log output.

    Examples:
        log_filter = MaskingLogFilter([PersonMasker()])
        handler.addFilter(log_filter)
        logger.info("Created %s", person)  # Created {"name": null, "email": "j***@example.com"}
    """

    def __init__(self, maskers: Iterable["Masker"] = (), name: str = "") -> None:
        super().__init__(name)
        self._maskers: dict[type, "Masker"] = {}
        for masker in maskers:
            self.register(masker)

    def register(self, masker: "Masker") -> "MaskingLogFilter":
        self._maskers[masker.record_type] = masker
        return self

    def unregister(self, record_type: type) -> None:
        self._maskers.pop(record_type, None)

    @property
    def record_types(self) -> tuple[type, ...]:
        return tuple(self._maskers)

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._mask(record.msg)
        if isinstance(record.args, Mapping):
            record.args = {key: self._mask(value) for key, value in record.args.items()}
        elif record.args:
            record.args = tuple(self._mask(arg) for arg in record.args)
        return True

    def _mask(self, value: Any) -> Any:
        masker = self._maskers.get(type(value))
        if masker is None:
            return value
        return masker.mask(value).masked_data
