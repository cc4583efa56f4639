"""Logging support for FluentMasker."""

from .logging import JsonFormatter, MaskingLogFilter, configure_logging

__all__ = ["JsonFormatter", "MaskingLogFilter", "configure_logging"]
