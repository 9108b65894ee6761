"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    BatchParseError,
    ConfigurationError,
    AmbiguousVendorMatchError,
    ReportGenerationError,
)
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "BatchParseError",
    "ConfigurationError",
    "AmbiguousVendorMatchError",
    "ReportGenerationError",
    "setup_logging",
]
