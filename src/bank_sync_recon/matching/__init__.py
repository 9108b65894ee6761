"""Reconciliation engine, gap detection and identifier helpers."""

from .engine import ReconciliationEngine, reconcile
from .gap_detector import find_missing, scan_gaps
from .identifier import (
    get_day,
    get_identifier,
    get_split_date,
    is_after,
    is_before_or_same,
)

__all__ = [
    "ReconciliationEngine",
    "reconcile",
    "find_missing",
    "scan_gaps",
    "get_day",
    "get_identifier",
    "get_split_date",
    "is_after",
    "is_before_or_same",
]
