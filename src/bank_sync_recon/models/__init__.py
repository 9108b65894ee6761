"""Data models for reconciliation."""

from .transaction import (
    Transaction,
    ReconciliationHooks,
    GapEvent,
    GapKind,
    ReconciliationResult,
)

__all__ = [
    "Transaction",
    "ReconciliationHooks",
    "GapEvent",
    "GapKind",
    "ReconciliationResult",
]
