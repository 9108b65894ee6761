"""
Gap detection between an upstream batch and the stored transactions.

Counting transactions per identifier tells how many records a previous,
date-bounded fetch probably missed. This is best-effort recovery: two
genuinely distinct transactions sharing amount, label and day cannot be
told apart.
"""

from typing import Iterable, Optional
import logging

from ..models.transaction import (
    GapEvent,
    GapKind,
    ReconciliationHooks,
    Transaction,
)
from .identifier import get_identifier

logger = logging.getLogger(__name__)


def group_by_identifier(
    transactions: Iterable[Transaction],
) -> dict[str, list[Transaction]]:
    """Group transactions by identifier, keeping encounter order."""
    groups: dict[str, list[Transaction]] = {}
    for txn in transactions:
        groups.setdefault(get_identifier(txn), []).append(txn)
    return groups


def scan_gaps(
    candidates: Iterable[Transaction],
    existing: Iterable[Transaction],
) -> tuple[list[Transaction], list[GapEvent]]:
    """
    Compare identifier counts and collect the transactions missing locally.

    When upstream has ``n`` transactions under an identifier and ``m < n`` are
    stored, the first ``m`` are presumed already reconciled and the last
    ``n - m`` are returned as missing.

    Args:
        candidates: Upstream transactions to check
        existing: Stored transactions

    Returns:
        Tuple of (missing transactions, gap events)
    """
    candidates_by_identifier = group_by_identifier(candidates)
    existing_by_identifier = group_by_identifier(existing)

    missing: list[Transaction] = []
    events: list[GapEvent] = []

    for identifier, upstream in candidates_by_identifier.items():
        stored = existing_by_identifier.get(identifier, [])
        n, m = len(upstream), len(stored)

        if n > m:
            # A lone brand-new transaction is the ordinary case
            level = logging.DEBUG if n == 1 and m == 0 else logging.WARNING
            logger.log(
                level,
                f"Upstream has {n} transactions, but we have only {m} with the "
                f"same identifier as vendorId {upstream[0].vendor_id}",
            )
            events.append(GapEvent(identifier, GapKind.MORE_UPSTREAM, n, m, level))
            missing.extend(upstream[m:])

        elif n < m:
            logger.warning(
                f"Upstream has {n} transactions, but we already have {m} with the "
                f"same identifier as vendorId {stored[0].vendor_id}"
            )
            events.append(GapEvent(identifier, GapKind.FEWER_UPSTREAM, n, m))

    return missing, events


def find_missing(
    candidates: Iterable[Transaction],
    existing: Iterable[Transaction],
    hooks: Optional[ReconciliationHooks] = None,
) -> list[Transaction]:
    """
    Get the transactions that should be stored but are not.

    ``hooks.on_missed_transactions_found`` receives the number of identifiers
    with more upstream transactions and with fewer, once per call.
    """
    missing, events = scan_gaps(candidates, existing)
    notify_gap_counts(events, hooks)
    return missing


def notify_gap_counts(
    events: list[GapEvent], hooks: Optional[ReconciliationHooks]
) -> None:
    """Report aggregate gap counts to the observer, if one is set."""
    if hooks is None or hooks.on_missed_transactions_found is None:
        return

    more = sum(1 for e in events if e.kind is GapKind.MORE_UPSTREAM)
    fewer = sum(1 for e in events if e.kind is GapKind.FEWER_UPSTREAM)
    hooks.on_missed_transactions_found(more, fewer)
