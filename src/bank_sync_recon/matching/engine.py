"""
Reconciliation engine merging a freshly fetched batch into stored transactions.

Upstream refreshes are date-bounded, so anything strictly after the latest
stored day is new. Anything on or before that day is new only if a previous
fetch missed it, which the gap detector estimates.
"""

from collections import Counter
from datetime import datetime
from typing import Optional, Sequence
import logging

from ..config import DuplicateVendorIdPolicy, ReconConfig
from ..models.transaction import (
    ReconciliationHooks,
    ReconciliationResult,
    Transaction,
)
from ..utils.exceptions import AmbiguousVendorMatchError
from .gap_detector import notify_gap_counts, scan_gaps
from .identifier import get_day, get_split_date, is_after, is_before_or_same

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Orchestrates one remote/local reconciliation.

    The engine holds configuration only; every call works on its own inputs
    and can run concurrently with calls for other accounts.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration (defaults when omitted)
        """
        self.config = config or ReconConfig()

    def reconcile(
        self,
        remote_transactions: Sequence[Transaction],
        local_transactions: Sequence[Transaction],
        hooks: Optional[ReconciliationHooks] = None,
    ) -> ReconciliationResult:
        """
        Work out which remote transactions to create and which to update.

        Args:
            remote_transactions: Batch freshly fetched upstream
            local_transactions: Batch already stored for the same account
            hooks: Optional observers

        Returns:
            Reconciliation result; ``result.transactions`` is the update set

        Raises:
            AmbiguousVendorMatchError: If the local batch repeats a vendor id
                and the configured policy is ``error``
        """
        start_time = datetime.now()
        hooks = hooks or ReconciliationHooks()

        new, updated = self._split_known(remote_transactions, local_transactions)

        result = ReconciliationResult(
            new=new,
            updated=updated,
            remote_count=len(remote_transactions),
            local_count=len(local_transactions),
        )

        split_date = get_split_date(local_transactions)
        result.split_date = split_date

        if split_date:
            if hooks.on_split_date:
                hooks.on_split_date()
            self._apply_split(result, local_transactions, split_date, hooks)
        else:
            if hooks.on_no_split_date:
                hooks.on_no_split_date()
            logger.info("Can't find a split date, saving all new transactions")

        result.processing_time_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Transaction reconciliation: new {len(result.new)}, "
            f"updated {len(result.updated)}, split date {split_date}"
        )
        return result

    def _split_known(
        self,
        remote_transactions: Sequence[Transaction],
        local_transactions: Sequence[Transaction],
    ) -> tuple[list[Transaction], list[Transaction]]:
        """
        Partition remote transactions by whether their vendor id is stored.

        Returns:
            Tuple of (new, updated)
        """
        self._check_vendor_ids(local_transactions)

        known_vendor_ids = {
            t.vendor_id for t in local_transactions if t.vendor_id is not None
        }

        new: list[Transaction] = []
        updated: list[Transaction] = []
        for txn in remote_transactions:
            if txn.vendor_id is not None and txn.vendor_id in known_vendor_ids:
                updated.append(txn)
            else:
                new.append(txn)

        return new, updated

    def _check_vendor_ids(self, local_transactions: Sequence[Transaction]) -> None:
        """Enforce the configured policy for repeated local vendor ids."""
        counts = Counter(
            t.vendor_id for t in local_transactions if t.vendor_id is not None
        )
        duplicates = sorted(vendor_id for vendor_id, n in counts.items() if n > 1)
        if not duplicates:
            return

        policy = self.config.reconciliation.duplicate_vendor_ids
        if policy == DuplicateVendorIdPolicy.ERROR:
            raise AmbiguousVendorMatchError(duplicates)

        logger.warning(
            f"Local batch repeats {len(duplicates)} vendor ids, "
            f"matching against the first occurrence: {', '.join(duplicates)}"
        )

    def _apply_split(
        self,
        result: ReconciliationResult,
        local_transactions: Sequence[Transaction],
        split_date: str,
        hooks: ReconciliationHooks,
    ) -> None:
        """Keep new transactions after the split and recover missed ones before it."""
        after_split: list[Transaction] = []
        up_to_split: list[Transaction] = []

        for txn in result.new:
            if get_day(txn) is None:
                logger.warning(
                    f"Transaction date could not be parsed, dropping it. "
                    f"transaction: {txn.to_record()}"
                )
                result.dropped.append(txn)
                if hooks.on_malformed_date:
                    hooks.on_malformed_date(txn)
            elif is_after(txn, split_date):
                after_split.append(txn)
            elif is_before_or_same(txn, split_date):
                up_to_split.append(txn)

        if after_split:
            logger.info(f"Found {len(after_split)} transactions after {split_date}")
        else:
            logger.info(f"No transaction after {split_date}")
        logger.info(f"Found {len(up_to_split)} transactions before {split_date}")

        recovered, events = scan_gaps(up_to_split, local_transactions)
        notify_gap_counts(events, hooks)

        if recovered:
            logger.info(
                f"Found {len(recovered)} missed transactions before {split_date}"
            )
        else:
            logger.info(f"No missed transactions before {split_date}")

        result.after_split = after_split
        result.recovered = recovered
        result.gap_events = events
        result.new = [*after_split, *recovered]


def reconcile(
    remote_transactions: Sequence[Transaction],
    local_transactions: Sequence[Transaction],
    hooks: Optional[ReconciliationHooks] = None,
    config: Optional[ReconConfig] = None,
) -> list[Transaction]:
    """
    Reconcile a remote batch against the local one.

    Returns:
        New transactions followed by updated ones
    """
    engine = ReconciliationEngine(config)
    return engine.reconcile(remote_transactions, local_transactions, hooks).transactions
