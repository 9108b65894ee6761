"""Data models for transactions and reconciliation results."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Optional, Union
import logging

DateValue = Union[str, date, datetime, None]

# Canonical record keys, as sent by the upstream aggregator
VENDOR_ID = "vendorId"
AMOUNT = "amount"
ORIGINAL_BANK_LABEL = "originalBankLabel"
DATE = "date"

DEFAULT_COLUMN_MAPPINGS = {
    "vendor_id": VENDOR_ID,
    "amount": AMOUNT,
    "original_bank_label": ORIGINAL_BANK_LABEL,
    "date": DATE,
}


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Coerce an upstream amount into a Decimal.

    Raises:
        ValueError: If the value is present but not numeric
    """
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


@dataclass(frozen=True)
class Transaction:
    """
    A bank transaction as delivered by the upstream source.

    Only the four fields the reconciliation looks at are typed; anything else
    the upstream sent rides along untouched in ``extra``.
    """

    # Stable id assigned upstream, used to spot already known transactions
    vendor_id: Optional[str]

    # Signed amount
    amount: Optional[Decimal]

    # Raw description as received upstream
    original_bank_label: Optional[str]

    # ISO-8601 string, date or datetime
    date: DateValue

    extra: dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        """Store plain int/float/str amounts as Decimal."""
        if self.amount is not None and not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", parse_amount(self.amount))

    @classmethod
    def from_record(
        cls,
        record: dict[str, Any],
        column_mappings: Optional[dict[str, str]] = None,
    ) -> "Transaction":
        """
        Build a transaction from a flat upstream record.

        Args:
            record: Mapping of upstream field names to values
            column_mappings: Attribute name -> record key overrides

        Returns:
            Transaction with unknown keys kept in ``extra``

        Raises:
            ValueError: If the amount is not numeric
        """
        mappings = {**DEFAULT_COLUMN_MAPPINGS, **(column_mappings or {})}
        known_keys = set(mappings.values())

        vendor_id = record.get(mappings["vendor_id"])
        label = record.get(mappings["original_bank_label"])

        return cls(
            vendor_id=str(vendor_id) if vendor_id is not None else None,
            amount=parse_amount(record.get(mappings["amount"])),
            original_bank_label=str(label) if label is not None else None,
            date=record.get(mappings["date"]),
            extra={k: v for k, v in record.items() if k not in known_keys},
        )

    def to_record(self) -> dict[str, Any]:
        """Serialize back to a flat record using the canonical key names."""
        if isinstance(self.date, (date, datetime)):
            date_value: Any = self.date.isoformat()
        else:
            date_value = self.date

        return {
            **self.extra,
            VENDOR_ID: self.vendor_id,
            AMOUNT: str(self.amount) if self.amount is not None else None,
            ORIGINAL_BANK_LABEL: self.original_bank_label,
            DATE: date_value,
        }


@dataclass
class ReconciliationHooks:
    """
    Optional observers notified while a reconciliation runs.

    Hooks are called synchronously and their return values are ignored.
    """

    on_split_date: Optional[Callable[[], Any]] = None
    on_no_split_date: Optional[Callable[[], Any]] = None
    on_missed_transactions_found: Optional[Callable[[int, int], Any]] = None
    on_malformed_date: Optional[Callable[[Transaction], Any]] = None


class GapKind(Enum):
    """Direction of a count mismatch for one identifier."""

    MORE_UPSTREAM = "more_upstream"
    FEWER_UPSTREAM = "fewer_upstream"


@dataclass
class GapEvent:
    """Count mismatch between upstream and local for one identifier."""

    identifier: str
    kind: GapKind
    upstream_count: int
    local_count: int
    severity: int = logging.WARNING

    @property
    def surplus(self) -> int:
        """Transactions upstream has beyond what is stored locally (never negative)."""
        return max(self.upstream_count - self.local_count, 0)


@dataclass
class ReconciliationResult:
    """Breakdown of a single reconciliation call."""

    # Transactions to create: after_split followed by recovered
    new: list[Transaction]

    # Remote transactions whose vendor id is already stored
    updated: list[Transaction]

    split_date: Optional[str] = None

    after_split: list[Transaction] = field(default_factory=list)
    recovered: list[Transaction] = field(default_factory=list)

    # New transactions dropped because their date could not be parsed
    dropped: list[Transaction] = field(default_factory=list)

    gap_events: list[GapEvent] = field(default_factory=list)

    remote_count: int = 0
    local_count: int = 0
    processing_time_seconds: float = 0.0
    reconciled_at: datetime = field(default_factory=datetime.now)

    @property
    def transactions(self) -> list[Transaction]:
        """The update set: new transactions first, then updated ones."""
        return [*self.new, *self.updated]

    @property
    def more_upstream_count(self) -> int:
        return sum(1 for e in self.gap_events if e.kind is GapKind.MORE_UPSTREAM)

    @property
    def fewer_upstream_count(self) -> int:
        return sum(1 for e in self.gap_events if e.kind is GapKind.FEWER_UPSTREAM)

    def summary(self) -> dict[str, Any]:
        """Counts suitable for display or JSON output."""
        return {
            "remote_count": self.remote_count,
            "local_count": self.local_count,
            "split_date": self.split_date,
            "new_count": len(self.new),
            "after_split_count": len(self.after_split),
            "recovered_count": len(self.recovered),
            "updated_count": len(self.updated),
            "dropped_count": len(self.dropped),
            "more_upstream_count": self.more_upstream_count,
            "fewer_upstream_count": self.fewer_upstream_count,
            "processing_time_seconds": round(self.processing_time_seconds, 4),
            "reconciled_at": self.reconciled_at.isoformat(timespec="seconds"),
        }
