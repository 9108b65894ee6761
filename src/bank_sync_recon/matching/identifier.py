"""
Identifier and calendar-day helpers used by the reconciliation.

Dates are compared as ``YYYY-MM-DD`` strings, which order the same way as
the days they represent.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional
import re

from ..models.transaction import Transaction

UNDEFINED = "undefined"

_DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def get_day(transaction: Transaction) -> Optional[str]:
    """
    Truncate a transaction date to its calendar day.

    Aware datetimes are converted to UTC first, so a timestamp is filed
    under the same day whether it arrives as a string or as an object.

    Returns:
        ``YYYY-MM-DD`` or None if the date is missing or not a valid day
    """
    value = transaction.date

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    day = value.strip()[:10]
    if not _DAY_PATTERN.fullmatch(day):
        return None
    try:
        date.fromisoformat(day)
    except ValueError:
        return None
    return day


def _format_amount(amount: Optional[Decimal]) -> str:
    if amount is None:
        return UNDEFINED
    # 10, 10.0 and 10.00 are the same amount
    return format(amount.normalize(), "f")


def _format_day(transaction: Transaction) -> str:
    day = get_day(transaction)
    if day is not None:
        return day
    if transaction.date is None:
        return UNDEFINED
    return str(transaction.date)


def get_identifier(transaction: Transaction) -> str:
    """
    Build the descriptive, almost unique identifier of a transaction.

    Two distinct transactions with the same amount and label on the same day
    share an identifier; the gap detector relies on counting those.

    The date part is the calendar day, not the raw date value, so
    ``"2024-01-05T10:00:00Z"`` and ``"2024-01-05"`` give the same identifier.
    A date that does not parse to a day is kept as its raw text.
    """
    label = transaction.original_bank_label
    return "-".join(
        (
            _format_amount(transaction.amount),
            label if label is not None else UNDEFINED,
            _format_day(transaction),
        )
    )


def get_split_date(transactions: Iterable[Transaction]) -> Optional[str]:
    """
    Get the day of the latest transaction in a batch.

    Transactions without a valid day are ignored.

    Returns:
        ``YYYY-MM-DD`` or None if no transaction has a valid day
    """
    days = [day for day in map(get_day, transactions) if day is not None]
    return max(days) if days else None


def is_after(transaction: Transaction, split_date: Optional[str]) -> bool:
    """True if the transaction day is strictly after ``split_date``."""
    if not split_date:
        return True
    day = get_day(transaction)
    if day is None:
        return False
    return day > split_date


def is_before_or_same(transaction: Transaction, split_date: Optional[str]) -> bool:
    """True if the transaction day is on or before ``split_date``."""
    if not split_date:
        return True
    day = get_day(transaction)
    if day is None:
        return False
    return day <= split_date
