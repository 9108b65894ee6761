"""
Transaction batch loader.
Reads flat transaction records from JSON or CSV files.
"""

from collections import Counter
from decimal import Decimal
from pathlib import Path
from typing import Any
import json
import logging

import pandas as pd

from ..config import ReconConfig
from ..matching.identifier import get_day
from ..models.transaction import Transaction
from ..utils.exceptions import BatchParseError

logger = logging.getLogger(__name__)


class BatchParser:
    """
    Parser for transaction batch files.

    A JSON batch is either a list of records or an object holding them under
    ``transactions``. A CSV batch has one record per row.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.column_mappings = config.input.column_mappings

    def parse_file(self, file_path: Path) -> list[Transaction]:
        """
        Parse a batch file and return its transactions.

        Args:
            file_path: Path to a ``.json`` or ``.csv`` file

        Returns:
            List of transactions in file order

        Raises:
            BatchParseError: If the file cannot be read
        """
        logger.info(f"Parsing transaction batch: {file_path}")

        records = self.read_records(file_path)
        transactions = self._process_records(records)
        logger.info(f"Extracted {len(transactions)} transactions from {file_path.name}")

        return transactions

    def read_records(self, file_path: Path) -> list[dict[str, Any]]:
        """Read the raw records of a batch file."""
        suffix = file_path.suffix.lower()
        if suffix == ".json":
            return self._read_json(file_path)
        if suffix == ".csv":
            return self._read_csv(file_path)
        raise BatchParseError(f"Unsupported batch file type: {file_path.name}")

    def _read_json(self, file_path: Path) -> list[dict[str, Any]]:
        try:
            with open(file_path, "r", encoding=self.config.input.encoding) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read JSON file: {e}")
            raise BatchParseError(f"Failed to read JSON file: {e}") from e

        if isinstance(data, dict):
            data = data.get("transactions")
        if not isinstance(data, list):
            raise BatchParseError(
                f"{file_path.name}: expected a list of transactions "
                "or an object with a 'transactions' list"
            )
        return data

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        try:
            # Keep every cell as text, dates and labels must not be reinterpreted
            df = pd.read_csv(
                file_path,
                encoding=self.config.input.encoding,
                delimiter=self.config.input.delimiter,
                dtype=str,
            )
        except Exception as e:
            logger.error(f"Failed to read CSV file: {e}")
            raise BatchParseError(f"Failed to read CSV file: {e}") from e

        return [
            {key: value for key, value in row.items() if pd.notna(value)}
            for row in df.to_dict(orient="records")
        ]

    def _process_records(self, records: list[Any]) -> list[Transaction]:
        """
        Convert raw records to transactions, skipping unusable ones.

        Args:
            records: Raw records as read from the file

        Returns:
            List of transactions
        """
        transactions: list[Transaction] = []

        for idx, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning(f"Record {idx}: not an object, skipping")
                continue
            try:
                transactions.append(Transaction.from_record(record, self.column_mappings))
            except ValueError as e:
                logger.warning(f"Failed to process record {idx}: {e}")

        return transactions

    def summarize(self, transactions: list[Transaction]) -> dict[str, Any]:
        """
        Get summary information about a parsed batch.

        Args:
            transactions: Transactions returned by ``parse_file``

        Returns:
            Dictionary with batch summary information
        """
        days = [day for day in map(get_day, transactions) if day is not None]
        vendor_counts = Counter(
            t.vendor_id for t in transactions if t.vendor_id is not None
        )

        return {
            "transaction_count": len(transactions),
            "date_range": {
                "start": min(days) if days else None,
                "end": max(days) if days else None,
            },
            "malformed_dates": len(transactions) - len(days),
            "missing_vendor_ids": sum(1 for t in transactions if t.vendor_id is None),
            "duplicate_vendor_ids": sorted(v for v, n in vendor_counts.items() if n > 1),
            "total_amount": sum(
                (t.amount for t in transactions if t.amount is not None),
                Decimal("0"),
            ),
        }
