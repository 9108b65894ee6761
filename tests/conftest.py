import json
import logging
from decimal import Decimal

import pytest

from bank_sync_recon.models.transaction import Transaction


def txn(vendor_id, date, amount=10, label="X", **extra):
    return Transaction(
        vendor_id=vendor_id,
        amount=Decimal(str(amount)) if amount is not None else None,
        original_bank_label=label,
        date=date,
        extra=extra,
    )


@pytest.fixture
def make_txn():
    return txn


@pytest.fixture
def scenario_batches():
    local = [txn("a", "2024-01-05", 10, "X")]
    remote = [
        txn("a", "2024-01-05", 10, "X"),
        txn("b", "2024-01-06", 20, "Y"),
    ]
    return remote, local


@pytest.fixture
def write_json(tmp_path):
    def _write(name, records):
        path = tmp_path / name
        path.write_text(json.dumps(records))
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("bank_sync_recon")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
