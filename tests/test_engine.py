import logging

import pytest

from bank_sync_recon.config import ReconConfig
from bank_sync_recon.matching.engine import ReconciliationEngine, reconcile
from bank_sync_recon.models.transaction import ReconciliationHooks, Transaction
from bank_sync_recon.utils.exceptions import AmbiguousVendorMatchError


class HookRecorder:
    def __init__(self):
        self.events = []

    def hooks(self):
        return ReconciliationHooks(
            on_split_date=lambda: self.events.append("split_date"),
            on_no_split_date=lambda: self.events.append("no_split_date"),
            on_missed_transactions_found=lambda more, fewer: self.events.append(
                ("missed", more, fewer)
            ),
            on_malformed_date=lambda t: self.events.append(("malformed", t.vendor_id)),
        )


def test_scenario_vendor_a_known_vendor_b_new(scenario_batches):
    remote, local = scenario_batches
    a, b = remote
    recorder = HookRecorder()

    result = ReconciliationEngine().reconcile(remote, local, recorder.hooks())

    assert result.split_date == "2024-01-05"
    assert result.updated == [a]
    assert result.after_split == [b]
    assert result.recovered == []
    assert result.transactions == [b, a]
    assert recorder.events == ["split_date", ("missed", 0, 0)]


def test_reconcile_function_returns_update_set(scenario_batches):
    remote, local = scenario_batches

    assert reconcile(remote, local) == [remote[1], remote[0]]


def test_empty_local_returns_remote_unchanged(make_txn):
    remote = [
        make_txn("a", "2024-01-05"),
        make_txn("b", "not-a-date"),
        make_txn("c", "2024-01-01", 10, "X"),
        make_txn("d", "2024-01-01", 10, "X"),
    ]
    recorder = HookRecorder()

    result = reconcile(remote, [], recorder.hooks())

    assert result == remote
    assert recorder.events == ["no_split_date"]


def test_empty_remote_returns_nothing(make_txn):
    assert reconcile([], [make_txn("a", "2024-01-05")]) == []


def test_known_vendor_ids_skip_gap_detection(make_txn):
    local = [make_txn("a", "2024-01-05", 10, "X")]
    # Same identifier as the stored one, but already known by vendor id
    remote = [make_txn("a", "2024-01-04", 99, "CHANGED")]
    recorder = HookRecorder()

    result = ReconciliationEngine().reconcile(remote, local, recorder.hooks())

    assert result.updated == remote
    assert result.new == []
    assert ("missed", 0, 0) in recorder.events


def test_after_split_transactions_kept_once(make_txn):
    local = [make_txn("a", "2024-01-05")]
    later = [make_txn(f"n{i}", f"2024-01-0{6 + i}", 10, "X") for i in range(3)]

    result = reconcile(later, local)

    assert result == later


def test_missed_transaction_is_recovered(make_txn):
    local = [make_txn("a", "2024-01-03", 10, "X")]
    rekeyed = make_txn("a2", "2024-01-03", 10, "X")
    missed = make_txn("m", "2024-01-01", 5, "Y")
    fresh = make_txn("f", "2024-01-04", 7, "Z")
    remote = [local[0], rekeyed, missed, fresh]

    result = ReconciliationEngine().reconcile(remote, local)

    assert result.after_split == [fresh]
    assert result.recovered == [missed]
    assert result.transactions == [fresh, missed, local[0]]
    assert result.more_upstream_count == 1
    assert result.fewer_upstream_count == 0


def test_duplicate_identifier_surplus_recovered_from_tail(make_txn):
    local = [make_txn("a", "2024-01-03", 10, "COFFEE")]
    upstream = [make_txn(f"u{i}", "2024-01-03", 10, "COFFEE") for i in range(3)]

    result = ReconciliationEngine().reconcile(upstream, local)

    assert result.recovered == upstream[1:]
    assert result.gap_events[0].severity == logging.WARNING


def test_malformed_date_is_dropped_with_warning(make_txn, caplog):
    caplog.set_level(logging.WARNING, logger="bank_sync_recon")
    local = [make_txn("a", "2024-01-05")]
    bad = make_txn("bad", "not-a-date")
    good = make_txn("b", "2024-01-06", 20, "Y")
    recorder = HookRecorder()

    result = ReconciliationEngine().reconcile([bad, good], local, recorder.hooks())

    assert result.dropped == [bad]
    assert bad not in result.transactions
    assert result.transactions == [good]
    assert ("malformed", "bad") in recorder.events
    assert "could not be parsed" in caplog.text


def test_local_without_valid_days_has_no_split_date(make_txn):
    local = [make_txn("a", "garbage")]
    remote = [make_txn("b", "2020-01-01"), make_txn("c", "also garbage")]

    result = ReconciliationEngine().reconcile(remote, local)

    assert result.split_date is None
    assert result.transactions == remote
    assert result.dropped == []


def test_transactions_without_vendor_id_are_never_known(make_txn):
    local = [make_txn(None, "2024-01-05", 1, "OLD")]
    remote = [make_txn(None, "2024-01-06", 2, "NEW")]

    result = ReconciliationEngine().reconcile(remote, local)

    assert result.updated == []
    assert result.new == remote


def test_duplicate_local_vendor_ids_rejected_by_default(make_txn):
    local = [make_txn("a", "2024-01-05"), make_txn("a", "2024-01-04")]

    with pytest.raises(AmbiguousVendorMatchError) as exc_info:
        reconcile([make_txn("a", "2024-01-05")], local)

    assert exc_info.value.vendor_ids == ["a"]


def test_duplicate_local_vendor_ids_first_match_policy(make_txn, caplog):
    caplog.set_level(logging.WARNING, logger="bank_sync_recon")
    config = ReconConfig(reconciliation={"duplicate_vendor_ids": "first_match"})
    local = [make_txn("a", "2024-01-05"), make_txn("a", "2024-01-04")]
    remote = [make_txn("a", "2024-01-05"), make_txn("b", "2024-01-06")]

    result = reconcile(remote, local, config=config)

    assert result == [remote[1], remote[0]]
    assert "repeats 1 vendor ids" in caplog.text


def test_result_summary_counts(scenario_batches):
    remote, local = scenario_batches

    summary = ReconciliationEngine().reconcile(remote, local).summary()

    assert summary["remote_count"] == 2
    assert summary["local_count"] == 1
    assert summary["new_count"] == 1
    assert summary["updated_count"] == 1
    assert summary["split_date"] == "2024-01-05"


def test_scenario_with_plain_numeric_amounts():
    a = Transaction(vendor_id="a", amount=10, original_bank_label="X", date="2024-01-05")
    b = Transaction(vendor_id="b", amount=20, original_bank_label="Y", date="2024-01-06")
    local = [Transaction(vendor_id="a", amount=10, original_bank_label="X", date="2024-01-05")]

    assert reconcile([a, b], local) == [b, a]


def test_float_amounts_go_through_gap_detection():
    local = [Transaction("a", 10.0, "X", "2024-01-05")]
    known = Transaction("a", 10.0, "X", "2024-01-05")
    missed = Transaction("c", 5.5, "Z", "2024-01-04")

    result = ReconciliationEngine().reconcile([known, missed], local)

    assert result.recovered == [missed]
    assert result.transactions == [missed, known]
