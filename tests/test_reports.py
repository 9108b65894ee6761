import json
from datetime import datetime

from openpyxl import load_workbook

from bank_sync_recon.config import ReconConfig
from bank_sync_recon.matching.engine import ReconciliationEngine
from bank_sync_recon.reports.excel_generator import ExcelReportGenerator
from bank_sync_recon.reports.json_writer import result_to_dict, write_json_report


def _result(make_txn):
    local = [make_txn("a", "2024-01-03", 10, "X")]
    remote = [
        local[0],
        make_txn("m", "2024-01-01", 5, "Y"),
        make_txn("f", "2024-01-04", 7, "Z", account="acc-1"),
        make_txn("bad", "not-a-date"),
    ]
    return ReconciliationEngine().reconcile(remote, local)


def test_result_to_dict(make_txn):
    data = result_to_dict(_result(make_txn))

    assert [t["vendorId"] for t in data["transactions"]] == ["f", "m", "a"]
    assert [t["vendorId"] for t in data["recovered"]] == ["m"]
    assert [t["vendorId"] for t in data["dropped"]] == ["bad"]
    assert data["transactions"][0]["account"] == "acc-1"
    assert data["transactions"][0]["amount"] == "7"
    assert data["summary"]["split_date"] == "2024-01-03"
    assert data["gap_events"][0]["kind"] == "more_upstream"


def test_write_json_report(make_txn, tmp_path):
    path = write_json_report(_result(make_txn), tmp_path / "out" / "result.json", ReconConfig())

    data = json.loads(path.read_text())
    assert data["summary"]["new_count"] == 2
    assert data["summary"]["updated_count"] == 1


def test_excel_report_sheets(make_txn, tmp_path):
    generator = ExcelReportGenerator(ReconConfig())

    path = generator.generate_report(
        _result(make_txn), tmp_path / "report.xlsx", "remote.json", "local.json"
    )

    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "New", "Recovered", "Updated", "Dropped", "Gap Events"]
    assert wb["Summary"]["B7"].value == "2024-01-03"
    assert wb["New"]["A2"].value == "f"
    assert wb["Recovered"]["E2"].value == "5-Y-2024-01-01"
    assert wb["Dropped"]["B2"].value == "not-a-date"
    assert wb["Gap Events"].max_row == 2


def test_excel_disabled_sheets_are_skipped(make_txn, tmp_path):
    config = ReconConfig(
        output={"sheets": {"dropped": {"enabled": False, "name": "Dropped"}}}
    )

    path = ExcelReportGenerator(config).generate_report(
        _result(make_txn), tmp_path / "report.xlsx"
    )

    assert "Dropped" not in load_workbook(path).sheetnames


def test_default_output_path():
    generator = ExcelReportGenerator(ReconConfig())

    path = generator.default_output_path(datetime(2024, 1, 5, 9, 30, 0))

    assert path.name == "reconciliation_20240105_093000.xlsx"
