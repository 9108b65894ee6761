import json

from click.testing import CliRunner

from bank_sync_recon.cli import main

LOCAL = [{"vendorId": "a", "date": "2024-01-05", "amount": 10, "originalBankLabel": "X"}]
REMOTE = [
    {"vendorId": "a", "date": "2024-01-05", "amount": 10, "originalBankLabel": "X"},
    {"vendorId": "b", "date": "2024-01-06", "amount": 20, "originalBankLabel": "Y"},
]


def test_reconcile_writes_json(write_json, tmp_path):
    remote = write_json("remote.json", REMOTE)
    local = write_json("local.json", LOCAL)
    output = tmp_path / "result.json"

    result = CliRunner().invoke(
        main, ["reconcile", str(remote), str(local), "-o", str(output)]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text())
    assert [t["vendorId"] for t in data["transactions"]] == ["b", "a"]


def test_reconcile_writes_excel(write_json, tmp_path):
    remote = write_json("remote.json", REMOTE)
    local = write_json("local.json", LOCAL)
    output = tmp_path / "report.xlsx"

    result = CliRunner().invoke(
        main, ["reconcile", str(remote), str(local), "-o", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert output.exists()


def test_reconcile_dry_run(write_json, tmp_path):
    remote = write_json("remote.json", REMOTE)
    local = write_json("local.json", LOCAL)
    output = tmp_path / "result.json"

    result = CliRunner().invoke(
        main, ["reconcile", str(remote), str(local), "-o", str(output), "--dry-run"]
    )

    assert result.exit_code == 0
    assert "Dry run" in result.output
    assert not output.exists()


def test_reconcile_duplicate_vendor_ids(write_json, tmp_path):
    remote = write_json("remote.json", REMOTE)
    local = write_json("local.json", LOCAL + LOCAL)
    output = tmp_path / "result.json"

    failed = CliRunner().invoke(main, ["reconcile", str(remote), str(local), "-o", str(output)])
    assert failed.exit_code == 1
    assert "duplicate vendor ids" in failed.output

    passed = CliRunner().invoke(
        main, ["reconcile", str(remote), str(local), "-o", str(output), "--first-match"]
    )
    assert passed.exit_code == 0, passed.output


def test_inspect(write_json):
    path = write_json("remote.json", REMOTE)

    result = CliRunner().invoke(main, ["inspect", str(path)])

    assert result.exit_code == 0
    assert "Total transactions: 2" in result.output
    assert "2024-01-05 to 2024-01-06" in result.output


def test_init_config(tmp_path):
    output = tmp_path / "config.yaml"

    result = CliRunner().invoke(main, ["init-config", "-o", str(output)])

    assert result.exit_code == 0
    assert "duplicate_vendor_ids" in output.read_text()
