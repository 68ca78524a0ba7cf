import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts"))

import export_billing_periods


def _use_tmp_repo(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(export_billing_periods, "get_repo_root", lambda: tmp_path)


def test_export_writes_csv(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_repo(monkeypatch, tmp_path)
    output = tmp_path / "periods.csv"

    exit_code = export_billing_periods.main(["2023", "--cutoff-day", "15", "--output", str(output)])

    assert exit_code == 0
    assert output.read_text(encoding="utf-8").splitlines()[12] == "2023-12-01,2023-11-15,2023-12-15"
    assert (tmp_path / "logs" / "billing_period_export.log").exists()


def test_export_prints_json(monkeypatch, tmp_path: Path, capsys) -> None:
    _use_tmp_repo(monkeypatch, tmp_path)

    exit_code = export_billing_periods.main(["2999", "--cutoff-day", "15", "--json"])

    periods = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert periods[0] == {"start_date": "2998-12-15", "end_date": "2999-01-15", "month": "2999-01-01"}


def test_export_uses_env_cutoff_day(monkeypatch, tmp_path: Path, capsys) -> None:
    _use_tmp_repo(monkeypatch, tmp_path)
    monkeypatch.setenv("BILLING_CUTOFF_DAY", "5")

    exit_code = export_billing_periods.main(["2023"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert lines[0] == "2023-01-01  2022-12-05 -> 2023-01-05"


def test_export_rejects_invalid_input(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_repo(monkeypatch, tmp_path)

    assert export_billing_periods.main(["1999", "--cutoff-day", "15"]) == 2
    assert export_billing_periods.main(["2023", "--cutoff-day", "32"]) == 2


def test_export_requires_cutoff_day(monkeypatch, tmp_path: Path) -> None:
    _use_tmp_repo(monkeypatch, tmp_path)
    monkeypatch.delenv("BILLING_CUTOFF_DAY", raising=False)

    assert export_billing_periods.main(["2023"]) == 1
