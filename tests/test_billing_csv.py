from pathlib import Path

import pytest

from billing_calendar.api.billing_periods import calc_billing_periods
from billing_csv import CSV_COLUMNS, read_billing_periods_csv, write_billing_periods_csv


def test_write_billing_periods_csv(tmp_path: Path) -> None:
    path = tmp_path / "out" / "periods.csv"

    written = write_billing_periods_csv(path, calc_billing_periods(15, "2023"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert written == 12
    assert lines[0] == ",".join(CSV_COLUMNS)
    assert lines[1] == "2023-01-01,2022-12-15,2023-01-15"
    assert len(lines) == 13


def test_read_billing_periods_csv_tolerates_spacing(tmp_path: Path) -> None:
    path = tmp_path / "periods.csv"
    path.write_text("month, start_date, end_date\n2023-01-01, 2022-12-15, 2023-01-15\n", encoding="utf-8")

    periods = read_billing_periods_csv(path)

    assert len(periods) == 1
    assert periods[0].start_date == "2022-12-15"
    assert periods[0].end_date == "2023-01-15"
    assert periods[0].month == "2023-01-01"


def test_read_billing_periods_csv_requires_columns(tmp_path: Path) -> None:
    path = tmp_path / "periods.csv"
    path.write_text("month,start_date\n2023-01-01,2022-12-15\n", encoding="utf-8")

    with pytest.raises(ValueError, match="end_date"):
        read_billing_periods_csv(path)


def test_write_rejects_failure_sentinel(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_billing_periods_csv(tmp_path / "periods.csv", calc_billing_periods(0, "2023"))
