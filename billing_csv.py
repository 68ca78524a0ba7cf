from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from billing_calendar.api.billing_periods import BillingPeriod


CSV_COLUMNS = ["month", "start_date", "end_date"]


def write_billing_periods_csv(path: Path, periods: Iterable[BillingPeriod] | bool) -> int:
    if periods is False or periods is True:
        raise ValueError("Cannot export billing periods for invalid cutoff day or year")

    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for period in periods:
            writer.writerow({column: getattr(period, column) for column in CSV_COLUMNS})
            written += 1
    return written


def read_billing_periods_csv(path: Path) -> list[BillingPeriod]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            raise ValueError(f"CSV has no header row: {path}")

        normalized_headers = [header.strip() for header in reader.fieldnames]
        missing_columns = set(CSV_COLUMNS) - set(normalized_headers)
        if missing_columns:
            missing = ", ".join(sorted(missing_columns))
            raise ValueError(f"CSV missing required columns: {missing}")

        periods = []
        for raw_row in reader:
            row = {str(key).strip(): (value or "").strip() for key, value in raw_row.items() if key is not None}
            periods.append(BillingPeriod(start_date=row["start_date"], end_date=row["end_date"], month=row["month"]))
    return periods
