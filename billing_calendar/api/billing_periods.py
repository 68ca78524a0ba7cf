from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Literal

YEAR_PATTERN = re.compile(r"2[0-9]{3}")
NUMBER_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
MIN_CUTOFF_DAY = 1
MAX_CUTOFF_DAY = 31

DateAdjuster = Callable[[str], str]


@dataclass(frozen=True)
class BillingPeriod:
    start_date: str
    end_date: str
    month: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


def nearest_next_valid_date(value: str) -> str:
    return value


def nearest_prev_valid_date(value: str) -> str:
    return value


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def validate_period_year(value: Any) -> int | None:
    """Return the year as an int when its text form is four digits starting with 2."""
    if value is None or isinstance(value, bool):
        return None
    text = _format_number(value) if isinstance(value, (int, float)) else str(value)
    if not YEAR_PATTERN.fullmatch(text):
        return None
    return int(text)


def validate_cutoff_day(value: Any) -> int | float | None:
    """Coerce the cutoff day to a number in [1, 31]; fractions are kept as-is."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number: int | float = value
    else:
        raw = str(value).strip()
        if not NUMBER_PATTERN.fullmatch(raw):
            return None
        try:
            number = int(raw)
        except ValueError:
            number = float(raw)
    if isinstance(number, float):
        if math.isnan(number):
            return None
        if number.is_integer():
            number = int(number)
    if number < MIN_CUTOFF_DAY or number > MAX_CUTOFF_DAY:
        return None
    return number


def format_day(day: int | float) -> str:
    # Fractional days are rendered verbatim, never rounded.
    return _format_number(day).rjust(2, "0")


def format_date(year: int, month: int, day: int | float) -> str:
    # Nominal components only: 2023-11-31 stays 2023-11-31.
    return f"{year}-{month:02d}-{format_day(day)}"


def previous_month(year: int, month: int) -> tuple[int, int]:
    prior_year, month_zero_based = divmod(year * 12 + (month - 1) - 1, 12)
    return prior_year, month_zero_based + 1


def calc_billing_periods(
    cutoff_day: Any,
    period_year: Any,
    *,
    next_valid_date: DateAdjuster = nearest_next_valid_date,
    prev_valid_date: DateAdjuster = nearest_prev_valid_date,
) -> list[BillingPeriod] | Literal[False]:
    year = validate_period_year(period_year)
    day = validate_cutoff_day(cutoff_day)
    if year is None or day is None:
        return False

    periods: list[BillingPeriod] = []
    for month in range(1, 13):
        start_year, start_month = previous_month(year, month)
        periods.append(
            BillingPeriod(
                start_date=next_valid_date(format_date(start_year, start_month, day)),
                end_date=prev_valid_date(format_date(year, month, day)),
                month=format_date(year, month, 1),
            )
        )
    return periods
