import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from billing_calendar.api.billing_periods import calc_billing_periods
from billing_csv import write_billing_periods_csv


class ConfigError(Exception):
    """Raised when required configuration is missing."""


def get_repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def configure_logging(repo_root: Path) -> logging.Logger:
    logs_dir = repo_root / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("billing_period_export")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    file_handler = logging.FileHandler(logs_dir / "billing_period_export.log", encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger


def get_default_cutoff_day() -> str:
    raw = os.getenv("BILLING_CUTOFF_DAY")
    if raw is None or not raw.strip():
        raise ConfigError("Missing cutoff day: pass --cutoff-day or set BILLING_CUTOFF_DAY")
    return raw.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute the twelve monthly billing periods for a year")
    parser.add_argument("year", help="Four-digit billing year, 2000-2999")
    parser.add_argument("--cutoff-day", default=None, help="Cutoff day 1-31 (defaults to BILLING_CUTOFF_DAY)")
    parser.add_argument("--output", type=Path, default=None, help="Write periods to this CSV file")
    parser.add_argument("--json", action="store_true", help="Print periods as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    repo_root = get_repo_root()
    logger = configure_logging(repo_root)
    load_dotenv(repo_root / ".env")

    args = build_parser().parse_args(argv)

    try:
        cutoff_day = args.cutoff_day if args.cutoff_day is not None else get_default_cutoff_day()
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    periods = calc_billing_periods(cutoff_day, args.year)
    if periods is False:
        logger.error("Invalid input cutoff_day=%r year=%r", cutoff_day, args.year)
        return 2

    if args.output is not None:
        try:
            written = write_billing_periods_csv(args.output, periods)
        except OSError:
            logger.exception("Failed writing %s", args.output)
            return 1
        logger.info("Wrote %s billing periods to %s", written, args.output)

    if args.json:
        print(json.dumps([period.as_dict() for period in periods], indent=2))
    elif args.output is None:
        for period in periods:
            print(f"{period.month}  {period.start_date} -> {period.end_date}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
