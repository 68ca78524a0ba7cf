import logging
import os
import sys
import time
from dataclasses import dataclass
from datetime import date, datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Callable

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billing_calendar.api.billing_periods import (
    calc_billing_periods,
    format_date,
    validate_cutoff_day,
    validate_period_year,
)

load_dotenv()


class ConfigError(Exception):
    """Raised when configuration values cannot be parsed."""


@dataclass
class CachedPeriods:
    expires_at: float
    payload: dict[str, Any]


class PeriodCache:
    """Billing-period payloads keyed by validated (cutoff day, year); expired entries are dropped on write."""

    def __init__(self) -> None:
        self._entries: dict[tuple[int | float, int], CachedPeriods] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def lookup(self, key: tuple[int | float, int], ttl_seconds: int, build: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        now = time.time()
        with self._lock:
            hit = self._entries.get(key)
            if hit is not None and hit.expires_at > now:
                return hit.payload
        payload = build()
        with self._lock:
            self._entries = {k: v for k, v in self._entries.items() if v.expires_at > now}
            if ttl_seconds > 0:
                self._entries[key] = CachedPeriods(expires_at=now + ttl_seconds, payload=payload)
        return payload

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def configure_logging(logs_dir: Path | None = None) -> logging.Logger:
    logs_dir = logs_dir or Path(os.getenv("BILLING_LOG_DIR", "logs"))
    logs_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(name)s - %(message)s")
    rotating = TimedRotatingFileHandler(
        logs_dir / "billing_api.log",
        when="midnight",
        backupCount=30,
        encoding="utf-8",
    )
    stdout = logging.StreamHandler(sys.stdout)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()
    for handler in (rotating, stdout):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # Route uvicorn and fastapi output through the root handlers.
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi"):
        named = logging.getLogger(logger_name)
        named.handlers.clear()
        named.propagate = True

    return logging.getLogger("billing_api")


logger = configure_logging()
cache = PeriodCache()


def get_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {name}: {raw}") from exc


def get_default_cutoff_day() -> str:
    return os.getenv("BILLING_CUTOFF_DAY", "1").strip() or "1"


def get_cache_ttl_seconds() -> int:
    return max(0, get_env_int("BILLING_CACHE_TTL_SECONDS", 300))


def build_billing_periods(cutoff_day: int | float, year: int) -> dict[str, Any]:
    periods = calc_billing_periods(cutoff_day, year)
    if periods is False:
        raise HTTPException(status_code=400, detail="Invalid cutoffDay or year")
    return {
        "cutoffDay": str(cutoff_day),
        "year": str(year),
        "periods": [period.as_dict() for period in periods],
    }


app = FastAPI(title="Billing Period Calendar API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def auth_middleware(request: Request, call_next: Callable[..., Any]) -> JSONResponse:
    if request.url.path.startswith("/api"):
        auth_token = os.getenv("BILLING_AUTH_TOKEN", "").strip()
        if auth_token:
            provided = request.headers.get("X-Auth-Token", "") or request.query_params.get("token", "")
            if provided != auth_token:
                return JSONResponse(status_code=401, content={"detail": "Unauthorized"})
    return await call_next(request)


@app.get("/api/health")
def get_health() -> dict[str, Any]:
    return {
        "serverTime": datetime.now().isoformat(),
        "status": "ok",
        "defaultCutoffDay": get_default_cutoff_day(),
    }


@app.get("/api/billing-periods")
def get_billing_periods(cutoffDay: str | None = None, year: str | None = None) -> dict[str, Any]:
    raw_cutoff = cutoffDay if cutoffDay is not None else get_default_cutoff_day()
    raw_year = year if year is not None else str(date.today().year)
    cutoff_day = validate_cutoff_day(raw_cutoff)
    period_year = validate_period_year(raw_year)
    if cutoff_day is None or period_year is None:
        logger.warning("Rejected billing period request cutoffDay=%r year=%r", raw_cutoff, raw_year)
        raise HTTPException(status_code=400, detail="Invalid cutoffDay or year")

    try:
        ttl_seconds = get_cache_ttl_seconds()
    except ConfigError:
        logger.exception("Invalid cache configuration; serving uncached")
        return build_billing_periods(cutoff_day, period_year)

    return cache.lookup(
        (cutoff_day, period_year),
        ttl_seconds=ttl_seconds,
        build=lambda: build_billing_periods(cutoff_day, period_year),
    )


@app.get("/api/billing-periods/current")
def get_current_billing_period(cutoffDay: str | None = None, asOf: date | None = None) -> dict[str, Any]:
    current = asOf or date.today()
    payload = get_billing_periods(cutoffDay=cutoffDay, year=str(current.year))
    month_marker = format_date(current.year, current.month, 1)
    period = next(item for item in payload["periods"] if item["month"] == month_marker)
    return {"cutoffDay": payload["cutoffDay"], "year": payload["year"], "period": period}
