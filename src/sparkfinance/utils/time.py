"""Small time helpers shared by the cache, key rotation and adapters."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], int]

MINUTE_MS = 60_000
DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def one_month_before(value_ms: int) -> datetime:
    """Return the same day of the previous calendar month (clamped to month end)."""
    current = ms_to_datetime(value_ms)
    year = current.year if current.month > 1 else current.year - 1
    month = current.month - 1 if current.month > 1 else 12
    day = current.day
    while True:
        try:
            return current.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


def iso_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")
