from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_BUSINESS_TIMEZONE

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")

_business_tz_name = DEFAULT_BUSINESS_TIMEZONE


def configure_business_timezone(name: str) -> None:
    """Set the zone used to interpret wall-clock times (called once at app start)."""

    global _business_tz_name
    ZoneInfo(name)
    _business_tz_name = name


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def business_tz() -> ZoneInfo:
    return _zone(_business_tz_name)


def is_iso_date(value: Optional[str]) -> bool:
    return bool(value) and bool(_DATE_RE.match(value))


def is_clock_time(value: Optional[str]) -> bool:
    return bool(value) and bool(_TIME_RE.match(value))


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date (strict format)."""
    if not is_iso_date(value):
        raise ValueError(f"Invalid date (YYYY-MM-DD): {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def to_instant(date_str: Optional[str], time_str: Optional[str]) -> Optional[datetime]:
    """Combine a business-local date and clock time into an aware UTC instant.

    Missing or malformed input returns None. Both ``HH:MM`` and ``HH:MM:SS`` are
    accepted, so ``("2025-01-05", "09:00")`` and ``("2025-01-05", "09:00:00")``
    produce the same instant.
    """

    if not date_str or not time_str:
        return None
    date_str = date_str.strip()
    time_str = time_str.strip()
    if not is_iso_date(date_str) or not is_clock_time(time_str):
        return None

    fmt = "%Y-%m-%d %H:%M" if len(time_str) == 5 else "%Y-%m-%d %H:%M:%S"
    try:
        naive = datetime.strptime(f"{date_str} {time_str}", fmt)
    except ValueError:
        return None
    return naive.replace(tzinfo=business_tz()).astimezone(timezone.utc)


def combine_local(day: date, clock: str) -> Optional[datetime]:
    return to_instant(day.isoformat(), clock)


def to_local(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(business_tz())


def format_local_time(instant: Optional[datetime]) -> str:
    """Format an instant as HH:MM:SS business-local time ('' when missing)."""
    if instant is None:
        return ""
    return to_local(instant).strftime("%H:%M:%S")


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def clock_minutes(clock: str) -> int:
    """Minutes since midnight for an HH:MM(:SS) string."""
    parts = clock.strip().split(":")
    return int(parts[0]) * 60 + int(parts[1])


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(int(year), int(month))[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(int(year), int(month), 1), date(int(year), int(month), days_in_month(year, month))


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def now_utc() -> datetime:
    """Current time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def today_local() -> date:
    return now_utc().astimezone(business_tz()).date()
