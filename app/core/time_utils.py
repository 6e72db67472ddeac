"""
Site-local clock helpers.

"Today" for attendance and daily reports is the calendar day at the site
(settings.timezone), not UTC. Times of day are stored as "HH:MM:SS".
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import settings

REGULAR_HOURS_PER_DAY = 8.0


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def today_iso() -> str:
    return local_now().date().isoformat()


def current_time_str() -> str:
    return local_now().strftime("%H:%M:%S")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_time_of_day(value: str) -> timedelta:
    """Parse "HH:MM" or "HH:MM:SS" into an offset from midnight."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(float(parts[2])) if len(parts) == 3 else 0
    if not (0 <= hours < 24 and 0 <= minutes < 60 and 0 <= seconds < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def compute_work_hours(check_in: str, check_out: Optional[str]) -> Tuple[float, float, float]:
    """
    Return (work_hours, overtime_hours, labor_hours) for a shift.

    A check-out earlier than the check-in is treated as crossing midnight.
    Labor hours are expressed in day units (1.0 == 8 hours).
    """
    if not check_out:
        return 0.0, 0.0, 0.0
    delta = parse_time_of_day(check_out) - parse_time_of_day(check_in)
    if delta < timedelta(0):
        delta += timedelta(days=1)
    hours = round(delta.total_seconds() / 3600, 2)
    overtime = round(max(0.0, hours - REGULAR_HOURS_PER_DAY), 2)
    labor = round(hours / REGULAR_HOURS_PER_DAY, 2)
    return hours, overtime, labor


def month_bounds(year: int, month: int) -> Tuple[str, str]:
    """First and last calendar day of a month as ISO dates."""
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last_day).isoformat()
