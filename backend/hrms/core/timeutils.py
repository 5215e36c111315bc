from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

from hrms.core.config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iter_days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def weekday_name(day: date) -> str:
    return calendar.day_name[day.weekday()]


def hours_between(start: datetime | time, end: datetime | time) -> float:
    if isinstance(start, time):
        start = datetime.combine(date.min, start)
    if isinstance(end, time):
        end = datetime.combine(date.min, end)
    return (end - start).total_seconds() / 3600


def to_display(value: datetime | None, tz_name: str | None = None) -> datetime | None:
    """Render a stored UTC timestamp in the configured display timezone."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name or settings.display_timezone))


def local_wall_clock(value: datetime, tz_name: str | None = None) -> datetime:
    """Naive wall-clock time in the display timezone for a stored UTC timestamp."""
    return to_display(value, tz_name).replace(tzinfo=None)


def to_storage(value: datetime | None) -> datetime | None:
    """Naive UTC for storage; naive input is taken to be UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
