"""
Time helpers.

Timestamps are persisted as naive UTC datetimes; report days are aligned on
local midnight in the configured report timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Tuple
from zoneinfo import ZoneInfo

from backend.app.core.config import settings


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def report_zone() -> ZoneInfo:
    return ZoneInfo(settings.report_timezone)


def day_window(day: date) -> Tuple[datetime, datetime]:
    """
    UTC bounds of a local calendar day.

    Returns:
        (start, end) as naive UTC datetimes, start inclusive, end exclusive
    """
    zone = report_zone()
    start_local = datetime.combine(day, time.min, tzinfo=zone)
    end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return to_utc_naive(start_local), to_utc_naive(end_local)


def local_date(value: datetime) -> date:
    """Local calendar day of a naive UTC timestamp."""
    return value.replace(tzinfo=timezone.utc).astimezone(report_zone()).date()


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
