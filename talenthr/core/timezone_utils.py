"""
Date helpers. Datetimes are stored as naive UTC; company-local values are
only computed for display and for rules tied to the working day.
"""
import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    return datetime.utcnow()


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def day_bounds(dt: datetime) -> Tuple[datetime, datetime]:
    start = start_of_day(dt)
    return start, start + timedelta(days=1)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Return [first day, first day of next month) for the given month

    Raises ValueError for an invalid month.
    """
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12")
    days = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    return start, start + timedelta(days=days)


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def to_local(dt: Optional[datetime], tz_name: Optional[str]) -> Optional[datetime]:
    """
    Convert a naive UTC datetime to the given IANA timezone

    Unknown zone names fall back to UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        zone = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    return dt.astimezone(zone)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()
