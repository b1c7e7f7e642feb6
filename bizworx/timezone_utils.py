# bizworx/timezone_utils.py
#
# Timezone utilities for consistent datetime handling.
# Slot hours are civil time in the business timezone, so they are built
# from (date, hour) pairs and localized instead of shifted by offsets.

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from config.settings import APP_TIMEZONE

DEFAULT_TIMEZONE = APP_TIMEZONE

_tz = pytz.timezone(DEFAULT_TIMEZONE)


def now() -> datetime:
    """
    Get current timezone-aware datetime in the business timezone.
    """
    return datetime.now(_tz)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.
    If datetime is naive, assumes it's in the default timezone.
    """
    if dt.tzinfo is None:
        dt = _tz.localize(dt)
    return dt.astimezone(timezone.utc)


def from_utc(dt: datetime) -> datetime:
    """
    Convert a UTC datetime to the business timezone.
    Naive values are taken as UTC (that is how they are stored).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(_tz)


def make_aware(dt: datetime, tz: Optional[str] = None) -> datetime:
    """
    Make a naive datetime timezone-aware.

    Args:
        dt: Naive datetime
        tz: Timezone name (default: DEFAULT_TIMEZONE)

    Returns:
        Timezone-aware datetime
    """
    if dt.tzinfo is not None:
        return dt
    tz_obj = pytz.timezone(tz) if tz else _tz
    return tz_obj.localize(dt)


def parse_iso_with_tz(iso_string: str) -> datetime:
    """
    Parse ISO format string and ensure timezone awareness.
    If no timezone info, assumes the business timezone.
    """
    dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
    return make_aware(dt)


def to_iso_utc(dt: datetime) -> str:
    """
    Serialize a datetime as a UTC ISO 8601 string (storage format).
    Fixed width at whole seconds, so stored values sort as text.
    """
    return to_utc(dt).replace(microsecond=0).isoformat()


def at_hour(day: date, hour: int) -> datetime:
    """
    Wall-clock `hour`:00 on `day` in the business timezone.
    """
    return _tz.localize(datetime.combine(day, time(hour=hour)))


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """
    Start of `day` and start of the following day, both aware.
    Days spanning a DST change are 23 or 25 hours long.
    """
    start = _tz.localize(datetime.combine(day, time.min))
    end = _tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start, end


def shift(dt: datetime, delta: timedelta) -> datetime:
    """
    Add an absolute duration to an aware datetime and re-read it on the
    business clock (pytz keeps the old offset until normalized).
    """
    return _tz.normalize(make_aware(dt) + delta)


def local_date(dt: datetime) -> date:
    """Calendar date of `dt` on the business clock. Naive values are taken as local."""
    return make_aware(dt).astimezone(_tz).date()
