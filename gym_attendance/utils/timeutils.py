"""
Time helpers shared by the store and the tracker.

The database keeps naive UTC timestamps; everything above it works with
aware datetimes. Day boundaries are always taken in the facility time zone.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive values as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: datetime) -> datetime:
    """Naive UTC, the form stored in the database."""
    return as_utc(value).replace(tzinfo=None)


def day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """[start, end) of a calendar day in `tz`, expressed in UTC."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    # Combine the next day separately so DST days get their real length
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_today(tz: tzinfo, now: Optional[datetime] = None) -> date:
    return as_utc(now or utcnow()).astimezone(tz).date()


def format_duration(delta: timedelta) -> str:
    """
    Render a session length as "{hours}h {minutes}m".
    Seconds are dropped, never rounded. Negative lengths are refused.
    """
    total_seconds = int(delta.total_seconds())
    if total_seconds < 0:
        raise ValueError(f"negative duration: {delta}")
    hours, remainder = divmod(total_seconds, 3600)
    return f"{hours}h {remainder // 60}m"
