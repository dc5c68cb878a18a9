from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from config import APP_TIMEZONE

APP_TZ = ZoneInfo(APP_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive values are read back from SQLite without tzinfo; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime) -> datetime:
    return as_utc(value).astimezone(APP_TZ)


def local_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """UTC [start, end) of the local calendar day containing `now`."""
    local = to_local(now)
    day_start = datetime(local.year, local.month, local.day, tzinfo=APP_TZ)
    day_end = day_start + timedelta(days=1)
    return day_start.astimezone(timezone.utc), day_end.astimezone(timezone.utc)


def day_key(now: datetime) -> str:
    return to_local(now).strftime("%Y-%m-%d")
