"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- Shift times ("HH:MM") and API responses use the business zone from settings.TZ.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from hrapprovals.core.config import settings

UTC = timezone.utc


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for approved_at, clock_in_at, created_at, etc."""
    return datetime.now(UTC)


def today_local() -> date:
    """Today's date in the business timezone."""
    return now_utc().astimezone(business_tz()).date()


def yesterday_local() -> date:
    return today_local() - timedelta(days=1)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" wall-clock string. Raises ValueError on malformed input."""
    hours, minutes = value.strip().split(":")
    return time(hour=int(hours), minute=int(minutes))


def local_to_utc(day: date, value: str) -> datetime:
    """Combine a calendar day and an "HH:MM" wall-clock time in the business zone, returned in UTC."""
    local_dt = datetime.combine(day, parse_hhmm(value), tzinfo=business_tz())
    return local_dt.astimezone(UTC)


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the business zone. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(business_tz())


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 with the business-zone offset. Use for API response datetime fields."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end (negative if end precedes start)."""
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds() // 60)
