from __future__ import annotations

from datetime import datetime, timezone

from zoneinfo import ZoneInfo

# Default application timezone aligned with the farms' local time
DEFAULT_TIMEZONE_NAME = "Europe/Madrid"
DEFAULT_TZ = ZoneInfo(DEFAULT_TIMEZONE_NAME)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC, assuming DEFAULT_TZ for naive values."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=DEFAULT_TZ)
    return dt.astimezone(timezone.utc)


def from_db(dt: datetime | None) -> datetime | None:
    """Values are stored in UTC; some drivers (SQLite) hand them back naive."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Full days elapsed from start to end, never negative."""
    return max(0, (to_utc(end) - to_utc(start)).days)


def isoformat_utc(dt: datetime) -> str:
    return to_utc(dt).isoformat().replace("+00:00", "Z")
