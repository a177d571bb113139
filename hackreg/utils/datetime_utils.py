"""
Centralized datetime handling.

Timestamps are stored timezone-aware in UTC. Some backends (SQLite) hand
them back naive, so everything leaving the service goes through
``ensure_utc`` first.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def days_ago(days: int) -> datetime:
    return now() - timedelta(days=days)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_for_api(dt: Optional[datetime]) -> Optional[str]:
    """
    Format datetime as ISO 8601 in UTC with millisecond precision.

    Example: "2026-03-01T09:30:00.000Z". Returns None if input is None.
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")
