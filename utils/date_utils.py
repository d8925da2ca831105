"""
Gloo Date Utilities
Helpers for timestamps stored and returned by the API
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def hours_ago(hours: int) -> datetime:
    return utcnow() - timedelta(hours=hours)


def days_ago(days: int) -> datetime:
    return utcnow() - timedelta(days=days)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for JSON responses, treating naive values as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
