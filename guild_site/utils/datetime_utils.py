"""
Centralized datetime utilities for consistent timestamp handling across the application
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC datetime

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Get current UTC datetime as ISO 8601 string

    Returns:
        Current UTC datetime formatted as ISO string
    """
    return datetime.now(timezone.utc).isoformat()


def hours_ago(hours: int) -> datetime:
    """
    Get datetime N hours ago from now in UTC

    Args:
        hours: Number of hours to subtract from current time

    Returns:
        UTC datetime N hours in the past
    """
    return datetime.now(timezone.utc) - timedelta(hours=hours)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes

    SQLite and MySQL hand back naive values for timestamp columns; treat them as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def hours_since(dt: Optional[datetime]) -> float:
    """Hours elapsed since dt, infinite when dt is unknown"""
    aware = ensure_aware(dt)
    if aware is None:
        return float("inf")
    return (utc_now() - aware).total_seconds() / 3600
