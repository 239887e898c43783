"""
Datetime utility functions.
"""

from datetime import datetime
from typing import Optional
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize a datetime for JSON responses.

    Naive datetimes (SQLite drops tzinfo on the way back) are assumed to be UTC.

    Args:
        value: Datetime or None

    Returns:
        ISO 8601 string, or None when value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return value.isoformat()


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to UTC.

    Naive values are taken to already be UTC; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)
