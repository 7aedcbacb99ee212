"""
utils/time_utils.py

Purpose: Time and scheduling helpers

- Timezone-aware "now"
- Due checks for scheduled timestamps
- Next plan message calculation
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Returns the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Treats naive datetimes (as returned by some drivers) as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_due(scheduled_for: Optional[datetime], now: datetime) -> bool:
    """
    A timestamp is due when it is present and not after ``now``.
    """
    if scheduled_for is None:
        return False
    return ensure_utc(scheduled_for) <= ensure_utc(now)


def next_plan_message_time(now: datetime, interval_hours: int = 24) -> datetime:
    """
    Next plan day message time: a fixed interval after ``now``.
    """
    # TODO: honour messagingState.timezone and preferredTimeOfDay once the sender exposes local send windows
    return ensure_utc(now) + timedelta(hours=interval_hours)


def format_timestamp(dt: Optional[datetime], format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """
    Formats a datetime object to string.
    """
    if not dt:
        return "N/A"
    return dt.strftime(format_str)
