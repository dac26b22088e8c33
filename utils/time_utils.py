"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Confirmation window checks (token validity / grace period)
- Elapsed-time measurement for the resend throttle
- Timestamp utilities
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """
    Returns the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalizes a datetime to aware UTC.

    Naive values are assumed to already be UTC (MongoDB returns naive
    datetimes unless the client is tz_aware).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_timedelta(window: Union[timedelta, int, float, None]) -> timedelta:
    """
    Accepts a window expressed as a timedelta or a number of seconds.
    """
    if window is None:
        return timedelta(0)
    if isinstance(window, timedelta):
        return window
    return timedelta(seconds=window)


def is_within_window(
    sent_at: Optional[datetime],
    window: Union[timedelta, int, float],
    now: Optional[datetime] = None
) -> bool:
    """
    Checks whether something sent at `sent_at` is still inside `window`.

    The boundary is exclusive: once the elapsed time equals the window the
    token is expired. A zero-length window is therefore always expired, even
    for a token issued "just now".

    Example:
        window = 1 day, sent_at = today        -> True
        window = 5 days, sent_at = 4 days ago  -> True
        window = 5 days, sent_at = 5 days ago  -> False
        window = 0                             -> always False

    Args:
        sent_at: When the token was issued (None means never)
        window: Validity window
        now: Reference time (defaults to current UTC time)

    Returns:
        True if still valid
    """
    if not sent_at:
        return False

    window = to_timedelta(window)
    if window <= timedelta(0):
        return False

    now = ensure_utc(now) if now else utcnow()
    return ensure_utc(sent_at) > now - window


def elapsed_seconds(sent_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """
    Seconds elapsed since `sent_at`, rounded to one decimal place.

    Returns None when nothing was ever sent.
    """
    if not sent_at:
        return None

    now = ensure_utc(now) if now else utcnow()
    return round((now - ensure_utc(sent_at)).total_seconds(), 1)


def format_duration(seconds: Union[int, float]) -> str:
    """
    Human readable wait time ("45 seconds", "9 minutes", "1 hour").
    """
    seconds = max(0, int(round(seconds)))

    if seconds < 60:
        unit, value = "second", seconds
    elif seconds < 3600:
        unit, value = "minute", -(-seconds // 60)
    else:
        unit, value = "hour", -(-seconds // 3600)

    return f"{value} {unit}" + ("" if value == 1 else "s")
