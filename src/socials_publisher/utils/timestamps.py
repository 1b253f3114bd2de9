"""Timestamp utilities for consistent timezone handling.

All credential expiry times are stored and compared in UTC.
Local time is only used for display purposes.

Usage:
    from socials_publisher.utils.timestamps import now_utc, to_utc, expires_at_from

    expires_at = expires_at_from(3600)          # one hour from now, UTC
    remaining = seconds_until(expires_at)       # float seconds, negative if past
    display = format_local(expires_at)          # "Dec 17, 2025 12:43 PM"
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]
"""Callable returning the current UTC time. Injected for tests."""


# =============================================================================
# CURRENT TIME
# =============================================================================

def now_utc() -> datetime:
    """Get current time in UTC with timezone info."""
    return datetime.now(timezone.utc)


# =============================================================================
# CONVERSION
# =============================================================================

def to_utc(dt: datetime) -> datetime:
    """Convert any datetime to UTC.

    Naive datetimes are assumed to already be UTC, which is how the
    credential store writes them.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def expires_at_from(expires_in: int | float | None, now: datetime | None = None) -> datetime | None:
    """Turn an OAuth expires_in (seconds) into an absolute UTC time.

    Returns:
        Expiry time, or None when the provider did not send expires_in.
    """
    if expires_in is None:
        return None
    base = to_utc(now) if now else now_utc()
    return base + timedelta(seconds=float(expires_in))


def seconds_until(dt: datetime, now: datetime | None = None) -> float:
    """Seconds from now until dt (negative when dt is in the past)."""
    base = to_utc(now) if now else now_utc()
    return (to_utc(dt) - base).total_seconds()


# =============================================================================
# FORMATTING
# =============================================================================

def format_local(dt: datetime | None) -> str:
    """Format a datetime for display in local time.

    Example:
        "Dec 17, 2025 12:43 PM"
    """
    if dt is None:
        return "never"
    return to_utc(dt).astimezone().strftime("%b %d, %Y %I:%M %p")
