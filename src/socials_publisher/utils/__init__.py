"""Utility modules for Socials Publisher."""

from .secrets import mask_token, redact
from .timestamps import (
    Clock,
    expires_at_from,
    format_local,
    now_utc,
    seconds_until,
    to_utc,
)

__all__ = [
    "Clock",
    "expires_at_from",
    "format_local",
    "mask_token",
    "now_utc",
    "redact",
    "seconds_until",
    "to_utc",
]
