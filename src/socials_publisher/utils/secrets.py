"""Helpers for keeping secrets out of logs."""

from __future__ import annotations

from typing import Any

_SECRET_KEYS = frozenset({"access_token", "refresh_token", "client_secret", "fb_exchange_token", "code"})


def mask_token(token: str | None) -> str:
    """Render a secret as a short, non-reversible preview.

    Example:
        mask_token("ya29.a0AfH6SMBx...Qk") -> "ya29...0_Qk (len=183)"
    """
    if not token:
        return "<none>"
    if len(token) <= 12:
        return f"*** (len={len(token)})"
    return f"{token[:4]}...{token[-4:]} (len={len(token)})"


def redact(params: dict[str, Any] | None) -> dict[str, Any]:
    """Copy a params/body dict with secret values masked for logging."""
    if not params:
        return {}
    return {
        key: mask_token(str(value)) if key in _SECRET_KEYS else value
        for key, value in params.items()
    }
