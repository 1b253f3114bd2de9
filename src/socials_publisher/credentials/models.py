"""Data models for platform credentials."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import Environment, Platform
from ..utils.secrets import mask_token
from ..utils.timestamps import now_utc, seconds_until, to_utc


class Credential(BaseModel):
    """OAuth credential for one (user, platform) pair.

    At most one active credential exists per (user_id, platform); the
    credential store enforces this by keying records on that pair.
    """

    user_id: str
    platform: Platform
    access_token: str = Field(repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    expires_at: datetime | None = None
    """None means the token does not expire."""

    platform_user_id: str | None = None
    username: str | None = None
    display_name: str | None = None
    scope: set[str] = Field(default_factory=set)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    environment: Environment = Environment.LIVE
    connected_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    @field_validator("expires_at", "connected_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value is not None else None

    @field_validator("scope", mode="before")
    @classmethod
    def _split_scope(cls, value: Any) -> Any:
        # Providers return scopes as one space- or comma-separated string
        if isinstance(value, str):
            return {part for part in value.replace(",", " ").split() if part}
        return value

    @property
    def key(self) -> tuple[str, Platform]:
        return (self.user_id, self.platform)

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    @property
    def is_simulated(self) -> bool:
        return self.environment == Environment.SIMULATED

    def expires_within(self, window_seconds: float, now: datetime | None = None) -> bool:
        """Check whether the token expires within the given window.

        Non-expiring tokens never do.
        """
        if self.expires_at is None:
            return False
        return seconds_until(self.expires_at, now) <= window_seconds

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_within(0, now)

    def summary(self) -> "CredentialSummary":
        """Token-free view for listing connections."""
        return CredentialSummary(
            platform=self.platform,
            platform_user_id=self.platform_user_id,
            username=self.username,
            display_name=self.display_name,
            expires_at=self.expires_at,
            scope=sorted(self.scope),
            is_active=self.is_active,
            environment=self.environment,
            connected_at=self.connected_at,
        )

    def describe(self) -> str:
        """One-line description safe for logs."""
        return (
            f"{self.platform.value} user={self.user_id} "
            f"account={self.display_name or self.platform_user_id or '?'} "
            f"token={mask_token(self.access_token)}"
        )


class CredentialSummary(BaseModel):
    """Connection details exposed to callers. Never carries tokens."""

    platform: Platform
    platform_user_id: str | None = None
    username: str | None = None
    display_name: str | None = None
    expires_at: datetime | None = None
    scope: list[str] = Field(default_factory=list)
    is_active: bool = True
    environment: Environment = Environment.LIVE
    connected_at: datetime | None = None


class TokenGrant(BaseModel):
    """Token endpoint response (authorization-code exchange or refresh)."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    scope: str | None = None
    token_type: str | None = None
    user_id: str | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> Any:
        # Instagram returns a numeric user_id
        return str(value) if value is not None else None
