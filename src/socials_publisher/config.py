"""Publisher configuration loading.

Settings come from three layers, highest priority first:
1. Values passed to PublisherSettings(...) directly
2. SOCIALS_PUBLISHER_* environment variables (and .env)
3. Defaults below

An optional YAML file can be layered on top with PublisherSettings.from_yaml().
OAuth client credentials use the conventional provider env vars
(GOOGLE_CLIENT_ID, FACEBOOK_APP_ID, ...) unless the YAML overrides them.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CHUNK_SIZE_BYTES,
    CHUNK_TIMEOUT_SECONDS,
    CONTAINER_PUBLISH_DELAY_SECONDS,
    MAX_EXTRA_CHUNK_REQUESTS,
    REQUEST_TIMEOUT_SECONDS,
    TOKEN_MIN_VALIDITY_SECONDS,
    TOKEN_TIMEOUT_SECONDS,
    YOUTUBE_DEFAULT_CATEGORY_ID,
    YOUTUBE_MAX_VIDEO_BYTES,
    Platform,
)

# Load .env file
load_dotenv()


def resolve_env(value: Any) -> Any:
    """Resolve ENV:VAR_NAME to the environment variable's value.

    Example:
        resolve_env("ENV:GOOGLE_CLIENT_ID") -> "1234.apps.googleusercontent.com"
        resolve_env("literal_value") -> "literal_value"
    """
    if isinstance(value, str) and value.startswith("ENV:"):
        return os.getenv(value[4:], "")
    return value


def resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Resolve all ENV: references in a (nested) dictionary."""
    resolved = {}
    for key, value in data.items():
        if isinstance(value, dict):
            resolved[key] = resolve_dict(value)
        else:
            resolved[key] = resolve_env(value)
    return resolved


class OAuthClientSettings(BaseModel):
    """OAuth application credentials for one provider."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


# Conventional env var names per platform: (client id, client secret, redirect uri)
_OAUTH_ENV_VARS: dict[Platform, tuple[str, str, str]] = {
    Platform.YOUTUBE: ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "YOUTUBE_REDIRECT_URI"),
    Platform.INSTAGRAM: ("INSTAGRAM_CLIENT_ID", "INSTAGRAM_CLIENT_SECRET", "INSTAGRAM_REDIRECT_URI"),
    Platform.FACEBOOK: ("FACEBOOK_APP_ID", "FACEBOOK_APP_SECRET", "FACEBOOK_REDIRECT_URI"),
}


class PublisherSettings(BaseSettings):
    """Global publisher settings."""

    model_config = SettingsConfigDict(
        env_prefix="SOCIALS_PUBLISHER_",
        env_file=".env",
        extra="ignore",
    )

    # Token lifecycle
    token_min_validity_seconds: int = TOKEN_MIN_VALIDITY_SECONDS
    token_timeout_seconds: float = TOKEN_TIMEOUT_SECONDS

    # Resumable upload
    chunk_size_bytes: int = CHUNK_SIZE_BYTES
    max_extra_chunk_requests: int = MAX_EXTRA_CHUNK_REQUESTS
    chunk_timeout_seconds: float = CHUNK_TIMEOUT_SECONDS
    max_video_bytes: int = YOUTUBE_MAX_VIDEO_BYTES

    # API calls
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    container_publish_delay_seconds: float = CONTAINER_PUBLISH_DELAY_SECONDS
    graph_api_version: str = "v18.0"

    # YouTube defaults
    default_privacy_status: str = "public"
    youtube_category_id: str = YOUTUBE_DEFAULT_CATEGORY_ID

    # Simulated credentials
    simulated_delay_seconds: float = 1.0

    # Storage and logs
    credential_store_path: Path = Path("data") / "credentials.json"
    log_dir: Path = Path("logs")

    # Per-provider OAuth overrides (keyed by platform value)
    oauth_clients: dict[str, OAuthClientSettings] = Field(default_factory=dict)

    def oauth_client(self, platform: Platform) -> OAuthClientSettings:
        """Get OAuth client credentials for a platform.

        Explicit oauth_clients entries win; otherwise the conventional
        provider environment variables are read.
        """
        configured = self.oauth_clients.get(platform.value)
        if configured is not None:
            return configured

        env_vars = _OAUTH_ENV_VARS.get(platform)
        if env_vars is None:
            return OAuthClientSettings()

        id_var, secret_var, redirect_var = env_vars
        return OAuthClientSettings(
            client_id=os.getenv(id_var, ""),
            client_secret=os.getenv(secret_var, ""),
            redirect_uri=os.getenv(redirect_var, ""),
        )

    @classmethod
    def from_yaml(cls, path: Path, **overrides: Any) -> "PublisherSettings":
        """Load settings from a YAML file, resolving ENV: references.

        Args:
            path: YAML file with top-level setting names as keys.
            **overrides: Values that win over the file.

        Returns:
            PublisherSettings instance. A missing file yields env/default settings.
        """
        data: dict[str, Any] = {}
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        data = resolve_dict(data)
        data.update(overrides)
        return cls(**data)
