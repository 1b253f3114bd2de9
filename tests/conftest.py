"""Shared test fixtures and configuration.

Provides settings, credentials, stores and a recording HTTP mock for the
Socials Publisher components. Network access is always stubbed through
httpx.MockTransport so tests can assert exactly which calls were made.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qs

import httpx
import pytest

from socials_publisher.config import OAuthClientSettings, PublisherSettings
from socials_publisher.constants import AssetType, Environment, Platform
from socials_publisher.credentials.models import Credential
from socials_publisher.credentials.store import InMemoryCredentialStore
from socials_publisher.platforms.base import Asset

# Fixed "now" returned by the injected clock
NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# HTTP mock
# =============================================================================

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport:
    """Routes requests to a handler and records every request.

    Usage:
        http = mock_http(lambda request: httpx.Response(200, json={}))
        client = http.client()
        ...
        assert http.count == 1
    """

    def __init__(self, handler: Handler | None = None):
        self.requests: list[httpx.Request] = []
        self.handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is None:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    @property
    def count(self) -> int:
        return len(self.requests)

    def calls(self) -> list[str]:
        """Requests as "METHOD /path" strings."""
        return [f"{r.method} {r.url.path}" for r in self.requests]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        """Decode a form-encoded request body into a flat dict."""
        parsed = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}

    @staticmethod
    def json(request: httpx.Request) -> Any:
        return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def mock_http() -> Callable[..., RecordingTransport]:
    """Factory for recording transports."""
    return RecordingTransport


@pytest.fixture
def no_network() -> RecordingTransport:
    """Transport that fails the test on any request."""
    return RecordingTransport()


# =============================================================================
# Time
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock frozen at NOW."""
    return lambda: NOW


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def settings(tmp_path: Path) -> PublisherSettings:
    """Settings with test OAuth clients and no artificial delays."""
    return PublisherSettings(
        credential_store_path=tmp_path / "credentials.json",
        log_dir=tmp_path / "logs",
        container_publish_delay_seconds=0,
        simulated_delay_seconds=0,
        oauth_clients={
            "youtube": OAuthClientSettings(
                client_id="google-client",
                client_secret="google-secret",
                redirect_uri="https://app.example.com/youtube/callback",
            ),
            "instagram": OAuthClientSettings(
                client_id="ig-client",
                client_secret="ig-secret",
                redirect_uri="https://app.example.com/instagram/callback",
            ),
            "facebook": OAuthClientSettings(
                client_id="fb-app",
                client_secret="fb-secret",
                redirect_uri="https://app.example.com/facebook/callback",
            ),
        },
    )


# =============================================================================
# Credentials and assets
# =============================================================================

@pytest.fixture
def make_credential() -> Callable[..., Credential]:
    """Factory for credentials valid for one hour after NOW by default."""

    def _make(platform: Platform = Platform.YOUTUBE, user_id: str = "user-1", **overrides: Any) -> Credential:
        values: dict[str, Any] = {
            "user_id": user_id,
            "platform": platform,
            "access_token": f"{platform.value}-access-token-0001",
            "refresh_token": f"{platform.value}-refresh-token-0001",
            "expires_at": NOW + timedelta(hours=1),
            "platform_user_id": f"{platform.value}-account-1",
            "display_name": f"Test {platform.value}",
            "environment": Environment.LIVE,
            "connected_at": NOW - timedelta(days=1),
        }
        if platform == Platform.FACEBOOK:
            values["metadata"] = {
                "page_id": "page-1",
                "page_name": "Test Page",
                "page_access_token": "page-token-0001",
            }
        if platform == Platform.INSTAGRAM:
            values["platform_user_id"] = "17841400000000001"
        values.update(overrides)
        return Credential(**values)

    return _make


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def video_asset() -> Asset:
    return Asset(
        id="asset-video-1",
        asset_type=AssetType.VIDEO,
        source_url="https://cdn.example.com/videos/launch.mp4",
        title="Launch day",
        description="Our product launch in 60 seconds",
        tags=["launch", "product"],
        mime_type="video/mp4",
    )


@pytest.fixture
def image_asset() -> Asset:
    return Asset(
        id="asset-image-1",
        asset_type=AssetType.IMAGE,
        source_url="https://cdn.example.com/images/cover.jpg",
        title="New collection",
        description="Fresh arrivals this week",
        tags=["fashion", "new in"],
    )


@pytest.fixture
def text_asset() -> Asset:
    return Asset(
        id="asset-text-1",
        asset_type=AssetType.CONTENT,
        title="Big news",
        description="We are opening a second store next month.",
    )
