"""Caller-facing publishing service.

Wires the credential store, OAuth client, token manager, adapter
registry and orchestrator together behind the operations an application
needs: connect, complete_auth, disconnect, list_connections,
check_connection and publish.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

import httpx

from ..config import PublisherSettings
from ..constants import SHORT_LIVED_TOKEN_SECONDS, Environment, Platform, ProgressCallback
from ..credentials.models import Credential, CredentialSummary
from ..credentials.oauth import OAuthClient
from ..credentials.store import CredentialStore, JsonFileCredentialStore
from ..credentials.token_manager import TokenManager
from ..platforms.base import Asset, UploadResult
from ..platforms.registry import PlatformRegistry
from ..utils.timestamps import Clock, now_utc
from .captions import CaptionSource
from .orchestrator import PublishOrchestrator

_logger = logging.getLogger("publisher_tokens")


class SocialPublisher:
    """Facade over the publishing core.

    Usage:
        publisher = SocialPublisher(PublisherSettings())
        url = publisher.connect("user-1", Platform.YOUTUBE)
        # ... user authorizes, the redirect delivers ?code=...
        await publisher.complete_auth("user-1", Platform.YOUTUBE, code)
        results = await publisher.publish("user-1", asset, [Platform.YOUTUBE])
    """

    def __init__(
        self,
        settings: PublisherSettings | None = None,
        store: CredentialStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        caption_source: CaptionSource | None = None,
        registry: PlatformRegistry | None = None,
        clock: Clock = now_utc,
    ):
        self.settings = settings or PublisherSettings()
        self.store = store or JsonFileCredentialStore(self.settings.credential_store_path)
        self._clock = clock
        self.oauth = OAuthClient(self.settings, http_client, clock=clock)
        self.token_manager = TokenManager(self.store, self.oauth, self.settings, clock=clock)
        self.registry = registry or PlatformRegistry(self.settings, http_client)
        self.orchestrator = PublishOrchestrator(
            self.store,
            self.token_manager,
            self.registry,
            caption_source=caption_source,
        )

    # ----------------------------------------------------------------------
    # Connections
    # ----------------------------------------------------------------------

    def connect(self, user_id: str, platform: Platform | str) -> str:
        """Start the OAuth flow.

        Returns:
            Authorization URL for the user to visit. The user id is sent as
            the OAuth state.
        """
        platform = Platform.parse(platform)
        return self.oauth.authorization_url(platform, state=user_id)

    async def complete_auth(self, user_id: str, platform: Platform | str, code: str) -> Credential:
        """Exchange the authorization code and store the credential.

        An existing credential for the same platform is replaced.

        Raises:
            OAuthError: If the exchange or profile lookup fails.
        """
        platform = Platform.parse(platform)
        credential = await self.oauth.exchange_code(user_id, platform, code)
        stored = await self.store.upsert(credential)
        _logger.info(f"Connected {stored.describe()}")
        return stored

    async def connect_simulated(
        self,
        user_id: str,
        platform: Platform | str,
        display_name: str | None = None,
    ) -> Credential:
        """Store a simulated credential for demos and tests.

        Publishing with it never touches the platform API.
        """
        platform = Platform.parse(platform)
        now = self._clock()
        credential = Credential(
            user_id=user_id,
            platform=platform,
            access_token=f"simulated-{platform.value}-{int(now.timestamp())}",
            refresh_token=f"simulated-refresh-{platform.value}",
            expires_at=now + timedelta(seconds=SHORT_LIVED_TOKEN_SECONDS),
            platform_user_id=f"sim-{user_id}",
            username=display_name or f"{platform.value}_demo",
            display_name=display_name or f"Demo {platform.value.title()} account",
            environment=Environment.SIMULATED,
            connected_at=now,
            updated_at=now,
        )
        return await self.store.upsert(credential)

    async def disconnect(self, user_id: str, platform: Platform | str, hard: bool = False) -> bool:
        """Remove a connection.

        Args:
            hard: Delete the record instead of deactivating it.

        Returns:
            True if a credential existed.
        """
        platform = Platform.parse(platform)
        if hard:
            return await self.store.delete(user_id, platform)
        return await self.store.deactivate(user_id, platform)

    async def list_connections(self, user_id: str) -> list[CredentialSummary]:
        """Active connections of a user, without tokens."""
        return [c.summary() for c in await self.store.list_active(user_id)]

    async def check_connection(self, user_id: str, platform: Platform | str) -> bool:
        """Check for an active credential whose token has not expired."""
        credential = await self.store.get_active(user_id, Platform.parse(platform))
        return credential is not None and not credential.is_expired(self._clock())

    # ----------------------------------------------------------------------
    # Publishing
    # ----------------------------------------------------------------------

    async def publish(
        self,
        user_id: str,
        asset: Asset,
        platforms: Iterable[Platform | str],
        progress_callback: ProgressCallback = None,
    ) -> list[UploadResult]:
        """Publish an asset to the given platforms. See PublishOrchestrator.publish_all.

        Raises:
            ValueError: If a platform name is unknown.
        """
        return await self.orchestrator.publish_all(user_id, asset, platforms, progress_callback)

    def cancel(self) -> None:
        self.orchestrator.cancel()
