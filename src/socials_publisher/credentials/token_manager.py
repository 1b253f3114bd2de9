"""Access token lifecycle: expiry detection, proactive refresh, persistence."""

from __future__ import annotations

import logging
from datetime import datetime

from ..config import PublisherSettings
from ..constants import SHORT_LIVED_TOKEN_SECONDS, STORE_WRITE_ATTEMPTS
from ..errors import CredentialExpired, CredentialStoreError, OAuthError
from ..utils.secrets import mask_token
from ..utils.timestamps import Clock, expires_at_from, now_utc, seconds_until
from .models import Credential, TokenGrant
from .oauth import OAuthClient
from .store import CredentialStore

_logger = logging.getLogger("publisher_tokens")


class TokenManager:
    """Keeps credentials usable for at least a minimum validity window.

    Features:
    - Returns tokens that are comfortably valid without any network call
    - Refreshes tokens inside the window against the provider endpoint
    - Persists the new token fields onto the stored record (one retry on
      store failure), never reviving a disconnected account
    - Refreshes simulated credentials locally
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth_client: OAuthClient,
        settings: PublisherSettings | None = None,
        clock: Clock = now_utc,
    ):
        self.store = store
        self.oauth_client = oauth_client
        self.settings = settings or oauth_client.settings
        self._clock = clock

    @property
    def min_validity_seconds(self) -> int:
        return self.settings.token_min_validity_seconds

    def needs_refresh(self, credential: Credential, now: datetime | None = None) -> bool:
        """Check whether a credential expires inside the validity window."""
        return credential.expires_within(self.min_validity_seconds, now or self._clock())

    async def ensure_valid(self, credential: Credential) -> Credential:
        """Return a credential usable for at least the validity window.

        Args:
            credential: Stored credential about to be used.

        Returns:
            The same credential when no refresh is needed, otherwise the
            refreshed and persisted credential.

        Raises:
            CredentialExpired: If no refresh token exists, the refresh call
                fails, the refreshed token still expires inside the window,
                the connection was removed meanwhile, or the refreshed
                credential cannot be stored.
        """
        now = self._clock()
        if not self.needs_refresh(credential, now):
            return credential

        remaining = seconds_until(credential.expires_at, now) if credential.expires_at else 0
        _logger.info(
            f"Token for {credential.platform.value} user={credential.user_id} "
            f"expires in {remaining:.0f}s, refreshing"
        )

        if not credential.can_refresh:
            _logger.warning(f"No refresh token for {credential.describe()}")
            raise CredentialExpired(
                f"{credential.platform.value} token expired and cannot be refreshed",
                user_message=f"Your {credential.platform.value} connection expired. Please reconnect.",
            )

        if credential.is_simulated:
            grant = TokenGrant(
                access_token=f"simulated-{credential.platform.value}-{int(now.timestamp())}",
                expires_in=SHORT_LIVED_TOKEN_SECONDS,
            )
        else:
            grant = await self._request_refresh(credential)

        refreshed = await self._persist(self.apply_grant(credential, grant, now))
        if self.needs_refresh(refreshed, now):
            # Already persisted, so a rotated refresh token survives this failure
            _logger.warning(
                f"Provider returned a token valid for {seconds_until(refreshed.expires_at, now):.0f}s, "
                f"less than the {self.min_validity_seconds}s window: {refreshed.describe()}"
            )
            raise CredentialExpired(
                f"Refreshed {credential.platform.value} token expires inside the validity window",
                user_message=f"Your {credential.platform.value} connection could not be renewed. Please reconnect.",
            )
        return refreshed

    @staticmethod
    def apply_grant(credential: Credential, grant: TokenGrant, now: datetime) -> Credential:
        """Copy new token material from a grant onto a credential."""
        update = {
            "access_token": grant.access_token,
            "expires_at": expires_at_from(grant.expires_in, now),
        }
        if grant.refresh_token:
            update["refresh_token"] = grant.refresh_token
        if grant.scope:
            update["scope"] = grant.scope
        return Credential.model_validate({**credential.model_dump(), **update})

    async def _request_refresh(self, credential: Credential) -> TokenGrant:
        try:
            grant = await self.oauth_client.refresh(credential)
        except OAuthError as e:
            _logger.error(f"Token refresh failed for {credential.describe()}: {e}")
            raise CredentialExpired(
                f"Token refresh failed: {e}",
                user_message=f"Could not refresh your {credential.platform.value} connection. Please reconnect.",
            ) from e

        _logger.info(
            f"Refreshed {credential.platform.value} token: {mask_token(grant.access_token)}, "
            f"expires_in={grant.expires_in}"
        )
        return grant

    async def _persist(self, credential: Credential) -> Credential:
        last_error: CredentialStoreError | None = None
        for attempt in range(1, STORE_WRITE_ATTEMPTS + 1):
            try:
                stored = await self.store.update_tokens(credential)
            except CredentialStoreError as e:
                last_error = e
                _logger.warning(f"Store write failed (attempt {attempt}/{STORE_WRITE_ATTEMPTS}): {e}")
                continue

            if stored is None:
                _logger.warning(f"Connection removed during refresh, not stored: {credential.describe()}")
                raise CredentialExpired(
                    f"{credential.platform.value} connection was removed during token refresh",
                    user_message=f"{credential.platform.value} was disconnected. Connect it and try again.",
                )
            return stored

        raise CredentialExpired(
            f"Refreshed token could not be stored: {last_error}",
            user_message="Your connection could not be saved. Please reconnect.",
        ) from last_error
