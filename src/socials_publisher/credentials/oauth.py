"""OAuth providers: authorization URLs, code exchange and token refresh.

Each supported platform has an OAuthProvider describing its endpoints.
OAuthClient turns an authorization code into a stored-ready Credential and
performs raw refresh calls for the TokenManager.

Flows:
- YouTube: Google OAuth (offline access) -> channel lookup
- Instagram: code exchange -> long-lived token (ig_exchange_token) -> profile
- Facebook: code exchange -> long-lived token (fb_exchange_token) -> profile
  -> first managed page

Meta long-lived tokens have no separate refresh token. They are renewed by
re-exchanging the current long-lived token, so that token is stored as the
credential's refresh_token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from ..config import OAuthClientSettings, PublisherSettings
from ..constants import (
    META_LONG_LIVED_TOKEN_SECONDS,
    SHORT_LIVED_TOKEN_SECONDS,
    Platform,
)
from ..errors import OAuthError
from ..transport import log_request, log_response, next_call_id, open_client, safe_json
from ..utils.timestamps import Clock, expires_at_from, now_utc
from .models import Credential, TokenGrant

_logger = logging.getLogger("publisher_tokens")


@dataclass(frozen=True)
class OAuthProvider:
    """Endpoints and conventions of one platform's OAuth implementation."""

    platform: Platform
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...]
    refresh_url: str
    refresh_grant: str
    """grant_type used when refreshing: refresh_token, fb_exchange_token or ig_refresh_token."""

    refresh_method: str = "POST"
    scope_separator: str = " "
    default_expires_in: int | None = None
    """Lifetime assumed when the token endpoint omits expires_in."""

    extra_auth_params: dict[str, str] = field(default_factory=dict)


def build_providers(graph_api_version: str = "v18.0") -> dict[Platform, OAuthProvider]:
    """Build the provider table for the given Graph API version."""
    graph = f"https://graph.facebook.com/{graph_api_version}"
    return {
        Platform.YOUTUBE: OAuthProvider(
            platform=Platform.YOUTUBE,
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            refresh_url="https://oauth2.googleapis.com/token",
            refresh_grant="refresh_token",
            scopes=(
                "https://www.googleapis.com/auth/youtube.upload",
                "https://www.googleapis.com/auth/youtube.readonly",
            ),
            extra_auth_params={"access_type": "offline", "prompt": "consent"},
        ),
        Platform.INSTAGRAM: OAuthProvider(
            platform=Platform.INSTAGRAM,
            authorize_url="https://api.instagram.com/oauth/authorize",
            token_url="https://api.instagram.com/oauth/access_token",
            refresh_url="https://graph.instagram.com/refresh_access_token",
            refresh_grant="ig_refresh_token",
            refresh_method="GET",
            scope_separator=",",
            scopes=("user_profile", "user_media"),
            default_expires_in=META_LONG_LIVED_TOKEN_SECONDS,
        ),
        Platform.FACEBOOK: OAuthProvider(
            platform=Platform.FACEBOOK,
            authorize_url=f"https://www.facebook.com/{graph_api_version}/dialog/oauth",
            token_url=f"{graph}/oauth/access_token",
            refresh_url=f"{graph}/oauth/access_token",
            refresh_grant="fb_exchange_token",
            scope_separator=",",
            scopes=("pages_manage_posts", "pages_read_engagement", "pages_show_list"),
            default_expires_in=META_LONG_LIVED_TOKEN_SECONDS,
        ),
    }


class OAuthClient:
    """Talks to provider token endpoints.

    Usage:
        client = OAuthClient(settings)
        url = client.authorization_url(Platform.YOUTUBE, state="user-42")
        credential = await client.exchange_code("user-42", Platform.YOUTUBE, code)
    """

    def __init__(
        self,
        settings: PublisherSettings,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock = now_utc,
    ):
        self.settings = settings
        self.providers = build_providers(settings.graph_api_version)
        self._http = http_client
        self._clock = clock
        self._graph_base = f"https://graph.facebook.com/{settings.graph_api_version}"

    # ----------------------------------------------------------------------
    # Provider lookup
    # ----------------------------------------------------------------------

    def supports(self, platform: Platform) -> bool:
        return platform in self.providers

    def provider(self, platform: Platform) -> OAuthProvider:
        """Get the provider for a platform.

        Raises:
            OAuthError: If the platform has no OAuth integration.
        """
        provider = self.providers.get(platform)
        if provider is None:
            raise OAuthError(f"OAuth is not available for {platform.value}")
        return provider

    def client_settings(self, platform: Platform) -> OAuthClientSettings:
        """Get configured client credentials, failing if they are missing."""
        client = self.settings.oauth_client(platform)
        if not client.is_configured:
            raise OAuthError(
                f"{platform.value} OAuth credentials not configured "
                "(set the client id and secret in .env)"
            )
        return client

    # ----------------------------------------------------------------------
    # Authorization
    # ----------------------------------------------------------------------

    def authorization_url(self, platform: Platform, state: str) -> str:
        """Build the URL the user visits to grant access.

        Args:
            platform: Target platform.
            state: Opaque value echoed back to the redirect (usually the user id).
        """
        provider = self.provider(platform)
        client = self.client_settings(platform)
        params = {
            "client_id": client.client_id,
            "redirect_uri": client.redirect_uri,
            "response_type": "code",
            "scope": provider.scope_separator.join(provider.scopes),
            "state": state,
            **provider.extra_auth_params,
        }
        return f"{provider.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, user_id: str, platform: Platform, code: str) -> Credential:
        """Exchange an authorization code for a ready-to-store Credential.

        Raises:
            OAuthError: If any step of the exchange or profile lookup fails.
        """
        if not code:
            raise OAuthError("Authorization code is empty")

        if platform == Platform.YOUTUBE:
            return await self._exchange_youtube(user_id, code)
        if platform == Platform.INSTAGRAM:
            return await self._exchange_instagram(user_id, code)
        if platform == Platform.FACEBOOK:
            return await self._exchange_facebook(user_id, code)
        raise OAuthError(f"OAuth is not available for {platform.value}")

    # ----------------------------------------------------------------------
    # Refresh
    # ----------------------------------------------------------------------

    async def refresh(self, credential: Credential) -> TokenGrant:
        """Call the refresh endpoint for a credential.

        Returns:
            The new grant. Meta responses without refresh_token are returned
            as-is; the caller keeps the previous one.

        Raises:
            OAuthError: On a non-2xx response, transport error, or bad body.
        """
        provider = self.provider(credential.platform)
        if not credential.refresh_token:
            raise OAuthError("Credential has no refresh token")

        if provider.refresh_grant == "ig_refresh_token":
            params = {
                "grant_type": "ig_refresh_token",
                "access_token": credential.refresh_token,
            }
        else:
            client = self.client_settings(credential.platform)
            params = {
                "client_id": client.client_id,
                "client_secret": client.client_secret,
                "grant_type": provider.refresh_grant,
            }
            if provider.refresh_grant == "fb_exchange_token":
                params["fb_exchange_token"] = credential.refresh_token
            else:
                params["refresh_token"] = credential.refresh_token

        data = await self._token_call(provider.refresh_method, provider.refresh_url, params)
        grant = self._parse_grant(data)

        # Meta re-exchange: the new long-lived token is also the next refresh token
        if provider.refresh_grant in ("fb_exchange_token", "ig_refresh_token") and not grant.refresh_token:
            grant = grant.model_copy(update={"refresh_token": grant.access_token})
        if grant.expires_in is None and provider.default_expires_in:
            grant = grant.model_copy(update={"expires_in": provider.default_expires_in})
        return grant

    # ----------------------------------------------------------------------
    # Per-platform exchanges
    # ----------------------------------------------------------------------

    async def _exchange_youtube(self, user_id: str, code: str) -> Credential:
        provider = self.providers[Platform.YOUTUBE]
        client = self.client_settings(Platform.YOUTUBE)

        data = await self._token_call("POST", provider.token_url, {
            "code": code,
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "redirect_uri": client.redirect_uri,
            "grant_type": "authorization_code",
        })
        grant = self._parse_grant(data)

        channels = await self._get_json(
            "https://www.googleapis.com/youtube/v3/channels",
            params={"part": "id,snippet", "mine": "true"},
            headers={"Authorization": f"Bearer {grant.access_token}"},
        )
        items = channels.get("items") or []
        if not items:
            raise OAuthError("No YouTube channel found for this account")

        channel = items[0]
        snippet = channel.get("snippet", {})
        return self._credential(
            user_id=user_id,
            platform=Platform.YOUTUBE,
            grant=grant,
            platform_user_id=channel.get("id"),
            username=snippet.get("customUrl") or snippet.get("title"),
            display_name=snippet.get("title"),
            scope=grant.scope or " ".join(provider.scopes),
            metadata={
                "channel_id": channel.get("id"),
                "channel_title": snippet.get("title"),
                "thumbnail_url": snippet.get("thumbnails", {}).get("default", {}).get("url"),
            },
        )

    async def _exchange_instagram(self, user_id: str, code: str) -> Credential:
        provider = self.providers[Platform.INSTAGRAM]
        client = self.client_settings(Platform.INSTAGRAM)

        data = await self._token_call("POST", provider.token_url, {
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": client.redirect_uri,
            "code": code,
        })
        short_lived = self._parse_grant(data)

        try:
            long_data = await self._token_call("GET", "https://graph.instagram.com/access_token", {
                "grant_type": "ig_exchange_token",
                "client_secret": client.client_secret,
                "access_token": short_lived.access_token,
            })
            grant = self._parse_grant(long_data)
            grant = grant.model_copy(update={"refresh_token": grant.access_token})
        except OAuthError as e:
            _logger.warning(f"Long-lived token exchange failed, using short-lived token: {e}")
            grant = short_lived.model_copy(update={"expires_in": SHORT_LIVED_TOKEN_SECONDS})

        if grant.expires_in is None:
            grant = grant.model_copy(update={"expires_in": provider.default_expires_in})

        profile = await self._get_json(
            "https://graph.instagram.com/me",
            params={"fields": "id,username", "access_token": grant.access_token},
        )
        return self._credential(
            user_id=user_id,
            platform=Platform.INSTAGRAM,
            grant=grant,
            platform_user_id=str(profile.get("id") or short_lived.user_id or ""),
            username=profile.get("username"),
            display_name=profile.get("username"),
            scope=provider.scope_separator.join(provider.scopes),
            metadata={"instagram_user_id": str(profile.get("id") or short_lived.user_id or "")},
        )

    async def _exchange_facebook(self, user_id: str, code: str) -> Credential:
        provider = self.providers[Platform.FACEBOOK]
        client = self.client_settings(Platform.FACEBOOK)

        data = await self._token_call("POST", provider.token_url, {
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "redirect_uri": client.redirect_uri,
            "code": code,
        })
        short_lived = self._parse_grant(data)

        long_data = await self._token_call("POST", provider.token_url, {
            "grant_type": "fb_exchange_token",
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "fb_exchange_token": short_lived.access_token,
        })
        grant = self._parse_grant(long_data)
        grant = grant.model_copy(update={
            "refresh_token": grant.access_token,
            "expires_in": grant.expires_in or provider.default_expires_in,
        })

        profile = await self._get_json(
            f"{self._graph_base}/me",
            params={"fields": "id,name", "access_token": grant.access_token},
        )
        accounts = await self._get_json(
            f"{self._graph_base}/me/accounts",
            params={"fields": "id,name,access_token", "access_token": grant.access_token},
        )

        metadata: dict[str, Any] = {"user_id": profile.get("id")}
        pages = accounts.get("data") or []
        if pages:
            page = pages[0]
            metadata.update({
                "page_id": page.get("id"),
                "page_name": page.get("name"),
                "page_access_token": page.get("access_token"),
            })
        else:
            _logger.warning("Facebook account manages no pages; posting will fail until one is added")

        return self._credential(
            user_id=user_id,
            platform=Platform.FACEBOOK,
            grant=grant,
            platform_user_id=profile.get("id"),
            username=profile.get("name"),
            display_name=metadata.get("page_name") or profile.get("name"),
            scope=provider.scope_separator.join(provider.scopes),
            metadata=metadata,
        )

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------

    def _credential(
        self,
        user_id: str,
        platform: Platform,
        grant: TokenGrant,
        scope: str,
        **fields: Any,
    ) -> Credential:
        now: datetime = self._clock()
        return Credential(
            user_id=user_id,
            platform=platform,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=expires_at_from(grant.expires_in, now),
            scope=scope,
            connected_at=now,
            updated_at=now,
            **fields,
        )

    @staticmethod
    def _parse_grant(data: dict[str, Any]) -> TokenGrant:
        try:
            return TokenGrant.model_validate(data)
        except ValidationError as e:
            raise OAuthError(f"Token response missing access_token: {list(data.keys())}") from e

    async def _token_call(self, method: str, url: str, params: dict[str, str]) -> dict[str, Any]:
        """Form-encoded POST (or GET with query params) to a token endpoint."""
        call_id = next_call_id()
        log_request(call_id, method, url, params)
        try:
            async with open_client(self._http, self.settings.token_timeout_seconds) as client:
                if method.upper() == "GET":
                    response = await client.get(url, params=params, timeout=self.settings.token_timeout_seconds)
                else:
                    response = await client.post(url, data=params, timeout=self.settings.token_timeout_seconds)
        except httpx.HTTPError as e:
            raise OAuthError(f"Token endpoint unreachable: {e}") from e

        log_response(call_id, response)
        if not response.is_success:
            raise OAuthError(
                f"Token endpoint returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return safe_json(response)

    async def _get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        call_id = next_call_id()
        log_request(call_id, "GET", url, params)
        try:
            async with open_client(self._http, self.settings.request_timeout_seconds) as client:
                response = await client.get(
                    url, params=params, headers=headers, timeout=self.settings.request_timeout_seconds
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Profile lookup failed: {e}") from e

        log_response(call_id, response)
        if not response.is_success:
            raise OAuthError(
                f"Profile lookup returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return safe_json(response)
