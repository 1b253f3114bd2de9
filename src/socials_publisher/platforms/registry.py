"""Platform registry: the dispatch table from Platform to adapter."""

from __future__ import annotations

from typing import Type

import httpx

from ..config import PublisherSettings
from ..constants import Platform
from ..credentials.models import Credential
from .base import PlatformAdapter
from .facebook import FacebookPageAdapter
from .instagram import InstagramAdapter
from .unsupported import SimulatedAdapter, UnsupportedAdapter
from .youtube import ResumableVideoAdapter


class PlatformRegistry:
    """Registry and factory for platform adapters.

    Adapter classes are registered per platform at import time. An
    instance builds one adapter per registered platform up front; any
    other platform resolves to the unsupported adapter.

    Usage:
        registry = PlatformRegistry(settings)
        adapter = registry.adapter_for(Platform.YOUTUBE, credential)
        result = await adapter.publish(asset, credential)
    """

    _adapters: dict[Platform, Type[PlatformAdapter]] = {}

    @classmethod
    def register(cls, platform: Platform, adapter_cls: Type[PlatformAdapter]) -> None:
        """Register an adapter class for a platform."""
        cls._adapters[platform] = adapter_cls

    @classmethod
    def available_platforms(cls) -> list[Platform]:
        """Get all platforms with a registered adapter."""
        return list(cls._adapters.keys())

    @classmethod
    def is_registered(cls, platform: Platform) -> bool:
        return platform in cls._adapters

    def __init__(
        self,
        settings: PublisherSettings,
        http_client: httpx.AsyncClient | None = None,
        overrides: dict[Platform, PlatformAdapter] | None = None,
    ):
        """Build the dispatch table.

        Args:
            settings: Publisher settings passed to every adapter.
            http_client: Shared HTTP client (optional).
            overrides: Adapter instances that replace the registered ones.
        """
        self.settings = settings
        self._http = http_client
        self._table: dict[Platform, PlatformAdapter] = {
            platform: adapter_cls(platform, settings, http_client)
            for platform, adapter_cls in self._adapters.items()
        }
        self._table.update(overrides or {})
        self._simulated: dict[Platform, SimulatedAdapter] = {}
        self._unsupported: dict[Platform, UnsupportedAdapter] = {}

    def adapter_for(self, platform: Platform, credential: Credential | None = None) -> PlatformAdapter:
        """Resolve the adapter for a platform.

        Simulated credentials always get the simulated adapter.
        """
        if credential is not None and credential.is_simulated:
            if platform not in self._simulated:
                self._simulated[platform] = SimulatedAdapter(platform, self.settings, self._http)
            return self._simulated[platform]

        adapter = self._table.get(platform)
        if adapter is not None:
            return adapter

        if platform not in self._unsupported:
            self._unsupported[platform] = UnsupportedAdapter(platform, self.settings, self._http)
        return self._unsupported[platform]


def _register_platforms() -> None:
    """Register all available platform adapters.

    Called automatically on module import.
    """
    PlatformRegistry.register(Platform.YOUTUBE, ResumableVideoAdapter)
    PlatformRegistry.register(Platform.INSTAGRAM, InstagramAdapter)
    PlatformRegistry.register(Platform.FACEBOOK, FacebookPageAdapter)


# Auto-register platforms on import
_register_platforms()
