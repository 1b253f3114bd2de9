"""Abstract base classes for platform upload adapters.

This module defines the asset, job and result types shared by every
adapter, and the interface all platform implementations must follow.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional

import httpx

from ..config import PublisherSettings
from ..constants import (
    AssetType,
    ErrorKind,
    Platform,
    ProgressCallback,
    UploadState,
    compatibility_message,
    is_compatible,
)
from ..credentials.models import Credential
from ..errors import EmptyAsset, IncompatibleAsset, PublisherError, UploadCancelled

# Source URLs the content generator uses while media is still rendering
_PLACEHOLDER_SOURCES = frozenset({"processing", "pending"})


@dataclass
class Asset:
    """A generated piece of media to publish."""

    id: str
    asset_type: AssetType
    source_url: str = ""
    title: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    items: list[str] = field(default_factory=list)
    """Carousel item URLs. When empty, source_url is the only item."""

    mime_type: Optional[str] = None
    captions: dict[Platform, str] = field(default_factory=dict)
    """Per-platform captions resolved from the caption source."""

    @property
    def is_ready(self) -> bool:
        """Check that the media has a real location to read from."""
        if self.asset_type == AssetType.CONTENT:
            return bool(self.description or self.title or self.captions)
        if self.items:
            return all(self._is_real_source(url) for url in self.items)
        return self._is_real_source(self.source_url)

    @property
    def media_urls(self) -> list[str]:
        return list(self.items) if self.items else [self.source_url]

    @property
    def is_carousel(self) -> bool:
        return len(self.items) > 1

    @staticmethod
    def _is_real_source(url: str) -> bool:
        return bool(url) and url.strip().lower() not in _PLACEHOLDER_SOURCES

    def caption_for(self, platform: Platform) -> str:
        """Caption for one platform, built from the asset when none was resolved."""
        caption = self.captions.get(platform)
        if caption:
            return caption
        parts = [p for p in (self.title, self.description) if p]
        if self.tags:
            parts.append(" ".join(f"#{t.lstrip('#').replace(' ', '')}" for t in self.tags))
        return "\n\n".join(parts)


@dataclass
class UploadJob:
    """Transient state of one (asset, platform) upload.

    Every change is pushed to the listener so callers can render progress.
    """

    asset_id: str
    platform: Platform
    state: UploadState = UploadState.PENDING
    bytes_sent: int = 0
    total_bytes: int = 0
    result_url: Optional[str] = None
    error_detail: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    listener: ProgressCallback = field(default=None, repr=False, compare=False)

    @property
    def percent(self) -> float:
        if self.state == UploadState.SUCCEEDED:
            return 100.0
        if not self.total_bytes:
            return 0.0
        return 100.0 * self.bytes_sent / self.total_bytes

    def snapshot(self) -> "UploadJob":
        return replace(self, listener=None)

    async def advance(self, state: UploadState | None = None, **changes: Any) -> None:
        """Apply state/field changes and notify the listener.

        Terminal jobs ignore further changes.
        """
        if self.state.is_terminal:
            return
        if state is not None:
            self.state = state
        for name, value in changes.items():
            setattr(self, name, value)
        if self.listener:
            await self.listener(self.snapshot())


@dataclass
class UploadResult:
    """Outcome of publishing one asset to one platform."""

    success: bool
    platform: Platform
    state: UploadState
    url: Optional[str] = None
    media_id: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if self.success:
            return f"[{self.platform.value}] Success: {self.url or self.media_id}"
        return f"[{self.platform.value}] Failed ({self.error_kind.value}): {self.message}"

    @property
    def guidance(self) -> str | None:
        return self.error_kind.guidance if self.error_kind else None

    @classmethod
    def succeeded(
        cls,
        platform: Platform,
        url: str | None,
        media_id: str | None = None,
        **details: Any,
    ) -> "UploadResult":
        return cls(
            success=True,
            platform=platform,
            state=UploadState.SUCCEEDED,
            url=url,
            media_id=media_id,
            details=details,
        )

    @classmethod
    def failed(cls, platform: Platform, kind: ErrorKind, message: str, **details: Any) -> "UploadResult":
        return cls(
            success=False,
            platform=platform,
            state=UploadState.FAILED,
            error_kind=kind,
            message=message,
            details=details,
        )

    @classmethod
    def from_error(cls, platform: Platform, error: PublisherError) -> "UploadResult":
        """Fold a job error into a failed result."""
        return cls.failed(platform, error.kind, error.user_message, detail=str(error))


class PlatformAdapter(ABC):
    """Abstract base class for platform upload adapters.

    Each capability (resumable video, container publish, ...) implements
    this interface so the orchestrator can publish any asset the same way.
    Adapters are shared across jobs; per-job state lives in UploadJob.
    """

    def __init__(
        self,
        platform: Platform,
        settings: PublisherSettings,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.platform = platform
        self.settings = settings
        self._http = http_client

    async def publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> UploadResult:
        """Publish an asset to this adapter's platform.

        Compatibility and readiness are checked before any network call.

        Raises:
            IncompatibleAsset: If the platform does not accept the asset type.
            EmptyAsset: If the asset has no usable media yet.
            PublisherError: Any adapter-specific failure.
        """
        self.check_compatible(asset)
        if not asset.is_ready:
            raise EmptyAsset(
                f"Asset {asset.id} is not ready (source: {asset.source_url or 'empty'})",
                user_message="This asset is not ready yet. Wait for it to finish processing.",
            )

        job = job or UploadJob(asset_id=asset.id, platform=self.platform)
        result = await self._publish(asset, credential, job, cancel_event)
        if result.success:
            await job.advance(UploadState.SUCCEEDED, result_url=result.url)
        return result

    def check_compatible(self, asset: Asset) -> None:
        if not is_compatible(asset.asset_type, self.platform):
            raise IncompatibleAsset(
                f"{asset.asset_type.value} asset cannot be published to {self.platform.value}",
                user_message=compatibility_message(asset.asset_type, self.platform),
            )

    @abstractmethod
    async def _publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        ...

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        """Raise before starting a network step if the caller cancelled."""
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelled()
