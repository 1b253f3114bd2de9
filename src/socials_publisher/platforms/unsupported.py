"""Adapters that never touch a platform API."""

from __future__ import annotations

import asyncio
import logging
import uuid

from ..constants import ErrorKind, Platform, UploadState
from ..credentials.models import Credential
from .base import Asset, PlatformAdapter, UploadJob, UploadResult

_logger = logging.getLogger("publisher_api")


class UnsupportedAdapter(PlatformAdapter):
    """Stands in for platforms without an implementation.

    Compatible assets get a structured PLATFORM_UNSUPPORTED result so the
    caller can suggest a manual upload.
    """

    async def publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> UploadResult:
        self.check_compatible(asset)
        return await self._publish(asset, credential, job, cancel_event)

    async def _publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob | None,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        _logger.info(f"No adapter for {self.platform.value}, asset {asset.id} not sent")
        return UploadResult.failed(
            self.platform,
            ErrorKind.PLATFORM_UNSUPPORTED,
            f"Publishing to {self.platform.value} is not supported yet. Upload it manually.",
        )


# Fake post URLs returned for simulated credentials
_SIMULATED_URLS: dict[Platform, str] = {
    Platform.YOUTUBE: "https://www.youtube.com/watch?v={media_id}",
    Platform.INSTAGRAM: "https://www.instagram.com/p/{media_id}/",
    Platform.FACEBOOK: "https://www.facebook.com/{media_id}",
    Platform.TWITTER: "https://twitter.com/i/web/status/{media_id}",
    Platform.LINKEDIN: "https://www.linkedin.com/feed/update/{media_id}",
}


class SimulatedAdapter(PlatformAdapter):
    """Pretends to publish for credentials in the simulated environment.

    Walks the job through the normal states after a short delay and
    returns a fake post URL.
    """

    async def _publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        media_id = f"sim_{uuid.uuid4().hex[:11]}"
        total = max(1, len(asset.media_urls))

        await job.advance(UploadState.INITIATING, total_bytes=total, bytes_sent=0)
        self._check_cancelled(cancel_event)
        await job.advance(UploadState.TRANSFERRING)

        delay = max(0.0, self.settings.simulated_delay_seconds)
        if delay:
            await asyncio.sleep(delay)

        self._check_cancelled(cancel_event)
        await job.advance(UploadState.VERIFYING, bytes_sent=total)

        template = _SIMULATED_URLS.get(self.platform, "https://example.com/{platform}/{media_id}")
        url = template.format(media_id=media_id, platform=self.platform.value)
        _logger.info(f"Simulated {self.platform.value} publish of {asset.id}: {url}")
        return UploadResult.succeeded(self.platform, url, media_id=media_id, simulated=True)
