"""YouTube video publishing through the resumable upload protocol."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ...config import PublisherSettings
from ...constants import (
    YOUTUBE_DESCRIPTION_MAX_LENGTH,
    YOUTUBE_MAX_TAGS,
    YOUTUBE_TITLE_MAX_LENGTH,
    Platform,
)
from ...credentials.models import Credential
from ...errors import PublishFailed
from ..asset_fetcher import AssetFetcher
from ..base import Asset, PlatformAdapter, UploadJob, UploadResult
from ..resumable import ResumableUploadEngine

_logger = logging.getLogger("publisher_api")

UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/videos"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def build_video_metadata(
    asset: Asset,
    privacy_status: str,
    category_id: str,
    description: str | None = None,
) -> dict[str, Any]:
    """Build the videos.insert resource for an asset.

    Args:
        asset: Video asset.
        privacy_status: public, unlisted or private.
        category_id: YouTube category id.
        description: Caption to use instead of the asset description.

    Returns:
        Dict with snippet and status parts.
    """
    tags = [t.strip().lstrip("#") for t in asset.tags if t.strip()][:YOUTUBE_MAX_TAGS]
    title = (asset.title or f"Video {asset.id}").strip()[:YOUTUBE_TITLE_MAX_LENGTH]

    text = description or asset.description
    if not text:
        tag_line = ", ".join(tags) if tags else "video, content"
        text = f"Generated with Socials Publisher\n\nTags: {tag_line}"

    return {
        "snippet": {
            "title": title,
            "description": text[:YOUTUBE_DESCRIPTION_MAX_LENGTH],
            "tags": tags,
            "categoryId": category_id,
        },
        "status": {
            "privacyStatus": privacy_status,
            "selfDeclaredMadeForKids": False,
        },
    }


class ResumableVideoAdapter(PlatformAdapter):
    """Publishes video assets by resumable upload.

    Workflow:
    1. Load the payload (streamed, size-capped)
    2. Build video metadata
    3. Open a session and send the payload in chunks
    """

    def __init__(
        self,
        platform: Platform,
        settings: PublisherSettings,
        http_client: httpx.AsyncClient | None = None,
        engine: ResumableUploadEngine | None = None,
        fetcher: AssetFetcher | None = None,
    ):
        super().__init__(platform, settings, http_client)
        self.engine = engine or ResumableUploadEngine(
            http_client,
            chunk_size=settings.chunk_size_bytes,
            max_extra_requests=settings.max_extra_chunk_requests,
            chunk_timeout=settings.chunk_timeout_seconds,
            request_timeout=settings.request_timeout_seconds,
        )
        self.fetcher = fetcher or AssetFetcher(http_client, timeout=settings.chunk_timeout_seconds)

    async def _publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        self._check_cancelled(cancel_event)
        payload, mime_type = await self.fetcher.fetch(
            asset.source_url, self.settings.max_video_bytes, asset.mime_type
        )

        metadata = build_video_metadata(
            asset,
            privacy_status=self.settings.default_privacy_status,
            category_id=self.settings.youtube_category_id,
            description=asset.captions.get(self.platform),
        )
        _logger.info(f"Uploading '{metadata['snippet']['title']}' ({len(payload)} bytes) to YouTube")

        with payload:
            body = await self.engine.upload(
                init_url=UPLOAD_URL,
                params={"uploadType": "resumable", "part": "snippet,status"},
                metadata=metadata,
                payload=payload,
                mime_type=mime_type,
                auth_headers={"Authorization": f"Bearer {credential.access_token}"},
                max_bytes=self.settings.max_video_bytes,
                job=job,
                cancel_event=cancel_event,
            )

        video_id = body.get("id")
        if not video_id:
            raise PublishFailed(
                "Upload completed without a video id",
                user_message="YouTube accepted the upload but returned no video id.",
            )

        url = WATCH_URL.format(video_id=video_id)
        _logger.info(f"YouTube upload complete: {url}")
        return UploadResult.succeeded(
            self.platform,
            url,
            media_id=video_id,
            title=metadata["snippet"]["title"],
            channel_id=credential.metadata.get("channel_id"),
        )
