"""Facebook Page publishing: photo posts, videos and text posts."""

from __future__ import annotations

import asyncio
import json
import logging

from ...constants import FACEBOOK_MAX_ATTACHED_PHOTOS, AssetType, UploadState
from ...credentials.models import Credential
from ...errors import NotConnected
from ..base import Asset, UploadJob, UploadResult
from ..container import ContainerPublishAdapter
from ..meta_graph import GraphClient

_logger = logging.getLogger("publisher_api")

POST_URL = "https://www.facebook.com/{post_id}"


class FacebookPageAdapter(ContainerPublishAdapter):
    """Publishes to the Facebook Page stored on the credential.

    Photo posts:
    1. Upload each image as an unpublished photo (the staged containers)
    2. Create an unpublished feed post with the photos as attached_media
    3. Publish the post (is_published=true)

    Videos are posted with file_url; text goes straight to the feed.
    All calls use the page access token from the credential metadata.
    """

    min_carousel_items = 2
    max_carousel_items = FACEBOOK_MAX_ATTACHED_PHOTOS
    wraps_single_item = True

    def target_id(self, credential: Credential) -> str:
        page_id = credential.metadata.get("page_id")
        if not page_id:
            raise NotConnected(
                "Facebook credential has no page",
                user_message="No Facebook Page is connected. Reconnect and select a Page.",
            )
        return str(page_id)

    def graph_client(self, credential: Credential) -> GraphClient:
        token = credential.metadata.get("page_access_token") or credential.access_token
        return GraphClient(
            self.graph_base_url,
            token,
            self._http,
            timeout=self.settings.request_timeout_seconds,
        )

    # ----------------------------------------------------------------------
    # Photo posts
    # ----------------------------------------------------------------------

    async def create_item_container(
        self,
        graph: GraphClient,
        target_id: str,
        media_url: str,
        caption: str | None,
        carousel_item: bool,
    ) -> str:
        result = await graph.post(
            f"{target_id}/photos",
            data={"url": media_url, "published": "false"},
        )
        return result["id"]

    async def create_parent_container(
        self,
        graph: GraphClient,
        target_id: str,
        child_ids: list[str],
        caption: str,
    ) -> str:
        attached = [{"media_fbid": photo_id} for photo_id in child_ids]
        result = await graph.post(
            f"{target_id}/feed",
            data={
                "message": caption,
                "attached_media": json.dumps(attached),
                "published": "false",
            },
        )
        return result["id"]

    async def publish_container(self, graph: GraphClient, target_id: str, container_id: str) -> str:
        await graph.post(container_id, data={"is_published": "true"})
        return container_id

    async def result_url(self, graph: GraphClient, media_id: str) -> str | None:
        return POST_URL.format(post_id=media_id)

    # ----------------------------------------------------------------------
    # Videos and text
    # ----------------------------------------------------------------------

    async def _publish_other(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        graph = self.graph_client(credential)
        page_id = self.target_id(credential)
        caption = asset.caption_for(self.platform)

        await job.advance(UploadState.INITIATING)
        self._check_cancelled(cancel_event)

        if asset.asset_type == AssetType.VIDEO:
            data = {"file_url": asset.source_url, "description": caption}
            if asset.title:
                data["title"] = asset.title
            result = await graph.post(f"{page_id}/videos", data=data)
            media_id = result["id"]
            url = f"https://www.facebook.com/{page_id}/videos/{media_id}"
        else:
            result = await graph.post(f"{page_id}/feed", data={"message": caption})
            media_id = result["id"]
            url = POST_URL.format(post_id=media_id)

        _logger.info(f"Facebook {asset.asset_type.value} post created: {media_id}")
        await job.advance(UploadState.VERIFYING)
        return UploadResult.succeeded(self.platform, url, media_id=media_id, page_id=page_id)
