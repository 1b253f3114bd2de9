"""Container-based publishing (Meta Graph API).

Media is staged as containers referencing public URLs, then a publish call
keyed by the container id makes the post live:

1. Create a container per item (carousel children are flagged as such)
2. For carousels (or every post, when the platform needs it), create a
   parent container referencing the children
3. Wait a bounded delay (the API gives no readiness signal for images)
4. Publish the container
5. Look up the post URL
"""

from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod

from ..constants import AssetType, UploadState
from ..credentials.models import Credential
from ..errors import IncompatibleAsset
from .base import Asset, PlatformAdapter, UploadJob, UploadResult
from .meta_graph import GraphClient

_logger = logging.getLogger("publisher_api")


class ContainerPublishAdapter(PlatformAdapter):
    """Base class for platforms that publish through media containers.

    Subclasses provide the Graph calls through the container hooks;
    the staging, delay and publish sequence lives here.
    """

    min_carousel_items: int = 2
    max_carousel_items: int = 10
    wraps_single_item: bool = False
    """Send a single item through the parent container too."""

    @property
    def graph_base_url(self) -> str:
        return f"https://graph.facebook.com/{self.settings.graph_api_version}"

    def graph_client(self, credential: Credential) -> GraphClient:
        return GraphClient(
            self.graph_base_url,
            credential.access_token,
            self._http,
            timeout=self.settings.request_timeout_seconds,
        )

    async def _publish(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        if asset.asset_type == AssetType.IMAGE:
            return await self._publish_images(asset, credential, job, cancel_event)
        return await self._publish_other(asset, credential, job, cancel_event)

    async def _publish_images(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        graph = self.graph_client(credential)
        target_id = self.target_id(credential)
        caption = self.prepare_caption(asset.caption_for(self.platform))
        urls = asset.media_urls
        self.validate_item_count(len(urls))

        await job.advance(UploadState.INITIATING, total_bytes=len(urls), bytes_sent=0)

        if len(urls) == 1 and not self.wraps_single_item:
            self._check_cancelled(cancel_event)
            container_id = await self.create_item_container(graph, target_id, urls[0], caption, carousel_item=False)
            await job.advance(bytes_sent=1)
        else:
            child_ids: list[str] = []
            for i, url in enumerate(urls):
                self._check_cancelled(cancel_event)
                child_ids.append(
                    await self.create_item_container(graph, target_id, url, None, carousel_item=True)
                )
                await job.advance(bytes_sent=i + 1)

            self._check_cancelled(cancel_event)
            container_id = await self.create_parent_container(graph, target_id, child_ids, caption)

        _logger.info(f"{self.platform.value} container {container_id} created, publishing")
        await job.advance(UploadState.VERIFYING)
        await self.wait_before_publish()

        self._check_cancelled(cancel_event)
        media_id = await self.publish_container(graph, target_id, container_id)
        url = await self.result_url(graph, media_id)

        return UploadResult.succeeded(
            self.platform,
            url,
            media_id=media_id,
            container_id=container_id,
            items=len(urls),
        )

    async def _publish_other(
        self,
        asset: Asset,
        credential: Credential,
        job: UploadJob,
        cancel_event: asyncio.Event | None,
    ) -> UploadResult:
        raise IncompatibleAsset(
            f"{self.platform.value} adapter cannot publish {asset.asset_type.value} assets",
            user_message=f"{self.platform.value} posting here supports images only.",
        )

    def validate_item_count(self, count: int) -> None:
        """Reject carousels outside the platform's item range."""
        if count > 1 and not self.min_carousel_items <= count <= self.max_carousel_items:
            raise IncompatibleAsset(
                f"Carousel has {count} items, {self.platform.value} accepts "
                f"{self.min_carousel_items}-{self.max_carousel_items}",
                user_message=(
                    f"Carousels need between {self.min_carousel_items} and "
                    f"{self.max_carousel_items} images."
                ),
            )

    async def wait_before_publish(self) -> None:
        delay = max(0.0, self.settings.container_publish_delay_seconds)
        if delay:
            await asyncio.sleep(delay)

    def prepare_caption(self, caption: str) -> str:
        return caption

    # ----------------------------------------------------------------------
    # Container hooks
    # ----------------------------------------------------------------------

    @abstractmethod
    def target_id(self, credential: Credential) -> str:
        """Graph node that owns the containers (IG user or page)."""
        ...

    @abstractmethod
    async def create_item_container(
        self,
        graph: GraphClient,
        target_id: str,
        media_url: str,
        caption: str | None,
        carousel_item: bool,
    ) -> str:
        ...

    @abstractmethod
    async def create_parent_container(
        self,
        graph: GraphClient,
        target_id: str,
        child_ids: list[str],
        caption: str,
    ) -> str:
        ...

    @abstractmethod
    async def publish_container(self, graph: GraphClient, target_id: str, container_id: str) -> str:
        ...

    async def result_url(self, graph: GraphClient, media_id: str) -> str | None:
        return None
