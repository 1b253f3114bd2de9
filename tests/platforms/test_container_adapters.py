"""Tests for container-based publishing on Instagram and Facebook.

Tests cover:
- Single image and carousel container sequences
- Carousel item limits enforced before any request
- Facebook unpublished photos attached to a feed post
- Facebook video and text posts
- Graph API error mapping
- Caption sanitization
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from socials_publisher.constants import AssetType, ErrorKind, Platform, UploadState
from socials_publisher.errors import IncompatibleAsset, NotConnected
from socials_publisher.platforms.base import Asset, UploadJob
from socials_publisher.platforms.facebook import FacebookPageAdapter
from socials_publisher.platforms.instagram import InstagramAdapter
from socials_publisher.platforms.instagram.publisher import sanitize_caption
from socials_publisher.platforms.meta_graph import GraphAPIError, get_error_info

IG_USER = "17841400000000001"


def carousel(count: int) -> Asset:
    return Asset(
        id="carousel-1",
        asset_type=AssetType.IMAGE,
        items=[f"https://cdn.example.com/slides/{i}.jpg" for i in range(count)],
        title="Five tips",
        tags=["tips"],
    )


class InstagramGraph:
    """Fake Instagram Graph endpoints handing out sequential ids."""

    def __init__(self):
        self.next_id = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/media_publish"):
            return httpx.Response(200, json={"id": "media-99"})
        if path.endswith("/media"):
            self.next_id += 1
            return httpx.Response(200, json={"id": f"container-{self.next_id}"})
        return httpx.Response(200, json={"permalink": "https://www.instagram.com/p/ABC123/"})


# =============================================================================
# Instagram
# =============================================================================

class TestInstagramAdapter:
    """Tests for Instagram image and carousel posts."""

    @pytest.mark.asyncio
    async def test_single_image(self, settings, mock_http, make_credential, image_asset):
        transport = mock_http(InstagramGraph())
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, transport.client())

        result = await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM))

        assert result.success is True
        assert result.url == "https://www.instagram.com/p/ABC123/"
        assert result.media_id == "media-99"
        assert transport.calls() == [
            f"POST /v18.0/{IG_USER}/media",
            f"POST /v18.0/{IG_USER}/media_publish",
            "GET /v18.0/media-99",
        ]
        create = transport.requests[0].url.params
        assert create["image_url"] == "https://cdn.example.com/images/cover.jpg"
        assert create["caption"] == "New collection\n\nFresh arrivals this week\n\n#fashion #newin"
        assert create["access_token"] == "instagram-access-token-0001"
        assert "is_carousel_item" not in create
        assert transport.requests[1].url.params["creation_id"] == "container-1"

    @pytest.mark.asyncio
    async def test_carousel(self, settings, mock_http, make_credential):
        transport = mock_http(InstagramGraph())
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, transport.client())
        job = UploadJob(asset_id="carousel-1", platform=Platform.INSTAGRAM)

        result = await adapter.publish(carousel(3), make_credential(Platform.INSTAGRAM), job)

        assert result.success is True
        children = transport.requests[:3]
        assert all(r.url.params["is_carousel_item"] == "true" for r in children)
        assert all("caption" not in r.url.params for r in children)

        parent = transport.requests[3].url.params
        assert parent["media_type"] == "CAROUSEL"
        assert parent["children"] == "container-1,container-2,container-3"
        assert parent["caption"] == "Five tips\n\n#tips"
        assert transport.requests[4].url.params["creation_id"] == "container-4"

        assert job.state == UploadState.SUCCEEDED
        assert job.bytes_sent == job.total_bytes == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [11, 15])
    async def test_carousel_over_limit_sends_nothing(self, settings, no_network, make_credential, count):
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, no_network.client())

        with pytest.raises(IncompatibleAsset):
            await adapter.publish(carousel(count), make_credential(Platform.INSTAGRAM))

        assert no_network.count == 0

    @pytest.mark.asyncio
    async def test_video_is_rejected(self, settings, no_network, make_credential, video_asset):
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, no_network.client())

        with pytest.raises(IncompatibleAsset) as exc_info:
            await adapter.publish(video_asset, make_credential(Platform.INSTAGRAM))

        assert "images only" in exc_info.value.user_message
        assert no_network.count == 0

    @pytest.mark.asyncio
    async def test_account_id_from_metadata(self, settings, mock_http, make_credential, image_asset):
        transport = mock_http(InstagramGraph())
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, transport.client())
        credential = make_credential(
            Platform.INSTAGRAM, platform_user_id="app-scoped", metadata={"instagram_user_id": "1789"},
        )

        await adapter.publish(image_asset, credential)

        assert transport.requests[0].url.path == "/v18.0/1789/media"

    @pytest.mark.asyncio
    async def test_missing_account_id(self, settings, no_network, make_credential, image_asset):
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, no_network.client())

        with pytest.raises(NotConnected):
            await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM, platform_user_id=None))

    @pytest.mark.asyncio
    async def test_expired_token_error(self, settings, mock_http, make_credential, image_asset):
        transport = mock_http(lambda request: httpx.Response(400, json={"error": {
            "message": "Error validating access token", "type": "OAuthException", "code": 190,
        }}))
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, transport.client())

        with pytest.raises(GraphAPIError) as exc_info:
            await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM))

        assert exc_info.value.kind == ErrorKind.CREDENTIAL_EXPIRED
        assert exc_info.value.error_code == 190

    @pytest.mark.asyncio
    async def test_daily_limit_error(self, settings, mock_http, make_credential, image_asset):
        def handler(request):
            if request.url.path.endswith("/media_publish"):
                return httpx.Response(400, json={"error": {
                    "message": "Application request limit reached", "code": 9, "error_subcode": 2207069,
                }})
            return httpx.Response(200, json={"id": "container-1"})

        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, mock_http(handler).client())

        with pytest.raises(GraphAPIError) as exc_info:
            await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM))

        assert exc_info.value.kind == ErrorKind.PUBLISH_FAILED
        assert exc_info.value.error_name == "DAILY_POSTING_LIMIT"
        assert "DAILY POSTING LIMIT" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_missing_permalink_still_succeeds(self, settings, mock_http, make_credential, image_asset):
        def handler(request):
            if request.method == "GET":
                return httpx.Response(400, json={"error": {"message": "Unsupported get", "code": 100}})
            return httpx.Response(200, json={"id": "m-1"})

        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, mock_http(handler).client())

        result = await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM))

        assert result.success is True
        assert result.url is None
        assert result.media_id == "m-1"

    @pytest.mark.asyncio
    async def test_waits_before_publish(self, settings, mock_http, make_credential, image_asset):
        settings.container_publish_delay_seconds = 2.0
        adapter = InstagramAdapter(Platform.INSTAGRAM, settings, mock_http(InstagramGraph()).client())

        with patch("socials_publisher.platforms.container.asyncio.sleep", new=AsyncMock()) as sleep:
            await adapter.publish(image_asset, make_credential(Platform.INSTAGRAM))

        sleep.assert_awaited_once_with(2.0)


# =============================================================================
# Facebook
# =============================================================================

class FacebookGraph:
    """Fake Facebook Page endpoints."""

    def __init__(self):
        self.photos = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/photos"):
            self.photos += 1
            return httpx.Response(200, json={"id": f"photo-{self.photos}"})
        if path.endswith("/feed"):
            return httpx.Response(200, json={"id": "page-1_post-7"})
        if path.endswith("/videos"):
            return httpx.Response(200, json={"id": "video-5"})
        return httpx.Response(200, json={"success": True})


class TestFacebookPageAdapter:
    """Tests for Facebook Page posts."""

    @pytest.mark.asyncio
    async def test_single_photo_goes_through_feed_post(self, settings, mock_http, make_credential, image_asset):
        transport = mock_http(FacebookGraph())
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, transport.client())

        result = await adapter.publish(image_asset, make_credential(Platform.FACEBOOK))

        assert result.success is True
        assert result.url == "https://www.facebook.com/page-1_post-7"
        assert transport.calls() == [
            "POST /v18.0/page-1/photos",
            "POST /v18.0/page-1/feed",
            "POST /v18.0/page-1_post-7",
        ]
        photo = transport.form(transport.requests[0])
        assert photo == {"url": "https://cdn.example.com/images/cover.jpg", "published": "false"}

        post = transport.form(transport.requests[1])
        assert post["published"] == "false"
        assert json.loads(post["attached_media"]) == [{"media_fbid": "photo-1"}]
        assert post["message"].startswith("New collection")

        assert transport.form(transport.requests[2]) == {"is_published": "true"}
        assert all(r.url.params["access_token"] == "page-token-0001" for r in transport.requests)

    @pytest.mark.asyncio
    async def test_multi_photo_post(self, settings, mock_http, make_credential):
        transport = mock_http(FacebookGraph())
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, transport.client())

        await adapter.publish(carousel(4), make_credential(Platform.FACEBOOK))

        post = transport.form(transport.requests[4])
        assert [m["media_fbid"] for m in json.loads(post["attached_media"])] == [
            "photo-1", "photo-2", "photo-3", "photo-4",
        ]

    @pytest.mark.asyncio
    async def test_video_post(self, settings, mock_http, make_credential, video_asset):
        transport = mock_http(FacebookGraph())
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, transport.client())

        result = await adapter.publish(video_asset, make_credential(Platform.FACEBOOK))

        assert result.url == "https://www.facebook.com/page-1/videos/video-5"
        body = transport.form(transport.requests[0])
        assert body["file_url"] == video_asset.source_url
        assert body["title"] == "Launch day"
        assert transport.count == 1

    @pytest.mark.asyncio
    async def test_text_post(self, settings, mock_http, make_credential, text_asset):
        transport = mock_http(FacebookGraph())
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, transport.client())

        result = await adapter.publish(text_asset, make_credential(Platform.FACEBOOK))

        assert result.url == "https://www.facebook.com/page-1_post-7"
        assert transport.calls() == ["POST /v18.0/page-1/feed"]
        assert transport.form(transport.requests[0])["message"] == (
            "Big news\n\nWe are opening a second store next month."
        )

    @pytest.mark.asyncio
    async def test_resolved_caption_is_used(self, settings, mock_http, make_credential, text_asset):
        transport = mock_http(FacebookGraph())
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, transport.client())
        text_asset.captions[Platform.FACEBOOK] = "Generated copy"

        await adapter.publish(text_asset, make_credential(Platform.FACEBOOK))

        assert transport.form(transport.requests[0])["message"] == "Generated copy"

    @pytest.mark.asyncio
    async def test_credential_without_page(self, settings, no_network, make_credential, image_asset):
        adapter = FacebookPageAdapter(Platform.FACEBOOK, settings, no_network.client())

        with pytest.raises(NotConnected):
            await adapter.publish(image_asset, make_credential(Platform.FACEBOOK, metadata={}))

        assert no_network.count == 0


# =============================================================================
# Graph errors and captions
# =============================================================================

class TestGraphErrorInfo:
    """Tests for get_error_info."""

    def test_subcode_takes_precedence(self):
        assert get_error_info(9, 2207069)["name"] == "DAILY_POSTING_LIMIT"

    def test_known_code(self):
        info = get_error_info(4)
        assert info["name"] == "RATE_LIMIT"
        assert info["is_retryable"] is True

    def test_unknown_code(self):
        assert get_error_info(12345)["name"] == "ERROR_12345"
        assert get_error_info(None)["name"] == "UNKNOWN"


class TestSanitizeCaption:
    """Tests for Instagram caption cleanup."""

    def test_smart_quotes_and_dashes(self):
        assert sanitize_caption("\u201CHello\u201D \u2014 it\u2019s here\u2026") == '"Hello" - it\'s here...'

    def test_emojis_removed(self):
        assert sanitize_caption("Launch \U0001F680 day \u2728") == "Launch day"

    def test_zero_width_characters_removed(self):
        assert sanitize_caption("a\u200Bb\uFEFFc") == "abc"

    def test_blank_lines_collapsed(self):
        assert sanitize_caption("one\n\n\n\ntwo") == "one\n\ntwo"

    def test_truncated_to_limit(self):
        assert len(sanitize_caption("x" * 3000)) == 2200

    def test_empty(self):
        assert sanitize_caption("") == ""
