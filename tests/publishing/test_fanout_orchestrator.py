"""Tests for PublishOrchestrator fan-out.

Tests cover:
- One result per unique platform, in request order
- Failure isolation between platforms
- Incompatible and not-connected platforms never reach an adapter
- Token refresh before publishing
- Cancellation of in-flight jobs
- Progress snapshots
"""

import asyncio
from datetime import timedelta

import httpx
import pytest

from socials_publisher.constants import ErrorKind, Platform, UploadState
from socials_publisher.credentials.oauth import OAuthClient
from socials_publisher.credentials.token_manager import TokenManager
from socials_publisher.errors import PublishFailed
from socials_publisher.platforms.base import PlatformAdapter, UploadResult
from socials_publisher.platforms.registry import PlatformRegistry
from socials_publisher.publishing.orchestrator import PublishOrchestrator, unique_platforms


class FakeAdapter(PlatformAdapter):
    """Adapter recording calls and returning a canned outcome."""

    def __init__(self, platform, settings, error=None, gate=None):
        super().__init__(platform, settings)
        self.error = error
        self.gate = gate
        self.started = asyncio.Event()
        self.calls = []

    async def _publish(self, asset, credential, job, cancel_event):
        self.calls.append((asset, credential))
        await job.advance(UploadState.TRANSFERRING, total_bytes=2, bytes_sent=1)
        self.started.set()
        if self.gate is not None:
            while not self.gate.is_set():
                self._check_cancelled(cancel_event)
                await asyncio.sleep(0.01)
        if self.error is not None:
            raise self.error
        return UploadResult.succeeded(self.platform, f"https://{self.platform.value}.example/post/1")


@pytest.fixture
def build_orchestrator(settings, store, no_network, clock):
    """Factory wiring an orchestrator around fake adapters."""

    def _build(adapters, transport=None, caption_source=None):
        transport = transport or no_network
        oauth = OAuthClient(settings, transport.client(), clock=clock)
        token_manager = TokenManager(store, oauth, settings, clock=clock)
        registry = PlatformRegistry(settings, overrides={a.platform: a for a in adapters})
        return PublishOrchestrator(store, token_manager, registry, caption_source=caption_source)

    return _build


async def connect(store, make_credential, *platforms, **overrides):
    for platform in platforms:
        await store.upsert(make_credential(platform, **overrides))


# =============================================================================
# Fan-out results
# =============================================================================

class TestFanOut:
    """Tests for results and ordering."""

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, settings, store, make_credential, build_orchestrator, text_asset):
        adapters = [
            FakeAdapter(Platform.TWITTER, settings),
            FakeAdapter(Platform.LINKEDIN, settings, error=RuntimeError("socket closed")),
            FakeAdapter(Platform.FACEBOOK, settings),
        ]
        await connect(store, make_credential, Platform.TWITTER, Platform.LINKEDIN, Platform.FACEBOOK)
        orchestrator = build_orchestrator(adapters)

        results = await orchestrator.publish_all(
            "user-1", text_asset, [Platform.TWITTER, Platform.LINKEDIN, Platform.FACEBOOK],
        )

        assert [r.platform for r in results] == [Platform.TWITTER, Platform.LINKEDIN, Platform.FACEBOOK]
        assert [r.success for r in results] == [True, False, True]
        assert results[1].error_kind == ErrorKind.UNEXPECTED
        assert results[1].details["detail"] == "socket closed"

    @pytest.mark.asyncio
    async def test_publisher_error_keeps_its_kind(
        self, settings, store, make_credential, build_orchestrator, video_asset,
    ):
        adapter = FakeAdapter(Platform.YOUTUBE, settings, error=PublishFailed("boom", user_message="Try later."))
        await connect(store, make_credential, Platform.YOUTUBE)

        results = await build_orchestrator([adapter]).publish_all("user-1", video_asset, ["youtube"])

        assert results[0].error_kind == ErrorKind.PUBLISH_FAILED
        assert results[0].message == "Try later."

    @pytest.mark.asyncio
    async def test_incompatible_platform_is_never_sent(
        self, settings, store, make_credential, build_orchestrator, video_asset,
    ):
        youtube = FakeAdapter(Platform.YOUTUBE, settings)
        instagram = FakeAdapter(Platform.INSTAGRAM, settings)
        await connect(store, make_credential, Platform.YOUTUBE, Platform.INSTAGRAM)

        results = await build_orchestrator([youtube, instagram]).publish_all(
            "user-1", video_asset, [Platform.YOUTUBE, Platform.INSTAGRAM],
        )

        assert results[0].success is True
        assert results[1].success is False
        assert results[1].error_kind == ErrorKind.INCOMPATIBLE_ASSET
        assert len(youtube.calls) == 1
        assert instagram.calls == []

    @pytest.mark.asyncio
    async def test_not_connected(self, settings, store, build_orchestrator, image_asset):
        facebook = FakeAdapter(Platform.FACEBOOK, settings)

        results = await build_orchestrator([facebook]).publish_all("user-1", image_asset, [Platform.FACEBOOK])

        assert len(results) == 1
        assert results[0].error_kind == ErrorKind.NOT_CONNECTED
        assert results[0].guidance == "Connect this platform first."
        assert facebook.calls == []

    @pytest.mark.asyncio
    async def test_deactivated_credential_is_not_connected(
        self, settings, store, make_credential, build_orchestrator, image_asset,
    ):
        await connect(store, make_credential, Platform.FACEBOOK)
        await store.deactivate("user-1", Platform.FACEBOOK)

        results = await build_orchestrator([FakeAdapter(Platform.FACEBOOK, settings)]).publish_all(
            "user-1", image_asset, [Platform.FACEBOOK],
        )

        assert results[0].error_kind == ErrorKind.NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_duplicates_collapsed_in_request_order(
        self, settings, store, make_credential, build_orchestrator, image_asset,
    ):
        await connect(store, make_credential, Platform.FACEBOOK, Platform.INSTAGRAM)
        orchestrator = build_orchestrator([
            FakeAdapter(Platform.FACEBOOK, settings), FakeAdapter(Platform.INSTAGRAM, settings),
        ])

        results = await orchestrator.publish_all(
            "user-1", image_asset, ["facebook", "Instagram", Platform.FACEBOOK],
        )

        assert [r.platform for r in results] == [Platform.FACEBOOK, Platform.INSTAGRAM]

    @pytest.mark.asyncio
    async def test_empty_platform_list(self, build_orchestrator, image_asset):
        assert await build_orchestrator([]).publish_all("user-1", image_asset, []) == []

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, store, make_credential, build_orchestrator, text_asset):
        await connect(store, make_credential, Platform.TWITTER)

        results = await build_orchestrator([]).publish_all("user-1", text_asset, [Platform.TWITTER])

        assert results[0].error_kind == ErrorKind.PLATFORM_UNSUPPORTED

    @pytest.mark.asyncio
    async def test_unknown_name_rejects_whole_request_before_any_work(
        self, settings, store, make_credential, build_orchestrator, image_asset, no_network,
    ):
        await connect(store, make_credential, Platform.FACEBOOK)
        facebook = FakeAdapter(Platform.FACEBOOK, settings)
        orchestrator = build_orchestrator([facebook])
        snapshots = []

        async def on_progress(job):
            snapshots.append(job)

        with pytest.raises(ValueError, match="Unknown platform: myspace"):
            await orchestrator.publish_all(
                "user-1", image_asset, ["facebook", "myspace"], progress_callback=on_progress,
            )

        assert facebook.calls == []
        assert snapshots == []
        assert no_network.count == 0
        assert orchestrator.in_flight == []


def test_unique_platforms_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown platform"):
        unique_platforms(["youtube", "myspace"])


# =============================================================================
# Token refresh
# =============================================================================

class TestTokenRefresh:
    """Credentials are made valid before the adapter runs."""

    @pytest.mark.asyncio
    async def test_adapter_receives_refreshed_credential(
        self, settings, store, make_credential, build_orchestrator, mock_http, video_asset, now,
    ):
        transport = mock_http(lambda request: httpx.Response(200, json={
            "access_token": "refreshed-token", "expires_in": 3600,
        }))
        youtube = FakeAdapter(Platform.YOUTUBE, settings)
        await connect(store, make_credential, Platform.YOUTUBE, expires_at=now + timedelta(minutes=1))

        results = await build_orchestrator([youtube], transport=transport).publish_all(
            "user-1", video_asset, [Platform.YOUTUBE],
        )

        assert results[0].success is True
        assert youtube.calls[0][1].access_token == "refreshed-token"

    @pytest.mark.asyncio
    async def test_expired_without_refresh_token(
        self, settings, store, make_credential, build_orchestrator, video_asset, now,
    ):
        youtube = FakeAdapter(Platform.YOUTUBE, settings)
        await connect(
            store, make_credential, Platform.YOUTUBE,
            refresh_token=None, expires_at=now - timedelta(seconds=1),
        )

        results = await build_orchestrator([youtube]).publish_all("user-1", video_asset, [Platform.YOUTUBE])

        assert results[0].error_kind == ErrorKind.CREDENTIAL_EXPIRED
        assert youtube.calls == []


# =============================================================================
# Progress and cancellation
# =============================================================================

class TestProgressAndCancel:
    """Tests for progress snapshots and cancel()."""

    @pytest.mark.asyncio
    async def test_progress_callback_sees_terminal_states(
        self, settings, store, make_credential, build_orchestrator, image_asset,
    ):
        snapshots = []

        async def on_progress(job):
            snapshots.append(job)

        await connect(store, make_credential, Platform.INSTAGRAM)
        orchestrator = build_orchestrator([FakeAdapter(Platform.INSTAGRAM, settings)])

        await orchestrator.publish_all(
            "user-1", image_asset, [Platform.INSTAGRAM, Platform.YOUTUBE], progress_callback=on_progress,
        )

        final = {s.platform: s.state for s in snapshots}
        assert final[Platform.INSTAGRAM] == UploadState.SUCCEEDED
        assert final[Platform.YOUTUBE] == UploadState.FAILED
        failed = [s for s in snapshots if s.state == UploadState.FAILED][0]
        assert failed.error_kind == ErrorKind.NOT_CONNECTED
        assert all(s.listener is None for s in snapshots)

    @pytest.mark.asyncio
    async def test_cancel_stops_running_jobs(
        self, settings, store, make_credential, build_orchestrator, video_asset,
    ):
        gate = asyncio.Event()
        youtube = FakeAdapter(Platform.YOUTUBE, settings, gate=gate)
        await connect(store, make_credential, Platform.YOUTUBE)
        orchestrator = build_orchestrator([youtube])

        task = asyncio.create_task(orchestrator.publish_all("user-1", video_asset, [Platform.YOUTUBE]))
        await asyncio.wait_for(youtube.started.wait(), timeout=5)

        assert orchestrator.in_flight_platforms == [Platform.YOUTUBE]
        assert orchestrator.in_flight[0].state == UploadState.TRANSFERRING

        orchestrator.cancel()
        results = await asyncio.wait_for(task, timeout=5)

        assert results[0].error_kind == ErrorKind.CANCELLED
        assert orchestrator.in_flight == []

    @pytest.mark.asyncio
    async def test_cancel_without_runs_is_noop(self, build_orchestrator):
        build_orchestrator([]).cancel()


# =============================================================================
# Captions
# =============================================================================

class TestCaptionResolution:
    """Captions from the caption source reach the adapters."""

    @pytest.mark.asyncio
    async def test_generated_captions_per_platform(
        self, settings, store, make_credential, build_orchestrator, image_asset,
    ):
        class Source:
            async def generate(self, asset, platforms):
                return {"instagram": {"caption": "IG copy", "hashtags": "#ig"}}

        instagram = FakeAdapter(Platform.INSTAGRAM, settings)
        facebook = FakeAdapter(Platform.FACEBOOK, settings)
        await connect(store, make_credential, Platform.INSTAGRAM, Platform.FACEBOOK)

        await build_orchestrator([instagram, facebook], caption_source=Source()).publish_all(
            "user-1", image_asset, [Platform.INSTAGRAM, Platform.FACEBOOK],
        )

        sent = instagram.calls[0][0]
        assert sent.caption_for(Platform.INSTAGRAM) == "IG copy\n\n#ig"
        assert sent.caption_for(Platform.FACEBOOK) == image_asset.caption_for(Platform.FACEBOOK)
        assert image_asset.captions == {}
