"""Fan-out of one asset to many platforms."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import replace
from typing import Iterable

from ..constants import ErrorKind, Platform, ProgressCallback, UploadState
from ..credentials.store import CredentialStore
from ..credentials.token_manager import TokenManager
from ..errors import NotConnected, PublisherError, UploadCancelled
from ..platforms.base import Asset, UploadJob, UploadResult
from ..platforms.registry import PlatformRegistry
from .captions import CaptionSource, resolve_captions

_logger = logging.getLogger("publisher_fanout")


def unique_platforms(platforms: Iterable[Platform | str]) -> list[Platform]:
    """Parse platform names and drop duplicates, keeping first-seen order.

    Raises:
        ValueError: If any name is not a known platform. The whole
            request is rejected before any publish starts.
    """
    seen: list[Platform] = []
    for value in platforms:
        platform = Platform.parse(value)
        if platform not in seen:
            seen.append(platform)
    return seen


class PublishOrchestrator:
    """Publishes one asset to several platforms concurrently.

    Each platform runs as its own task: credential lookup, compatibility
    check, token refresh, then the adapter. Any error inside a task
    becomes that platform's failed result, so the caller always gets
    exactly one result per requested platform, in request order.

    Usage:
        orchestrator = PublishOrchestrator(store, token_manager, registry)
        results = await orchestrator.publish_all("user-1", asset, ["youtube", "facebook"])
        for result in results:
            print(result)
    """

    def __init__(
        self,
        store: CredentialStore,
        token_manager: TokenManager,
        registry: PlatformRegistry,
        caption_source: CaptionSource | None = None,
    ):
        self.store = store
        self.token_manager = token_manager
        self.registry = registry
        self.caption_source = caption_source

        self._job_ids = itertools.count(1)
        self._jobs: dict[int, UploadJob] = {}
        self._cancel_events: set[asyncio.Event] = set()

    # ----------------------------------------------------------------------
    # Progress and cancellation
    # ----------------------------------------------------------------------

    @property
    def in_flight(self) -> list[UploadJob]:
        """Snapshots of jobs that have not finished yet."""
        return [job.snapshot() for job in self._jobs.values() if not job.state.is_terminal]

    @property
    def in_flight_platforms(self) -> list[Platform]:
        return [job.platform for job in self.in_flight]

    def cancel(self) -> None:
        """Stop all running publishes before their next network step.

        Jobs already past their last request still finish; the rest end
        as FAILED with ErrorKind.CANCELLED.
        """
        if self._cancel_events:
            _logger.info(f"PUBLISH_CANCEL | runs:{len(self._cancel_events)} | jobs:{len(self.in_flight)}")
        for event in self._cancel_events:
            event.set()

    # ----------------------------------------------------------------------
    # Fan-out
    # ----------------------------------------------------------------------

    async def publish_all(
        self,
        user_id: str,
        asset: Asset,
        platforms: Iterable[Platform | str],
        progress_callback: ProgressCallback = None,
    ) -> list[UploadResult]:
        """Publish an asset to every requested platform.

        Args:
            user_id: Owner of the credentials to use.
            asset: Asset to publish.
            platforms: Target platforms. Duplicates are collapsed.
            progress_callback: Receives an UploadJob snapshot on every change.

        Returns:
            One UploadResult per unique platform, in request order.

        Raises:
            ValueError: If a platform name is unknown. Nothing is read or
                sent in that case; failures of known platforms never raise.
        """
        targets = unique_platforms(platforms)
        if not targets:
            return []

        start = time.monotonic()
        _logger.info(
            f"PUBLISH_FANOUT | user:{user_id} | asset:{asset.id} | type:{asset.asset_type.value} | "
            f"platforms:{','.join(p.value for p in targets)}"
        )

        asset = await self._with_captions(asset, targets)
        cancel_event = asyncio.Event()
        self._cancel_events.add(cancel_event)
        try:
            tasks = [
                self._run_job(user_id, asset, platform, cancel_event, progress_callback)
                for platform in targets
            ]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self._cancel_events.discard(cancel_event)

        results: list[UploadResult] = []
        for platform, outcome in zip(targets, outcomes):
            if isinstance(outcome, UploadResult):
                results.append(outcome)
            elif isinstance(outcome, asyncio.CancelledError):
                _logger.warning(f"PUBLISH_JOB_ABORTED | {platform.value} | task cancelled")
                results.append(UploadResult.failed(platform, ErrorKind.CANCELLED, "Upload was cancelled."))
            else:
                # Raised outside the job's own error handling (progress callback)
                _logger.error(f"PUBLISH_JOB_ERROR | {platform.value} | {outcome!r}")
                results.append(UploadResult.failed(
                    platform,
                    ErrorKind.UNEXPECTED,
                    f"Upload to {platform.value} failed unexpectedly. Try again.",
                    detail=str(outcome),
                ))

        succeeded = sum(1 for r in results if r.success)
        duration_ms = int((time.monotonic() - start) * 1000)
        _logger.info(
            f"PUBLISH_FANOUT_DONE | user:{user_id} | asset:{asset.id} | "
            f"ok:{succeeded}/{len(results)} | {duration_ms}ms"
        )
        return results

    async def _with_captions(self, asset: Asset, targets: list[Platform]) -> Asset:
        missing = [p for p in targets if p not in asset.captions]
        if not missing or self.caption_source is None:
            return asset
        resolved = await resolve_captions(self.caption_source, asset, missing)
        return replace(asset, captions={**resolved, **asset.captions})

    async def _run_job(
        self,
        user_id: str,
        asset: Asset,
        platform: Platform,
        cancel_event: asyncio.Event,
        progress_callback: ProgressCallback,
    ) -> UploadResult:
        job = UploadJob(asset_id=asset.id, platform=platform, listener=progress_callback)
        job_id = next(self._job_ids)
        self._jobs[job_id] = job

        try:
            result = await self._publish_one(user_id, asset, platform, job, cancel_event)
        except PublisherError as e:
            _logger.warning(f"PUBLISH_JOB_FAILED | {platform.value} | {e.kind.value} | {e}")
            result = UploadResult.from_error(platform, e)
        except Exception as e:
            _logger.exception(f"PUBLISH_JOB_ERROR | {platform.value} | {e}")
            result = UploadResult.failed(
                platform,
                ErrorKind.UNEXPECTED,
                f"Upload to {platform.value} failed unexpectedly. Try again.",
                detail=str(e),
            )
        finally:
            self._jobs.pop(job_id, None)

        if result.success:
            await job.advance(UploadState.SUCCEEDED, result_url=result.url)
        else:
            await job.advance(UploadState.FAILED, error_detail=result.message, error_kind=result.error_kind)
            _logger.info(f"PUBLISH_JOB_RESULT | {result}")
        return result

    async def _publish_one(
        self,
        user_id: str,
        asset: Asset,
        platform: Platform,
        job: UploadJob,
        cancel_event: asyncio.Event,
    ) -> UploadResult:
        credential = await self.store.get_active(user_id, platform)
        if credential is None:
            raise NotConnected(
                f"No active {platform.value} credential for user {user_id}",
                user_message=f"{platform.value} is not connected. Connect it and try again.",
            )

        adapter = self.registry.adapter_for(platform, credential)
        adapter.check_compatible(asset)

        if cancel_event.is_set():
            raise UploadCancelled()
        credential = await self.token_manager.ensure_valid(credential)

        if cancel_event.is_set():
            raise UploadCancelled()
        return await adapter.publish(asset, credential, job, cancel_event)
