"""Resumable chunked upload engine.

Protocol (Google resumable upload):
1. POST metadata to the init endpoint with X-Upload-Content-Length and
   X-Upload-Content-Type. The session URL comes back in Location.
2. PUT fixed-size chunks with Content-Range: bytes start-end/total
   (inclusive end).
   - 200/201: done, the JSON body describes the created object
   - 308: resume incomplete. Range: bytes=0-N means resume at N+1;
     without Range, advance by the chunk just sent
   - anything else: fail, the session is discarded
3. A 308 acknowledging every byte is followed by a status query
   (empty PUT with Content-Range: bytes */total).

The loop is bounded at ceil(total / chunk_size) + max_extra_requests PUTs.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

import httpx

from ..constants import (
    CHUNK_SIZE_BYTES,
    CHUNK_TIMEOUT_SECONDS,
    MAX_EXTRA_CHUNK_REQUESTS,
    REQUEST_TIMEOUT_SECONDS,
    RESUME_INCOMPLETE_STATUS,
    UPLOAD_COMPLETE_STATUSES,
    UploadState,
)
from ..errors import AssetTooLarge, ChunkUploadFailed, EmptyAsset, UploadCancelled, UploadInitFailed
from ..transport import log_request, log_response, next_call_id, open_client, safe_json
from .asset_fetcher import MediaPayload
from .base import UploadJob

_logger = logging.getLogger("publisher_api")

_RANGE_PATTERN = re.compile(r"^bytes=0-(\d+)$")


@dataclass
class UploadSession:
    """One resumable session. Never reused after a failure."""

    url: str
    total_bytes: int
    offset: int = 0
    requests_sent: int = 0

    @property
    def is_fully_sent(self) -> bool:
        return self.offset >= self.total_bytes


def parse_range_header(value: str, total_bytes: int) -> int:
    """Get the next offset from a 308 Range header (bytes=0-N -> N+1).

    Raises:
        ChunkUploadFailed: If the header is malformed or past the payload end.
    """
    match = _RANGE_PATTERN.match(value.strip())
    if not match:
        raise ChunkUploadFailed(f"Malformed Range header from upload server: {value!r}")
    last_byte = int(match.group(1))
    if last_byte >= total_bytes:
        raise ChunkUploadFailed(
            f"Range header {value!r} acknowledges more than {total_bytes} bytes"
        )
    return last_byte + 1


class ResumableUploadEngine:
    """Drives the init -> chunk PUT state machine for one payload at a time.

    Usage:
        engine = ResumableUploadEngine(http_client)
        body = await engine.upload(
            init_url="https://www.googleapis.com/upload/youtube/v3/videos",
            params={"uploadType": "resumable", "part": "snippet,status"},
            metadata={"snippet": {...}},
            payload=video_bytes,
            mime_type="video/mp4",
            auth_headers={"Authorization": "Bearer ..."},
        )
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        chunk_size: int = CHUNK_SIZE_BYTES,
        max_extra_requests: int = MAX_EXTRA_CHUNK_REQUESTS,
        chunk_timeout: float = CHUNK_TIMEOUT_SECONDS,
        request_timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._http = http_client
        self.chunk_size = chunk_size
        self.max_extra_requests = max_extra_requests
        self.chunk_timeout = chunk_timeout
        self.request_timeout = request_timeout

    def max_requests_for(self, total_bytes: int) -> int:
        return math.ceil(total_bytes / self.chunk_size) + self.max_extra_requests

    async def upload(
        self,
        init_url: str,
        metadata: dict[str, Any],
        payload: bytes | MediaPayload,
        mime_type: str,
        auth_headers: dict[str, str],
        params: dict[str, str] | None = None,
        max_bytes: int | None = None,
        job: UploadJob | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> dict[str, Any]:
        """Upload a payload through a new resumable session.

        Args:
            init_url: Session initiation endpoint.
            metadata: JSON body for the init request.
            payload: Full media bytes, or a MediaPayload read one chunk
                at a time.
            mime_type: Media MIME type (video/* expected).
            auth_headers: Authorization headers for every request.
            params: Query parameters for the init request.
            max_bytes: Platform maximum payload size.
            job: Job to report state and byte progress on.
            cancel_event: Stops the loop before the next request when set.

        Returns:
            JSON body of the final 200/201 response.

        Raises:
            EmptyAsset, AssetTooLarge: Size guards, before any request.
            UploadInitFailed: Session could not be created.
            ChunkUploadFailed: A chunk was rejected, timed out, or the
                request bound was exhausted.
            UploadCancelled: cancel_event was set.
        """
        total = len(payload)
        if total == 0:
            raise EmptyAsset("Upload payload is empty", user_message="The file is empty.")
        if max_bytes is not None and total > max_bytes:
            raise AssetTooLarge(total, max_bytes)
        if not mime_type.startswith("video/"):
            _logger.warning(f"Unexpected MIME type for resumable upload: {mime_type}, proceeding")

        async with open_client(self._http, self.request_timeout) as client:
            if job:
                await job.advance(UploadState.INITIATING, total_bytes=total, bytes_sent=0)
            self._check_cancelled(cancel_event)
            session = await self._initiate(client, init_url, params, metadata, total, mime_type, auth_headers)

            if job:
                await job.advance(UploadState.TRANSFERRING)
            return await self._transfer(client, session, payload, mime_type, auth_headers, job, cancel_event)

    async def _initiate(
        self,
        client: httpx.AsyncClient,
        init_url: str,
        params: dict[str, str] | None,
        metadata: dict[str, Any],
        total: int,
        mime_type: str,
        auth_headers: dict[str, str],
    ) -> UploadSession:
        headers = {
            **auth_headers,
            "Content-Type": "application/json; charset=UTF-8",
            "X-Upload-Content-Length": str(total),
            "X-Upload-Content-Type": mime_type,
        }
        call_id = next_call_id()
        log_request(call_id, "POST", init_url, params)
        try:
            response = await client.post(
                init_url, params=params, json=metadata, headers=headers, timeout=self.request_timeout
            )
        except httpx.HTTPError as e:
            raise UploadInitFailed(
                f"Upload initialization failed: {e}",
                user_message="Could not start the upload. Try again.",
            ) from e

        log_response(call_id, response)
        if not response.is_success:
            raise UploadInitFailed(
                f"Upload initialization failed ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
                user_message="The platform rejected the upload. Try again.",
            )

        location = response.headers.get("Location")
        if not location:
            raise UploadInitFailed(
                "Upload initialization response has no Location header",
                status_code=response.status_code,
                user_message="The platform did not return an upload session. Try again.",
            )

        _logger.info(f"Resumable session opened for {total} bytes")
        return UploadSession(url=location, total_bytes=total)

    async def _transfer(
        self,
        client: httpx.AsyncClient,
        session: UploadSession,
        payload: bytes | MediaPayload,
        mime_type: str,
        auth_headers: dict[str, str],
        job: UploadJob | None,
        cancel_event: asyncio.Event | None,
    ) -> dict[str, Any]:
        total = session.total_bytes
        max_requests = self.max_requests_for(total)

        while session.requests_sent < max_requests:
            self._check_cancelled(cancel_event)

            start = session.offset
            if session.is_fully_sent:
                chunk = b""
                content_range = f"bytes */{total}"
            else:
                end = min(start + self.chunk_size, total)
                chunk = self._read_chunk(payload, start, end)
                content_range = f"bytes {start}-{end - 1}/{total}"

            headers = {**auth_headers, "Content-Type": mime_type, "Content-Range": content_range}
            session.requests_sent += 1
            call_id = next_call_id()
            log_request(call_id, "PUT", session.url, {"Content-Range": content_range})

            try:
                response = await client.put(
                    session.url, content=chunk, headers=headers, timeout=self.chunk_timeout
                )
            except httpx.TimeoutException as e:
                raise ChunkUploadFailed(
                    f"Chunk at offset {start} timed out",
                    offset=start,
                    user_message="The upload timed out. Try again.",
                ) from e
            except httpx.HTTPError as e:
                raise ChunkUploadFailed(
                    f"Chunk at offset {start} failed: {e}",
                    offset=start,
                    user_message="The upload was interrupted. Try again.",
                ) from e

            log_response(call_id, response)

            if response.status_code in UPLOAD_COMPLETE_STATUSES:
                session.offset = total
                if job:
                    await job.advance(UploadState.VERIFYING, bytes_sent=total)
                return safe_json(response)

            if response.status_code != RESUME_INCOMPLETE_STATUS:
                raise ChunkUploadFailed(
                    f"Chunk at offset {start} rejected ({response.status_code}): {response.text[:200]}",
                    status_code=response.status_code,
                    offset=start,
                    user_message="The platform rejected part of the upload. Try again.",
                )

            range_header = response.headers.get("Range")
            if range_header:
                session.offset = parse_range_header(range_header, total)
            else:
                session.offset = start + len(chunk)

            if job:
                await job.advance(bytes_sent=session.offset)

        raise ChunkUploadFailed(
            f"Upload did not complete after {max_requests} requests",
            offset=session.offset,
            user_message="The platform never confirmed the upload. Try again.",
        )

    @staticmethod
    def _read_chunk(payload: bytes | MediaPayload, start: int, end: int) -> bytes:
        if isinstance(payload, MediaPayload):
            return payload.read_range(start, end)
        return payload[start:end]

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelled()
