"""Load asset media from a URL or local path with a size cap.

Payloads are file-backed so a large video never sits in memory as a
whole: local files are read in place, downloads go to a spooled
temporary file that moves to disk past PAYLOAD_SPOOL_BYTES.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import tempfile
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse

import httpx

from ..constants import PAYLOAD_SPOOL_BYTES
from ..errors import AssetTooLarge, EmptyAsset, PublishFailed
from ..transport import log_request, log_response, next_call_id, open_client

_logger = logging.getLogger("publisher_api")


class MediaPayload:
    """Media bytes read one range at a time.

    Usage:
        with MediaPayload.from_bytes(data) as payload:
            first_chunk = payload.read_range(0, 1024)
    """

    def __init__(self, file: BinaryIO, size: int):
        self._file = file
        self.size = size

    @classmethod
    def from_bytes(cls, data: bytes) -> "MediaPayload":
        return cls(io.BytesIO(data), len(data))

    @classmethod
    def open(cls, path: Path) -> "MediaPayload":
        return cls(open(path, "rb"), path.stat().st_size)

    def __len__(self) -> int:
        return self.size

    @property
    def closed(self) -> bool:
        return self._file.closed

    def read_range(self, start: int, end: int) -> bytes:
        """Read bytes from start up to, not including, end."""
        self._file.seek(start)
        return self._file.read(end - start)

    def read_all(self) -> bytes:
        return self.read_range(0, self.size)

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "MediaPayload":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AssetFetcher:
    """Opens media payloads for byte-level uploads.

    Remote sources are streamed so an oversized file fails as soon as it
    crosses the limit instead of after a full download.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 300.0,
        spool_bytes: int = PAYLOAD_SPOOL_BYTES,
    ):
        self._http = http_client
        self.timeout = timeout
        self.spool_bytes = spool_bytes

    async def fetch(self, source: str, max_bytes: int, mime_type: str | None = None) -> tuple[MediaPayload, str]:
        """Open a payload.

        Args:
            source: http(s) URL, file:// URL, or filesystem path.
            max_bytes: Size limit enforced while reading.
            mime_type: Declared MIME type, guessed from the source if missing.

        Returns:
            Tuple of (payload, MIME type). The caller closes the payload.

        Raises:
            EmptyAsset: If the payload is empty or the file does not exist.
            AssetTooLarge: If the payload crosses max_bytes.
            PublishFailed: If the remote download fails.
        """
        parsed = urlparse(source)
        if parsed.scheme in ("http", "https"):
            payload, header_type = await self._download(source, max_bytes)
        else:
            path = Path(parsed.path if parsed.scheme == "file" else source)
            payload = self._open_local(path, max_bytes)
            header_type = None

        if not payload.size:
            payload.close()
            raise EmptyAsset(f"Asset at {source} is empty", user_message="The file is empty.")

        resolved_type = mime_type or header_type or mimetypes.guess_type(parsed.path or source)[0]
        return payload, resolved_type or "application/octet-stream"

    @staticmethod
    def _open_local(path: Path, max_bytes: int) -> MediaPayload:
        if not path.is_file():
            raise EmptyAsset(f"Asset file not found: {path}", user_message="The file could not be found.")
        size = path.stat().st_size
        if size > max_bytes:
            raise AssetTooLarge(size, max_bytes)
        return MediaPayload.open(path)

    async def _download(self, url: str, max_bytes: int) -> tuple[MediaPayload, str | None]:
        call_id = next_call_id()
        log_request(call_id, "GET", url)
        spool = tempfile.SpooledTemporaryFile(max_size=self.spool_bytes)
        size = 0
        try:
            async with open_client(self._http, self.timeout) as client:
                async with client.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
                    if not response.is_success:
                        await response.aread()
                        log_response(call_id, response)
                        raise PublishFailed(
                            f"Asset download failed ({response.status_code}): {url}",
                            user_message="The asset could not be downloaded.",
                        )

                    declared = response.headers.get("Content-Length")
                    if declared and declared.isdigit() and int(declared) > max_bytes:
                        raise AssetTooLarge(int(declared), max_bytes)

                    async for block in response.aiter_bytes():
                        size += len(block)
                        if size > max_bytes:
                            raise AssetTooLarge(size, max_bytes)
                        spool.write(block)

                    content_type = response.headers.get("Content-Type")
        except httpx.HTTPError as e:
            spool.close()
            raise PublishFailed(
                f"Asset download failed: {e}",
                user_message="The asset could not be downloaded.",
            ) from e
        except BaseException:
            spool.close()
            raise

        _logger.info(f"API CALL #{call_id} | downloaded {size} bytes")
        media_type = content_type.split(";", 1)[0].strip() if content_type else None
        return MediaPayload(spool, size), media_type
