"""Shared HTTP plumbing for platform and OAuth calls.

Components accept an optional httpx.AsyncClient. When one is injected it is
reused (connection pooling, test transports); otherwise a short-lived client
is opened per call, the way the platform clients always have.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from .utils.secrets import redact

_api_logger = logging.getLogger("publisher_api")

# Counter for correlating request/response lines in the log
_call_count = 0


@asynccontextmanager
async def open_client(
    client: httpx.AsyncClient | None,
    timeout: float,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a fresh one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as fresh:
        yield fresh


def next_call_id() -> int:
    global _call_count
    _call_count += 1
    return _call_count


def log_request(call_id: int, method: str, url: str, params: dict[str, Any] | None = None) -> None:
    """Log an outgoing call without secrets or query strings."""
    endpoint = url.split("?", 1)[0]
    _api_logger.info(f"API CALL #{call_id} | {method} {endpoint} | params: {redact(params)}")


def log_response(call_id: int, response: httpx.Response) -> None:
    if response.is_success or response.status_code == 308:
        _api_logger.info(f"API CALL #{call_id} | {response.status_code}")
    else:
        _api_logger.error(f"API CALL #{call_id} | {response.status_code} | {response.text[:300]}")


def safe_json(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, returning {} for empty or non-JSON bodies."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}
