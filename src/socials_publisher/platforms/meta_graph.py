"""Meta Graph API access shared by the Instagram and Facebook adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..constants import ErrorKind
from ..errors import PublishFailed
from ..transport import log_request, log_response, next_call_id, open_client, safe_json

_logger = logging.getLogger("publisher_api")


# Known Graph API error codes
GRAPH_ERROR_CODES: dict[int, dict[str, Any]] = {
    # Media processing errors
    2207032: {
        "name": "MEDIA_UPLOAD_FAILED",
        "user_message": "The platform failed to process the media. This is usually temporary.",
        "is_retryable": True,
    },
    2207026: {
        "name": "MEDIA_NOT_READY",
        "user_message": "The media is still being processed. Try again shortly.",
        "is_retryable": True,
    },
    2207001: {
        "name": "MEDIA_TYPE_NOT_SUPPORTED",
        "user_message": "The media format is not supported. Use JPEG images.",
        "is_retryable": False,
    },
    2207003: {
        "name": "MEDIA_SIZE_ERROR",
        "user_message": "The media is too large (8MB limit per image).",
        "is_retryable": False,
    },
    2207050: {
        "name": "CAROUSEL_MIN_CHILDREN",
        "user_message": "Carousels require at least 2 images.",
        "is_retryable": False,
    },
    2207051: {
        "name": "CAROUSEL_MAX_CHILDREN",
        "user_message": "Carousels cannot have more than 10 images.",
        "is_retryable": False,
    },
    # Rate limiting
    4: {
        "name": "RATE_LIMIT",
        "user_message": "Rate limit reached. Wait a few minutes before publishing again.",
        "is_retryable": True,
    },
    9: {
        "name": "APP_RATE_LIMIT",
        "user_message": "Application request limit reached. Wait before publishing again.",
        "is_retryable": True,
    },
    17: {
        "name": "USER_RATE_LIMIT",
        "user_message": "You've made too many requests. Please wait a few minutes.",
        "is_retryable": True,
    },
    # Auth errors
    190: {
        "name": "ACCESS_TOKEN_EXPIRED",
        "user_message": "Your access token has expired. Reconnect your account.",
        "is_retryable": False,
    },
    10: {
        "name": "PERMISSION_DENIED",
        "user_message": "The app doesn't have permission to publish. Reconnect and grant publishing access.",
        "is_retryable": False,
    },
}

# Subcodes are more specific and take precedence over the main code
GRAPH_ERROR_SUBCODES: dict[int, dict[str, Any]] = {
    2207069: {
        "name": "DAILY_POSTING_LIMIT",
        "user_message": (
            "You've reached the DAILY POSTING LIMIT (about 25 posts per day per account). "
            "It resets at midnight UTC."
        ),
        "is_retryable": False,
    },
}


def get_error_info(error_code: int | None, error_subcode: int | None = None) -> dict[str, Any]:
    """Get detailed error information for a Graph API error code.

    Args:
        error_code: Main error code from the API response.
        error_subcode: Sub-error code (takes precedence if known).

    Returns:
        Dict with name, user_message and is_retryable.
    """
    if error_subcode is not None and error_subcode in GRAPH_ERROR_SUBCODES:
        return GRAPH_ERROR_SUBCODES[error_subcode]

    if error_code is None:
        return {
            "name": "UNKNOWN",
            "user_message": "An unknown error occurred on the platform.",
            "is_retryable": False,
        }
    return GRAPH_ERROR_CODES.get(error_code, {
        "name": f"ERROR_{error_code}",
        "user_message": f"The platform returned error code {error_code}. This may be temporary, try again.",
        "is_retryable": True,
    })


class GraphAPIError(PublishFailed):
    """Error body returned by the Graph API."""

    def __init__(
        self,
        message: str,
        error_code: int | None = None,
        error_subcode: int | None = None,
        status_code: int | None = None,
    ):
        info = get_error_info(error_code, error_subcode)
        super().__init__(message, user_message=f"[{info['name']}] {info['user_message']}")
        self.error_code = error_code
        self.error_subcode = error_subcode
        self.status_code = status_code
        self.error_name: str = info["name"]
        self.is_retryable: bool = info["is_retryable"]
        if error_code == 190:
            self.kind = ErrorKind.CREDENTIAL_EXPIRED


class GraphClient:
    """Minimal Graph API client bound to one access token."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._http = http_client
        self.timeout = timeout

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.request("POST", endpoint, params=params, data=data)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a request to the Graph API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint (without base URL)
            params: Query parameters
            data: Form body for POST

        Returns:
            JSON response as dict

        Raises:
            GraphAPIError: If the API returns an error body or a non-2xx status.
            PublishFailed: If the request cannot be sent.
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = dict(params or {})
        call_id = next_call_id()
        log_request(call_id, method, url, {**query, **(data or {})})
        query["access_token"] = self.access_token

        try:
            async with open_client(self._http, self.timeout) as client:
                if method.upper() == "GET":
                    response = await client.get(url, params=query, timeout=self.timeout)
                elif method.upper() == "POST":
                    response = await client.post(url, params=query, data=data, timeout=self.timeout)
                else:
                    raise ValueError(f"Unsupported HTTP method: {method}")
        except httpx.HTTPError as e:
            raise PublishFailed(
                f"{method} {endpoint} failed: {e}",
                user_message="Could not reach the platform. Try again.",
            ) from e

        log_response(call_id, response)
        result = safe_json(response)

        if "error" in result:
            error = result["error"] if isinstance(result["error"], dict) else {"message": str(result["error"])}
            raise GraphAPIError(
                error.get("message", "Unknown API error"),
                error_code=error.get("code"),
                error_subcode=error.get("error_subcode"),
                status_code=response.status_code,
            )
        if not response.is_success:
            raise GraphAPIError(
                f"{method} {endpoint} returned {response.status_code}",
                status_code=response.status_code,
            )
        return result
