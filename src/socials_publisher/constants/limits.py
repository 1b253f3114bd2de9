"""Limit constants for the Socials Publisher.

This module contains limits and constraints:
- Token lifecycle windows
- Resumable upload chunking
- Platform content limits
- Timeouts

AI CONTEXT:
-----------
Platform limits come from the YouTube Data API and Meta Graph API
documentation. Most of them can be overridden through PublisherSettings;
the values here are the defaults.
"""

from typing import Final

from .types import AssetType, Platform

# =============================================================================
# TOKEN LIFECYCLE
# =============================================================================

TOKEN_MIN_VALIDITY_SECONDS: Final[int] = 5 * 60
"""A token expiring sooner than this is refreshed before use."""

META_LONG_LIVED_TOKEN_SECONDS: Final[int] = 60 * 24 * 60 * 60
"""Assumed lifetime of a Meta long-lived token when expires_in is missing."""

SHORT_LIVED_TOKEN_SECONDS: Final[int] = 60 * 60
"""Assumed lifetime of a short-lived token when long-lived exchange fails."""

STORE_WRITE_ATTEMPTS: Final[int] = 2
"""One write plus one retry when persisting a refreshed credential."""


# =============================================================================
# RESUMABLE UPLOAD
# =============================================================================

CHUNK_SIZE_BYTES: Final[int] = 5 * 1024 * 1024
"""Bytes sent per chunk PUT."""

MAX_EXTRA_CHUNK_REQUESTS: Final[int] = 16
"""Chunk PUTs allowed beyond ceil(size / chunk) before giving up on a session."""

RESUME_INCOMPLETE_STATUS: Final[int] = 308
"""Status a resumable endpoint returns while it expects more bytes."""

UPLOAD_COMPLETE_STATUSES: Final[frozenset[int]] = frozenset({200, 201})
"""Statuses that end the transfer loop successfully."""

PAYLOAD_SPOOL_BYTES: Final[int] = 16 * 1024 * 1024
"""Downloaded media above this size is spooled to a temporary file on disk."""


# =============================================================================
# YOUTUBE LIMITS
# =============================================================================

YOUTUBE_TITLE_MAX_LENGTH: Final[int] = 100
"""Maximum video title length."""

YOUTUBE_DESCRIPTION_MAX_LENGTH: Final[int] = 5000
"""Maximum video description length."""

YOUTUBE_MAX_TAGS: Final[int] = 500
"""Tags beyond this count are dropped."""

YOUTUBE_MAX_VIDEO_BYTES: Final[int] = 256 * 1024 * 1024 * 1024
"""Maximum upload size accepted by YouTube (256 GB)."""

YOUTUBE_DEFAULT_CATEGORY_ID: Final[str] = "22"
"""People & Blogs."""


# =============================================================================
# META LIMITS
# =============================================================================

INSTAGRAM_CAPTION_MAX_LENGTH: Final[int] = 2200
"""Maximum caption length in characters for Instagram posts."""

INSTAGRAM_CAROUSEL_MIN_ITEMS: Final[int] = 2
"""Minimum items in a carousel post."""

INSTAGRAM_CAROUSEL_MAX_ITEMS: Final[int] = 10
"""Maximum items in a carousel post."""

FACEBOOK_MAX_ATTACHED_PHOTOS: Final[int] = 10
"""Photos attached to a single page feed post."""

CONTAINER_PUBLISH_DELAY_SECONDS: Final[float] = 2.0
"""Wait between container creation and publish (no readiness signal)."""


# =============================================================================
# TIMEOUTS
# =============================================================================

REQUEST_TIMEOUT_SECONDS: Final[float] = 60.0
"""Default timeout for API calls."""

CHUNK_TIMEOUT_SECONDS: Final[float] = 300.0
"""Timeout for a single chunk PUT."""

TOKEN_TIMEOUT_SECONDS: Final[float] = 30.0
"""Timeout for token endpoint calls."""


# =============================================================================
# COMPATIBILITY
# =============================================================================

COMPATIBILITY: Final[dict[AssetType, frozenset[Platform]]] = {
    AssetType.VIDEO: frozenset({Platform.YOUTUBE, Platform.FACEBOOK}),
    AssetType.IMAGE: frozenset({Platform.INSTAGRAM, Platform.FACEBOOK}),
    AssetType.CONTENT: frozenset({Platform.TWITTER, Platform.LINKEDIN, Platform.FACEBOOK}),
}
"""Which platforms accept which asset types. Anything else is incompatible."""


def is_compatible(asset_type: AssetType, platform: Platform) -> bool:
    """Check an (asset type, platform) pair against the compatibility table."""
    return platform in COMPATIBILITY.get(asset_type, frozenset())


def compatibility_message(asset_type: AssetType, platform: Platform) -> str:
    """Human-readable reason a pairing is not accepted."""
    if asset_type == AssetType.VIDEO and platform == Platform.INSTAGRAM:
        return "Instagram posting here supports images only, not videos."
    if asset_type == AssetType.IMAGE and platform == Platform.YOUTUBE:
        return "YouTube only supports video uploads."
    if asset_type == AssetType.CONTENT:
        return f"Text posting is not supported on {platform.value}."
    return f"{platform.value} does not accept {asset_type.value} assets."
