"""Global constants package for Socials Publisher.

PACKAGE STRUCTURE:
-----------------
- types.py    : Platform, AssetType, Environment enums and type aliases
- status.py   : Upload job states and the error taxonomy
- limits.py   : Token windows, chunk sizes, platform limits, compatibility

USAGE EXAMPLES:
--------------
    from socials_publisher.constants import Platform, AssetType, is_compatible
    from socials_publisher.constants import UploadState, ErrorKind
"""

from .limits import (
    CHUNK_SIZE_BYTES,
    CHUNK_TIMEOUT_SECONDS,
    COMPATIBILITY,
    CONTAINER_PUBLISH_DELAY_SECONDS,
    FACEBOOK_MAX_ATTACHED_PHOTOS,
    INSTAGRAM_CAPTION_MAX_LENGTH,
    INSTAGRAM_CAROUSEL_MAX_ITEMS,
    INSTAGRAM_CAROUSEL_MIN_ITEMS,
    MAX_EXTRA_CHUNK_REQUESTS,
    META_LONG_LIVED_TOKEN_SECONDS,
    PAYLOAD_SPOOL_BYTES,
    REQUEST_TIMEOUT_SECONDS,
    RESUME_INCOMPLETE_STATUS,
    SHORT_LIVED_TOKEN_SECONDS,
    STORE_WRITE_ATTEMPTS,
    TOKEN_MIN_VALIDITY_SECONDS,
    TOKEN_TIMEOUT_SECONDS,
    UPLOAD_COMPLETE_STATUSES,
    YOUTUBE_DEFAULT_CATEGORY_ID,
    YOUTUBE_DESCRIPTION_MAX_LENGTH,
    YOUTUBE_MAX_TAGS,
    YOUTUBE_MAX_VIDEO_BYTES,
    YOUTUBE_TITLE_MAX_LENGTH,
    compatibility_message,
    is_compatible,
)
from .status import ErrorKind, UploadState
from .types import JSON, AssetType, Environment, Platform, ProgressCallback

__all__ = [
    # Types
    "JSON",
    "AssetType",
    "Environment",
    "Platform",
    "ProgressCallback",
    # Status
    "ErrorKind",
    "UploadState",
    # Limits
    "CHUNK_SIZE_BYTES",
    "CHUNK_TIMEOUT_SECONDS",
    "COMPATIBILITY",
    "CONTAINER_PUBLISH_DELAY_SECONDS",
    "FACEBOOK_MAX_ATTACHED_PHOTOS",
    "INSTAGRAM_CAPTION_MAX_LENGTH",
    "INSTAGRAM_CAROUSEL_MAX_ITEMS",
    "INSTAGRAM_CAROUSEL_MIN_ITEMS",
    "MAX_EXTRA_CHUNK_REQUESTS",
    "META_LONG_LIVED_TOKEN_SECONDS",
    "PAYLOAD_SPOOL_BYTES",
    "REQUEST_TIMEOUT_SECONDS",
    "RESUME_INCOMPLETE_STATUS",
    "SHORT_LIVED_TOKEN_SECONDS",
    "STORE_WRITE_ATTEMPTS",
    "TOKEN_MIN_VALIDITY_SECONDS",
    "TOKEN_TIMEOUT_SECONDS",
    "UPLOAD_COMPLETE_STATUSES",
    "YOUTUBE_DEFAULT_CATEGORY_ID",
    "YOUTUBE_DESCRIPTION_MAX_LENGTH",
    "YOUTUBE_MAX_TAGS",
    "YOUTUBE_MAX_VIDEO_BYTES",
    "YOUTUBE_TITLE_MAX_LENGTH",
    "compatibility_message",
    "is_compatible",
]
