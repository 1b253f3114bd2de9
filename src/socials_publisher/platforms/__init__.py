"""Platform upload adapters.

This module provides a unified interface for publishing one asset to any
supported social platform.

Usage:
    from socials_publisher.platforms import PlatformRegistry, Asset

    registry = PlatformRegistry(settings)
    adapter = registry.adapter_for(Platform.YOUTUBE, credential)
    result = await adapter.publish(asset, credential)
"""

from .asset_fetcher import AssetFetcher, MediaPayload
from .base import Asset, PlatformAdapter, UploadJob, UploadResult
from .container import ContainerPublishAdapter
from .facebook import FacebookPageAdapter
from .instagram import InstagramAdapter, sanitize_caption
from .meta_graph import GraphAPIError, GraphClient, get_error_info
from .registry import PlatformRegistry
from .resumable import ResumableUploadEngine, UploadSession, parse_range_header
from .unsupported import SimulatedAdapter, UnsupportedAdapter
from .youtube import ResumableVideoAdapter, build_video_metadata

__all__ = [
    "Asset",
    "AssetFetcher",
    "ContainerPublishAdapter",
    "FacebookPageAdapter",
    "GraphAPIError",
    "GraphClient",
    "InstagramAdapter",
    "MediaPayload",
    "PlatformAdapter",
    "PlatformRegistry",
    "ResumableUploadEngine",
    "ResumableVideoAdapter",
    "SimulatedAdapter",
    "UnsupportedAdapter",
    "UploadJob",
    "UploadResult",
    "UploadSession",
    "build_video_metadata",
    "get_error_info",
    "parse_range_header",
    "sanitize_caption",
]
