"""Fan-out publishing and the caller-facing service."""

from .captions import CaptionSource, PlatformCopy, parse_caption_response, resolve_captions
from .orchestrator import PublishOrchestrator, unique_platforms
from .service import SocialPublisher

__all__ = [
    "CaptionSource",
    "PlatformCopy",
    "PublishOrchestrator",
    "SocialPublisher",
    "parse_caption_response",
    "resolve_captions",
    "unique_platforms",
]
