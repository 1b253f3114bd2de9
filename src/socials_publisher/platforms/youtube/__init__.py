"""YouTube platform adapter."""

from .publisher import ResumableVideoAdapter, build_video_metadata

__all__ = ["ResumableVideoAdapter", "build_video_metadata"]
