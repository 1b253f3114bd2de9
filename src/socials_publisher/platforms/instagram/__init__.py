"""Instagram platform adapter."""

from .publisher import InstagramAdapter, sanitize_caption

__all__ = ["InstagramAdapter", "sanitize_caption"]
