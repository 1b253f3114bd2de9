"""Facebook platform adapter."""

from .publisher import FacebookPageAdapter

__all__ = ["FacebookPageAdapter"]
