"""Publish command."""

from .commands import publish

__all__ = ["publish"]
