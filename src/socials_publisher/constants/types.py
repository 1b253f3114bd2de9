"""Type definitions for the Socials Publisher.

This module contains the tagged enumerations shared across the package:
- Platform identifiers
- Asset types
- Credential environments
- Callback type signatures

MODIFICATION GUIDE:
------------------
- Adding a Platform member is not enough to publish to it: register an
  adapter in platforms/registry.py, otherwise it resolves to the
  unsupported adapter.
- Keep enum values lowercase; they are persisted in the credential store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, TypeAlias


# =============================================================================
# BASIC TYPE ALIASES
# =============================================================================

JSON: TypeAlias = dict[str, Any]
"""Generic JSON object type."""


# =============================================================================
# PLATFORMS
# =============================================================================

class Platform(str, Enum):
    """Social platforms a credential can be connected to."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    PINTEREST = "pinterest"

    @classmethod
    def parse(cls, value: "str | Platform") -> "Platform":
        """Parse a platform name case-insensitively.

        Raises:
            ValueError: If the name is not a known platform.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            available = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown platform: {value}. Available: {available}") from None


# =============================================================================
# ASSETS
# =============================================================================

class AssetType(str, Enum):
    """Kind of media an asset carries."""

    IMAGE = "image"
    VIDEO = "video"
    CONTENT = "content"
    """Plain text content (captions, posts without media)."""


# =============================================================================
# CREDENTIAL ENVIRONMENT
# =============================================================================

class Environment(str, Enum):
    """Whether a credential talks to the real platform or is simulated."""

    LIVE = "live"
    SIMULATED = "simulated"


# =============================================================================
# CALLBACKS
# =============================================================================

ProgressCallback: TypeAlias = Callable[[Any], Awaitable[None]] | None
"""Async callback receiving an UploadJob snapshot on every state change."""
