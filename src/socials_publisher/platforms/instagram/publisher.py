"""Instagram image and carousel publishing through media containers."""

from __future__ import annotations

import logging
import re
import unicodedata

from ...constants import (
    INSTAGRAM_CAPTION_MAX_LENGTH,
    INSTAGRAM_CAROUSEL_MAX_ITEMS,
    INSTAGRAM_CAROUSEL_MIN_ITEMS,
)
from ...credentials.models import Credential
from ...errors import NotConnected
from ..container import ContainerPublishAdapter
from ..meta_graph import GraphAPIError, GraphClient

_logger = logging.getLogger("publisher_api")

# Emoji ranges that break the caption encoding on some clients
_EMOJI_PATTERN = re.compile(
    "["
    "\U0001F300-\U0001F9FF"  # Misc Symbols, Emoticons, etc.
    "\U0001FA00-\U0001FAFF"  # Extended-A symbols
    "\U00002702-\U000027B0"  # Dingbats
    "\U0000FE00-\U0000FE0F"  # Variation selectors
    "\U0001F1E0-\U0001F1FF"  # Flags (regional indicators)
    "\U00002600-\U000026FF"  # Misc symbols
    "\U00002300-\U000023FF"  # Misc technical
    "\U0000200D"             # Zero-width joiner
    "]+",
    flags=re.UNICODE,
)

_REPLACEMENTS = {
    '\u2018': "'",    # Left single quote
    '\u2019': "'",    # Right single quote
    '\u201c': '"',    # Left double quote
    '\u201d': '"',    # Right double quote
    '\u2014': '-',    # Em dash
    '\u2013': '-',    # En dash
    '\u2026': '...',  # Ellipsis
    '\u00a0': ' ',    # Non-breaking space
    '\u200b': '',     # Zero-width space
    '\u200c': '',     # Zero-width non-joiner
    '\ufeff': '',     # BOM
    '\u00ad': '',     # Soft hyphen
    '\u2028': '\n',   # Line separator
    '\u2029': '\n',   # Paragraph separator
}


def sanitize_caption(caption: str, max_length: int = INSTAGRAM_CAPTION_MAX_LENGTH) -> str:
    """Clean a caption for the Instagram API and cap its length.

    Handles:
    - Emojis and other pictographic symbols (removed)
    - Unicode normalization (NFC)
    - Smart quotes, dashes and special spaces
    - Control and format characters (except newlines and tabs)
    - Runs of spaces and more than one blank line
    """
    if not caption:
        return ""

    caption = _EMOJI_PATTERN.sub("", caption)
    caption = unicodedata.normalize("NFC", caption)
    for old, new in _REPLACEMENTS.items():
        caption = caption.replace(old, new)

    cleaned = []
    for char in caption:
        if char in "\n\r\t":
            cleaned.append(char)
        elif unicodedata.category(char) in ("Cc", "Cf", "So"):
            continue
        elif ord(char) > 0xFFFF:
            continue
        else:
            cleaned.append(char)
    caption = "".join(cleaned)

    caption = re.sub(r" {2,}", " ", caption)
    caption = re.sub(r"\n{3,}", "\n\n", caption)
    return caption.strip()[:max_length]


class InstagramAdapter(ContainerPublishAdapter):
    """Publishes images and carousels to an Instagram professional account.

    API Reference:
    https://developers.facebook.com/docs/instagram-platform/instagram-graph-api/content-publishing
    """

    min_carousel_items = INSTAGRAM_CAROUSEL_MIN_ITEMS
    max_carousel_items = INSTAGRAM_CAROUSEL_MAX_ITEMS

    def target_id(self, credential: Credential) -> str:
        user_id = credential.metadata.get("instagram_user_id") or credential.platform_user_id
        if not user_id:
            raise NotConnected(
                "Instagram credential has no account id",
                user_message="Your Instagram connection is incomplete. Please reconnect.",
            )
        return str(user_id)

    def prepare_caption(self, caption: str) -> str:
        return sanitize_caption(caption)

    async def create_item_container(
        self,
        graph: GraphClient,
        target_id: str,
        media_url: str,
        caption: str | None,
        carousel_item: bool,
    ) -> str:
        params = {"image_url": media_url}
        if carousel_item:
            params["is_carousel_item"] = "true"
        elif caption:
            params["caption"] = caption

        result = await graph.post(f"{target_id}/media", params=params)
        return result["id"]

    async def create_parent_container(
        self,
        graph: GraphClient,
        target_id: str,
        child_ids: list[str],
        caption: str,
    ) -> str:
        params = {
            "media_type": "CAROUSEL",
            "children": ",".join(child_ids),
            "caption": caption,
        }
        result = await graph.post(f"{target_id}/media", params=params)
        return result["id"]

    async def publish_container(self, graph: GraphClient, target_id: str, container_id: str) -> str:
        result = await graph.post(f"{target_id}/media_publish", params={"creation_id": container_id})
        return result["id"]

    async def result_url(self, graph: GraphClient, media_id: str) -> str | None:
        """Get the permalink of the published post, if the API returns one."""
        try:
            result = await graph.get(media_id, params={"fields": "permalink"})
        except GraphAPIError as e:
            _logger.warning(f"Permalink lookup failed for {media_id}: {e}")
            return None
        return result.get("permalink")
