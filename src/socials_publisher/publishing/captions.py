"""Per-platform captions from the upstream content generator.

The generator is a black box that answers either with structured copy
per platform or with one fallback string:

    {
      "instagram": {"caption": "...", "hashtags": "#a #b", "mentions": "@x"},
      "facebook": {"caption": "...", "hashtags": "...", "mentions": ""}
    }

The structured form may also arrive as JSON text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

from ..constants import Platform
from ..platforms.base import Asset

_logger = logging.getLogger("publisher_fanout")

CaptionResponse = dict[str, Any] | str


@runtime_checkable
class CaptionSource(Protocol):
    """Upstream generator of marketing copy."""

    async def generate(self, asset: Asset, platforms: list[Platform]) -> CaptionResponse:
        ...


class PlatformCopy(BaseModel):
    """Generated copy for one platform."""

    caption: str = ""
    hashtags: str = ""
    mentions: str = ""

    def render(self) -> str:
        parts = [p.strip() for p in (self.caption, self.mentions, self.hashtags) if p and p.strip()]
        return "\n\n".join(parts)


def parse_caption_response(response: CaptionResponse, platforms: list[Platform]) -> dict[Platform, str]:
    """Map a generator response to captions per requested platform.

    Platforms missing from a structured response get no entry, so the
    asset's own caption is used for them.
    """
    if isinstance(response, str):
        text = response.strip()
        parsed: Any = None
        if text.startswith("{"):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                _logger.debug("Caption response looks like JSON but does not parse, using as text")
        if not isinstance(parsed, dict):
            return {p: text for p in platforms} if text else {}
        response = parsed

    captions: dict[Platform, str] = {}
    for platform in platforms:
        entry = response.get(platform.value)
        if entry is None:
            continue
        if isinstance(entry, str):
            rendered = entry.strip()
        else:
            try:
                rendered = PlatformCopy.model_validate(entry).render()
            except ValidationError as e:
                _logger.warning(f"Ignoring malformed {platform.value} copy: {e}")
                continue
        if rendered:
            captions[platform] = rendered
    return captions


async def resolve_captions(
    source: CaptionSource | None,
    asset: Asset,
    platforms: list[Platform],
) -> dict[Platform, str]:
    """Ask the generator for captions and fill the gaps from the asset.

    A failing generator never blocks publishing; every platform still gets
    the caption built from the asset's title, description and tags.
    """
    captions: dict[Platform, str] = {}
    if source is not None:
        try:
            response = await source.generate(asset, platforms)
        except Exception as e:
            _logger.warning(f"Caption generation failed for {asset.id}, using asset text: {e}")
        else:
            captions = parse_caption_response(response, platforms)

    for platform in platforms:
        captions.setdefault(platform, asset.caption_for(platform))
    return captions
