"""Tests for caption parsing and resolution."""

from unittest.mock import AsyncMock

import pytest

from socials_publisher.constants import Platform
from socials_publisher.publishing.captions import (
    CaptionSource,
    PlatformCopy,
    parse_caption_response,
    resolve_captions,
)

PLATFORMS = [Platform.INSTAGRAM, Platform.FACEBOOK]


class TestParseCaptionResponse:
    """Tests for parse_caption_response."""

    def test_structured_response(self):
        response = {
            "instagram": {"caption": "Hello IG", "hashtags": "#a #b", "mentions": "@brand"},
            "facebook": {"caption": "Hello FB", "hashtags": "", "mentions": ""},
        }

        captions = parse_caption_response(response, PLATFORMS)

        assert captions[Platform.INSTAGRAM] == "Hello IG\n\n@brand\n\n#a #b"
        assert captions[Platform.FACEBOOK] == "Hello FB"

    def test_json_text_response(self):
        captions = parse_caption_response('{"facebook": {"caption": "From JSON"}}', PLATFORMS)

        assert captions == {Platform.FACEBOOK: "From JSON"}

    def test_plain_text_applies_to_all(self):
        captions = parse_caption_response("  One caption for everyone  ", PLATFORMS)

        assert captions == {
            Platform.INSTAGRAM: "One caption for everyone",
            Platform.FACEBOOK: "One caption for everyone",
        }

    def test_broken_json_is_plain_text(self):
        captions = parse_caption_response("{not json", [Platform.FACEBOOK])

        assert captions == {Platform.FACEBOOK: "{not json"}

    def test_string_entries_and_unrequested_platforms(self):
        captions = parse_caption_response(
            {"facebook": "Short", "twitter": "ignored"}, PLATFORMS,
        )

        assert captions == {Platform.FACEBOOK: "Short"}

    def test_malformed_entry_is_skipped(self):
        captions = parse_caption_response({"instagram": {"caption": ["not", "text"]}}, PLATFORMS)

        assert captions == {}

    def test_empty_text(self):
        assert parse_caption_response("   ", PLATFORMS) == {}


class TestResolveCaptions:
    """Tests for resolve_captions."""

    @pytest.mark.asyncio
    async def test_gaps_filled_from_asset(self, image_asset):
        source = AsyncMock()
        source.generate.return_value = {"instagram": {"caption": "Generated"}}

        captions = await resolve_captions(source, image_asset, PLATFORMS)

        assert captions[Platform.INSTAGRAM] == "Generated"
        assert captions[Platform.FACEBOOK] == image_asset.caption_for(Platform.FACEBOOK)
        source.generate.assert_awaited_once_with(image_asset, PLATFORMS)

    @pytest.mark.asyncio
    async def test_failing_source_falls_back(self, image_asset):
        source = AsyncMock()
        source.generate.side_effect = TimeoutError("model busy")

        captions = await resolve_captions(source, image_asset, PLATFORMS)

        assert captions[Platform.INSTAGRAM] == "New collection\n\nFresh arrivals this week\n\n#fashion #newin"

    @pytest.mark.asyncio
    async def test_no_source(self, text_asset):
        captions = await resolve_captions(None, text_asset, [Platform.FACEBOOK])

        assert captions == {Platform.FACEBOOK: "Big news\n\nWe are opening a second store next month."}


def test_caption_source_protocol():
    class Generator:
        async def generate(self, asset, platforms):
            return ""

    assert isinstance(Generator(), CaptionSource)
    assert PlatformCopy(caption="x").render() == "x"
