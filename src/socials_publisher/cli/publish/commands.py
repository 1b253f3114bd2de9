"""Publish CLI command - send one asset to several platforms."""

from __future__ import annotations

import asyncio
import uuid
from typing import List, Optional

import typer

from ...constants import AssetType
from ...platforms.base import Asset
from ...publishing.orchestrator import unique_platforms
from ..core import context
from ..core.console import console, print_error
from .display import PublishProgressDisplay, show_publish_config, show_publish_results


def publish(
    source: Optional[str] = typer.Argument(None, help="URL or path of the media (omit for text posts)"),
    platform: List[str] = typer.Option(..., "--platform", "-p", help="Target platform (repeatable)"),
    user: str = typer.Option(..., "--user", "-u", envvar="SOCIALS_PUBLISHER_USER", help="User id owning the connections"),
    asset_type: str = typer.Option("video", "--type", "-t", help="Asset type: video, image or content"),
    title: str = typer.Option("", "--title", help="Title (YouTube title, caption heading)"),
    description: str = typer.Option("", "--description", "-d", help="Description or post text"),
    tags: str = typer.Option("", "--tags", help="Comma-separated tags"),
    item: List[str] = typer.Option([], "--item", "-i", help="Carousel image URL (repeatable)"),
    mime_type: Optional[str] = typer.Option(None, "--mime-type", help="Override the detected MIME type"),
    asset_id: Optional[str] = typer.Option(None, "--asset-id", help="Asset id (random if omitted)"),
) -> None:
    """Publish an asset to one or more connected platforms.

    Each platform is published independently; a failure on one does not
    stop the others. Exits with code 1 if any platform failed.
    """
    try:
        kind = AssetType(asset_type.strip().lower())
        platforms = unique_platforms(platform)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    asset = Asset(
        id=asset_id or uuid.uuid4().hex[:12],
        asset_type=kind,
        source_url=source or (item[0] if item else ""),
        title=title,
        description=description,
        tags=[t.strip() for t in tags.split(",") if t.strip()],
        items=list(item),
        mime_type=mime_type,
    )

    show_publish_config(console, asset, [p.value for p in platforms])

    publisher = context.build_publisher()
    display = PublishProgressDisplay(console)
    results = asyncio.run(publisher.publish(user, asset, platforms, progress_callback=display.update))

    show_publish_results(console, results)
    if not all(r.success for r in results):
        raise typer.Exit(1)
