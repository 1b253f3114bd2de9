"""Connection CLI commands - OAuth connect, disconnect and listing."""

from __future__ import annotations

import asyncio

import typer

from ...constants import Platform
from ...errors import CredentialStoreError, OAuthError
from ..core import context
from ..core.console import console, print_error
from .display import (
    show_authorization_url,
    show_connected,
    show_connections_table,
    show_disconnected,
)

_USER_OPTION = typer.Option(..., "--user", "-u", envvar="SOCIALS_PUBLISHER_USER", help="User id owning the connection")


def _parse_platform(value: str) -> Platform:
    try:
        return Platform.parse(value)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)


def connect(
    platform: str = typer.Argument(..., help="Platform to connect (youtube, instagram, facebook)"),
    user: str = _USER_OPTION,
    simulated: bool = typer.Option(False, "--simulated", help="Store a simulated credential instead"),
) -> None:
    """Start connecting a platform account.

    Prints the authorization URL. After approving access, pass the code from
    the redirect to complete-auth. Use --simulated for a demo connection
    that never calls the platform.
    """
    target = _parse_platform(platform)
    publisher = context.build_publisher()

    if simulated:
        credential = asyncio.run(publisher.connect_simulated(user, target))
        show_connected(console, credential)
        return

    try:
        url = publisher.connect(user, target)
    except OAuthError as e:
        print_error(str(e))
        raise typer.Exit(1)
    show_authorization_url(console, target.value, url)


def complete_auth(
    platform: str = typer.Argument(..., help="Platform being connected"),
    code: str = typer.Argument(..., help="Authorization code from the redirect URL"),
    user: str = _USER_OPTION,
) -> None:
    """Finish connecting a platform with the authorization code."""
    target = _parse_platform(platform)
    publisher = context.build_publisher()

    try:
        credential = asyncio.run(publisher.complete_auth(user, target, code))
    except (OAuthError, CredentialStoreError) as e:
        print_error(f"Could not connect {target.value}", {"reason": str(e)})
        raise typer.Exit(1)
    show_connected(console, credential)


def disconnect(
    platform: str = typer.Argument(..., help="Platform to disconnect"),
    user: str = _USER_OPTION,
    hard: bool = typer.Option(False, "--hard", help="Delete the stored credential"),
) -> None:
    """Disconnect a platform account."""
    target = _parse_platform(platform)
    publisher = context.build_publisher()
    existed = asyncio.run(publisher.disconnect(user, target, hard=hard))
    show_disconnected(console, target.value, existed, hard)


def connections(
    user: str = _USER_OPTION,
) -> None:
    """List connected platform accounts."""
    publisher = context.build_publisher()
    summaries = asyncio.run(publisher.list_connections(user))
    show_connections_table(console, user, summaries)
