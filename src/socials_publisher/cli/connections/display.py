"""Display functions for connection commands - pure functions for Rich output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...credentials.models import Credential, CredentialSummary
from ...utils.timestamps import format_local


def show_authorization_url(console: Console, platform: str, url: str) -> None:
    """Display the URL the user must open to connect a platform."""
    console.print(Panel(
        f"Open this URL to connect [cyan]{platform}[/cyan]:\n\n"
        f"[link={url}]{url}[/link]\n\n"
        "[dim]Then run: socials-publisher complete-auth "
        f"{platform} <code> --user <user>[/dim]",
        title="Connect",
        border_style="cyan",
    ))


def show_connected(console: Console, credential: Credential) -> None:
    """Display a newly stored credential."""
    simulated = " [yellow](simulated)[/yellow]" if credential.is_simulated else ""
    console.print(Panel(
        f"[bold green]{credential.platform.value} connected![/bold green]{simulated}\n\n"
        f"Account: [cyan]{credential.display_name or credential.username or credential.platform_user_id}[/cyan]\n"
        f"Expires: [dim]{format_local(credential.expires_at)}[/dim]",
        title="Connected",
        border_style="green",
    ))


def show_disconnected(console: Console, platform: str, existed: bool, hard: bool) -> None:
    if not existed:
        console.print(f"[yellow]No {platform} connection found.[/yellow]")
        return
    action = "deleted" if hard else "disconnected"
    console.print(f"[green]{platform} {action}.[/green]")


def show_connections_table(console: Console, user_id: str, connections: list[CredentialSummary]) -> None:
    """Display a user's active connections."""
    if not connections:
        console.print(f"[dim]No connections for {user_id}.[/dim]")
        return

    table = Table(title=f"Connections for {user_id}")
    table.add_column("Platform", style="cyan")
    table.add_column("Account")
    table.add_column("Expires", style="dim")
    table.add_column("Connected", style="dim")
    table.add_column("Mode")

    for summary in connections:
        table.add_row(
            summary.platform.value,
            summary.display_name or summary.username or summary.platform_user_id or "?",
            format_local(summary.expires_at),
            format_local(summary.connected_at),
            summary.environment.value,
        )

    console.print(table)
