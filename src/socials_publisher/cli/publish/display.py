"""Display for publish commands."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...constants import UploadState
from ...platforms.base import Asset, UploadJob, UploadResult


def show_publish_config(console: Console, asset: Asset, platforms: list[str]) -> None:
    """Display what is about to be published."""
    items = f"\nItems: [yellow]{len(asset.items)}[/yellow]" if asset.items else ""
    console.print(Panel(
        f"Asset: [cyan]{asset.id}[/cyan] ({asset.asset_type.value})\n"
        f"Title: [green]{asset.title or '-'}[/green]\n"
        f"Source: [dim]{asset.source_url or '-'}[/dim]{items}\n"
        f"Platforms: [yellow]{', '.join(platforms)}[/yellow]",
        title="Publish",
    ))


class PublishProgressDisplay:
    """Prints each job state change once per platform."""

    def __init__(self, console: Console):
        self.console = console
        self._printed: set[tuple[str, str]] = set()
        self._last_percent: dict[str, int] = {}

    async def update(self, job: UploadJob) -> None:
        platform = job.platform.value
        tag = escape(f"[{platform}]")
        key = (platform, job.state.value)
        if key not in self._printed:
            self._printed.add(key)
            if job.state not in (UploadState.SUCCEEDED, UploadState.FAILED):
                self.console.print(f"  {tag} {job.state.value}...")

        if job.state == UploadState.TRANSFERRING and job.total_bytes:
            # Report every 25%
            step = int(job.percent // 25) * 25
            if step > self._last_percent.get(platform, -1):
                self._last_percent[platform] = step
                self.console.print(f"  {tag} {step}% sent")


def show_publish_results(console: Console, results: list[UploadResult]) -> None:
    """Display the per-platform outcome table."""
    table = Table(title="Publish Results")
    table.add_column("Platform", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for result in results:
        if result.success:
            table.add_row(result.platform.value, "[green]published[/green]", result.url or result.media_id or "")
        else:
            detail = escape(result.message or "")
            if result.guidance and result.guidance not in detail:
                detail = f"{detail}\n[dim]{result.guidance}[/dim]"
            table.add_row(
                result.platform.value,
                f"[red]{result.error_kind.value if result.error_kind else 'failed'}[/red]",
                detail,
            )

    console.print(table)
    succeeded = sum(1 for r in results if r.success)
    style = "green" if succeeded == len(results) else "yellow" if succeeded else "red"
    console.print(f"[{style}]{succeeded}/{len(results)} platforms published[/{style}]")
