"""Output formatters for famtrack commands."""

from __future__ import annotations

from datetime import date, datetime

from rich.table import Table

from famtrack.models import PermissionRequest
from famtrack.services.screen_time_service import UNLIMITED_MINUTES

from .console import get_console

console = get_console()


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M UTC")


def format_minutes(minutes: int) -> str:
    """Render a minute count, e.g. ``95`` as ``1h 35m``."""
    if minutes >= UNLIMITED_MINUTES:
        return "unlimited"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest:02d}m" if hours else f"{rest}m"


def format_requests_table(requests: list[PermissionRequest], title: str) -> None:
    if not requests:
        console.print("[yellow]No permission requests[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Child")
    table.add_column("Action", style="cyan")
    table.add_column("Description")
    table.add_column("Requested")
    table.add_column("Expires")

    for request in requests:
        table.add_row(
            request.id,
            request.child_user_id,
            request.action_type.value,
            request.description or "",
            format_timestamp(request.requested_at),
            format_timestamp(request.expires_at),
        )
    console.print(table)


def format_usage_table(usage: dict[date, int], title: str) -> None:
    table = Table(title=title)
    table.add_column("Day")
    table.add_column("Screen time", justify="right")
    for day, minutes in sorted(usage.items()):
        table.add_row(day.isoformat(), format_minutes(minutes))
    console.print(table)
