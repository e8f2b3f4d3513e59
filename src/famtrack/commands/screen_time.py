"""Screen-time commands."""

from datetime import timedelta

import typer

from famtrack.services.context import get_service_context
from famtrack.utils.ui.console import get_console
from famtrack.utils.ui.formatters import format_minutes, format_success, format_usage_table

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Screen-time commands")
console = get_console()


@app.command("show")
@command_wrapper
async def show_screen_time(
    child_id: str = typer.Argument(..., help="Child user ID"),
    days: int = typer.Option(7, "--days", "-d", min=1, help="Number of days to show"),
) -> None:
    """Show per-day usage, today's remaining allowance and the allowed-hours flag."""
    context = get_service_context()
    service = context.screen_time_service
    today = context.clock.today()

    usage = await service.usage_for_range(child_id, today - timedelta(days=days - 1), today)
    remaining = await service.remaining_minutes_today(child_id)
    allowed = await service.is_within_allowed_hours(child_id)

    format_usage_table(usage, title=f"Screen time for {child_id}")
    console.print(f"Remaining today: [cyan]{format_minutes(remaining)}[/cyan]")
    if allowed:
        console.print("[green]Within allowed hours[/green]")
    else:
        console.print("[red]Outside allowed hours[/red]")


@app.command("record")
@command_wrapper
async def record_screen_time(
    child_id: str = typer.Argument(..., help="Child user ID"),
    minutes: int = typer.Argument(..., help="Minutes of usage"),
    note: str | None = typer.Option(None, "--note", help="Optional note"),
) -> None:
    """Record a screen-time session that starts now."""
    if minutes < 0:
        raise AppError("Minutes cannot be negative")
    service = get_service_context().screen_time_service
    record = await service.record_usage(child_id, minutes, note=note)
    format_success(f"Recorded {format_minutes(record.duration_minutes)} for {child_id}")
