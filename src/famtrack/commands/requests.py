"""Permission request commands."""

import typer

from famtrack.services.context import get_service_context
from famtrack.utils.ui.formatters import format_info, format_requests_table, format_success

from .decorators import command_wrapper

app = typer.Typer(help="Permission request commands")


@app.command("expire")
@command_wrapper
async def expire_requests() -> None:
    """Expire Pending requests whose deadline has passed (safe to run from cron)."""
    service = get_service_context().parental_control_service
    count = await service.process_expired_requests()
    if count:
        format_success(f"Expired {count} permission request(s)")
    else:
        format_info("No overdue permission requests")


@app.command("pending")
@command_wrapper
async def pending_requests(
    parent_id: str = typer.Argument(..., help="Parent user ID"),
) -> None:
    """List requests waiting for a parent's answer, oldest first."""
    service = get_service_context().parental_control_service
    requests = await service.get_pending_requests(parent_id)
    format_requests_table(requests, title=f"Pending requests for {parent_id}")


@app.command("approve")
@command_wrapper
async def approve_request(
    request_id: str = typer.Argument(..., help="Request ID"),
    parent_id: str = typer.Option(..., "--parent", help="Responding parent user ID"),
    message: str | None = typer.Option(None, "--message", "-m", help="Response message"),
) -> None:
    """Approve a pending request."""
    service = get_service_context().parental_control_service
    request = await service.approve(request_id, parent_id, message)
    format_success(f"Request {request.id} approved")


@app.command("deny")
@command_wrapper
async def deny_request(
    request_id: str = typer.Argument(..., help="Request ID"),
    parent_id: str = typer.Option(..., "--parent", help="Responding parent user ID"),
    message: str | None = typer.Option(None, "--message", "-m", help="Response message"),
) -> None:
    """Deny a pending request."""
    service = get_service_context().parental_control_service
    request = await service.deny(request_id, parent_id, message)
    format_success(f"Request {request.id} denied")
