"""Configuration management commands."""

from typing import Optional

import typer
from pydantic import ValidationError

from famtrack.config import get_config_manager
from famtrack.services.context import reset_service_context
from famtrack.utils.ui.console import get_console
from famtrack.utils.ui.formatters import format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Configuration management commands")
console = get_console()


def _parse_value(value: str) -> str | int | float | bool | list[str]:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        pass
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., parental.request_expiry_hours)"),
    profile: str = typer.Option("default", "--profile", help="Profile name"),
) -> None:
    """Get a configuration value."""
    value = get_config_manager(profile).get(key)
    if value is None:
        raise AppError(f"Configuration key '{key}' not found")
    console.print(value.model_dump() if hasattr(value, "model_dump") else value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value (comma-separated for lists)"),
    profile: str = typer.Option("default", "--profile", help="Profile name"),
) -> None:
    """Set a configuration value."""
    manager = get_config_manager(profile)
    parsed = _parse_value(value)
    if isinstance(manager.get(key), list) and not isinstance(parsed, list):
        parsed = [value]
    try:
        manager.set(key, parsed)
    except ValidationError as e:
        raise AppError(f"Invalid value for '{key}': {e.errors()[0]['msg']}") from e
    reset_service_context()
    format_success(f"Configuration '{key}' set to '{parsed}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: Optional[str] = typer.Argument(None, help="Configuration key to reset"),
    profile: str = typer.Option("default", "--profile", help="Profile name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        target = f"'{key}'" if key else "all configuration"
        if not typer.confirm(f"Reset {target} to defaults?"):
            raise typer.Exit(0)
    get_config_manager(profile).reset(key)
    reset_service_context()
    format_success(f"Configuration '{key}' reset to default" if key else "Configuration reset to defaults")
