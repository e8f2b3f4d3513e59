"""Main entry point for the famtrack CLI."""

import typer

from famtrack import __version__
from famtrack.commands import config, requests, screen_time
from famtrack.config import get_config_manager
from famtrack.utils.logger import set_level
from famtrack.utils.ui.console import get_console

app = typer.Typer(
    name="famtrack",
    help="Parental controls and screen-time administration for family task tracking",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(requests.app, name="requests", help="Permission request commands")
app.add_typer(screen_time.app, name="screen-time", help="Screen-time commands")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main() -> None:
    """Apply the configured log level before any command runs."""
    set_level(get_config_manager().config.logging.level)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]famtrack[/bold] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
