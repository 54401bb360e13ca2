#!/usr/bin/env python3
"""
runtrack - run tracker CLI

Records a run from a position source and reports distance, time and pace.

Usage:
    runtrack track run.gpx        # Replay a recorded track as a live run
    runtrack prefs show           # Show stored preferences
    runtrack prefs units imperial # Switch to miles
    runtrack prefs auto-stop on   # Stop automatically back at the start
"""

import typer
from rich.console import Console

from src.cli import __version__
from src.cli.commands import prefs, track
from src.shared.config import configure_logging

# Create the main app
app = typer.Typer(
    name="runtrack",
    help="Track runs from the terminal.",
    no_args_is_help=True,
    add_completion=True,
)

# Add command groups
app.add_typer(prefs.app, name="prefs", help="Preference commands")

# Console for output
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"runtrack version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", callback=version_callback, is_eager=True, help="Show version"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Override RUNTRACK_LOG_LEVEL"
    ),
) -> None:
    """
    runtrack - Track runs from the terminal.
    """
    configure_logging(log_level)


# Register commands directly on the app
app.command(name="track")(track.track)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
