"""Display utilities for the runtrack CLI with Rich formatting."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.models import (
    Notice,
    RunStatus,
    RunSummary,
    format_distance,
    format_elapsed,
    format_pace,
)
from src.shared.preferences import UserPreferences
from src.shared.tracking import SessionTracker

console = Console()

STATUS_STYLES = {
    RunStatus.IDLE: "dim",
    RunStatus.RUNNING: "bold green",
    RunStatus.PAUSED: "bold yellow",
    RunStatus.STOPPED: "bold red",
}


def render_status(tracker: SessionTracker) -> Text:
    """Single status line for a run in progress."""
    status = tracker.status
    line = Text()
    line.append(f"{status.value.upper():<8}", style=STATUS_STYLES[status])
    line.append("  Time: ")
    line.append(format_elapsed(tracker.elapsed), style="cyan")
    line.append("  Distance: ")
    line.append(format_distance(tracker.distance_meters, tracker.use_metric), style="green")
    line.append(f"  Points: {len(tracker.route)}", style="dim")
    return line


def display_summary(summary: RunSummary) -> None:
    """Display a finished run."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Distance", format_distance(summary.distance_meters, summary.use_metric))
    table.add_row("Time", format_elapsed(summary.elapsed))
    table.add_row(
        "Pace",
        format_pace(summary.distance_meters, summary.elapsed, summary.use_metric),
    )
    table.add_row("Points", str(len(summary.route)))
    if summary.start_point is not None and summary.end_point is not None:
        table.add_row("Start", str(summary.start_point))
        table.add_row("End", str(summary.end_point))

    console.print(
        Panel(table, title="[bold cyan]Run Summary[/bold cyan]", border_style="cyan", expand=False)
    )


def display_preferences(prefs: UserPreferences, path: Path) -> None:
    """Display stored preferences."""
    table = Table(title="Preferences", show_header=True, border_style="cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    units = "Kilometers" if prefs.use_metric else "Miles"
    table.add_row("Units", units)
    table.add_row("Auto-stop when returning to start", "on" if prefs.auto_stop_enabled else "off")

    console.print(table)
    console.print(f"[dim]{path}[/dim]")


def display_notice(notice: Notice) -> None:
    """Display a recoverable location notice."""
    display_warning(notice.message)


def display_success(message: str) -> None:
    """Display success message."""
    console.print(f"[green]✓[/green] {message}")


def display_error(message: str) -> None:
    """Display error message."""
    console.print(f"[red]✗[/red] {message}")


def display_warning(message: str) -> None:
    """Display warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def display_info(message: str) -> None:
    """Display info message."""
    console.print(f"[dim]ℹ[/dim] {message}")
