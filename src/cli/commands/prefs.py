"""Preference commands for the runtrack CLI."""

import json
from enum import Enum

import typer

from src.cli import display
from src.shared.config import get_settings
from src.shared.models import UnitSystem
from src.shared.preferences import JsonPreferenceStore, UserPreferences

app = typer.Typer(help="Preference commands")


class Switch(str, Enum):
    """On/off argument."""

    ON = "on"
    OFF = "off"


def load_preferences() -> UserPreferences:
    """Load preferences from the configured store."""
    settings = get_settings()
    return UserPreferences.load(
        JsonPreferenceStore(settings.preferences_path),
        settings.country_code(),
    )


@app.command("show")
def show(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Show stored preferences."""
    prefs = load_preferences()

    if json_output:
        data = {
            "use_metric": prefs.use_metric,
            "auto_stop_enabled": prefs.auto_stop_enabled,
        }
        print(json.dumps(data, indent=2))
    else:
        display.display_preferences(prefs, get_settings().preferences_path)


@app.command("units")
def units(
    system: UnitSystem | None = typer.Argument(None, help="metric or imperial (default: toggle)"),
) -> None:
    """Set the unit system used for distance and pace."""
    prefs = load_preferences()
    if system is None:
        prefs.toggle_units()
    else:
        prefs.set_use_metric(system == UnitSystem.METRIC)
    display.display_success(f"Units set to {prefs.unit_system.value} ({prefs.unit_system.label})")


@app.command("auto-stop")
def auto_stop(
    state: Switch | None = typer.Argument(None, help="on or off (default: toggle)"),
) -> None:
    """Stop runs automatically when returning to the start point."""
    prefs = load_preferences()
    if state is None:
        prefs.toggle_auto_stop()
    else:
        prefs.set_auto_stop(state == Switch.ON)
    display.display_success(f"Auto-stop {'on' if prefs.auto_stop_enabled else 'off'}")
