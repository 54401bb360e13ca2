"""Unit conversion and formatting for distance, pace and time."""

import math
from datetime import timedelta
from enum import Enum


class UnitSystem(str, Enum):
    """Unit system for distance measurements."""

    METRIC = "metric"  # kilometers
    IMPERIAL = "imperial"  # miles

    @classmethod
    def from_flag(cls, use_metric: bool) -> "UnitSystem":
        """Map the persisted boolean preference to a unit system."""
        return cls.METRIC if use_metric else cls.IMPERIAL

    @property
    def label(self) -> str:
        """Short distance unit label."""
        return "km" if self == UnitSystem.METRIC else "mi"


# Conversion constants
KM_TO_MILES = 0.621371
MILES_TO_KM = 1.609344

NO_PACE = "--:--"


def km_to_miles(km: float) -> float:
    """
    Convert kilometers to miles.

    Args:
        km: Distance in kilometers

    Returns:
        Distance in miles
    """
    return km * KM_TO_MILES


def miles_to_km(miles: float) -> float:
    """
    Convert miles to kilometers.

    Args:
        miles: Distance in miles

    Returns:
        Distance in kilometers
    """
    return miles * MILES_TO_KM


def meters_to_distance(meters: float, use_metric: bool = True) -> float:
    """Convert meters to kilometers or miles."""
    km = meters / 1000
    return km if use_metric else km_to_miles(km)


def _to_seconds(duration: float | timedelta) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance(meters: float, use_metric: bool = True) -> str:
    """
    Format a distance with its unit label.

    Args:
        meters: Distance in meters
        use_metric: Kilometers when True, miles otherwise

    Returns:
        Formatted distance string (e.g., "5.24 mi" or "8.43 km")
    """
    unit = UnitSystem.from_flag(use_metric)
    return f"{meters_to_distance(meters, use_metric):.2f} {unit.label}"


def format_pace(meters: float, duration: float | timedelta, use_metric: bool = True) -> str:
    """
    Format whole-run pace as M:SS per unit.

    The seconds-per-unit value is rounded once and then split into minutes
    and seconds, so the seconds part is always 00-59.

    Args:
        meters: Distance covered in meters
        duration: Running time in seconds or as a timedelta
        use_metric: Per kilometer when True, per mile otherwise

    Returns:
        Formatted pace string (e.g., "7:32 /mi" or "4:41 /km"), or
        "--:-- /km" when no distance has been covered
    """
    unit = UnitSystem.from_flag(use_metric)
    distance = meters_to_distance(meters, use_metric)
    if distance <= 0:
        return f"{NO_PACE} /{unit.label}"

    seconds_per_unit = max(_to_seconds(duration), 0.0) / distance
    if not math.isfinite(seconds_per_unit):
        return f"{NO_PACE} /{unit.label}"
    minutes, seconds = divmod(_round_half_up(seconds_per_unit), 60)
    return f"{minutes}:{seconds:02d} /{unit.label}"


def format_elapsed(duration: float | timedelta) -> str:
    """Format running time as M:SS; minutes keep counting past the hour."""
    minutes, seconds = divmod(max(int(_to_seconds(duration)), 0), 60)
    return f"{minutes}:{seconds:02d}"
