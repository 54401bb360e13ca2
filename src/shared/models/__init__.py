"""Data models for run tracking."""

from .enums import Notice, RunStatus
from .route import GeoPoint, RouteSample
from .summary import RunSummary
from .units import (
    KM_TO_MILES,
    MILES_TO_KM,
    UnitSystem,
    format_distance,
    format_elapsed,
    format_pace,
    km_to_miles,
    meters_to_distance,
    miles_to_km,
)

__all__ = [
    # Position models
    "GeoPoint",
    "RouteSample",
    # Run models
    "RunSummary",
    # Enums
    "Notice",
    "RunStatus",
    # Units
    "KM_TO_MILES",
    "MILES_TO_KM",
    "UnitSystem",
    "km_to_miles",
    "miles_to_km",
    "meters_to_distance",
    "format_distance",
    "format_elapsed",
    "format_pace",
]
