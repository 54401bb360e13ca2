"""Run tracking engine."""

from .errors import (
    LocationError,
    LocationPermissionDenied,
    PositionUnavailable,
    TrackFileError,
    TrackingError,
)
from .geo import distance_between, is_within, path_length
from .providers import (
    Clock,
    IntervalClock,
    LocationProvider,
    ReplayLocationProvider,
    load_gpx_track,
)
from .session import SessionTracker, TrackingOptions

__all__ = [
    "SessionTracker",
    "TrackingOptions",
    "Clock",
    "IntervalClock",
    "LocationProvider",
    "ReplayLocationProvider",
    "load_gpx_track",
    "distance_between",
    "is_within",
    "path_length",
    "TrackingError",
    "LocationError",
    "LocationPermissionDenied",
    "PositionUnavailable",
    "TrackFileError",
]
