"""Errors raised by location providers and track loaders."""


class TrackingError(Exception):
    """Base class for run-tracking errors."""


class LocationError(TrackingError):
    """The location provider could not deliver a position."""


class LocationPermissionDenied(LocationError):
    """Location access was refused by the user or the platform."""


class PositionUnavailable(LocationError):
    """No position fix could be acquired."""


class TrackFileError(TrackingError):
    """A recorded track file could not be read."""
