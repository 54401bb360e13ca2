"""Enumeration types for run tracking."""

from enum import Enum


class RunStatus(str, Enum):
    """Lifecycle state of a tracked run."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"  # Momentary, only while the summary is emitted


class Notice(str, Enum):
    """Recoverable notifications surfaced to the presentation layer."""

    PERMISSION_DENIED = "permission_denied"
    NO_FIX = "no_fix"
    STREAM_LOST = "stream_lost"

    @property
    def message(self) -> str:
        """User-facing text for the notice."""
        return _NOTICE_MESSAGES[self]


_NOTICE_MESSAGES = {
    Notice.PERMISSION_DENIED: "Location permission is required",
    Notice.NO_FIX: "Unable to acquire GPS position. Please check your location settings.",
    Notice.STREAM_LOST: "Location updates stopped. Distance will no longer increase.",
}
