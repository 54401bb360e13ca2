"""Location and clock capabilities used by the session tracker.

The tracker only depends on the protocols defined here. The concrete
classes replay a recorded track and generate ticks with asyncio, which is
what the CLI drives a run with.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Protocol

import gpxpy
import gpxpy.gpx

from ..models import GeoPoint
from .errors import LocationPermissionDenied, PositionUnavailable, TrackFileError
from .geo import distance_between

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    """Source of position fixes."""

    async def request_permission(self) -> bool: ...

    async def get_current_position(self, timeout: float) -> GeoPoint: ...

    def stream_positions(self, min_distance_meters: float) -> AsyncIterator[GeoPoint]: ...

    def distance_between(self, p1: GeoPoint, p2: GeoPoint) -> float: ...


class Clock(Protocol):
    """Periodic tick source and time reference."""

    def ticks(self, interval_seconds: float) -> AsyncIterator[int]: ...

    def now(self) -> datetime: ...


class IntervalClock:
    """
    Tick generator backed by asyncio.sleep.

    now() is a virtual wall clock that runs `speed` times faster than real
    time, so a replayed run can be fast-forwarded while elapsed time and pace
    stay realistic.
    """

    def __init__(self, speed: float = 1.0, origin: datetime | None = None) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.speed = speed
        self._origin = origin or datetime.now(UTC)
        self._started = time.monotonic()

    def now(self) -> datetime:
        """Current virtual time."""
        scaled = (time.monotonic() - self._started) * self.speed
        return self._origin + timedelta(seconds=scaled)

    async def ticks(self, interval_seconds: float) -> AsyncIterator[int]:
        """Yield a tick count every `interval_seconds` of virtual time, forever."""
        count = 0
        while True:
            await asyncio.sleep(interval_seconds / self.speed)
            count += 1
            yield count


class ReplayLocationProvider:
    """
    Location provider that replays a recorded track.

    The first point is returned as the initial fix and the remaining points
    are streamed one every `sample_interval_seconds` (scaled by `speed`).
    """

    def __init__(
        self,
        points: Iterable[GeoPoint],
        sample_interval_seconds: float = 1.0,
        speed: float = 1.0,
        permission_granted: bool = True,
        fix_delay_seconds: float = 0.0,
    ) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.points = list(points)
        self.sample_interval_seconds = sample_interval_seconds
        self.speed = speed
        self.permission_granted = permission_granted
        self.fix_delay_seconds = fix_delay_seconds
        self.finished = asyncio.Event()

    async def request_permission(self) -> bool:
        """Report whether location access is granted."""
        return self.permission_granted

    async def get_current_position(self, timeout: float) -> GeoPoint:
        """
        Return the first point of the track as the initial fix.

        Args:
            timeout: Seconds to wait before giving up

        Raises:
            LocationPermissionDenied: If permission was not granted
            PositionUnavailable: If the track is empty or the fix takes too long
        """
        if not self.permission_granted:
            raise LocationPermissionDenied("Location permission is required")
        if not self.points:
            raise PositionUnavailable("Track contains no positions")

        delay = self.fix_delay_seconds / self.speed
        if delay > timeout:
            await asyncio.sleep(timeout)
            raise PositionUnavailable(f"No fix within {timeout}s")
        if delay > 0:
            await asyncio.sleep(delay)
        return self.points[0]

    async def stream_positions(self, min_distance_meters: float = 0.0) -> AsyncIterator[GeoPoint]:
        """
        Yield the rest of the track in real time.

        Points closer than `min_distance_meters` to the last emitted point are
        dropped, like a device-level distance filter.
        """
        if not self.permission_granted:
            raise LocationPermissionDenied("Location permission is required")

        last = self.points[0] if self.points else None
        for point in self.points[1:]:
            await asyncio.sleep(self.sample_interval_seconds / self.speed)
            if last is not None and self.distance_between(last, point) < min_distance_meters:
                continue
            last = point
            yield point

        logger.info(f"Replay finished after {len(self.points)} recorded points")
        self.finished.set()

    def distance_between(self, p1: GeoPoint, p2: GeoPoint) -> float:
        """Geodesic distance in meters."""
        return distance_between(p1, p2)


def load_gpx_track(path: str | Path) -> list[GeoPoint]:
    """
    Read the positions of a GPX file.

    Track points are preferred; route points and then waypoints are used when
    the file has no tracks.

    Args:
        path: Path to the GPX file

    Returns:
        Positions in file order

    Raises:
        TrackFileError: If the file cannot be parsed or has no positions
    """
    try:
        with open(path, encoding="utf-8") as gpx_file:
            gpx = gpxpy.parse(gpx_file)
    except (OSError, gpxpy.gpx.GPXException) as e:
        raise TrackFileError(f"Could not read {path}: {e}") from e

    raw = [
        (p.latitude, p.longitude)
        for track in gpx.tracks
        for segment in track.segments
        for p in segment.points
    ]
    if not raw:
        raw = [(p.latitude, p.longitude) for route in gpx.routes for p in route.points]
    if not raw:
        raw = [(p.latitude, p.longitude) for p in gpx.waypoints]
    if not raw:
        raise TrackFileError(f"No positions found in {path}")

    try:
        points = [GeoPoint(latitude=lat, longitude=lon) for lat, lon in raw]
    except ValueError as e:
        raise TrackFileError(f"Invalid coordinates in {path}: {e}") from e

    logger.debug(f"Loaded {len(points)} positions from {path}")
    return points
