"""Shared fixtures and fakes for run tracking tests."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from src.shared.models import GeoPoint
from src.shared.tracking import SessionTracker, TrackingOptions, distance_between

START = datetime(2024, 10, 30, 8, 0, 0, tzinfo=UTC)


class FakeTime:
    """Manually advanced time source."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeClock:
    """Clock whose ticks are delivered by calling tick()."""

    def __init__(self, time: FakeTime) -> None:
        self.time = time
        self.subscriptions = 0
        self.closed = 0
        self._queue: asyncio.Queue[None] = asyncio.Queue()

    def now(self) -> datetime:
        return self.time()

    async def ticks(self, interval_seconds: float):
        self.subscriptions += 1
        count = 0
        try:
            while True:
                await self._queue.get()
                count += 1
                yield count
        finally:
            self.closed += 1

    def tick(self, seconds: float = 1.0) -> None:
        self.time.advance(seconds)
        self._queue.put_nowait(None)


class FakeLocation:
    """Location provider fed by push()."""

    def __init__(
        self,
        fix: GeoPoint | None = None,
        fix_error: Exception | None = None,
        stream_error: Exception | None = None,
    ) -> None:
        self.fix = fix
        self.fix_error = fix_error
        self.stream_error = stream_error
        self.fix_requests = 0
        self.subscriptions = 0
        self.closed = 0
        self.min_distance: float | None = None
        self._queue: asyncio.Queue[GeoPoint | Exception] = asyncio.Queue()

    async def request_permission(self) -> bool:
        return True

    async def get_current_position(self, timeout: float) -> GeoPoint:
        self.fix_requests += 1
        if self.fix_error is not None:
            raise self.fix_error
        if self.fix is None:
            await asyncio.sleep(timeout * 10)
        assert self.fix is not None
        return self.fix

    async def stream_positions(self, min_distance_meters: float):
        self.subscriptions += 1
        self.min_distance = min_distance_meters
        if self.stream_error is not None:
            raise self.stream_error
        try:
            while True:
                item = await self._queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed += 1

    def push(self, item: GeoPoint | Exception) -> None:
        self._queue.put_nowait(item)

    def distance_between(self, p1: GeoPoint, p2: GeoPoint) -> float:
        return distance_between(p1, p2)


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def point(lat: float, lon: float) -> GeoPoint:
    return GeoPoint(latitude=lat, longitude=lon)


@pytest.fixture
def fake_time():
    """Manually advanced time starting at START."""
    return FakeTime()


@pytest.fixture
def tracker(fake_time):
    """Tracker driven directly, without location or clock subscriptions."""
    return SessionTracker(now=fake_time)


@pytest.fixture
def auto_stop_tracker(fake_time):
    """Tracker with auto-stop enabled."""
    return SessionTracker(now=fake_time, auto_stop_enabled=True, options=TrackingOptions())


@pytest.fixture
def square_route():
    """Roughly 111 m sides walked around a square back to the start."""
    return [
        point(41.0, 29.0),
        point(41.001, 29.0),
        point(41.001, 29.001),
        point(41.0, 29.001),
        point(41.0, 29.0),
    ]
