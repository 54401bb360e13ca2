"""Tests for the tracker's clock and location subscriptions."""

import asyncio
from datetime import timedelta

import pytest

from conftest import FakeClock, FakeLocation, point, settle
from src.shared.models import Notice, RunStatus, RunSummary
from src.shared.tracking import (
    LocationPermissionDenied,
    PositionUnavailable,
    SessionTracker,
    TrackingOptions,
)

pytestmark = pytest.mark.asyncio


def make_tracker(fake_time, location, **kwargs):
    clock = FakeClock(fake_time)
    notices: list[Notice] = []
    summaries: list[RunSummary] = []
    tracker = SessionTracker(
        location=location,
        clock=clock,
        on_notice=notices.append,
        on_summary=summaries.append,
        **kwargs,
    )
    return tracker, clock, notices, summaries


async def test_fix_and_stream_feed_the_route(fake_time):
    """The initial fix starts the route and streamed samples extend it."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, clock, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()
    location.push(point(41.001, 29.0))
    location.push(point(41.002, 29.0))
    await settle()

    assert tracker.start_position == point(41.0, 29.0)
    assert len(tracker.route) == 3
    assert tracker.distance_meters == pytest.approx(222.4, abs=1.0)
    assert location.min_distance == TrackingOptions().distance_filter_meters
    assert notices == []
    tracker.close()


async def test_clock_ticks_advance_elapsed(fake_time):
    """Ticks from the clock subscription update elapsed."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, clock, _, _ = make_tracker(fake_time, location)

    tracker.start()
    for _ in range(3):
        clock.tick()
    await settle()

    assert clock.subscriptions == 1
    assert tracker.elapsed == timedelta(seconds=3)
    tracker.close()


async def test_clock_runs_without_fix(fake_time):
    """Ticks are processed while the fix is still pending."""
    location = FakeLocation(fix=None)
    tracker, clock, _, _ = make_tracker(
        fake_time, location, options=TrackingOptions(fix_timeout_seconds=10)
    )

    tracker.start()
    clock.tick(5)
    await settle()

    assert tracker.elapsed == timedelta(seconds=5)
    assert tracker.route == ()
    tracker.close()


async def test_fix_failure_notifies_and_keeps_running(fake_time):
    """A failed fix is a notice; the stream still delivers the first position."""
    location = FakeLocation(fix_error=PositionUnavailable("no satellites"))
    tracker, _, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()

    assert notices == [Notice.NO_FIX]
    assert tracker.status == RunStatus.RUNNING
    assert tracker.route == ()

    location.push(point(41.0, 29.0))
    await settle()
    assert tracker.start_position == point(41.0, 29.0)
    tracker.close()


async def test_fix_timeout_notifies(fake_time):
    """A fix that never resolves times out into a notice."""
    location = FakeLocation(fix=None)
    tracker, _, notices, _ = make_tracker(
        fake_time, location, options=TrackingOptions(fix_timeout_seconds=0.01)
    )

    tracker.start()
    await asyncio.sleep(0.05)
    await settle()

    assert notices == [Notice.NO_FIX]
    assert tracker.status == RunStatus.RUNNING
    assert location.subscriptions == 1
    tracker.close()


async def test_permission_denied_notifies_without_stream(fake_time):
    """Refused permission is reported and no stream is opened."""
    location = FakeLocation(fix_error=LocationPermissionDenied("denied"))
    tracker, _, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()

    assert notices == [Notice.PERMISSION_DENIED]
    assert location.subscriptions == 0
    assert tracker.status == RunStatus.RUNNING
    tracker.close()


async def test_stream_failure_notifies(fake_time):
    """An error from the position stream ends it with a notice."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, _, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()
    location.push(PositionUnavailable("receiver lost"))
    await settle()

    assert notices == [Notice.STREAM_LOST]
    assert tracker.status == RunStatus.RUNNING
    assert len(tracker.route) == 1
    tracker.close()


async def test_unexpected_stream_error_notifies(fake_time, caplog):
    """A provider crash while streaming becomes a notice, not a silent stop."""
    location = FakeLocation(fix=point(41.0, 29.0), stream_error=RuntimeError("driver crash"))
    tracker, clock, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()

    assert notices == [Notice.STREAM_LOST]
    assert tracker.status == RunStatus.RUNNING
    assert "failed while streaming" in caplog.text

    clock.tick(5)
    await settle()
    assert tracker.elapsed == timedelta(seconds=5)
    tracker.close()


async def test_unexpected_fix_error_notifies(fake_time):
    """A provider crash during the fix is reported like a missing fix."""
    location = FakeLocation(fix_error=OSError("device unplugged"))
    tracker, _, notices, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()

    assert notices == [Notice.NO_FIX]
    assert location.subscriptions == 1
    tracker.close()


async def test_failed_subscription_is_logged(fake_time, caplog):
    """A subscription task that dies is logged instead of left unretrieved."""

    class BrokenClock(FakeClock):
        async def ticks(self, interval_seconds: float):
            raise RuntimeError("clock broke")
            yield

    location = FakeLocation(fix=point(41.0, 29.0))
    tracker = SessionTracker(location=location, clock=BrokenClock(fake_time))

    tracker.start()
    await settle()

    assert "run-clock failed" in caplog.text
    assert tracker.status == RunStatus.RUNNING
    tracker.close()


async def test_auto_stop_uses_provider_distance(fake_time):
    """Auto-stop measures the return to start with the provider's distance."""

    class NearLocation(FakeLocation):
        def distance_between(self, p1, p2):
            return 1.0

    location = NearLocation(fix=point(0.0, 0.0))
    tracker, clock, _, summaries = make_tracker(fake_time, location, auto_stop_enabled=True)

    tracker.start()
    await settle()
    location.push(point(0.01, 0.0))
    await settle()
    clock.tick(61)
    await settle()

    assert len(summaries) == 1
    assert summaries[0].distance_meters == pytest.approx(1.0)


async def test_stop_cancels_subscriptions(fake_time):
    """Nothing reaches a stopped tracker."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, clock, _, summaries = make_tracker(fake_time, location)

    tracker.start()
    await settle()
    summary = tracker.stop()
    await settle()

    location.push(point(41.001, 29.0))
    clock.tick(30)
    await settle()

    assert summaries == [summary]
    assert clock.closed == 1
    assert location.closed == 1
    assert tracker.route == ()
    assert tracker.elapsed == timedelta(0)


async def test_restart_does_not_duplicate_samples(fake_time):
    """A second run has exactly one live subscription of each kind."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, clock, _, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()
    tracker.stop()
    tracker.start()
    await settle()
    location.push(point(41.001, 29.0))
    await settle()

    assert location.subscriptions == 2
    assert location.closed == 1
    assert len(tracker.route) == 2
    assert tracker.distance_meters == pytest.approx(111.2, abs=1.0)
    tracker.close()


async def test_auto_stop_from_tick(fake_time):
    """Returning to the start triggers stop on the next tick after a minute."""
    location = FakeLocation(fix=point(0.0, 0.0))
    tracker, clock, _, summaries = make_tracker(fake_time, location, auto_stop_enabled=True)

    tracker.start()
    await settle()
    location.push(point(0.002, 0.0))
    location.push(point(0.00009, 0.0))
    await settle()
    clock.tick(61)
    await settle()

    assert len(summaries) == 1
    assert len(summaries[0].route) == 3
    assert tracker.status == RunStatus.IDLE
    assert clock.closed == 1
    assert location.closed == 1


async def test_samples_recorded_while_paused(fake_time):
    """The position subscription stays live during a pause."""
    location = FakeLocation(fix=point(41.0, 29.0))
    tracker, clock, _, _ = make_tracker(fake_time, location)

    tracker.start()
    await settle()
    tracker.pause()
    location.push(point(41.001, 29.0))
    clock.tick(10)
    await settle()

    assert len(tracker.route) == 2
    assert tracker.elapsed == timedelta(0)
    tracker.close()
