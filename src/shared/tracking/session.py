"""Run session state machine and metric accumulation."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field

from ..models import GeoPoint, Notice, RouteSample, RunStatus, RunSummary, UnitSystem
from .errors import LocationError, LocationPermissionDenied
from .geo import distance_between, is_within
from .providers import Clock, LocationProvider

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[Notice], None]
SummaryCallback = Callable[[RunSummary], None]


class TrackingOptions(BaseModel):
    """Tunable constants of a tracked run."""

    tick_interval_seconds: float = Field(
        default=1.0,
        description="Seconds between clock ticks",
        gt=0,
    )
    fix_timeout_seconds: float = Field(
        default=5.0,
        description="How long to wait for the initial position fix",
        gt=0,
    )
    distance_filter_meters: float = Field(
        default=10.0,
        description="Minimum movement between streamed positions",
        ge=0,
    )
    auto_stop_radius_meters: float = Field(
        default=20.0,
        description="Distance from the start point that counts as returned",
        gt=0,
    )
    auto_stop_min_elapsed_seconds: float = Field(
        default=60.0,
        description="Running time required before auto-stop may trigger",
        ge=0,
    )

    model_config = {"frozen": True}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _log_task_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Subscription {task.get_name()} failed: {exc!r}", exc_info=exc)


class SessionTracker:
    """
    Tracks a single run: Idle -> Running <-> Paused -> Stopped -> Idle.

    Position samples and clock ticks come either from the injected location
    provider and clock (subscribed on start(), cancelled on stop()) or from
    direct calls to on_position_sample() and on_tick(). Every public
    operation is a no-op when called in a state where it does not apply.

    While paused the position subscription stays live: samples keep extending
    the route and the distance, only the running time is frozen. Elapsed is
    always measured from the start time, so the first tick after resume
    includes the pause.
    """

    def __init__(
        self,
        location: LocationProvider | None = None,
        clock: Clock | None = None,
        options: TrackingOptions | None = None,
        use_metric: bool = True,
        auto_stop_enabled: bool = False,
        now: Callable[[], datetime] | None = None,
        on_notice: NoticeCallback | None = None,
        on_summary: SummaryCallback | None = None,
    ) -> None:
        """
        Initialize the tracker.

        Args:
            location: Position source subscribed while a run is active
            clock: Tick source subscribed while a run is active
            options: Tracking constants
            use_metric: Unit preference recorded in the summary
            auto_stop_enabled: Stop automatically on returning to the start
            now: Time source; defaults to the clock's, else UTC wall time
            on_notice: Receives recoverable location notices
            on_summary: Receives the summary when a run stops
        """
        self.options = options or TrackingOptions()
        self.use_metric = use_metric
        self.auto_stop_enabled = auto_stop_enabled
        self.on_notice = on_notice
        self.on_summary = on_summary

        self._location = location
        self._clock = clock
        if now is None:
            now = clock.now if clock is not None else _utcnow
        self._now = now
        self._distance = location.distance_between if location is not None else distance_between
        self._tasks: list[asyncio.Task[None]] = []
        self._reset()

    def _reset(self) -> None:
        self._status = RunStatus.IDLE
        self._start_time: datetime | None = None
        self._samples: list[RouteSample] = []
        self._distance_meters = 0.0
        self._elapsed = timedelta(0)

    # State

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        """True while running or paused."""
        return self._status in (RunStatus.RUNNING, RunStatus.PAUSED)

    @property
    def start_time(self) -> datetime | None:
        return self._start_time

    @property
    def samples(self) -> tuple[RouteSample, ...]:
        return tuple(self._samples)

    @property
    def route(self) -> tuple[GeoPoint, ...]:
        return tuple(sample.point for sample in self._samples)

    @property
    def start_position(self) -> GeoPoint | None:
        """First position of the run, once known."""
        return self._samples[0].point if self._samples else None

    @property
    def current_position(self) -> GeoPoint | None:
        """Most recent position of the run."""
        return self._samples[-1].point if self._samples else None

    @property
    def distance_meters(self) -> float:
        return self._distance_meters

    @property
    def elapsed(self) -> timedelta:
        return self._elapsed

    @property
    def unit_system(self) -> UnitSystem:
        return UnitSystem.from_flag(self.use_metric)

    # Transitions

    def start(self) -> None:
        """
        Begin a new run.

        Resets all measurements, then subscribes to the clock and, in
        parallel, requests an initial fix followed by the position stream.
        A failed fix is reported through on_notice; the run keeps going.
        """
        if self.is_active:
            logger.debug(f"start() ignored while {self._status.value}")
            return

        self._reset()
        self._status = RunStatus.RUNNING
        self._start_time = self._now()
        logger.info(f"Run started at {self._start_time.isoformat()}")
        self._subscribe()

    def pause(self) -> None:
        """Freeze the running time. Position samples are still recorded."""
        if self._status is not RunStatus.RUNNING:
            logger.debug(f"pause() ignored while {self._status.value}")
            return

        self._elapsed = self._running_time(self._now())
        self._status = RunStatus.PAUSED
        logger.info(f"Run paused at {self._elapsed}")

    def resume(self) -> None:
        """Continue a paused run; the next tick counts from the start time again."""
        if self._status is not RunStatus.PAUSED:
            logger.debug(f"resume() ignored while {self._status.value}")
            return

        self._status = RunStatus.RUNNING
        logger.info("Run resumed")

    def toggle_pause(self) -> None:
        """Pause a running run or resume a paused one."""
        if self._status is RunStatus.PAUSED:
            self.resume()
        else:
            self.pause()

    def stop(self) -> RunSummary | None:
        """
        Finish the run.

        Cancels the clock and position subscriptions, emits the summary to
        on_summary and returns the tracker to Idle.

        Returns:
            The run summary, or None if no run was active
        """
        if not self.is_active:
            logger.debug(f"stop() ignored while {self._status.value}")
            return None

        self._cancel_subscriptions()
        now = self._now()
        if self._status is RunStatus.RUNNING:
            self._elapsed = self._running_time(now)

        summary = RunSummary(
            distance_meters=self._distance_meters,
            elapsed=self._elapsed,
            route=self.route,
            use_metric=self.use_metric,
            started_at=self._start_time,
            stopped_at=now,
        )
        self._status = RunStatus.STOPPED
        logger.info(
            f"Run stopped: {summary.distance_meters:.1f}m in {summary.elapsed} "
            f"({len(summary.route)} points)"
        )

        try:
            if self.on_summary is not None:
                self.on_summary(summary)
        finally:
            self._reset()
        return summary

    def close(self) -> None:
        """Tear down without emitting a summary."""
        self._cancel_subscriptions()
        if self.is_active:
            logger.info("Run discarded")
        self._reset()

    # Event handlers

    def on_position_sample(self, point: GeoPoint) -> None:
        """Append a position and add the distance from the previous one."""
        if not self.is_active:
            logger.debug("Position sample ignored: no active run")
            return

        previous = self.current_position
        if previous is not None:
            self._distance_meters += self._distance(previous, point)
        self._samples.append(RouteSample(point=point, recorded_at=self._now()))
        logger.debug(f"Sample {len(self._samples)} at {point}, total {self._distance_meters:.1f}m")

    def on_tick(self) -> None:
        """Advance the running time and evaluate auto-stop."""
        if self._status is not RunStatus.RUNNING:
            return

        self._elapsed = self._running_time(self._now())
        if self._should_auto_stop():
            logger.info("Returned to start, stopping run")
            self.stop()

    # Internals

    def _running_time(self, now: datetime) -> timedelta:
        if self._start_time is None:
            return self._elapsed
        return max(now - self._start_time, self._elapsed)

    def _should_auto_stop(self) -> bool:
        if not self.auto_stop_enabled:
            return False
        if self._elapsed.total_seconds() < self.options.auto_stop_min_elapsed_seconds:
            return False
        start, current = self.start_position, self.current_position
        if start is None or current is None:
            return False
        return is_within(current, start, self.options.auto_stop_radius_meters, self._distance)

    def _notify(self, notice: Notice) -> None:
        if self.on_notice is not None:
            self.on_notice(notice)

    def _subscribe(self) -> None:
        if self._location is None and self._clock is None:
            return

        loop = asyncio.get_running_loop()
        if self._clock is not None:
            self._tasks.append(loop.create_task(self._run_clock(self._clock), name="run-clock"))
        if self._location is not None:
            self._tasks.append(
                loop.create_task(self._run_location(self._location), name="run-location")
            )
        for task in self._tasks:
            task.add_done_callback(_log_task_failure)

    def _cancel_subscriptions(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    async def _run_clock(self, clock: Clock) -> None:
        async for _ in clock.ticks(self.options.tick_interval_seconds):
            self.on_tick()

    async def _run_location(self, location: LocationProvider) -> None:
        timeout = self.options.fix_timeout_seconds
        try:
            point = await asyncio.wait_for(location.get_current_position(timeout), timeout)
        except LocationPermissionDenied as e:
            logger.warning(f"Location permission denied: {e}")
            self._notify(Notice.PERMISSION_DENIED)
            return
        except (LocationError, TimeoutError) as e:
            logger.warning(f"Initial fix failed: {e!r}")
            self._notify(Notice.NO_FIX)
        except Exception:
            logger.exception("Location provider failed during the initial fix")
            self._notify(Notice.NO_FIX)
        else:
            self.on_position_sample(point)

        try:
            async for point in location.stream_positions(self.options.distance_filter_meters):
                self.on_position_sample(point)
        except LocationPermissionDenied as e:
            logger.warning(f"Location permission revoked: {e}")
            self._notify(Notice.PERMISSION_DENIED)
        except LocationError as e:
            logger.warning(f"Position stream failed: {e}")
            self._notify(Notice.STREAM_LOST)
        except Exception:
            logger.exception("Location provider failed while streaming")
            self._notify(Notice.STREAM_LOST)
