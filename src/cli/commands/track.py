"""Track command: replay a recorded GPX file as a live run."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path

import typer
from rich.live import Live

from src.cli import display
from src.shared.config import get_settings
from src.shared.models import GeoPoint, RunStatus, RunSummary
from src.shared.preferences import JsonPreferenceStore, UserPreferences
from src.shared.tracking import (
    IntervalClock,
    ReplayLocationProvider,
    SessionTracker,
    TrackFileError,
    TrackingOptions,
    load_gpx_track,
)

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 0.1


class PauseSchedule:
    """Pause a replayed run once, at a given running time, for a given duration."""

    def __init__(self, at_seconds: float, for_seconds: float) -> None:
        self.at = timedelta(seconds=at_seconds)
        self.duration = timedelta(seconds=for_seconds)
        self._paused_at: datetime | None = None
        self._done = False

    def apply(self, tracker: SessionTracker, now: datetime) -> None:
        """Pause or resume the tracker if the schedule calls for it."""
        if self._done:
            return
        if self._paused_at is None:
            if tracker.status is RunStatus.RUNNING and tracker.elapsed >= self.at:
                logger.info(f"Pausing replay at {tracker.elapsed} for {self.duration}")
                tracker.pause()
                self._paused_at = now
        elif now - self._paused_at >= self.duration:
            tracker.resume()
            self._done = True


async def replay_run(
    points: Sequence[GeoPoint],
    options: TrackingOptions,
    use_metric: bool = True,
    auto_stop_enabled: bool = False,
    speed: float = 1.0,
    sample_interval_seconds: float = 1.0,
    pause: PauseSchedule | None = None,
    live: Live | None = None,
) -> RunSummary | None:
    """
    Run the tracker against a recorded track.

    The run stops by itself when auto-stop triggers, otherwise when the
    replay runs out of points. An optional pause schedule pauses and resumes
    the run in between.

    Returns:
        Summary of the run, or None if location permission was refused
    """
    clock = IntervalClock(speed=speed)
    provider = ReplayLocationProvider(
        points,
        sample_interval_seconds=sample_interval_seconds,
        speed=speed,
    )
    if not await provider.request_permission():
        display.display_error("Location permission is required")
        return None

    summaries: list[RunSummary] = []
    tracker = SessionTracker(
        location=provider,
        clock=clock,
        options=options,
        use_metric=use_metric,
        auto_stop_enabled=auto_stop_enabled,
        on_notice=display.display_notice,
        on_summary=summaries.append,
    )

    tracker.start()
    try:
        while tracker.is_active and not provider.finished.is_set():
            if pause is not None:
                pause.apply(tracker, clock.now())
            if live is not None:
                live.update(display.render_status(tracker))
            await asyncio.sleep(REFRESH_SECONDS)
        tracker.stop()
    finally:
        tracker.close()

    return summaries[0] if summaries else None


def track(
    gpx_file: Path = typer.Argument(..., help="Recorded GPX track to replay", dir_okay=False),
    speed: float = typer.Option(1.0, "--speed", "-s", min=0.01, help="Replay speed multiplier"),
    interval: float = typer.Option(
        1.0, "--interval", "-i", min=0.01, help="Seconds between recorded points"
    ),
    auto_stop: bool | None = typer.Option(
        None,
        "--auto-stop/--no-auto-stop",
        help="Stop when returning to start (default: stored preference)",
    ),
    metric: bool | None = typer.Option(
        None,
        "--metric/--imperial",
        help="Units for this run (default: stored preference)",
    ),
    pause_at: float | None = typer.Option(
        None, "--pause-at", min=0, help="Pause after this many seconds of running time"
    ),
    pause_for: float = typer.Option(
        30.0, "--pause-for", min=0, help="Length of the --pause-at pause in seconds"
    ),
) -> None:
    """
    Replay a GPX track through the run tracker.

    Examples:
        runtrack track morning.gpx
        runtrack track loop.gpx --speed 30 --auto-stop
        runtrack track long.gpx --speed 60 --pause-at 600 --pause-for 120
    """
    settings = get_settings()

    try:
        points = load_gpx_track(gpx_file)
    except TrackFileError as e:
        display.display_error(str(e))
        raise typer.Exit(1)

    prefs = UserPreferences.load(
        JsonPreferenceStore(settings.preferences_path),
        settings.country_code(),
    )
    use_metric = prefs.use_metric if metric is None else metric
    auto_stop_enabled = prefs.auto_stop_enabled if auto_stop is None else auto_stop

    display.display_info(f"Replaying {len(points)} points from {gpx_file.name} at {speed:g}x")
    logger.info(f"Replay of {gpx_file} (metric={use_metric}, auto_stop={auto_stop_enabled})")

    with Live(console=display.console, refresh_per_second=10, transient=True) as live:
        summary = asyncio.run(
            replay_run(
                points,
                settings.tracking_options(),
                use_metric=use_metric,
                auto_stop_enabled=auto_stop_enabled,
                speed=speed,
                sample_interval_seconds=interval,
                pause=PauseSchedule(pause_at, pause_for) if pause_at is not None else None,
                live=live,
            )
        )

    if summary is None:
        raise typer.Exit(1)
    display.display_summary(summary)
