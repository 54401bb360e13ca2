"""Finished run snapshot."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from .route import GeoPoint


class RunSummary(BaseModel):
    """
    Immutable snapshot of a run, produced when the run stops.

    Distances are in meters. The route is a copy and has no further
    relationship to the tracker that produced it.
    """

    distance_meters: float = Field(
        description="Total geodesic distance in meters",
        ge=0,
    )
    elapsed: timedelta = Field(
        description="Running time, excluding pauses",
    )
    route: tuple[GeoPoint, ...] = Field(
        default=(),
        description="Recorded route in chronological order",
    )
    use_metric: bool = Field(
        default=True,
        description="Unit preference in effect when the run stopped",
    )
    started_at: datetime | None = Field(
        default=None,
        description="When the run was started",
    )
    stopped_at: datetime | None = Field(
        default=None,
        description="When the run was stopped",
    )

    model_config = {"frozen": True}

    @property
    def start_point(self) -> GeoPoint | None:
        """First recorded position, if any."""
        return self.route[0] if self.route else None

    @property
    def end_point(self) -> GeoPoint | None:
        """Last recorded position, if any."""
        return self.route[-1] if self.route else None

    @property
    def distance_km(self) -> float:
        """Total distance in kilometers."""
        return self.distance_meters / 1000

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds of running time."""
        return int(self.elapsed.total_seconds())
