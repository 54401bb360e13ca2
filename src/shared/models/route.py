"""Position data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    latitude: float = Field(description="Latitude in degrees", ge=-90, le=90)
    longitude: float = Field(description="Longitude in degrees", ge=-180, le=180)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"


class RouteSample(BaseModel):
    """A position recorded during a run, with the moment it was recorded."""

    point: GeoPoint = Field(description="Recorded position")
    recorded_at: datetime = Field(description="When the sample was appended")

    model_config = {"frozen": True}
