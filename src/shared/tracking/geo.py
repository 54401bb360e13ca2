"""Geodesic distance between positions."""

import math
from collections.abc import Callable, Iterable

from ..models import GeoPoint

EARTH_RADIUS_METERS = 6_371_008.8  # mean Earth radius


def distance_between(p1: GeoPoint, p2: GeoPoint) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Args:
        p1: First position
        p2: Second position

    Returns:
        Distance in meters
    """
    phi1 = math.radians(p1.latitude)
    phi2 = math.radians(p2.latitude)
    d_phi = math.radians(p2.latitude - p1.latitude)
    d_lambda = math.radians(p2.longitude - p1.longitude)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def is_within(
    point: GeoPoint,
    center: GeoPoint,
    radius_m: float,
    distance: Callable[[GeoPoint, GeoPoint], float] = distance_between,
) -> bool:
    """Check whether a point is strictly closer than radius_m to center."""
    return distance(center, point) < radius_m


def path_length(points: Iterable[GeoPoint]) -> float:
    """Sum of distances between consecutive points, in meters."""
    total = 0.0
    previous: GeoPoint | None = None
    for point in points:
        if previous is not None:
            total += distance_between(previous, point)
        previous = point
    return total
