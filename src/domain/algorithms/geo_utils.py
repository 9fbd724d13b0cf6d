from __future__ import annotations

import math

from src.domain.models import GeoPoint

# Kilometres per degree of latitude; used only for rough display distances.
KM_PER_DEGREE = 111.32


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    r = 6371000.0
    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * r * math.asin(math.sqrt(s))


def planar_detour_score(origin: GeoPoint, via: GeoPoint, destination: GeoPoint) -> float:
    """Ranking proxy for how far ``via`` lies off the origin-destination line.

    Sum of the two planar legs (square roots of squared degree deltas). Degrees
    of longitude are not scaled by latitude: comparisons stay cheap and only
    relative order matters.
    """

    return math.sqrt(origin.planar_distance_sq(via)) + math.sqrt(
        via.planar_distance_sq(destination)
    )


def approx_km_from_planar(distance_sq: float) -> float:
    """Rough kilometres for a squared degree delta, for display only."""

    return math.sqrt(distance_sq) * KM_PER_DEGREE
