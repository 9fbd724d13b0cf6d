from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Invalid latitude: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValueError(f"Invalid longitude: {self.lon}")

    def planar_distance_sq(self, other: GeoPoint) -> float:
        """Sum of squared degree deltas.

        Only meaningful for ordering nearby points; not a distance in any unit.
        """

        d_lat = self.lat - other.lat
        d_lon = self.lon - other.lon
        return d_lat * d_lat + d_lon * d_lon
