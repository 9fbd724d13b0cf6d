from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint


@dataclass(frozen=True, slots=True)
class Stop:
    id: str
    name: str
    location: GeoPoint

    @property
    def lat(self) -> float:
        return self.location.lat

    @property
    def lon(self) -> float:
        return self.location.lon


@dataclass(frozen=True, slots=True)
class NearbyStop:
    """A stop ranked against a query point, with an approximate display distance."""

    stop: Stop
    distance_km: float
