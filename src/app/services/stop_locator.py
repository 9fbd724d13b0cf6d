from __future__ import annotations

import logging
from dataclasses import dataclass

from src.app.ports.output import IScheduleRepository
from src.domain.algorithms.geo_utils import approx_km_from_planar, planar_detour_score
from src.domain.exceptions import StopNotFound
from src.domain.models import GeoPoint, NearbyStop, Stop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StopLocator:
    """Stop lookups by id, coordinate and name.

    Coordinate comparisons use squared degree deltas (a planar proxy) rather
    than geodesic distance. Only the relative order of stops matters here, and
    keeping the cheap proxy keeps selection outcomes stable. Linear scan over
    all stops; fine for a few thousand stops.
    """

    schedule: IScheduleRepository

    def get(self, stop_id: str) -> Stop:
        stop = self.schedule.get_stop(stop_id)
        if stop is None:
            raise StopNotFound(f"Unknown stop: {stop_id}")
        return stop

    def nearest(self, point: GeoPoint) -> Stop:
        stops = self.schedule.list_stops()
        if not stops:
            raise StopNotFound("No stops available in the schedule")

        best = stops[0]
        best_d2 = point.planar_distance_sq(best.location)
        for stop in stops[1:]:
            d2 = point.planar_distance_sq(stop.location)
            # Strict comparison: on ties the earlier stop wins.
            if d2 < best_d2:
                best = stop
                best_d2 = d2
        return best

    def nearby(self, point: GeoPoint, *, limit: int = 10) -> list[NearbyStop]:
        scored = [
            (point.planar_distance_sq(stop.location), stop)
            for stop in self.schedule.list_stops()
        ]
        scored.sort(key=lambda x: x[0])
        return [
            NearbyStop(stop=stop, distance_km=approx_km_from_planar(d2))
            for d2, stop in scored[:limit]
        ]

    def search_by_name(self, text: str, *, limit: int = 10) -> list[Stop]:
        needle = text.strip().lower()
        if not needle:
            return []
        matches = [s for s in self.schedule.list_stops() if needle in s.name.lower()]
        matches.sort(key=lambda s: s.name)
        return matches[:limit]

    def transfer_candidates(
        self, origin: Stop, destination: Stop, *, limit: int
    ) -> list[Stop]:
        """The ``limit`` stops with the smallest origin->stop->destination detour."""

        scored = [
            (planar_detour_score(origin.location, stop.location, destination.location), stop)
            for stop in self.schedule.list_stops()
            if stop.id not in (origin.id, destination.id)
        ]
        scored.sort(key=lambda x: x[0])
        picked = [stop for _, stop in scored[:limit]]
        logger.debug(
            "Transfer candidates %s -> %s: %s",
            origin.id,
            destination.id,
            [s.id for s in picked],
        )
        return picked
