from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet

from src.app.ports.output import IScheduleRepository
from src.app.services.search_deadline import SearchDeadline
from src.app.services.trip_calls import TripCalls, next_call_at, previous_call_at
from src.domain.exceptions import InvalidSearchInput
from src.domain.models import DirectCandidate, SearchDirection

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DirectTripMatcher:
    """Finds single-trip journeys between two stops around a time anchor."""

    schedule: IScheduleRepository
    max_origin_candidates: int = 20

    def find_direct(
        self,
        origin_id: str,
        dest_id: str,
        *,
        anchor_s: int,
        services: AbstractSet[str],
        direction: SearchDirection,
        window_minutes: int,
        trip_calls: TripCalls | None = None,
        deadline: SearchDeadline | None = None,
    ) -> list[DirectCandidate]:
        if origin_id == dest_id:
            raise InvalidSearchInput("Origin and destination are the same stop")
        if not services:
            return []

        calls = trip_calls or TripCalls(self.schedule)
        if deadline is not None:
            deadline.check("direct search")

        if direction is SearchDirection.DEPART_AFTER:
            found = self._depart_after(
                origin_id, dest_id, anchor_s, services, window_minutes, calls, deadline
            )
        else:
            found = self._arrive_before(
                origin_id, dest_id, anchor_s, services, window_minutes, calls, deadline
            )

        logger.debug(
            "Direct %s -> %s (%s @ %ds): %d candidates",
            origin_id,
            dest_id,
            direction.value,
            anchor_s,
            len(found),
        )
        return found

    def _depart_after(
        self,
        origin_id: str,
        dest_id: str,
        anchor_s: int,
        services: AbstractSet[str],
        window_minutes: int,
        calls: TripCalls,
        deadline: SearchDeadline | None,
    ) -> list[DirectCandidate]:
        departures = self.schedule.stop_times_departing(
            origin_id,
            service_ids=services,
            not_before_s=anchor_s,
            not_after_s=anchor_s + window_minutes * 60,
            limit=self.max_origin_candidates,
        )

        out: list[DirectCandidate] = []
        seen_trips: set[str] = set()
        for dep in departures:
            if dep.trip_id in seen_trips:
                continue
            if deadline is not None:
                deadline.check("direct search")
            arr = next_call_at(
                calls.for_trip(dep.trip_id), dest_id, after_sequence=dep.stop_sequence
            )
            if arr is None:
                continue
            out.append(DirectCandidate(origin=dep, destination=arr))
            seen_trips.add(dep.trip_id)
        return out

    def _arrive_before(
        self,
        origin_id: str,
        dest_id: str,
        anchor_s: int,
        services: AbstractSet[str],
        window_minutes: int,
        calls: TripCalls,
        deadline: SearchDeadline | None,
    ) -> list[DirectCandidate]:
        arrivals = self.schedule.stop_times_arriving(
            dest_id,
            service_ids=services,
            not_after_s=anchor_s,
            not_before_s=anchor_s - window_minutes * 60,
            limit=self.max_origin_candidates,
        )

        out: list[DirectCandidate] = []
        seen_trips: set[str] = set()
        for arr in arrivals:
            if arr.trip_id in seen_trips:
                continue
            if deadline is not None:
                deadline.check("direct search")
            dep = previous_call_at(
                calls.for_trip(arr.trip_id), origin_id, before_sequence=arr.stop_sequence
            )
            if dep is None:
                continue
            dep_s = dep.departure_or_arrival_s
            # Departing after the requested arrival time cannot be right.
            if dep_s is None or dep_s > anchor_s:
                continue
            out.append(DirectCandidate(origin=dep, destination=arr))
            seen_trips.add(arr.trip_id)
        return out
