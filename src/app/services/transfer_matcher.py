from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import AbstractSet, Sequence

from src.app.ports.output import IScheduleRepository
from src.app.services.search_deadline import SearchDeadline
from src.app.services.trip_calls import TripCalls, next_call_at, previous_call_at
from src.domain.exceptions import InvalidSearchInput
from src.domain.models import SearchDirection, StopTime, TransferCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _TransferQuery:
    origin_id: str
    dest_id: str
    anchor_s: int
    services: AbstractSet[str]
    min_wait_s: int
    max_wait_s: int
    per_stop_limit: int
    trip_calls: TripCalls
    deadline: SearchDeadline | None


@dataclass(slots=True)
class TransferMatcher:
    """Searches two-trip journeys through a given set of transfer stops.

    Depart-after walks forward: origin departures, arrival at the transfer
    stop, a different trip leaving within the wait window, then the
    destination. Arrive-before walks the same chain backwards from destination
    arrivals. Each stage fetches a bounded number of rows.
    """

    schedule: IScheduleRepository
    max_origin_candidates: int = 20
    skip_same_route: bool = True
    workers: int = 1

    def find_transfer(
        self,
        origin_id: str,
        dest_id: str,
        *,
        anchor_s: int,
        services: AbstractSet[str],
        direction: SearchDirection,
        transfer_stop_ids: Sequence[str],
        min_wait_minutes: int,
        max_wait_minutes: int,
        max_candidates_per_stop: int,
        window_minutes: int,
        trip_calls: TripCalls | None = None,
        deadline: SearchDeadline | None = None,
    ) -> list[TransferCandidate]:
        if origin_id == dest_id:
            raise InvalidSearchInput("Origin and destination are the same stop")
        if min_wait_minutes > max_wait_minutes:
            raise ValueError("min_wait_minutes must not exceed max_wait_minutes")

        stop_ids = [s for s in transfer_stop_ids if s not in (origin_id, dest_id)]
        if not services or not stop_ids:
            return []

        query = _TransferQuery(
            origin_id=origin_id,
            dest_id=dest_id,
            anchor_s=anchor_s,
            services=services,
            min_wait_s=min_wait_minutes * 60,
            max_wait_s=max_wait_minutes * 60,
            per_stop_limit=max_candidates_per_stop,
            trip_calls=trip_calls or TripCalls(self.schedule),
            deadline=deadline,
        )

        if deadline is not None:
            deadline.check("transfer search")

        if direction is SearchDirection.DEPART_AFTER:
            first_legs = self.schedule.stop_times_departing(
                origin_id,
                service_ids=services,
                not_before_s=anchor_s,
                not_after_s=anchor_s + window_minutes * 60,
                limit=self.max_origin_candidates,
            )

            def via(stop_id: str) -> list[TransferCandidate]:
                return self._forward_via(query, stop_id, first_legs)

        else:
            last_legs = self.schedule.stop_times_arriving(
                dest_id,
                service_ids=services,
                not_after_s=anchor_s,
                not_before_s=anchor_s - window_minutes * 60,
                limit=self.max_origin_candidates,
            )

            def via(stop_id: str) -> list[TransferCandidate]:
                return self._backward_via(query, stop_id, last_legs)

        if self.workers > 1 and len(stop_ids) > 1:
            with ThreadPoolExecutor(
                max_workers=min(self.workers, len(stop_ids)),
                thread_name_prefix="transfer-search",
            ) as pool:
                # map() yields in submission order, keeping results deterministic.
                per_stop = list(pool.map(via, stop_ids))
        else:
            per_stop = [via(stop_id) for stop_id in stop_ids]

        out = [c for chunk in per_stop for c in chunk]
        logger.debug(
            "Transfer %s -> %s (%s @ %ds) via %d stops: %d candidates",
            origin_id,
            dest_id,
            direction.value,
            anchor_s,
            len(stop_ids),
            len(out),
        )
        return out

    def _same_route(self, calls: TripCalls, trip_a: str, trip_b: str) -> bool:
        if not self.skip_same_route:
            return False
        a = calls.trip(trip_a)
        b = calls.trip(trip_b)
        return a is not None and b is not None and a.route_id == b.route_id

    def _forward_via(
        self, q: _TransferQuery, stop_id: str, first_legs: Sequence[StopTime]
    ) -> list[TransferCandidate]:
        if q.deadline is not None:
            q.deadline.check(f"transfer search via {stop_id}")

        out: list[TransferCandidate] = []
        seen: set[tuple[str, str]] = set()
        for origin_dep in first_legs:
            transfer_arr = next_call_at(
                q.trip_calls.for_trip(origin_dep.trip_id),
                stop_id,
                after_sequence=origin_dep.stop_sequence,
            )
            if transfer_arr is None:
                continue
            arrived_s = transfer_arr.arrival_or_departure_s
            if arrived_s is None:
                continue

            onward = self.schedule.stop_times_departing(
                stop_id,
                service_ids=q.services,
                not_before_s=arrived_s + q.min_wait_s,
                not_after_s=arrived_s + q.max_wait_s,
                limit=q.per_stop_limit,
            )
            for transfer_dep in onward:
                pair = (origin_dep.trip_id, transfer_dep.trip_id)
                if transfer_dep.trip_id == origin_dep.trip_id or pair in seen:
                    continue
                if self._same_route(q.trip_calls, *pair):
                    continue
                dest_arr = next_call_at(
                    q.trip_calls.for_trip(transfer_dep.trip_id),
                    q.dest_id,
                    after_sequence=transfer_dep.stop_sequence,
                )
                if dest_arr is None:
                    continue
                seen.add(pair)
                out.append(
                    TransferCandidate(
                        origin_departure=origin_dep,
                        transfer_arrival=transfer_arr,
                        transfer_departure=transfer_dep,
                        destination_arrival=dest_arr,
                    )
                )
        return out

    def _backward_via(
        self, q: _TransferQuery, stop_id: str, last_legs: Sequence[StopTime]
    ) -> list[TransferCandidate]:
        if q.deadline is not None:
            q.deadline.check(f"transfer search via {stop_id}")

        out: list[TransferCandidate] = []
        seen: set[tuple[str, str]] = set()
        for dest_arr in last_legs:
            transfer_dep = previous_call_at(
                q.trip_calls.for_trip(dest_arr.trip_id),
                stop_id,
                before_sequence=dest_arr.stop_sequence,
            )
            if transfer_dep is None:
                continue
            leaving_s = transfer_dep.departure_or_arrival_s
            if leaving_s is None:
                continue

            feeders = self.schedule.stop_times_arriving(
                stop_id,
                service_ids=q.services,
                not_after_s=leaving_s - q.min_wait_s,
                not_before_s=leaving_s - q.max_wait_s,
                limit=q.per_stop_limit,
            )
            for transfer_arr in feeders:
                pair = (transfer_arr.trip_id, dest_arr.trip_id)
                if transfer_arr.trip_id == dest_arr.trip_id or pair in seen:
                    continue
                if self._same_route(q.trip_calls, *pair):
                    continue
                origin_dep = previous_call_at(
                    q.trip_calls.for_trip(transfer_arr.trip_id),
                    q.origin_id,
                    before_sequence=transfer_arr.stop_sequence,
                )
                if origin_dep is None:
                    continue
                origin_s = origin_dep.departure_or_arrival_s
                if origin_s is None or origin_s > q.anchor_s:
                    continue
                seen.add(pair)
                out.append(
                    TransferCandidate(
                        origin_departure=origin_dep,
                        transfer_arrival=transfer_arr,
                        transfer_departure=transfer_dep,
                        destination_arrival=dest_arr,
                    )
                )
        return out
