from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from src.app.ports.output import IScheduleRepository
from src.domain.models import StopTime, Trip


@dataclass(slots=True)
class TripCalls:
    """Per-search memo of trips and their stop sequences.

    Lives for one search only; the schedule is not assumed stable across searches.
    """

    schedule: IScheduleRepository
    _by_trip: dict[str, tuple[StopTime, ...]] = field(
        default_factory=dict, init=False, repr=False
    )
    _trips: dict[str, Trip | None] = field(default_factory=dict, init=False, repr=False)

    def for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        calls = self._by_trip.get(trip_id)
        if calls is None:
            calls = self.schedule.stop_times_for_trip(trip_id)
            self._by_trip[trip_id] = calls
        return calls

    def trip(self, trip_id: str) -> Trip | None:
        if trip_id not in self._trips:
            self._trips[trip_id] = self.schedule.get_trip(trip_id)
        return self._trips[trip_id]


def next_call_at(
    calls: Sequence[StopTime], stop_id: str, *, after_sequence: int
) -> StopTime | None:
    """First call at ``stop_id`` later in the trip than ``after_sequence`` that has a time.

    Matching is by stop_sequence, so trips that visit a stop twice are handled.
    """

    for call in calls:
        if call.stop_sequence <= after_sequence or call.stop_id != stop_id:
            continue
        if call.arrival_or_departure_s is not None:
            return call
    return None


def previous_call_at(
    calls: Sequence[StopTime], stop_id: str, *, before_sequence: int
) -> StopTime | None:
    """Last call at ``stop_id`` earlier in the trip than ``before_sequence`` that has a time."""

    for call in reversed(calls):
        if call.stop_sequence >= before_sequence or call.stop_id != stop_id:
            continue
        if call.departure_or_arrival_s is not None:
            return call
    return None
