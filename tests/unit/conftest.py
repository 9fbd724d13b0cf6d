from __future__ import annotations

from typing import Callable, Sequence

import pytest

from src.adapters.persistence.in_memory_schedule_repository import (
    InMemoryScheduleRepository,
)
from src.domain.algorithms.gtfs_time import parse_optional_gtfs_time
from src.domain.models import (
    CalendarException,
    CalendarRule,
    GeoPoint,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)

# S1 and S2 are ~11 km apart; T and U lie between them, FAR does not.
STOP_COORDS: dict[str, tuple[float, float]] = {
    "S1": (28.00, -15.40),
    "T": (28.05, -15.40),
    "U": (28.05, -15.38),
    "S2": (28.10, -15.40),
    "FAR": (29.00, -14.00),
}

# trip_id -> [(stop_id, arrival, departure), ...] in stop_sequence order.
TripPlan = dict[str, Sequence[tuple[str, str | None, str | None]]]


def weekday_calendar(service_id: str = "WK") -> CalendarRule:
    return CalendarRule(
        service_id=service_id,
        start_date="20260101",
        end_date="20261231",
        monday=True,
        tuesday=True,
        wednesday=True,
        thursday=True,
        friday=True,
    )


def _build(
    plan: TripPlan,
    *,
    trip_routes: dict[str, str] | None = None,
    stops: Sequence[Stop] | None = None,
    calendars: Sequence[CalendarRule] | None = None,
    exceptions: Sequence[CalendarException] = (),
    service_id: str = "WK",
) -> InMemoryScheduleRepository:
    trip_routes = trip_routes or {}
    stop_times: list[StopTime] = []
    for trip_id, calls in plan.items():
        for seq, (stop_id, arr, dep) in enumerate(calls, start=1):
            stop_times.append(
                StopTime(
                    trip_id=trip_id,
                    stop_id=stop_id,
                    stop_sequence=seq,
                    arrival_s=parse_optional_gtfs_time(arr),
                    departure_s=parse_optional_gtfs_time(dep),
                )
            )

    if stops is None:
        stops = [
            Stop(id=stop_id, name=f"Stop {stop_id}", location=GeoPoint(lat, lon))
            for stop_id, (lat, lon) in STOP_COORDS.items()
        ]

    route_ids = {trip_routes.get(t, f"R-{t}") for t in plan}
    return InMemoryScheduleRepository(
        stops=tuple(stops),
        routes=tuple(
            TransitRoute(route_id=r, short_name=r, color="0055AA")
            for r in sorted(route_ids)
        ),
        trips=tuple(
            Trip(
                trip_id=t,
                route_id=trip_routes.get(t, f"R-{t}"),
                service_id=service_id,
                headsign=f"To {plan[t][-1][0]}",
                direction_id=0,
            )
            for t in plan
        ),
        stop_times=tuple(stop_times),
        calendars=tuple(calendars if calendars is not None else [weekday_calendar()]),
        calendar_exceptions=tuple(exceptions),
    )


@pytest.fixture
def make_schedule() -> Callable[..., InMemoryScheduleRepository]:
    return _build


@pytest.fixture
def weekday_services() -> frozenset[str]:
    return frozenset({"WK"})
