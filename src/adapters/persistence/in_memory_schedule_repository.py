from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet

from src.app.ports.output import IScheduleRepository
from src.domain.models import (
    CalendarException,
    CalendarRule,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)


@dataclass(slots=True)
class InMemoryScheduleRepository(IScheduleRepository):
    """Schedule tables held in memory, indexed for the search query shapes.

    The snapshot is immutable once built; concurrent readers need no locking.
    """

    stops: tuple[Stop, ...] = ()
    routes: tuple[TransitRoute, ...] = ()
    trips: tuple[Trip, ...] = ()
    stop_times: tuple[StopTime, ...] = ()
    calendars: tuple[CalendarRule, ...] = ()
    calendar_exceptions: tuple[CalendarException, ...] = ()

    _stops_by_id: dict[str, Stop] = field(default_factory=dict, init=False, repr=False)
    _routes_by_id: dict[str, TransitRoute] = field(
        default_factory=dict, init=False, repr=False
    )
    _trips_by_id: dict[str, Trip] = field(default_factory=dict, init=False, repr=False)
    _by_trip: dict[str, tuple[StopTime, ...]] = field(
        default_factory=dict, init=False, repr=False
    )
    _departures_by_stop: dict[str, tuple[StopTime, ...]] = field(
        default_factory=dict, init=False, repr=False
    )
    _arrivals_by_stop: dict[str, tuple[StopTime, ...]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.stops = tuple(self.stops)
        self.routes = tuple(self.routes)
        self.trips = tuple(self.trips)
        self.stop_times = tuple(self.stop_times)
        self.calendars = tuple(self.calendars)
        self.calendar_exceptions = tuple(self.calendar_exceptions)

        self._stops_by_id = {s.id: s for s in self.stops}
        self._routes_by_id = {r.route_id: r for r in self.routes}
        self._trips_by_id = {t.trip_id: t for t in self.trips}

        by_trip: dict[str, list[StopTime]] = {}
        departures: dict[str, list[StopTime]] = {}
        arrivals: dict[str, list[StopTime]] = {}
        for st in self.stop_times:
            by_trip.setdefault(st.trip_id, []).append(st)
            if st.departure_s is not None:
                departures.setdefault(st.stop_id, []).append(st)
            if st.arrival_s is not None:
                arrivals.setdefault(st.stop_id, []).append(st)

        self._by_trip = {
            trip_id: tuple(sorted(entries, key=lambda st: st.stop_sequence))
            for trip_id, entries in by_trip.items()
        }
        self._departures_by_stop = {
            stop_id: tuple(
                sorted(
                    entries,
                    key=lambda st: (st.departure_s, st.trip_id, st.stop_sequence),
                )
            )
            for stop_id, entries in departures.items()
        }
        self._arrivals_by_stop = {
            stop_id: tuple(
                sorted(
                    entries,
                    key=lambda st: (-(st.arrival_s or 0), st.trip_id, st.stop_sequence),
                )
            )
            for stop_id, entries in arrivals.items()
        }

    def list_stops(self) -> tuple[Stop, ...]:
        return self.stops

    def get_stop(self, stop_id: str) -> Stop | None:
        return self._stops_by_id.get(stop_id)

    def get_route(self, route_id: str) -> TransitRoute | None:
        return self._routes_by_id.get(route_id)

    def get_trip(self, trip_id: str) -> Trip | None:
        return self._trips_by_id.get(trip_id)

    def calendars_in_effect(self, date_key: str) -> tuple[CalendarRule, ...]:
        return tuple(c for c in self.calendars if c.covers(date_key))

    def calendar_exceptions_on(self, date_key: str) -> tuple[CalendarException, ...]:
        return tuple(e for e in self.calendar_exceptions if e.date == date_key)

    def _runs_on(self, st: StopTime, service_ids: AbstractSet[str]) -> bool:
        trip = self._trips_by_id.get(st.trip_id)
        return trip is not None and trip.service_id in service_ids

    def stop_times_departing(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_before_s: int,
        not_after_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        if limit <= 0:
            return ()
        out: list[StopTime] = []
        for st in self._departures_by_stop.get(stop_id, ()):
            dep = st.departure_s
            if dep is None or dep < not_before_s:
                continue
            if not_after_s is not None and dep > not_after_s:
                break
            if not self._runs_on(st, service_ids):
                continue
            out.append(st)
            if len(out) >= limit:
                break
        return tuple(out)

    def stop_times_arriving(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_after_s: int,
        not_before_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        if limit <= 0:
            return ()
        out: list[StopTime] = []
        for st in self._arrivals_by_stop.get(stop_id, ()):
            arr = st.arrival_s
            if arr is None or arr > not_after_s:
                continue
            if not_before_s is not None and arr < not_before_s:
                break
            if not self._runs_on(st, service_ids):
                continue
            out.append(st)
            if len(out) >= limit:
                break
        return tuple(out)

    def stop_times_for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        return self._by_trip.get(trip_id, ())

