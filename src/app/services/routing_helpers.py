from __future__ import annotations

from datetime import date, datetime, tzinfo

from src.app.ports.output import IScheduleRepository
from src.app.services.trip_calls import TripCalls
from src.domain.algorithms.gtfs_time import service_datetime_from_seconds
from src.domain.exceptions import InvalidSearchInput, ScheduleDataAccessError
from src.domain.models import (
    DirectCandidate,
    Journey,
    JourneyCandidate,
    JourneyLeg,
    Stop,
    StopTime,
    TransitLine,
    TransitRoute,
)


def parse_request_time(raw: datetime | str | None, *, now: datetime) -> datetime:
    """Accept a datetime or an ISO-8601 string; None means ``now``."""

    if raw is None:
        return now
    if isinstance(raw, datetime):
        return raw
    text = raw.strip()
    if not text:
        return now
    # datetime.fromisoformat only learned the 'Z' suffix in Python 3.11.
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidSearchInput(f"Invalid time: {raw!r}") from exc


def transit_line_for(route: TransitRoute | None, route_id: str | None) -> TransitLine:
    if route is None:
        return TransitLine(route_id=route_id)
    return TransitLine(
        route_id=route.route_id,
        short_name=route.short_name,
        long_name=route.long_name,
        color=route.color,
        text_color=route.text_color,
    )


def _stop(schedule: IScheduleRepository, known: dict[str, Stop], stop_id: str) -> Stop:
    stop = known.get(stop_id)
    if stop is None:
        stop = schedule.get_stop(stop_id)
        if stop is None:
            raise ScheduleDataAccessError(
                f"stop_times reference unknown stop {stop_id!r}"
            )
        known[stop_id] = stop
    return stop


def _leg(
    schedule: IScheduleRepository,
    trip_calls: TripCalls,
    known: dict[str, Stop],
    board: StopTime,
    alight: StopTime,
    *,
    service_day: date,
    tz: tzinfo | None,
) -> JourneyLeg:
    trip = trip_calls.trip(board.trip_id)
    route = schedule.get_route(trip.route_id) if trip is not None else None
    depart_s = board.departure_or_arrival_s
    arrive_s = alight.arrival_or_departure_s
    if depart_s is None or arrive_s is None:
        raise ValueError(f"Leg on trip {board.trip_id} has no scheduled time")
    return JourneyLeg(
        origin=_stop(schedule, known, board.stop_id),
        destination=_stop(schedule, known, alight.stop_id),
        depart_at=service_datetime_from_seconds(service_day, depart_s, tz),
        arrive_at=service_datetime_from_seconds(service_day, arrive_s, tz),
        trip_id=board.trip_id,
        line=transit_line_for(route, trip.route_id if trip else None),
        headsign=trip.headsign if trip else None,
    )


def build_journey(
    candidate: JourneyCandidate,
    *,
    schedule: IScheduleRepository,
    trip_calls: TripCalls,
    endpoints: tuple[Stop, Stop],
    service_day: date,
    tz: tzinfo | None = None,
) -> Journey:
    """Turn a selected candidate into legs with stop, route and clock metadata."""

    known = {s.id: s for s in endpoints}
    if isinstance(candidate, DirectCandidate):
        leg = _leg(
            schedule,
            trip_calls,
            known,
            candidate.origin,
            candidate.destination,
            service_day=service_day,
            tz=tz,
        )
        return Journey(legs=(leg,), transfer_count=0)

    first = _leg(
        schedule,
        trip_calls,
        known,
        candidate.origin_departure,
        candidate.transfer_arrival,
        service_day=service_day,
        tz=tz,
    )
    second = _leg(
        schedule,
        trip_calls,
        known,
        candidate.transfer_departure,
        candidate.destination_arrival,
        service_day=service_day,
        tz=tz,
    )
    return Journey(
        legs=(first, second),
        transfer_count=1,
        transfer_wait_minutes=candidate.wait_s // 60,
    )
