from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from src.app.ports.output import IScheduleRepository
from src.app.services.calendar_service import ServiceCalendarResolver
from src.app.services.routing_helpers import transit_line_for
from src.app.services.stop_locator import StopLocator
from src.domain.algorithms.gtfs_time import (
    seconds_since_midnight,
    service_datetime_from_seconds,
)
from src.domain.models import TimetableEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TimetableService:
    """Upcoming departures at a single stop for the service day of ``at``."""

    schedule: IScheduleRepository

    def departures(
        self, stop_id: str, at: datetime, *, limit: int = 30
    ) -> list[TimetableEntry]:
        stop = StopLocator(self.schedule).get(stop_id)
        day = at.date()
        services = ServiceCalendarResolver(self.schedule).active_services(day)
        if not services or limit <= 0:
            return []

        calls = self.schedule.stop_times_departing(
            stop.id,
            service_ids=services,
            not_before_s=seconds_since_midnight(at),
            limit=limit,
        )

        entries: list[TimetableEntry] = []
        for call in calls:
            trip = self.schedule.get_trip(call.trip_id)
            route = self.schedule.get_route(trip.route_id) if trip else None
            depart_s = call.departure_or_arrival_s
            if depart_s is None:
                continue
            entries.append(
                TimetableEntry(
                    trip_id=call.trip_id,
                    departure_at=service_datetime_from_seconds(day, depart_s, at.tzinfo),
                    arrival_at=(
                        service_datetime_from_seconds(day, call.arrival_s, at.tzinfo)
                        if call.arrival_s is not None
                        else None
                    ),
                    line=transit_line_for(route, trip.route_id if trip else None),
                    headsign=trip.headsign if trip else None,
                    direction_id=trip.direction_id if trip else None,
                )
            )
        logger.debug("Timetable for %s at %s: %d entries", stop.id, at, len(entries))
        return entries
