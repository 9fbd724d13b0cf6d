from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from src.app.ports.output import IScheduleRepository
from src.domain.algorithms.gtfs_time import date_key
from src.domain.algorithms.service_calendar import resolve_active_services

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceCalendarResolver:
    """Resolves which services run on a date, fresh from the store on every call."""

    schedule: IScheduleRepository

    def active_services(self, day: date) -> frozenset[str]:
        key = date_key(day)
        calendars = self.schedule.calendars_in_effect(key)
        exceptions = self.schedule.calendar_exceptions_on(key)
        services = resolve_active_services(day, calendars, exceptions)
        logger.debug(
            "Active services on %s: %d (from %d calendar rows, %d exceptions)",
            key,
            len(services),
            len(calendars),
            len(exceptions),
        )
        return services
