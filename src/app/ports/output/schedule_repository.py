from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet

from src.domain.models import (
    CalendarException,
    CalendarRule,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)


class IScheduleRepository(ABC):
    """Read-only port onto a static transit schedule snapshot.

    Times are seconds since service-day midnight. Implementations raise
    ScheduleDataAccessError when the store cannot be read; they never return an
    empty result in place of a failure.
    """

    @abstractmethod
    def list_stops(self) -> tuple[Stop, ...]:
        """All stops, in stable store order."""

    @abstractmethod
    def get_stop(self, stop_id: str) -> Stop | None:
        raise NotImplementedError

    @abstractmethod
    def get_route(self, route_id: str) -> TransitRoute | None:
        raise NotImplementedError

    @abstractmethod
    def get_trip(self, trip_id: str) -> Trip | None:
        raise NotImplementedError

    @abstractmethod
    def calendars_in_effect(self, date_key: str) -> tuple[CalendarRule, ...]:
        """Calendar rows whose [start_date, end_date] contains ``date_key``."""

    @abstractmethod
    def calendar_exceptions_on(self, date_key: str) -> tuple[CalendarException, ...]:
        raise NotImplementedError

    @abstractmethod
    def stop_times_departing(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_before_s: int,
        not_after_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        """Calls at ``stop_id`` departing in the window, earliest first.

        Only trips whose service is in ``service_ids`` are returned. Ties are
        ordered by trip id, then stop sequence.
        """

    @abstractmethod
    def stop_times_arriving(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_after_s: int,
        not_before_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        """Calls at ``stop_id`` arriving in the window, latest first."""

    @abstractmethod
    def stop_times_for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        """Every call of a trip ordered by stop_sequence ascending."""
