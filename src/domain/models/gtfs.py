from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

WEEKDAY_FIELDS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class ExceptionType(int, Enum):
    """GTFS calendar_dates.txt exception_type values."""

    ADDED = 1
    REMOVED = 2


@dataclass(frozen=True, slots=True)
class TransitRoute:
    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    color: str | None = None  # hex without '#'
    text_color: str | None = None  # hex without '#'


@dataclass(frozen=True, slots=True)
class Trip:
    trip_id: str
    route_id: str
    service_id: str
    headsign: str | None = None
    direction_id: int | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    """Scheduled call of one trip at one stop.

    Times are seconds since service day midnight (GTFS time semantics; may exceed 24h).
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_s: int | None = None
    departure_s: int | None = None

    @property
    def arrival_or_departure_s(self) -> int | None:
        return self.arrival_s if self.arrival_s is not None else self.departure_s

    @property
    def departure_or_arrival_s(self) -> int | None:
        return self.departure_s if self.departure_s is not None else self.arrival_s


@dataclass(frozen=True, slots=True)
class CalendarRule:
    """One calendar.txt row: a weekly pattern valid within [start_date, end_date]."""

    service_id: str
    start_date: str  # YYYYMMDD
    end_date: str  # YYYYMMDD
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False

    def covers(self, date_key: str) -> bool:
        return self.start_date <= date_key <= self.end_date

    def runs_on(self, weekday_field: str) -> bool:
        return bool(getattr(self, weekday_field))


@dataclass(frozen=True, slots=True)
class CalendarException:
    service_id: str
    date: str  # YYYYMMDD
    exception_type: ExceptionType
