from __future__ import annotations

import csv
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, Iterator

from src.adapters.persistence.in_memory_schedule_repository import (
    InMemoryScheduleRepository,
)
from src.app.ports.output import IScheduleRepository
from src.domain.algorithms.gtfs_time import parse_optional_gtfs_time
from src.domain.exceptions import ScheduleDataAccessError
from src.domain.models import (
    CalendarException,
    CalendarRule,
    ExceptionType,
    GeoPoint,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)

logger = logging.getLogger(__name__)


def _clean(row: dict[str, str], key: str) -> str | None:
    return (row.get(key) or "").strip() or None


def _required(row: dict[str, str], key: str) -> str:
    value = _clean(row, key)
    if value is None:
        raise ValueError(f"missing {key}")
    return value


def _flag(row: dict[str, str], key: str) -> bool:
    return (row.get(key) or "0").strip() == "1"


def _read_rows(path: Path) -> Iterator[dict[str, str]]:
    # utf-8-sig: many agencies publish feeds with a BOM.
    with path.open("r", encoding="utf-8-sig", newline="") as fp:
        yield from csv.DictReader(fp)


@dataclass(slots=True)
class LocalGtfsRepository(IScheduleRepository):
    """Loads a GTFS feed from a directory of .txt files, once per process.

    Env vars:
      - GTFS_PATH: path to directory containing stops.txt, routes.txt, trips.txt,
        stop_times.txt and calendar.txt / calendar_dates.txt
    """

    base_path: str | Path | None = None

    _snapshot: InMemoryScheduleRepository | None = field(
        default=None, init=False, repr=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def load(self) -> InMemoryScheduleRepository:
        with self._lock:
            if self._snapshot is None:
                base = self._base()
                try:
                    self._snapshot = self._load_snapshot(base)
                except (OSError, ValueError, csv.Error) as exc:
                    raise ScheduleDataAccessError(
                        f"Cannot load GTFS feed from {base}: {exc}"
                    ) from exc
                logger.info(
                    "Loaded GTFS feed from %s: %d stops, %d trips, %d stop_times",
                    base,
                    len(self._snapshot.stops),
                    len(self._snapshot.trips),
                    len(self._snapshot.stop_times),
                )
            return self._snapshot

    def _load_snapshot(self, base: Path) -> InMemoryScheduleRepository:
        stops: list[Stop] = []
        for row in _read_rows(base / "stops.txt"):
            stop_id = _clean(row, "stop_id")
            if not stop_id:
                continue
            stops.append(
                Stop(
                    id=stop_id,
                    name=_clean(row, "stop_name") or stop_id,
                    location=GeoPoint(
                        lat=float(_required(row, "stop_lat")),
                        lon=float(_required(row, "stop_lon")),
                    ),
                )
            )

        routes: list[TransitRoute] = []
        routes_path = base / "routes.txt"
        if routes_path.exists():
            for row in _read_rows(routes_path):
                route_id = _clean(row, "route_id")
                if not route_id:
                    continue
                routes.append(
                    TransitRoute(
                        route_id=route_id,
                        short_name=_clean(row, "route_short_name"),
                        long_name=_clean(row, "route_long_name"),
                        color=_clean(row, "route_color"),
                        text_color=_clean(row, "route_text_color"),
                    )
                )

        trips: list[Trip] = []
        for row in _read_rows(base / "trips.txt"):
            trip_id = _clean(row, "trip_id")
            route_id = _clean(row, "route_id")
            service_id = _clean(row, "service_id")
            if not trip_id or not route_id or not service_id:
                continue
            direction = _clean(row, "direction_id")
            trips.append(
                Trip(
                    trip_id=trip_id,
                    route_id=route_id,
                    service_id=service_id,
                    headsign=_clean(row, "trip_headsign"),
                    direction_id=int(direction) if direction is not None else None,
                )
            )

        stop_times: list[StopTime] = []
        for row in _read_rows(base / "stop_times.txt"):
            trip_id = _clean(row, "trip_id")
            stop_id = _clean(row, "stop_id")
            if not trip_id or not stop_id:
                continue
            stop_times.append(
                StopTime(
                    trip_id=trip_id,
                    stop_id=stop_id,
                    stop_sequence=int(row.get("stop_sequence") or 0),
                    arrival_s=parse_optional_gtfs_time(row.get("arrival_time")),
                    departure_s=parse_optional_gtfs_time(row.get("departure_time")),
                )
            )

        calendars: list[CalendarRule] = []
        calendar_path = base / "calendar.txt"
        if calendar_path.exists():
            for row in _read_rows(calendar_path):
                service_id = _clean(row, "service_id")
                if not service_id:
                    continue
                calendars.append(
                    CalendarRule(
                        service_id=service_id,
                        start_date=_required(row, "start_date"),
                        end_date=_required(row, "end_date"),
                        monday=_flag(row, "monday"),
                        tuesday=_flag(row, "tuesday"),
                        wednesday=_flag(row, "wednesday"),
                        thursday=_flag(row, "thursday"),
                        friday=_flag(row, "friday"),
                        saturday=_flag(row, "saturday"),
                        sunday=_flag(row, "sunday"),
                    )
                )

        exceptions: list[CalendarException] = []
        calendar_dates_path = base / "calendar_dates.txt"
        if calendar_dates_path.exists():
            for row in _read_rows(calendar_dates_path):
                service_id = _clean(row, "service_id")
                if not service_id:
                    continue
                exceptions.append(
                    CalendarException(
                        service_id=service_id,
                        date=_required(row, "date"),
                        exception_type=ExceptionType(
                            int(_required(row, "exception_type"))
                        ),
                    )
                )

        return InMemoryScheduleRepository(
            stops=tuple(stops),
            routes=tuple(routes),
            trips=tuple(trips),
            stop_times=tuple(stop_times),
            calendars=tuple(calendars),
            calendar_exceptions=tuple(exceptions),
        )

    def list_stops(self) -> tuple[Stop, ...]:
        return self.load().list_stops()

    def get_stop(self, stop_id: str) -> Stop | None:
        return self.load().get_stop(stop_id)

    def get_route(self, route_id: str) -> TransitRoute | None:
        return self.load().get_route(route_id)

    def get_trip(self, trip_id: str) -> Trip | None:
        return self.load().get_trip(trip_id)

    def calendars_in_effect(self, date_key: str) -> tuple[CalendarRule, ...]:
        return self.load().calendars_in_effect(date_key)

    def calendar_exceptions_on(self, date_key: str) -> tuple[CalendarException, ...]:
        return self.load().calendar_exceptions_on(date_key)

    def stop_times_departing(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_before_s: int,
        not_after_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        return self.load().stop_times_departing(
            stop_id,
            service_ids=service_ids,
            not_before_s=not_before_s,
            not_after_s=not_after_s,
            limit=limit,
        )

    def stop_times_arriving(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_after_s: int,
        not_before_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        return self.load().stop_times_arriving(
            stop_id,
            service_ids=service_ids,
            not_after_s=not_after_s,
            not_before_s=not_before_s,
            limit=limit,
        )

    def stop_times_for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        return self.load().stop_times_for_trip(trip_id)
