from __future__ import annotations

import os
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Any, Callable, Sequence, TypeVar

from src.app.ports.output import IScheduleRepository
from src.domain.algorithms.gtfs_time import format_gtfs_time, parse_optional_gtfs_time
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

# Tables as written by the GTFS import step. Times are zero-padded HH:MM:SS
# text so that lexical order matches chronological order (hours may pass 24).
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS stops (
    stop_id TEXT PRIMARY KEY,
    stop_name TEXT,
    stop_lat REAL NOT NULL,
    stop_lon REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS routes (
    route_id TEXT PRIMARY KEY,
    route_short_name TEXT,
    route_long_name TEXT,
    route_color TEXT,
    route_text_color TEXT
);
CREATE TABLE IF NOT EXISTS trips (
    trip_id TEXT PRIMARY KEY,
    route_id TEXT NOT NULL,
    service_id TEXT NOT NULL,
    trip_headsign TEXT,
    direction_id INTEGER
);
CREATE TABLE IF NOT EXISTS stop_times (
    trip_id TEXT NOT NULL,
    stop_id TEXT NOT NULL,
    stop_sequence INTEGER NOT NULL,
    arrival_time TEXT,
    departure_time TEXT
);
CREATE INDEX IF NOT EXISTS idx_stop_times_stop ON stop_times (stop_id);
CREATE INDEX IF NOT EXISTS idx_stop_times_trip ON stop_times (trip_id, stop_sequence);
CREATE TABLE IF NOT EXISTS calendar (
    service_id TEXT NOT NULL,
    monday INTEGER NOT NULL,
    tuesday INTEGER NOT NULL,
    wednesday INTEGER NOT NULL,
    thursday INTEGER NOT NULL,
    friday INTEGER NOT NULL,
    saturday INTEGER NOT NULL,
    sunday INTEGER NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS calendar_dates (
    service_id TEXT NOT NULL,
    date TEXT NOT NULL,
    exception_type INTEGER NOT NULL
);
"""

T = TypeVar("T")

_STOP_TIME_COLUMNS = (
    "st.trip_id, st.stop_id, st.stop_sequence, st.arrival_time, st.departure_time"
)


def _placeholders(values: Sequence[Any]) -> str:
    return ",".join("?" for _ in values)


def _stop_time(row: sqlite3.Row) -> StopTime:
    return StopTime(
        trip_id=row["trip_id"],
        stop_id=row["stop_id"],
        stop_sequence=int(row["stop_sequence"]),
        arrival_s=parse_optional_gtfs_time(row["arrival_time"]),
        departure_s=parse_optional_gtfs_time(row["departure_time"]),
    )


@dataclass(slots=True)
class SqliteScheduleRepository(IScheduleRepository):
    """Queries a GTFS schedule imported into SQLite.

    A read-only connection is opened per query, so one instance can serve
    concurrent searches from several threads.

    Env vars:
      - SCHEDULE_DB_PATH: path to the SQLite database file
    """

    db_path: str | Path | None = None

    def _path(self) -> Path:
        value = self.db_path or os.getenv("SCHEDULE_DB_PATH") or "data/transit.db"
        return Path(value)

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        path = self._path()
        try:
            conn = sqlite3.connect(f"file:{path.as_posix()}?mode=ro", uri=True)
            with closing(conn):
                conn.row_factory = sqlite3.Row
                return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise ScheduleDataAccessError(f"Schedule store query failed: {exc}") from exc

    def _convert(
        self, fn: Callable[[sqlite3.Row], T], rows: Sequence[sqlite3.Row]
    ) -> tuple[T, ...]:
        try:
            return tuple(fn(row) for row in rows)
        except (KeyError, TypeError, ValueError) as exc:
            raise ScheduleDataAccessError(f"Malformed schedule row: {exc}") from exc

    def list_stops(self) -> tuple[Stop, ...]:
        rows = self._query(
            "SELECT stop_id, stop_name, stop_lat, stop_lon FROM stops ORDER BY rowid"
        )
        return self._convert(self._stop, rows)

    def get_stop(self, stop_id: str) -> Stop | None:
        rows = self._query(
            "SELECT stop_id, stop_name, stop_lat, stop_lon FROM stops WHERE stop_id = ?",
            (stop_id,),
        )
        found = self._convert(self._stop, rows)
        return found[0] if found else None

    def get_route(self, route_id: str) -> TransitRoute | None:
        rows = self._query(
            "SELECT route_id, route_short_name, route_long_name, route_color, "
            "route_text_color FROM routes WHERE route_id = ?",
            (route_id,),
        )
        found = self._convert(
            lambda r: TransitRoute(
                route_id=r["route_id"],
                short_name=r["route_short_name"] or None,
                long_name=r["route_long_name"] or None,
                color=r["route_color"] or None,
                text_color=r["route_text_color"] or None,
            ),
            rows,
        )
        return found[0] if found else None

    def get_trip(self, trip_id: str) -> Trip | None:
        rows = self._query(
            "SELECT trip_id, route_id, service_id, trip_headsign, direction_id "
            "FROM trips WHERE trip_id = ?",
            (trip_id,),
        )
        found = self._convert(
            lambda r: Trip(
                trip_id=r["trip_id"],
                route_id=r["route_id"],
                service_id=r["service_id"],
                headsign=r["trip_headsign"] or None,
                direction_id=(
                    int(r["direction_id"]) if r["direction_id"] is not None else None
                ),
            ),
            rows,
        )
        return found[0] if found else None

    def calendars_in_effect(self, date_key: str) -> tuple[CalendarRule, ...]:
        rows = self._query(
            "SELECT * FROM calendar WHERE start_date <= ? AND end_date >= ? "
            "ORDER BY rowid",
            (date_key, date_key),
        )
        return self._convert(
            lambda r: CalendarRule(
                service_id=r["service_id"],
                start_date=r["start_date"],
                end_date=r["end_date"],
                monday=bool(r["monday"]),
                tuesday=bool(r["tuesday"]),
                wednesday=bool(r["wednesday"]),
                thursday=bool(r["thursday"]),
                friday=bool(r["friday"]),
                saturday=bool(r["saturday"]),
                sunday=bool(r["sunday"]),
            ),
            rows,
        )

    def calendar_exceptions_on(self, date_key: str) -> tuple[CalendarException, ...]:
        rows = self._query(
            "SELECT service_id, date, exception_type FROM calendar_dates "
            "WHERE date = ? ORDER BY rowid",
            (date_key,),
        )
        return self._convert(
            lambda r: CalendarException(
                service_id=r["service_id"],
                date=r["date"],
                exception_type=ExceptionType(int(r["exception_type"])),
            ),
            rows,
        )

    def stop_times_departing(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_before_s: int,
        not_after_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        if not service_ids:
            return ()
        services = sorted(service_ids)
        params: list[Any] = [stop_id, format_gtfs_time(max(0, not_before_s))]
        upper = ""
        if not_after_s is not None:
            upper = "AND st.departure_time <= ? "
            params.append(format_gtfs_time(not_after_s))
        params.extend(services)
        params.append(int(limit))
        rows = self._query(
            f"SELECT {_STOP_TIME_COLUMNS} FROM stop_times st "
            "JOIN trips t ON t.trip_id = st.trip_id "
            "WHERE st.stop_id = ? AND st.departure_time >= ? "
            f"{upper}"
            f"AND t.service_id IN ({_placeholders(services)}) "
            "ORDER BY st.departure_time ASC, st.trip_id ASC, st.stop_sequence ASC "
            "LIMIT ?",
            params,
        )
        return self._convert(_stop_time, rows)

    def stop_times_arriving(
        self,
        stop_id: str,
        *,
        service_ids: AbstractSet[str],
        not_after_s: int,
        not_before_s: int | None = None,
        limit: int,
    ) -> tuple[StopTime, ...]:
        if not service_ids:
            return ()
        services = sorted(service_ids)
        params: list[Any] = [stop_id, format_gtfs_time(not_after_s)]
        lower = ""
        if not_before_s is not None:
            lower = "AND st.arrival_time >= ? "
            params.append(format_gtfs_time(max(0, not_before_s)))
        params.extend(services)
        params.append(int(limit))
        rows = self._query(
            f"SELECT {_STOP_TIME_COLUMNS} FROM stop_times st "
            "JOIN trips t ON t.trip_id = st.trip_id "
            "WHERE st.stop_id = ? AND st.arrival_time <> '' AND st.arrival_time <= ? "
            f"{lower}"
            f"AND t.service_id IN ({_placeholders(services)}) "
            "ORDER BY st.arrival_time DESC, st.trip_id ASC, st.stop_sequence ASC "
            "LIMIT ?",
            params,
        )
        return self._convert(_stop_time, rows)

    def stop_times_for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        rows = self._query(
            f"SELECT {_STOP_TIME_COLUMNS} FROM stop_times st "
            "WHERE st.trip_id = ? ORDER BY st.stop_sequence ASC",
            (trip_id,),
        )
        return self._convert(_stop_time, rows)

    @staticmethod
    def _stop(row: sqlite3.Row) -> Stop:
        return Stop(
            id=row["stop_id"],
            name=row["stop_name"] or row["stop_id"],
            location=GeoPoint(lat=float(row["stop_lat"]), lon=float(row["stop_lon"])),
        )
