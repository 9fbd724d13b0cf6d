from __future__ import annotations

import csv
import io
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.adapters.persistence.sqlite_schedule_repository import (
    SCHEMA_SQL,
    SqliteScheduleRepository,
)
from src.app.ports.output import IScheduleRepository

# T1 + T2 connect S1 -> S2 via T; D1 runs S1 -> S2 directly later in the
# morning; N1 runs past midnight. WK is removed on Friday 2026-01-09 and HOL
# only runs on Saturday 2026-01-10.
FEED: dict[str, str] = {
    "stops": """\
stop_id,stop_name,stop_lat,stop_lon
S1,Santa Catalina,28.00,-15.40
T,Teatro,28.05,-15.40
S2,San Telmo,28.10,-15.40
""",
    "routes": """\
route_id,route_short_name,route_long_name,route_color,route_text_color
L1,1,Teatro - Puerto,FFCC00,000000
L2,2,,,
""",
    "trips": """\
trip_id,route_id,service_id,trip_headsign,direction_id
T1,L1,WK,Teatro,0
T2,L2,WK,San Telmo,1
D1,L1,WK,San Telmo,0
H1,L1,HOL,San Telmo,
N1,L2,WK,San Telmo,0
""",
    "stop_times": """\
trip_id,stop_id,stop_sequence,arrival_time,departure_time
T1,S1,1,08:00:00,08:00:00
T1,T,2,08:10:00,08:10:00
T2,T,1,08:15:00,08:15:00
T2,S2,2,08:30:00,08:30:00
D1,S1,1,09:00:00,09:00:00
D1,S2,2,09:20:00,
H1,S1,1,08:20:00,08:20:00
H1,S2,2,08:40:00,08:40:00
N1,S1,1,25:10:00,25:10:00
N1,S2,2,25:30:00,25:30:00
""",
    "calendar": """\
service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date
WK,1,1,1,1,1,0,0,20260101,20261231
""",
    "calendar_dates": """\
service_id,date,exception_type
WK,20260109,2
HOL,20260110,1
""",
}

# Columns where an empty CSV cell is stored as NULL rather than ''.
_NULLABLE = {"direction_id"}


def write_gtfs_dir(base: Path, feed: dict[str, str] = FEED) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    for table, text in feed.items():
        (base / f"{table}.txt").write_text(text, encoding="utf-8")
    return base


def write_sqlite_db(path: Path, feed: dict[str, str] = FEED) -> Path:
    with closing(sqlite3.connect(path)) as conn:
        conn.executescript(SCHEMA_SQL)
        for table, text in feed.items():
            reader = csv.DictReader(io.StringIO(text))
            columns = list(reader.fieldnames or [])
            conn.executemany(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                [
                    tuple(
                        None if c in _NULLABLE and not row[c] else row[c]
                        for c in columns
                    )
                    for row in reader
                ],
            )
        conn.commit()
    return path


@pytest.fixture(params=["gtfs_dir", "sqlite"])
def schedule(request: pytest.FixtureRequest, tmp_path: Path) -> IScheduleRepository:
    if request.param == "gtfs_dir":
        return LocalGtfsRepository(base_path=write_gtfs_dir(tmp_path / "gtfs"))
    return SqliteScheduleRepository(db_path=write_sqlite_db(tmp_path / "transit.db"))


@pytest.fixture
def feed() -> dict[str, str]:
    return dict(FEED)


@pytest.fixture
def write_feed():
    return write_gtfs_dir


@pytest.fixture
def write_db():
    return write_sqlite_db
