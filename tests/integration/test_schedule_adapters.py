from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.adapters.persistence.sqlite_schedule_repository import (
    SqliteScheduleRepository,
)
from src.app.ports.output import IScheduleRepository
from src.app.services.journey_search_service import (
    MESSAGE_NO_SERVICE,
    ErrorCode,
    JourneySearchService,
    SearchRequest,
)
from src.domain.algorithms.gtfs_time import parse_gtfs_time
from src.domain.exceptions import ScheduleDataAccessError
from src.domain.models import ExceptionType

WK = frozenset({"WK"})


def _s(hhmm: str) -> int:
    return parse_gtfs_time(f"{hhmm}:00")


@pytest.mark.integration
def test_stops_routes_and_trips(schedule: IScheduleRepository) -> None:
    assert [s.id for s in schedule.list_stops()] == ["S1", "T", "S2"]
    assert schedule.get_stop("T").name == "Teatro"
    assert schedule.get_stop("missing") is None

    l1 = schedule.get_route("L1")
    l2 = schedule.get_route("L2")
    assert (l1.short_name, l1.color, l1.text_color) == ("1", "FFCC00", "000000")
    assert (l2.long_name, l2.color) == (None, None)

    assert schedule.get_trip("T2").direction_id == 1
    assert schedule.get_trip("H1").direction_id is None
    assert schedule.get_trip("H1").service_id == "HOL"


@pytest.mark.integration
def test_calendar_rows_for_date(schedule: IScheduleRepository) -> None:
    rules = schedule.calendars_in_effect("20260109")
    assert [r.service_id for r in rules] == ["WK"]
    assert rules[0].friday is True and rules[0].saturday is False
    assert schedule.calendars_in_effect("20270101") == ()

    (removed,) = schedule.calendar_exceptions_on("20260109")
    assert (removed.service_id, removed.exception_type) == ("WK", ExceptionType.REMOVED)


@pytest.mark.integration
def test_departures_are_windowed_filtered_and_ordered(
    schedule: IScheduleRepository,
) -> None:
    rows = schedule.stop_times_departing(
        "S1", service_ids=WK, not_before_s=_s("07:00"), limit=10
    )
    assert [r.trip_id for r in rows] == ["T1", "D1", "N1"]
    assert rows[-1].departure_s == 25 * 3600 + 10 * 60

    windowed = schedule.stop_times_departing(
        "S1",
        service_ids=WK,
        not_before_s=_s("08:00"),
        not_after_s=_s("08:59"),
        limit=10,
    )
    assert [r.trip_id for r in windowed] == ["T1"]

    holiday = schedule.stop_times_departing(
        "S1", service_ids=frozenset({"HOL"}), not_before_s=0, limit=10
    )
    assert [r.trip_id for r in holiday] == ["H1"]
    first = schedule.stop_times_departing("S1", service_ids=WK, not_before_s=0, limit=1)
    assert [r.trip_id for r in first] == ["T1"]


@pytest.mark.integration
def test_arrivals_are_latest_first(schedule: IScheduleRepository) -> None:
    rows = schedule.stop_times_arriving(
        "S2",
        service_ids=WK,
        not_after_s=_s("10:00"),
        not_before_s=_s("08:00"),
        limit=10,
    )

    assert [r.trip_id for r in rows] == ["D1", "T2"]
    assert rows[0].departure_s is None


@pytest.mark.integration
def test_trip_calls_in_sequence_order(schedule: IScheduleRepository) -> None:
    calls = schedule.stop_times_for_trip("T1")

    assert [(c.stop_id, c.stop_sequence) for c in calls] == [("S1", 1), ("T", 2)]
    assert schedule.stop_times_for_trip("nope") == ()


@pytest.mark.integration
def test_search_over_stored_feed(schedule: IScheduleRepository) -> None:
    service = JourneySearchService(schedule)

    def search(time: str):
        return service.search_journey(
            SearchRequest(time=time, origin_stop_id="S1", destination_stop_id="S2")
        )

    thursday = search("2026-01-08T07:55:00")
    friday = search("2026-01-09T07:55:00")
    saturday = search("2026-01-10T07:55:00")

    assert thursday.journey is not None
    assert thursday.journey.transfer_count == 1
    assert thursday.journey.departure_at == datetime(2026, 1, 8, 8, 0)
    assert thursday.journey.arrival_at == datetime(2026, 1, 8, 8, 30)
    assert thursday.journey.legs[0].line.display_color == "#FFCC00"
    assert thursday.journey.legs[1].line.display_color == "#000000"

    assert friday.success is True and friday.message == MESSAGE_NO_SERVICE

    assert saturday.journey is not None
    assert saturday.journey.legs[0].trip_id == "H1"


@pytest.mark.integration
def test_missing_store_is_a_data_access_error(tmp_path: Path) -> None:
    with pytest.raises(ScheduleDataAccessError):
        LocalGtfsRepository(base_path=tmp_path / "absent").list_stops()
    with pytest.raises(ScheduleDataAccessError):
        SqliteScheduleRepository(db_path=tmp_path / "absent.db").list_stops()


@pytest.mark.integration
def test_malformed_times_are_a_data_access_error(
    tmp_path: Path, feed: dict[str, str], write_feed, write_db
) -> None:
    feed["stop_times"] = feed["stop_times"].replace("08:10:00,08:10:00", "8h10,8h10")
    gtfs = LocalGtfsRepository(base_path=write_feed(tmp_path / "gtfs", feed))
    db = SqliteScheduleRepository(db_path=write_db(tmp_path / "transit.db", feed))

    with pytest.raises(ScheduleDataAccessError):
        gtfs.stop_times_for_trip("T1")
    with pytest.raises(ScheduleDataAccessError):
        db.stop_times_for_trip("T1")


@pytest.mark.integration
@pytest.mark.parametrize(
    ("table", "old", "new"),
    [
        ("stops", "S1,Santa Catalina,28.00,-15.40", "S1,Santa Catalina"),
        ("calendar", "WK,1,1,1,1,1,0,0,20260101,20261231", "WK,1,1"),
        ("calendar_dates", "HOL,20260110,1", "HOL"),
    ],
)
def test_short_gtfs_rows_are_a_data_access_error(
    tmp_path: Path, feed: dict[str, str], write_feed, table: str, old: str, new: str
) -> None:
    feed[table] = feed[table].replace(old, new)
    gtfs = LocalGtfsRepository(base_path=write_feed(tmp_path / "gtfs", feed))

    with pytest.raises(ScheduleDataAccessError):
        gtfs.list_stops()

    response = JourneySearchService(gtfs).search_journey(
        SearchRequest(
            time="2026-01-08T07:55:00", origin_stop_id="S1", destination_stop_id="S2"
        )
    )
    assert response.success is False
    assert response.error_code == ErrorCode.DATA_ACCESS


@pytest.mark.integration
def test_gtfs_directory_defaults_to_env_path(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, write_feed
) -> None:
    monkeypatch.setenv("GTFS_PATH", str(write_feed(tmp_path / "env-gtfs")))

    assert len(LocalGtfsRepository().list_stops()) == 3
