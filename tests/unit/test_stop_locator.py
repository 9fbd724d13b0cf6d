from __future__ import annotations

import pytest

from src.adapters.persistence.in_memory_schedule_repository import (
    InMemoryScheduleRepository,
)
from src.app.services.stop_locator import StopLocator
from src.domain.algorithms.geo_utils import KM_PER_DEGREE
from src.domain.exceptions import StopNotFound
from src.domain.models import GeoPoint, Stop


def _stop(stop_id: str, name: str, lat: float, lon: float) -> Stop:
    return Stop(id=stop_id, name=name, location=GeoPoint(lat=lat, lon=lon))


def _locator(*stops: Stop) -> StopLocator:
    return StopLocator(InMemoryScheduleRepository(stops=stops))


@pytest.mark.unit
def test_nearest_returns_closest_stop() -> None:
    locator = _locator(
        _stop("A", "Alameda", 28.10, -15.40),
        _stop("B", "Barrio", 28.20, -15.40),
        _stop("C", "Centro", 28.12, -15.43),
    )

    assert locator.nearest(GeoPoint(lat=28.121, lon=-15.431)).id == "C"


@pytest.mark.unit
def test_nearest_breaks_ties_by_store_order() -> None:
    locator = _locator(
        _stop("FIRST", "North", 1.5, 0.0),
        _stop("SECOND", "South", 0.5, 0.0),
    )

    assert locator.nearest(GeoPoint(lat=1.0, lon=0.0)).id == "FIRST"


@pytest.mark.unit
def test_nearest_fails_on_empty_stop_table() -> None:
    with pytest.raises(StopNotFound):
        _locator().nearest(GeoPoint(lat=0.0, lon=0.0))


@pytest.mark.unit
def test_get_raises_for_unknown_id() -> None:
    locator = _locator(_stop("A", "Alameda", 28.1, -15.4))

    assert locator.get("A").name == "Alameda"
    with pytest.raises(StopNotFound):
        locator.get("missing")


@pytest.mark.unit
def test_nearby_ranks_stops_and_reports_display_distance() -> None:
    locator = _locator(
        _stop("FAR", "Far", 28.5, -15.4),
        _stop("NEAR", "Near", 28.1, -15.4),
        _stop("MID", "Mid", 28.2, -15.4),
    )

    found = locator.nearby(GeoPoint(lat=28.0, lon=-15.4), limit=2)

    assert [n.stop.id for n in found] == ["NEAR", "MID"]
    assert found[0].distance_km == pytest.approx(0.1 * KM_PER_DEGREE)


@pytest.mark.unit
def test_search_by_name_is_case_insensitive_and_sorted() -> None:
    locator = _locator(
        _stop("1", "Teatro Perez Galdos", 28.1, -15.4),
        _stop("2", "Plaza de Santa Ana", 28.1, -15.4),
        _stop("3", "Parque San Telmo", 28.1, -15.4),
        _stop("4", "Auditorio", 28.1, -15.4),
    )

    assert [s.id for s in locator.search_by_name("TE")] == ["3", "1"]
    assert [s.id for s in locator.search_by_name("a", limit=2)] == ["4", "3"]
    assert locator.search_by_name("   ") == []


@pytest.mark.unit
def test_transfer_candidates_rank_by_detour_and_skip_endpoints() -> None:
    origin = _stop("O", "Origin", 28.0, -15.4)
    destination = _stop("D", "Destination", 28.2, -15.4)
    locator = _locator(
        origin,
        _stop("OFF", "Off the line", 28.1, -15.35),
        _stop("ON", "On the line", 28.1, -15.4),
        _stop("BEHIND", "Behind origin", 27.9, -15.4),
        destination,
    )

    picked = locator.transfer_candidates(origin, destination, limit=2)

    assert [s.id for s in picked] == ["ON", "OFF"]
