from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from src.adapters.api.dependencies import get_stop_locator, get_timetable_service
from src.adapters.api.schemas.stops import (
    GeoPointSchema,
    NearbyStopSchema,
    StopSchema,
    TimetableEntrySchema,
    TransitLineSchema,
)
from src.app.services.stop_locator import StopLocator
from src.app.services.timetable_service import TimetableService
from src.domain.models import GeoPoint, Stop, TransitLine

router = APIRouter(prefix="/stops", tags=["stops"])


def stop_to_schema(stop: Stop) -> StopSchema:
    return StopSchema(
        stop_id=stop.id,
        name=stop.name,
        location=GeoPointSchema(lat=stop.lat, lon=stop.lon),
    )


def line_to_schema(line: TransitLine | None) -> TransitLineSchema | None:
    if line is None:
        return None
    return TransitLineSchema(
        route_id=line.route_id,
        name=line.name,
        short_name=line.short_name,
        long_name=line.long_name,
        color=line.display_color,
        text_color=line.display_text_color,
    )


@router.get("/nearest", response_model=StopSchema)
def nearest_stop(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    locator: StopLocator = Depends(get_stop_locator),
) -> StopSchema:
    return stop_to_schema(locator.nearest(GeoPoint(lat=lat, lon=lon)))


@router.get("", response_model=list[NearbyStopSchema])
def find_stops(
    lat: float | None = Query(None, ge=-90.0, le=90.0),
    lon: float | None = Query(None, ge=-180.0, le=180.0),
    name: str | None = None,
    limit: int = Query(10, ge=1, le=100),
    locator: StopLocator = Depends(get_stop_locator),
) -> list[NearbyStopSchema]:
    if lat is not None and lon is not None:
        return [
            NearbyStopSchema(
                **stop_to_schema(n.stop).model_dump(), distance_km=n.distance_km
            )
            for n in locator.nearby(GeoPoint(lat=lat, lon=lon), limit=limit)
        ]
    if name:
        return [
            NearbyStopSchema(**stop_to_schema(s).model_dump())
            for s in locator.search_by_name(name, limit=limit)
        ]
    raise HTTPException(status_code=400, detail="Give lat and lon, or name")


@router.get("/{stop_id}/timetable", response_model=list[TimetableEntrySchema])
def stop_timetable(
    stop_id: str,
    time: datetime | None = None,
    limit: int = Query(30, ge=1, le=200),
    service: TimetableService = Depends(get_timetable_service),
) -> list[TimetableEntrySchema]:
    at = time or datetime.now()
    return [
        TimetableEntrySchema(
            trip_id=e.trip_id,
            departure_at=e.departure_at,
            arrival_at=e.arrival_at,
            line=line_to_schema(e.line),
            headsign=e.headsign,
            direction_id=e.direction_id,
        )
        for e in service.departures(stop_id, at, limit=limit)
    ]
