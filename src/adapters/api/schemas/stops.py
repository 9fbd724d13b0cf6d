from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class StopSchema(BaseModel):
    stop_id: str
    name: str
    location: GeoPointSchema


class NearbyStopSchema(StopSchema):
    distance_km: float | None = None


class TransitLineSchema(BaseModel):
    route_id: str | None = None
    name: str
    short_name: str | None = None
    long_name: str | None = None
    color: str
    text_color: str


class TimetableEntrySchema(BaseModel):
    trip_id: str
    departure_at: datetime
    arrival_at: datetime | None = None
    line: TransitLineSchema | None = None
    headsign: str | None = None
    direction_id: int | None = None
