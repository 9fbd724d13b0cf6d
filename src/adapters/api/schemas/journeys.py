from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from src.adapters.api.schemas.stops import GeoPointSchema, StopSchema, TransitLineSchema


class JourneyRequestSchema(BaseModel):
    origin_stop_id: str | None = None
    origin: GeoPointSchema | None = None
    destination_stop_id: str | None = None
    destination: GeoPointSchema | None = None
    # ISO-8601; parsed by the search service so bad values get the search error envelope.
    time: str | None = None
    is_departure: bool = True


class JourneyLegSchema(BaseModel):
    origin: StopSchema
    destination: StopSchema
    depart_at: datetime
    arrive_at: datetime
    duration_minutes: int
    trip_id: str
    line: TransitLineSchema | None = None
    headsign: str | None = None


class JourneySchema(BaseModel):
    departure_at: datetime
    arrival_at: datetime
    duration_minutes: int
    transfer_count: int
    transfer_wait_minutes: int | None = None
    transfer_stop: StopSchema | None = None
    legs: list[JourneyLegSchema]


class ResolvedStopsSchema(BaseModel):
    origin: StopSchema
    destination: StopSchema


class JourneyResponseSchema(BaseModel):
    success: bool
    journey: JourneySchema | None = None
    resolved_stops: ResolvedStopsSchema | None = None
    message: str | None = None
    error: str | None = None
    error_code: Literal["invalid_input", "stop_not_found", "data_access", "timeout"] | None = None
