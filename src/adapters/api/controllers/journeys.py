from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from src.adapters.api.controllers.stops import line_to_schema, stop_to_schema
from src.adapters.api.dependencies import get_journey_search_service
from src.adapters.api.schemas.journeys import (
    JourneyLegSchema,
    JourneyRequestSchema,
    JourneyResponseSchema,
    JourneySchema,
    ResolvedStopsSchema,
)
from src.app.services.journey_search_service import (
    ErrorCode,
    JourneySearchService,
    SearchRequest,
    SearchResponse,
)
from src.domain.models import GeoPoint, Journey

router = APIRouter(tags=["journeys"])

_STATUS_BY_ERROR = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.STOP_NOT_FOUND: 404,
    ErrorCode.DATA_ACCESS: 503,
    ErrorCode.TIMEOUT: 504,
}


def _journey_to_schema(journey: Journey) -> JourneySchema:
    return JourneySchema(
        departure_at=journey.departure_at,
        arrival_at=journey.arrival_at,
        duration_minutes=journey.duration_minutes,
        transfer_count=journey.transfer_count,
        transfer_wait_minutes=journey.transfer_wait_minutes,
        transfer_stop=(
            stop_to_schema(journey.transfer_stop) if journey.transfer_stop else None
        ),
        legs=[
            JourneyLegSchema(
                origin=stop_to_schema(leg.origin),
                destination=stop_to_schema(leg.destination),
                depart_at=leg.depart_at,
                arrive_at=leg.arrive_at,
                duration_minutes=leg.duration_minutes,
                trip_id=leg.trip_id,
                line=line_to_schema(leg.line),
                headsign=leg.headsign,
            )
            for leg in journey.legs
        ],
    )


def _response_to_schema(result: SearchResponse) -> JourneyResponseSchema:
    resolved = result.resolved_stops
    return JourneyResponseSchema(
        success=result.success,
        journey=_journey_to_schema(result.journey) if result.journey else None,
        resolved_stops=(
            ResolvedStopsSchema(
                origin=stop_to_schema(resolved.origin),
                destination=stop_to_schema(resolved.destination),
            )
            if resolved
            else None
        ),
        message=result.message,
        error=result.error,
        error_code=result.error_code.value if result.error_code else None,
    )


@router.post("/journeys", response_model=JourneyResponseSchema)
def search_journey(
    req: JourneyRequestSchema,
    response: Response,
    service: JourneySearchService = Depends(get_journey_search_service),
) -> JourneyResponseSchema:
    result = service.search_journey(
        SearchRequest(
            time=req.time,
            is_departure=req.is_departure,
            origin_stop_id=req.origin_stop_id,
            origin=(
                GeoPoint(lat=req.origin.lat, lon=req.origin.lon) if req.origin else None
            ),
            destination_stop_id=req.destination_stop_id,
            destination=(
                GeoPoint(lat=req.destination.lat, lon=req.destination.lon)
                if req.destination
                else None
            ),
        )
    )
    if result.error_code is not None:
        response.status_code = _STATUS_BY_ERROR[result.error_code]
    return _response_to_schema(result)
