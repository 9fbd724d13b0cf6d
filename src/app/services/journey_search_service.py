from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from src.app.ports.output import IScheduleRepository
from src.app.services.calendar_service import ServiceCalendarResolver
from src.app.services.direct_trip_matcher import DirectTripMatcher
from src.app.services.routing_helpers import build_journey, parse_request_time
from src.app.services.search_config import SearchConfig
from src.app.services.search_deadline import SearchDeadline
from src.app.services.stop_locator import StopLocator
from src.app.services.transfer_matcher import TransferMatcher
from src.app.services.trip_calls import TripCalls
from src.domain.algorithms.geo_utils import haversine_distance_m
from src.domain.algorithms.gtfs_time import seconds_since_midnight
from src.domain.algorithms.journey_selection import select_best
from src.domain.exceptions import (
    InvalidSearchInput,
    ScheduleDataAccessError,
    SearchTimeout,
    StopNotFound,
)
from src.domain.models import (
    DirectCandidate,
    GeoPoint,
    Journey,
    SearchDirection,
    Stop,
    TransferCandidate,
)

logger = logging.getLogger(__name__)

MESSAGE_NO_SERVICE = "No service operates on this date"
MESSAGE_NO_ROUTE = "No direct or transfer route found"


class ErrorCode(str, Enum):
    INVALID_INPUT = "invalid_input"
    STOP_NOT_FOUND = "stop_not_found"
    DATA_ACCESS = "data_access"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Either a stop id or a coordinate for each endpoint; stop ids win if both are set."""

    time: datetime | str | None = None
    is_departure: bool = True
    origin_stop_id: str | None = None
    origin: GeoPoint | None = None
    destination_stop_id: str | None = None
    destination: GeoPoint | None = None


@dataclass(frozen=True, slots=True)
class ResolvedStops:
    origin: Stop
    destination: Stop


@dataclass(frozen=True, slots=True)
class SearchResponse:
    success: bool
    journey: Journey | None = None
    resolved_stops: ResolvedStops | None = None
    message: str | None = None
    error: str | None = None
    error_code: ErrorCode | None = None


@dataclass(slots=True)
class JourneySearchService:
    """Application service (use case) for best-journey search.

    Runs calendar resolution, direct search, transfer search and selection in
    that order against an injected schedule store. Component failures
    propagate up to ``search_journey``, the only place they become response
    errors.
    """

    schedule: IScheduleRepository
    config: SearchConfig = field(default_factory=SearchConfig)
    clock: Callable[[], datetime] = datetime.now

    @property
    def locator(self) -> StopLocator:
        return StopLocator(self.schedule)

    def search_journey(
        self, request: SearchRequest, *, deadline: SearchDeadline | None = None
    ) -> SearchResponse:
        deadline = deadline or SearchDeadline.after(self.config.search_timeout_s)
        resolved: ResolvedStops | None = None
        try:
            when = parse_request_time(request.time, now=self.clock())
            resolved = self._resolve_stops(request)
            return self._search(request, when, resolved, deadline)
        except InvalidSearchInput as exc:
            return SearchResponse(
                success=False,
                resolved_stops=resolved,
                error=str(exc),
                error_code=ErrorCode.INVALID_INPUT,
            )
        except StopNotFound as exc:
            return SearchResponse(
                success=False,
                resolved_stops=resolved,
                error=str(exc),
                error_code=ErrorCode.STOP_NOT_FOUND,
            )
        except ScheduleDataAccessError as exc:
            logger.warning("Journey search aborted, schedule store failed: %s", exc)
            return SearchResponse(
                success=False,
                resolved_stops=resolved,
                error=str(exc),
                error_code=ErrorCode.DATA_ACCESS,
            )
        except SearchTimeout as exc:
            logger.warning("Journey search aborted: %s", exc)
            return SearchResponse(
                success=False,
                resolved_stops=resolved,
                error=str(exc),
                error_code=ErrorCode.TIMEOUT,
            )

    def _resolve_endpoint(
        self, stop_id: str | None, point: GeoPoint | None, label: str
    ) -> Stop:
        if stop_id:
            return self.locator.get(stop_id)
        if point is not None:
            return self.locator.nearest(point)
        raise InvalidSearchInput(f"Missing {label}: give a stop id or a coordinate")

    def _resolve_stops(self, request: SearchRequest) -> ResolvedStops:
        origin = self._resolve_endpoint(request.origin_stop_id, request.origin, "origin")
        destination = self._resolve_endpoint(
            request.destination_stop_id, request.destination, "destination"
        )
        if origin.id == destination.id:
            raise InvalidSearchInput("Origin and destination resolve to the same stop")
        return ResolvedStops(origin=origin, destination=destination)

    def _search(
        self,
        request: SearchRequest,
        when: datetime,
        stops: ResolvedStops,
        deadline: SearchDeadline,
    ) -> SearchResponse:
        cfg = self.config
        direction = SearchDirection.from_is_departure(request.is_departure)
        service_day = when.date()
        anchor_s = seconds_since_midnight(when)
        origin, destination = stops.origin, stops.destination

        logger.info(
            "Journey search %s -> %s, %s %s",
            origin.id,
            destination.id,
            direction.value,
            when.isoformat(),
        )

        deadline.check("calendar resolution")
        services = ServiceCalendarResolver(self.schedule).active_services(service_day)
        if not services:
            logger.info("No active services on %s", service_day.isoformat())
            return SearchResponse(
                success=True, resolved_stops=stops, message=MESSAGE_NO_SERVICE
            )

        trip_calls = TripCalls(self.schedule)
        direct: list[DirectCandidate] = DirectTripMatcher(
            self.schedule, max_origin_candidates=cfg.max_origin_candidates
        ).find_direct(
            origin.id,
            destination.id,
            anchor_s=anchor_s,
            services=services,
            direction=direction,
            window_minutes=cfg.search_window_minutes,
            trip_calls=trip_calls,
            deadline=deadline,
        )

        transfer: list[TransferCandidate] = []
        if not direct or cfg.always_search_transfers:
            transfer = self._transfer_candidates(
                stops, anchor_s, services, direction, trip_calls, deadline
            )

        deadline.check("selection")
        best = select_best(
            direct,
            transfer,
            anchor_s=anchor_s,
            direction=direction,
            fallback=cfg.fallback_policy,
        )
        if best is None:
            logger.info(
                "No journey %s -> %s (%d direct, %d transfer candidates)",
                origin.id,
                destination.id,
                len(direct),
                len(transfer),
            )
            return SearchResponse(
                success=True, resolved_stops=stops, message=MESSAGE_NO_ROUTE
            )

        journey = build_journey(
            best,
            schedule=self.schedule,
            trip_calls=trip_calls,
            endpoints=(origin, destination),
            service_day=service_day,
            tz=when.tzinfo,
        )
        logger.info(
            "Selected journey %s -> %s: departs %s, arrives %s, %d transfer(s)",
            origin.id,
            destination.id,
            journey.departure_at.isoformat(),
            journey.arrival_at.isoformat(),
            journey.transfer_count,
        )
        return SearchResponse(success=True, journey=journey, resolved_stops=stops)

    def _transfer_candidates(
        self,
        stops: ResolvedStops,
        anchor_s: int,
        services: frozenset[str],
        direction: SearchDirection,
        trip_calls: TripCalls,
        deadline: SearchDeadline,
    ) -> list[TransferCandidate]:
        cfg = self.config
        origin, destination = stops.origin, stops.destination

        gap_m = haversine_distance_m(origin.location, destination.location)
        if gap_m < cfg.min_transfer_search_distance_km * 1000.0:
            logger.debug(
                "Skipping transfer search, stops only %.0fm apart", gap_m
            )
            return []

        via = self.locator.transfer_candidates(
            origin, destination, limit=cfg.max_transfer_stops_considered
        )
        matcher = TransferMatcher(
            self.schedule,
            max_origin_candidates=cfg.max_origin_candidates,
            skip_same_route=cfg.skip_same_route_transfers,
            workers=cfg.transfer_workers,
        )
        return matcher.find_transfer(
            origin.id,
            destination.id,
            anchor_s=anchor_s,
            services=services,
            direction=direction,
            transfer_stop_ids=[s.id for s in via],
            min_wait_minutes=cfg.min_wait_minutes,
            max_wait_minutes=cfg.max_wait_minutes,
            max_candidates_per_stop=cfg.max_candidates_per_stop,
            window_minutes=cfg.search_window_minutes,
            trip_calls=trip_calls,
            deadline=deadline,
        )
