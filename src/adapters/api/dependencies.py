from __future__ import annotations

import os
from functools import lru_cache

from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.adapters.persistence.sqlite_schedule_repository import (
    SqliteScheduleRepository,
)
from src.app.ports.output import IScheduleRepository
from src.app.services.journey_search_service import JourneySearchService
from src.app.services.search_config import SearchConfig
from src.app.services.stop_locator import StopLocator
from src.app.services.timetable_service import TimetableService


@lru_cache(maxsize=1)
def get_schedule_repository() -> IScheduleRepository:
    # A relational store wins when configured; otherwise read the GTFS directory.
    if os.getenv("SCHEDULE_DB_PATH"):
        return SqliteScheduleRepository()
    return LocalGtfsRepository()


def get_journey_search_service() -> JourneySearchService:
    return JourneySearchService(
        schedule=get_schedule_repository(),
        config=SearchConfig.from_env(),
    )


def get_stop_locator() -> StopLocator:
    return StopLocator(get_schedule_repository())


def get_timetable_service() -> TimetableService:
    return TimetableService(get_schedule_repository())
