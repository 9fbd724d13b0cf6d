from .in_memory_schedule_repository import InMemoryScheduleRepository
from .local_gtfs_repository import LocalGtfsRepository
from .sqlite_schedule_repository import SqliteScheduleRepository

__all__ = [
    "InMemoryScheduleRepository",
    "LocalGtfsRepository",
    "SqliteScheduleRepository",
]
