from .schedule_repository import IScheduleRepository

__all__ = [
    "IScheduleRepository",
]
