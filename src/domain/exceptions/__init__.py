from .routing import (
    InvalidSearchInput,
    RoutingError,
    ScheduleDataAccessError,
    SearchTimeout,
    StopNotFound,
)

__all__ = [
    "InvalidSearchInput",
    "RoutingError",
    "ScheduleDataAccessError",
    "SearchTimeout",
    "StopNotFound",
]
