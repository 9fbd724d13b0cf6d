class RoutingError(Exception):
    """Base exception for journey search failures."""


class InvalidSearchInput(RoutingError):
    """Raised when a request is rejected before any schedule query runs."""


class StopNotFound(RoutingError):
    """Raised when a stop cannot be resolved (unknown id or empty stop table)."""


class ScheduleDataAccessError(RoutingError):
    """Raised when the schedule store is unreachable or returns malformed data."""


class SearchTimeout(RoutingError):
    """Raised when a search deadline expires or the search is cancelled."""
