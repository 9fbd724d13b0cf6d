from .geo import GeoPoint
from .gtfs import (
    CalendarException,
    CalendarRule,
    ExceptionType,
    StopTime,
    TransitRoute,
    Trip,
)
from .journey import (
    DirectCandidate,
    Journey,
    JourneyCandidate,
    JourneyLeg,
    SearchDirection,
    TransferCandidate,
    TransitLine,
)
from .stop import NearbyStop, Stop
from .timetable import TimetableEntry

__all__ = [
    "CalendarException",
    "CalendarRule",
    "DirectCandidate",
    "ExceptionType",
    "GeoPoint",
    "Journey",
    "JourneyCandidate",
    "JourneyLeg",
    "NearbyStop",
    "SearchDirection",
    "Stop",
    "StopTime",
    "TimetableEntry",
    "TransferCandidate",
    "TransitLine",
    "TransitRoute",
    "Trip",
]
