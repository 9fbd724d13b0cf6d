from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

from .gtfs import StopTime
from .stop import Stop

DEFAULT_LINE_COLOR = "#000000"
DEFAULT_LINE_TEXT_COLOR = "#FFFFFF"


def _timed(value: int | None, call: StopTime) -> int:
    if value is None:
        raise ValueError(
            f"Call {call.trip_id}#{call.stop_sequence} at {call.stop_id} has no time"
        )
    return value


class SearchDirection(str, Enum):
    DEPART_AFTER = "depart_after"
    ARRIVE_BEFORE = "arrive_before"

    @classmethod
    def from_is_departure(cls, is_departure: bool) -> SearchDirection:
        return cls.DEPART_AFTER if is_departure else cls.ARRIVE_BEFORE


@dataclass(frozen=True, slots=True)
class DirectCandidate:
    """Origin and destination calls on the same trip, origin first."""

    origin: StopTime
    destination: StopTime

    transfer_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.origin.trip_id != self.destination.trip_id:
            raise ValueError("Direct candidate must use a single trip")
        if self.origin.stop_sequence >= self.destination.stop_sequence:
            raise ValueError("Origin must precede destination in the trip")
        _timed(self.origin.departure_or_arrival_s, self.origin)
        _timed(self.destination.arrival_or_departure_s, self.destination)

    @property
    def departure_s(self) -> int:
        return _timed(self.origin.departure_or_arrival_s, self.origin)

    @property
    def arrival_s(self) -> int:
        return _timed(self.destination.arrival_or_departure_s, self.destination)


@dataclass(frozen=True, slots=True)
class TransferCandidate:
    """Two trips joined at one shared stop."""

    origin_departure: StopTime
    transfer_arrival: StopTime
    transfer_departure: StopTime
    destination_arrival: StopTime

    transfer_count: int = field(default=1, init=False)

    def __post_init__(self) -> None:
        if self.transfer_arrival.trip_id == self.transfer_departure.trip_id:
            raise ValueError("Transfer legs must use different trips")
        if self.transfer_arrival.stop_id != self.transfer_departure.stop_id:
            raise ValueError("Transfer legs must meet at the same stop")
        for call in (self.origin_departure, self.transfer_departure):
            _timed(call.departure_or_arrival_s, call)
        for call in (self.transfer_arrival, self.destination_arrival):
            _timed(call.arrival_or_departure_s, call)

    @property
    def transfer_stop_id(self) -> str:
        return self.transfer_arrival.stop_id

    @property
    def wait_s(self) -> int:
        arrive = _timed(self.transfer_arrival.arrival_or_departure_s, self.transfer_arrival)
        depart = _timed(
            self.transfer_departure.departure_or_arrival_s, self.transfer_departure
        )
        return depart - arrive

    @property
    def departure_s(self) -> int:
        return _timed(self.origin_departure.departure_or_arrival_s, self.origin_departure)

    @property
    def arrival_s(self) -> int:
        return _timed(
            self.destination_arrival.arrival_or_departure_s, self.destination_arrival
        )


JourneyCandidate = Union[DirectCandidate, TransferCandidate]


@dataclass(frozen=True, slots=True)
class TransitLine:
    """Public transit line metadata (subset of GTFS routes.txt)."""

    route_id: str | None = None
    short_name: str | None = None
    long_name: str | None = None
    color: str | None = None  # hex without '#', per GTFS
    text_color: str | None = None  # hex without '#', per GTFS

    @property
    def name(self) -> str:
        return self.short_name or self.long_name or self.route_id or ""

    @property
    def display_color(self) -> str:
        return f"#{self.color}" if self.color else DEFAULT_LINE_COLOR

    @property
    def display_text_color(self) -> str:
        return f"#{self.text_color}" if self.text_color else DEFAULT_LINE_TEXT_COLOR


@dataclass(frozen=True, slots=True)
class JourneyLeg:
    origin: Stop
    destination: Stop
    depart_at: datetime
    arrive_at: datetime
    trip_id: str
    line: TransitLine | None = None
    headsign: str | None = None

    @property
    def duration_minutes(self) -> int:
        return int((self.arrive_at - self.depart_at).total_seconds() // 60)


@dataclass(frozen=True, slots=True)
class Journey:
    legs: tuple[JourneyLeg, ...]
    transfer_count: int = 0
    transfer_wait_minutes: int | None = None

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError("Journey needs at least one leg")
        if self.transfer_count not in (0, 1):
            raise ValueError(f"Unsupported transfer count: {self.transfer_count}")

    @property
    def departure_at(self) -> datetime:
        return self.legs[0].depart_at

    @property
    def arrival_at(self) -> datetime:
        return self.legs[-1].arrive_at

    @property
    def duration_minutes(self) -> int:
        # Wall-clock span, so waiting at the transfer stop is included.
        delta = (self.arrival_at - self.departure_at).total_seconds()
        return int(max(0.0, delta) // 60)

    @property
    def transfer_stop(self) -> Stop | None:
        if len(self.legs) < 2:
            return None
        return self.legs[0].destination
