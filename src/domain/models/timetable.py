from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .journey import TransitLine


@dataclass(frozen=True, slots=True)
class TimetableEntry:
    """One upcoming departure on a stop's board."""

    trip_id: str
    departure_at: datetime
    arrival_at: datetime | None = None
    line: TransitLine | None = None
    headsign: str | None = None
    direction_id: int | None = None
