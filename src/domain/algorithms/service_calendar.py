from __future__ import annotations

from datetime import date
from typing import Iterable

from src.domain.algorithms.gtfs_time import date_key
from src.domain.models.gtfs import (
    WEEKDAY_FIELDS,
    CalendarException,
    CalendarRule,
    ExceptionType,
)


def weekday_field(day: date) -> str:
    """calendar.txt column name for the day of week (``monday`` .. ``sunday``)."""

    return WEEKDAY_FIELDS[day.weekday()]


def resolve_active_services(
    day: date,
    calendars: Iterable[CalendarRule],
    exceptions: Iterable[CalendarException],
) -> frozenset[str]:
    """Service ids running on ``day``.

    The weekly base set is built first; calendar_dates exceptions are then
    applied on top of it, so an exception always wins over the weekly pattern.
    Rows for other dates are ignored, which lets callers pass unfiltered tables.
    """

    key = date_key(day)
    field_name = weekday_field(day)

    active: set[str] = {
        rule.service_id
        for rule in calendars
        if rule.covers(key) and rule.runs_on(field_name)
    }

    for exc in exceptions:
        if exc.date != key:
            continue
        if exc.exception_type is ExceptionType.ADDED:
            active.add(exc.service_id)
        elif exc.exception_type is ExceptionType.REMOVED:
            active.discard(exc.service_id)

    return frozenset(active)
