from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo


def parse_gtfs_time(raw: str) -> int:
    """Parse a GTFS ``H:MM:SS`` clock string into seconds since service-day midnight.

    Hours may exceed 23 for trips running past midnight on the same service day.
    Raises ValueError on malformed input.
    """

    parts = raw.strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    hh, mm, ss = (int(p) for p in parts)
    if hh < 0 or not (0 <= mm < 60) or not (0 <= ss < 60):
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    return hh * 3600 + mm * 60 + ss


def parse_optional_gtfs_time(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    return parse_gtfs_time(raw)


def format_gtfs_time(seconds: int) -> str:
    hh, rem = divmod(int(seconds), 3600)
    mm, ss = divmod(rem, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def seconds_since_midnight(dt: datetime) -> int:
    # Treat provided datetime as local service time.
    return dt.hour * 3600 + dt.minute * 60 + dt.second


def service_datetime_from_seconds(
    service_day: date, seconds: int, tz: tzinfo | None = None
) -> datetime:
    """Convert GTFS 'seconds since midnight' into an absolute datetime.

    Supports times over 24h (e.g. 25:10) by rolling into the next day.
    """

    day0 = datetime(service_day.year, service_day.month, service_day.day, tzinfo=tz)
    return day0 + timedelta(seconds=int(seconds))


def date_key(day: date) -> str:
    """8-digit ``YYYYMMDD`` key used by calendar.txt and calendar_dates.txt."""

    return day.strftime("%Y%m%d")
