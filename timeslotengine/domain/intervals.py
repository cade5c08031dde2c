"""
Clock and interval helpers.

Pure functions only - no I/O. All stored and compared instants are UTC;
wall-clock values (working hours, user input) are interpreted in the
brand's configured timezone.
"""

from datetime import date, datetime, time
from typing import Iterable

import pendulum
from pendulum import DateTime

from .models import TimeRange

UTC = "UTC"


def to_utc(value: datetime, timezone: str) -> DateTime:
    """
    Normalize a datetime to UTC.

    Naive values are read as wall-clock time in ``timezone``; aware values
    keep their own offset and are converted.
    """
    return pendulum.instance(value, tz=timezone).in_timezone(UTC)


def combine(day: date, clock: time, timezone: str) -> DateTime:
    """Return ``day`` at wall-clock ``clock`` in ``timezone``."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        clock.hour,
        clock.minute,
        tz=timezone,
    )


def local_day_window(day: date, timezone: str) -> TimeRange:
    """The whole calendar day in ``timezone`` as [00:00, next 00:00)."""
    start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    return TimeRange(start=start, end=start.add(days=1))


def day_of_week(day: date) -> int:
    """Weekday number with 0 = Sunday, 6 = Saturday."""
    return day.isoweekday() % 7


def occupied_interval(start: DateTime, end: DateTime, buffer_minutes: int = 0) -> TimeRange:
    """The range [start, end + buffer) a booking keeps its provider busy for."""
    return TimeRange(start=start, end=end).extend(buffer_minutes or 0)


def intervals_conflict(a: TimeRange, b: TimeRange) -> bool:
    return a.start < b.end and b.start < a.end


def is_interval_free(candidate: TimeRange, blocked: Iterable[TimeRange]) -> bool:
    """True when ``candidate`` overlaps none of the ``blocked`` ranges."""
    return not any(intervals_conflict(candidate, period) for period in blocked)


def parse_local_date(value: str, timezone: str) -> date:
    """Parse a ``YYYY-MM-DD`` string."""
    return pendulum.from_format(value, "YYYY-MM-DD", tz=timezone).date()


def parse_local_datetime(value: str, timezone: str) -> DateTime:
    """Parse a ``YYYY-MM-DD HH:mm`` wall-clock string in ``timezone``."""
    return pendulum.from_format(value, "YYYY-MM-DD HH:mm", tz=timezone)


def format_clock(value: DateTime, timezone: str) -> str:
    """Render an instant as ``HH:mm`` local time."""
    return value.in_timezone(timezone).format("HH:mm")
