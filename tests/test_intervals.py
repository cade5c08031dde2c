"""
Tests for the clock and interval helpers.
"""

from datetime import date, datetime, time

import pendulum
import pytest

from timeslotengine.domain.intervals import (
    combine,
    day_of_week,
    format_clock,
    intervals_conflict,
    is_interval_free,
    local_day_window,
    occupied_interval,
    parse_local_date,
    parse_local_datetime,
    to_utc,
)
from timeslotengine.domain.models import TimeRange

from conftest import TZ


def _range(start: str, end: str) -> TimeRange:
    return TimeRange(start=pendulum.parse(start, tz=TZ), end=pendulum.parse(end, tz=TZ))


class TestToUtc:
    """Tests for UTC normalization."""

    def test_naive_values_use_the_brand_timezone(self):
        result = to_utc(datetime(2026, 11, 2, 10, 0), TZ)

        assert result == pendulum.datetime(2026, 11, 2, 8, 0, tz="UTC")
        assert result.timezone_name == "UTC"

    def test_aware_values_keep_their_offset(self):
        aware = pendulum.datetime(2026, 11, 2, 10, 0, tz="Europe/Berlin")

        assert to_utc(aware, TZ) == pendulum.datetime(2026, 11, 2, 9, 0, tz="UTC")


class TestDays:
    """Tests for calendar day helpers."""

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(date(2026, 11, 1)) == 0  # Sunday
        assert day_of_week(date(2026, 11, 2)) == 1  # Monday
        assert day_of_week(date(2026, 11, 7)) == 6  # Saturday

    def test_combine_anchors_clock_in_timezone(self):
        result = combine(date(2026, 11, 2), time(9, 0), TZ)

        assert result.in_timezone("UTC").hour == 7

    def test_local_day_window_spans_one_day(self):
        window = local_day_window(date(2026, 11, 2), TZ)

        assert window.start == pendulum.datetime(2026, 11, 2, tz=TZ)
        assert window.end == pendulum.datetime(2026, 11, 3, tz=TZ)


class TestConflicts:
    """Tests for overlap predicates."""

    def test_occupied_interval_adds_buffer(self):
        start = pendulum.parse("2026-11-02 10:00", tz=TZ)
        end = pendulum.parse("2026-11-02 10:30", tz=TZ)

        assert occupied_interval(start, end, 15).end == pendulum.parse("2026-11-02 10:45", tz=TZ)
        assert occupied_interval(start, end).end == end

    def test_touching_intervals_do_not_conflict(self):
        a = _range("2026-11-02 10:00", "2026-11-02 10:45")
        b = _range("2026-11-02 10:45", "2026-11-02 11:15")

        assert not intervals_conflict(a, b)
        assert not intervals_conflict(b, a)

    def test_contained_interval_conflicts(self):
        outer = _range("2026-11-02 09:00", "2026-11-02 12:00")
        inner = _range("2026-11-02 10:00", "2026-11-02 10:30")

        assert intervals_conflict(outer, inner)
        assert intervals_conflict(inner, outer)

    def test_is_interval_free(self):
        blocked = [
            _range("2026-11-02 10:00", "2026-11-02 10:45"),
            _range("2026-11-02 13:00", "2026-11-02 14:00"),
        ]

        assert is_interval_free(_range("2026-11-02 11:00", "2026-11-02 12:00"), blocked)
        assert not is_interval_free(_range("2026-11-02 13:30", "2026-11-02 14:30"), blocked)
        assert is_interval_free(_range("2026-11-02 13:30", "2026-11-02 14:30"), [])


class TestParsing:
    """Tests for user input parsing."""

    def test_parse_local_datetime(self):
        result = parse_local_datetime("2026-11-02 10:15", TZ)

        assert result == pendulum.datetime(2026, 11, 2, 10, 15, tz=TZ)

    def test_parse_local_date(self):
        assert parse_local_date("2026-11-02", TZ) == date(2026, 11, 2)

    def test_parse_rejects_other_formats(self):
        with pytest.raises(ValueError):
            parse_local_datetime("02.11.2026 10:15", TZ)

    def test_format_clock_uses_local_time(self):
        assert format_clock(pendulum.datetime(2026, 11, 2, 8, 0, tz="UTC"), TZ) == "10:00"
