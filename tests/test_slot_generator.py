"""
Tests for the SlotGenerator.
"""

from datetime import time
from uuid import uuid4

import pendulum
import pytest

from timeslotengine.domain.models import (
    Booking,
    BookingStatus,
    DayWorkingHours,
    Service,
    TimeRange,
)
from timeslotengine.domain.slot_generator import SlotGenerator

from conftest import MONDAY, SUNDAY, TZ, local


def _hours(open_at=time(9, 0), close_at=time(17, 0), is_closed=False, day_of_week=1):
    return DayWorkingHours(
        brand_id=1,
        day_of_week=day_of_week,
        open_time=open_at,
        close_time=close_at,
        is_closed=is_closed,
    )


def _service(duration=30, buffer_time=0):
    return Service(id=uuid4(), title="Haircut", duration=duration, brand_id=1, buffer_time=buffer_time)


def _booking(start: str, end: str, buffer_time=0, status=BookingStatus.CONFIRMED):
    return Booking(
        brand_id=1,
        provider_id=1,
        customer_id=1,
        service_id=uuid4(),
        start_time=local(start),
        end_time=local(end),
        provider_name="Maria Petrova",
        customer_name="Ivan Dimitrov",
        service_name="Haircut",
        buffer_time=buffer_time,
        id=1,
        status=status,
    )


def _clock(slots):
    return [slot.format("HH:mm") for slot in slots]


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def test_empty_day_yields_every_quarter_hour(self):
        """09:00-17:00 with a 30 minute service yields 09:00 ... 16:30."""
        generator = SlotGenerator(timezone=TZ)

        slots = generator.generate(_hours(), _service(), [], MONDAY)

        assert len(slots) == 31
        assert _clock(slots)[0] == "09:00"
        assert _clock(slots)[-1] == "16:30"
        assert all(slot.timezone_name == TZ for slot in slots)

    def test_slots_are_aligned_to_step(self):
        generator = SlotGenerator(timezone=TZ)

        slots = generator.generate(_hours(), _service(duration=50), [], MONDAY)

        assert all(slot.minute % 15 == 0 for slot in slots)
        assert _clock(slots)[-1] == "16:00"  # 16:15 + 50 min would pass closing time

    def test_service_buffer_is_part_of_the_slot(self):
        generator = SlotGenerator(timezone=TZ)

        slots = generator.generate(_hours(), _service(duration=30, buffer_time=15), [], MONDAY)

        assert _clock(slots)[-1] == "16:15"

    def test_existing_booking_buffer_blocks_slots(self):
        """A 10:00-10:30 booking with 15 minutes buffer occupies 10:00-10:45."""
        generator = SlotGenerator(timezone=TZ)
        booking = _booking("2026-11-02 10:00", "2026-11-02 10:30", buffer_time=15)

        slots = _clock(generator.generate(_hours(), _service(), [booking], MONDAY))

        assert "09:30" in slots
        assert "09:45" not in slots
        assert "10:00" not in slots
        assert "10:15" not in slots
        assert "10:30" not in slots
        assert "10:45" in slots

    def test_no_slot_overlaps_a_booking(self):
        generator = SlotGenerator(timezone=TZ)
        service = _service(duration=45, buffer_time=10)
        bookings = [
            _booking("2026-11-02 11:00", "2026-11-02 12:00", buffer_time=10),
            _booking("2026-11-02 14:20", "2026-11-02 14:50"),
        ]

        slots = generator.generate(_hours(), service, bookings, MONDAY)

        assert slots
        for slot in slots:
            candidate = TimeRange(start=slot, end=slot.add(minutes=service.slot_duration_minutes))
            assert not any(candidate.overlaps(b.occupied_interval) for b in bookings)

    def test_cancelled_bookings_do_not_block(self):
        generator = SlotGenerator(timezone=TZ)
        booking = _booking(
            "2026-11-02 10:00",
            "2026-11-02 10:30",
            status=BookingStatus.CANCELLED,
        )

        slots = generator.generate(_hours(), _service(), [booking], MONDAY)

        assert len(slots) == 31

    def test_closed_day_has_no_slots(self):
        generator = SlotGenerator(timezone=TZ)

        assert generator.generate(_hours(is_closed=True, day_of_week=0), _service(), [], SUNDAY) == []

    def test_missing_hours_have_no_slots(self):
        generator = SlotGenerator(timezone=TZ)

        assert generator.generate(None, _service(), [], MONDAY) == []
        assert generator.generate(_hours(open_at=None), _service(), [], MONDAY) == []

    def test_inverted_hours_have_no_slots(self):
        generator = SlotGenerator(timezone=TZ)

        assert generator.generate(_hours(open_at=time(17, 0), close_at=time(9, 0)), _service(), [], MONDAY) == []

    def test_service_longer_than_the_day(self):
        generator = SlotGenerator(timezone=TZ)

        slots = generator.generate(_hours(time(10, 0), time(14, 0)), _service(duration=300), [], MONDAY)

        assert slots == []

    def test_not_before_drops_past_starts(self):
        generator = SlotGenerator(timezone=TZ)
        now = pendulum.parse("2026-11-02 12:05", tz=TZ)

        slots = generator.generate(_hours(), _service(), [], MONDAY, not_before=now)

        assert _clock(slots)[0] == "12:15"
        assert _clock(slots)[-1] == "16:30"

    def test_start_exactly_at_not_before_is_dropped(self):
        """A start equal to "now" is no longer in the future."""
        generator = SlotGenerator(timezone=TZ)
        now = pendulum.parse("2026-11-02 12:00", tz=TZ)

        slots = generator.generate(_hours(), _service(), [], MONDAY, not_before=now)

        assert _clock(slots)[0] == "12:15"

    def test_invalid_step_raises(self):
        with pytest.raises(ValueError, match="step_minutes"):
            SlotGenerator(timezone=TZ, step_minutes=0)
