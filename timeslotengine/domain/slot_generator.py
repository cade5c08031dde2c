"""
Core business logic for enumerating bookable slot starts.

Pure domain logic without any external dependencies (no store, no cache,
no I/O). Callers fetch the working hours, service and bookings first.
"""

from datetime import date
from typing import Iterable, List, Optional

from pendulum import DateTime

from .intervals import combine, is_interval_free
from .models import Booking, DayWorkingHours, Service, TimeRange

# Offered starts are always aligned to quarter-hours, whatever the
# service length.
SLOT_STEP_MINUTES = 15


class SlotGenerator:
    """
    Calculates the bookable start times of one provider for one day.

    Algorithm:
    1. Bail out with no slots if the day is closed or lacks open/close times
    2. Anchor the open/close clock times to the day in the brand's timezone
    3. Block every existing booking from its start to its end plus buffer
    4. Walk candidate starts from opening time in fixed steps
    5. Keep candidates whose service duration plus buffer fits before
       closing time and does not touch a blocked period
    """

    def __init__(self, timezone: str, step_minutes: int = SLOT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be greater than zero, got {step_minutes}")
        self.timezone = timezone
        self.step_minutes = step_minutes

    def generate(
        self,
        working_hours: Optional[DayWorkingHours],
        service: Service,
        existing_bookings: Iterable[Booking],
        day: date,
        *,
        not_before: Optional[DateTime] = None,
    ) -> List[DateTime]:
        """
        Enumerate all free slot starts for ``day``.

        Args:
            working_hours: The brand's hours for the weekday of ``day``
            service: Service being booked; its duration and buffer size the slot
            existing_bookings: The provider's bookings on that day
            day: Calendar date in the brand's timezone
            not_before: Starts at or before this instant are dropped

        Returns:
            Ordered list of slot start times in the brand's timezone
        """
        if working_hours is None or not working_hours.is_open:
            return []

        open_at = combine(day, working_hours.open_time, self.timezone)
        close_at = combine(day, working_hours.close_time, self.timezone)
        if close_at <= open_at:
            return []

        blocked = self._blocked_periods(existing_bookings)
        slot_minutes = service.slot_duration_minutes

        slots: List[DateTime] = []
        candidate = open_at
        while candidate < close_at:
            candidate_end = candidate.add(minutes=slot_minutes)
            if candidate_end > close_at:
                break

            if not_before is None or candidate > not_before:
                if is_interval_free(TimeRange(start=candidate, end=candidate_end), blocked):
                    slots.append(candidate)

            candidate = candidate.add(minutes=self.step_minutes)

        return slots

    @staticmethod
    def _blocked_periods(bookings: Iterable[Booking]) -> List[TimeRange]:
        """Occupied intervals of the active bookings, sorted by start."""
        periods = [booking.occupied_interval for booking in bookings if booking.is_active]
        return sorted(periods, key=lambda period: period.start)
