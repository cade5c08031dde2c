"""
Domain models for providers, services, working hours and bookings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional
from uuid import UUID

from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and other.start < self.end

    def extend(self, minutes: int) -> "TimeRange":
        """Return a copy whose end is pushed back by ``minutes``."""
        if not minutes:
            return self
        return TimeRange(start=self.start, end=self.end.add(minutes=minutes))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class Provider:
    """A staff member who performs services."""
    id: int
    name: str
    brand_id: int
    email: Optional[str] = None


@dataclass(frozen=True)
class Customer:
    """
    A brand's customer.

    Guests have no account and are identified by (name, phone_number)
    within their brand.
    """
    id: int
    name: str
    brand_id: int
    email: Optional[str] = None
    phone_number: Optional[str] = None
    is_guest: bool = False


@dataclass(frozen=True)
class Service:
    """A bookable service offered by a brand."""
    id: UUID
    title: str
    duration: int
    brand_id: int
    buffer_time: int = 0
    cost: Optional[Decimal] = None
    is_visible: bool = True
    provider_ids: FrozenSet[int] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Service duration must be greater than zero, got {self.duration}")
        if self.buffer_time < 0:
            raise ValueError(f"Service buffer time must not be negative, got {self.buffer_time}")

    @property
    def slot_duration_minutes(self) -> int:
        """Minutes a single booking of this service keeps a provider busy."""
        return self.duration + self.buffer_time

    def is_performed_by(self, provider_id: int) -> bool:
        """An empty provider set means any provider of the brand may perform it."""
        return not self.provider_ids or provider_id in self.provider_ids


@dataclass(frozen=True)
class DayWorkingHours:
    """
    Opening hours of a brand for one day of the week.

    ``day_of_week`` runs 0-6 with 0 = Sunday.
    """
    brand_id: int
    day_of_week: int
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    is_closed: bool = False

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")

    @property
    def is_open(self) -> bool:
        return not self.is_closed and self.open_time is not None and self.close_time is not None


class BookingStatus(str, Enum):
    """Booking lifecycle states."""
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


@dataclass(frozen=True)
class ResolvedEntities:
    """Records a booking refers to, fetched together."""
    provider: Provider
    customer: Customer
    service: Service


@dataclass(frozen=True)
class BookingDraft:
    """
    A booking that has been validated but not yet persisted.

    Names, cost and buffer are copied from the referenced records when the
    draft is built and are never refreshed afterwards.
    """
    brand_id: int
    provider_id: int
    customer_id: int
    service_id: UUID
    start_time: DateTime
    end_time: DateTime
    provider_name: str
    customer_name: str
    service_name: str
    cost: Optional[Decimal] = None
    buffer_time: int = 0
    comment: str = ""

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Booking start {self.start_time} must be before end {self.end_time}"
            )
        if self.buffer_time < 0:
            raise ValueError(f"Booking buffer time must not be negative, got {self.buffer_time}")

    @classmethod
    def from_entities(
        cls,
        *,
        brand_id: int,
        entities: ResolvedEntities,
        start_time: DateTime,
        end_time: DateTime,
        comment: str = "",
    ) -> "BookingDraft":
        return cls(
            brand_id=brand_id,
            provider_id=entities.provider.id,
            customer_id=entities.customer.id,
            service_id=entities.service.id,
            start_time=start_time,
            end_time=end_time,
            provider_name=entities.provider.name,
            customer_name=entities.customer.name,
            service_name=entities.service.title,
            cost=entities.service.cost,
            buffer_time=entities.service.buffer_time,
            comment=comment,
        )

    @property
    def occupied_interval(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time).extend(self.buffer_time)


@dataclass(frozen=True)
class Booking(BookingDraft):
    """A persisted booking (an "event" on the provider's calendar)."""
    id: int = 0
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: Optional[DateTime] = None
    updated_at: Optional[DateTime] = None

    @property
    def is_active(self) -> bool:
        """Cancelled bookings no longer occupy the provider."""
        return self.status is not BookingStatus.CANCELLED
