"""
Protocols describing the store and cache behaviour the services depend on.

Any adapter with matching coroutines can be plugged in - the bundled
in-memory store, a relational store, or test stubs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from ..domain.models import (
    Booking,
    BookingDraft,
    Customer,
    DayWorkingHours,
    Provider,
    Service,
    TimeRange,
)


class BookingStore(Protocol):
    """
    Persistent store consumed by the engine.

    Lookups return ``None`` when the record does not exist; anything else
    going wrong is raised.
    """

    async def get_provider(self, provider_id: int) -> Optional[Provider]:
        """Return a provider (staff member) by id."""

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Return a customer by id."""

    async def get_service(self, service_id: UUID) -> Optional[Service]:
        """Return a service by id."""

    async def get_working_hours(self, brand_id: int) -> Sequence[DayWorkingHours]:
        """Return every weekday record configured for a brand."""

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Return a booking by id."""

    async def find_provider_bookings(
        self,
        provider_id: int,
        window: TimeRange,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Booking]:
        """Active bookings of a provider whose occupied interval meets ``window``."""

    async def list_brand_bookings(self, brand_id: int, window: TimeRange) -> List[Booking]:
        """All bookings of a brand starting inside ``window``, ordered by start."""

    async def reserve(self, draft: BookingDraft, *, replaces: Optional[int] = None) -> Booking:
        """
        Atomically re-check the provider's calendar and persist ``draft``.

        With ``replaces`` the existing booking is rewritten in place and
        ignored by the conflict scan.

        Raises:
            TimeslotConflictError: if another booking took the interval first
            BookingNotFoundError: if ``replaces`` does not exist
        """


class ProfileCache(Protocol):
    """Best-effort key/value side store for profile records."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the cached value, or ``None`` on a miss."""

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store ``value`` under ``key``."""

    async def delete(self, key: str) -> None:
        """Drop ``key`` if present."""
