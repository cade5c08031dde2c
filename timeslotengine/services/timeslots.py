"""
Application service for browsing the free slots of a provider.

The service fetches working hours, the service definition and the
provider's bookings from the store, and delegates the enumeration itself
to the domain-level ``SlotGenerator``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Sequence
from uuid import UUID

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    BookingValidationError,
    InfrastructureError,
    ProviderNotFoundError,
    ServiceNotFoundError,
    TimeslotEngineError,
)
from ..domain.intervals import day_of_week, format_clock, local_day_window
from ..domain.models import DayWorkingHours
from ..domain.requests import TimeslotQuery
from ..domain.slot_generator import SlotGenerator
from .protocols import BookingStore

logger = logging.getLogger(__name__)


class TimeslotService:
    """Orchestrates store reads and slot generation for one day."""

    def __init__(
        self,
        store: BookingStore,
        slot_generator: SlotGenerator,
        *,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._store = store
        self._slot_generator = slot_generator
        self._clock = clock or (lambda: pendulum.now("UTC"))

    @property
    def timezone(self) -> str:
        return self._slot_generator.timezone

    async def get_available_timeslots(
        self,
        *,
        brand_id: int,
        provider_id: int,
        service_id: UUID,
        day: date,
    ) -> List[str]:
        """
        Return the free slot starts of ``day`` as ``HH:mm`` local times.

        A provider who does not perform the service has no slots.

        Raises:
            BookingValidationError: if ``day`` lies in the past
            ServiceNotFoundError: if the service is missing or belongs to another brand
            ProviderNotFoundError: if the provider is missing or belongs to another brand
            InfrastructureError: if the store fails
        """
        now = self._clock()
        if day < now.in_timezone(self.timezone).date():
            raise BookingValidationError("date", "Date must not be in the past")

        try:
            working_hours = self._hours_for_day(
                await self._store.get_working_hours(brand_id),
                day,
            )
            if working_hours is None or not working_hours.is_open:
                return []

            service = await self._store.get_service(service_id)
            if service is None or service.brand_id != brand_id:
                raise ServiceNotFoundError(service_id)

            provider = await self._store.get_provider(provider_id)
            if provider is None or provider.brand_id != brand_id:
                raise ProviderNotFoundError(provider_id)
            if not service.is_performed_by(provider.id):
                logger.debug("Provider %s does not perform service %s", provider_id, service_id)
                return []

            bookings = await self._store.find_provider_bookings(
                provider_id,
                local_day_window(day, self.timezone),
            )
        except TimeslotEngineError:
            raise
        except Exception as exc:
            logger.error("Loading calendar of provider %s failed: %s", provider_id, exc)
            raise InfrastructureError(f"loading timeslot data: {exc}") from exc

        slots = self._slot_generator.generate(
            working_hours,
            service,
            bookings,
            day,
            not_before=now,
        )
        return [format_clock(slot, self.timezone) for slot in slots]

    async def get_available_timeslots_payload(self, payload: Mapping[str, Any]) -> List[str]:
        """Same as ``get_available_timeslots`` for a decoded ``{date, serviceId, ...}`` query."""
        query = TimeslotQuery.from_payload(payload)
        return await self.get_available_timeslots(
            brand_id=query.brand_id,
            provider_id=query.provider_id,
            service_id=query.service_id,
            day=query.day,
        )

    @staticmethod
    def _hours_for_day(
        working_hours: Sequence[DayWorkingHours],
        day: date,
    ) -> Optional[DayWorkingHours]:
        weekday = day_of_week(day)
        for hours in working_hours:
            if hours.day_of_week == weekday:
                return hours
        return None
