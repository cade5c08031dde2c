"""
Single-slot availability verification.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from pendulum import DateTime

from ..domain.exceptions import InfrastructureError, ServiceNotFoundError, TimeslotEngineError
from ..domain.intervals import occupied_interval
from .protocols import BookingStore

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """
    Answers whether one exact interval is still free on a provider's calendar.

    The candidate is widened by the *candidate* service's buffer; stored
    bookings already carry their own buffer snapshot, which the store
    applies on its side of the comparison.
    """

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    async def is_available(
        self,
        provider_id: int,
        service_id: UUID,
        start: DateTime,
        end: DateTime,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """
        Check ``[start, end)`` for ``provider_id``.

        ``start`` and ``end`` must already be UTC with ``end > start``.

        Raises:
            ServiceNotFoundError: if the service does not exist
            InfrastructureError: if the store fails; never reported as "unavailable"
        """
        try:
            service = await self._store.get_service(service_id)
            if service is None:
                raise ServiceNotFoundError(service_id)

            candidate = occupied_interval(start, end, service.buffer_time)
            conflicts = await self._store.find_provider_bookings(
                provider_id,
                candidate,
                exclude_booking_id=exclude_booking_id,
            )
        except TimeslotEngineError:
            raise
        except Exception as exc:
            logger.error("Availability check failed for provider %s: %s", provider_id, exc)
            raise InfrastructureError(f"checking timeslot availability: {exc}") from exc

        if conflicts:
            logger.debug(
                "Provider %s busy during %s (%d conflicting booking(s))",
                provider_id,
                candidate,
                len(conflicts),
            )
        return not conflicts
