"""
Booking transaction coordinator.

Ties payload validation, availability checking, entity resolution and
persistence into one operation. The final write goes through the store's
``reserve``, which repeats the conflict scan and the insert as one atomic
step per provider, so two concurrent requests can never both land on
overlapping intervals.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, TypeVar, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    CustomerNotFoundError,
    InfrastructureError,
    ProviderNotFoundError,
    ServiceNotFoundError,
    TimeslotConflictError,
    TimeslotEngineError,
)
from ..domain.intervals import local_day_window, to_utc
from ..domain.models import Booking, BookingDraft, ResolvedEntities, TimeRange
from ..domain.requests import BookingRequest
from ..logging_context import bind_request_id
from .availability import AvailabilityChecker
from .entity_resolver import EntityResolver
from .protocols import BookingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

BookingPayload = Union[BookingRequest, Mapping[str, Any]]


class BookingCoordinator:
    """
    Creates and reschedules bookings.

    Args:
        store: Persistent store providing the atomic ``reserve``
        resolver: Resolves provider, customer and service concurrently
        checker: Answers whether the candidate interval is free
        timezone: Zone used to read naive request times
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        store: BookingStore,
        resolver: EntityResolver,
        checker: AvailabilityChecker,
        *,
        timezone: str,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._checker = checker
        self._timezone = timezone
        self._clock = clock or (lambda: pendulum.now("UTC"))

    async def create_booking(self, payload: BookingPayload, *, self_service: bool = False) -> Booking:
        """
        Validate, check, resolve and persist a new booking.

        Args:
            payload: ``BookingRequest`` or its decoded mapping
            self_service: Customer-initiated flow; the start must lie in the future

        Raises:
            BookingValidationError, TimeslotConflictError, EntityNotFoundError,
            InfrastructureError
        """
        with bind_request_id():
            request = self._parse(payload)
            start, end = self._normalize_interval(request, self_service=self_service)

            await self._ensure_available(request, start, end)
            entities = await self._resolve(request)

            draft = self._build_draft(request, entities, start, end)
            booking = await self._reserve(draft)
            logger.info(
                "Booking %s created: provider %s, customer %s, %s - %s",
                booking.id,
                booking.provider_id,
                booking.customer_id,
                booking.start_time.to_iso8601_string(),
                booking.end_time.to_iso8601_string(),
            )
            return booking

    async def update_booking(
        self,
        booking_id: int,
        payload: BookingPayload,
        *,
        self_service: bool = False,
    ) -> Booking:
        """
        Move or otherwise change an existing booking.

        The booking's own row is left out of the conflict scan, and its
        denormalized fields are refreshed from the current records.
        """
        with bind_request_id():
            request = self._parse(payload)
            start, end = self._normalize_interval(request, self_service=self_service)

            existing = await self.get_booking(booking_id)
            if existing.brand_id != request.brand_id:
                raise BookingNotFoundError(booking_id)
            if not existing.is_active:
                raise BookingValidationError(
                    "bookingId", f"booking {booking_id} is cancelled and cannot be changed"
                )

            await self._ensure_available(request, start, end, exclude_booking_id=booking_id)
            entities = await self._resolve(request)

            draft = self._build_draft(request, entities, start, end)
            booking = await self._reserve(draft, replaces=booking_id)
            logger.info(
                "Booking %s updated: %s - %s",
                booking.id,
                booking.start_time.to_iso8601_string(),
                booking.end_time.to_iso8601_string(),
            )
            return booking

    async def get_booking(self, booking_id: int) -> Booking:
        booking = await _call_store("getting booking", lambda: self._store.get_booking(booking_id))
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def list_bookings(self, brand_id: int, start_date: date, end_date: date) -> List[Booking]:
        """All bookings of a brand from ``start_date`` through ``end_date`` (inclusive)."""
        if end_date < start_date:
            raise BookingValidationError("endDate", "endDate must not be before startDate")

        window = TimeRange(
            start=local_day_window(start_date, self._timezone).start,
            end=local_day_window(end_date, self._timezone).end,
        )
        return await _call_store(
            "listing bookings",
            lambda: self._store.list_brand_bookings(brand_id, window),
        )

    @staticmethod
    def _parse(payload: BookingPayload) -> BookingRequest:
        if isinstance(payload, BookingRequest):
            return payload
        return BookingRequest.from_payload(payload)

    def _normalize_interval(
        self,
        request: BookingRequest,
        *,
        self_service: bool,
    ) -> Tuple[DateTime, DateTime]:
        start = to_utc(request.start_time, self._timezone)
        end = to_utc(request.end_time, self._timezone)

        if end <= start:
            raise BookingValidationError("endTime", "endTime must be after startTime")
        if self_service and start <= self._clock():
            raise BookingValidationError("startTime", "startTime must be in the future")
        return start, end

    async def _ensure_available(
        self,
        request: BookingRequest,
        start: DateTime,
        end: DateTime,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        available = await self._checker.is_available(
            request.provider_id,
            request.service_id,
            start,
            end,
            exclude_booking_id=exclude_booking_id,
        )
        if not available:
            logger.warning(
                "Timeslot conflict for provider %s at %s",
                request.provider_id,
                start.to_iso8601_string(),
            )
            raise TimeslotConflictError()

    async def _resolve(self, request: BookingRequest) -> ResolvedEntities:
        entities = await self._resolver.resolve(
            request.provider_id,
            request.customer_id,
            request.service_id,
        )

        # Records of another brand are treated as missing.
        if entities.provider.brand_id != request.brand_id:
            raise ProviderNotFoundError(request.provider_id)
        if entities.customer.brand_id != request.brand_id:
            raise CustomerNotFoundError(request.customer_id)
        if entities.service.brand_id != request.brand_id:
            raise ServiceNotFoundError(request.service_id)
        if not entities.service.is_performed_by(entities.provider.id):
            raise BookingValidationError(
                "providerId",
                f"provider {entities.provider.id} does not perform service {entities.service.id}",
            )
        return entities

    @staticmethod
    def _build_draft(
        request: BookingRequest,
        entities: ResolvedEntities,
        start: DateTime,
        end: DateTime,
    ) -> BookingDraft:
        return BookingDraft.from_entities(
            brand_id=request.brand_id,
            entities=entities,
            start_time=start,
            end_time=end,
            comment=request.comment,
        )

    async def _reserve(self, draft: BookingDraft, *, replaces: Optional[int] = None) -> Booking:
        try:
            return await _call_store(
                "saving booking",
                lambda: self._store.reserve(draft, replaces=replaces),
            )
        except TimeslotConflictError:
            logger.warning(
                "Provider %s was booked concurrently at %s",
                draft.provider_id,
                draft.start_time.to_iso8601_string(),
            )
            raise


async def _call_store(action: str, call: Callable[[], Awaitable[T]]) -> T:
    """Run a store call, passing typed errors through and wrapping everything else."""
    try:
        return await call()
    except TimeslotEngineError:
        raise
    except Exception as exc:
        logger.error("Store failure while %s: %s", action, exc)
        raise InfrastructureError(f"{action}: {exc}") from exc
