"""
In-memory booking store, optionally seeded from a JSON file.

Used by the CLI and the test-suite in place of a relational database.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import fields, replace
from datetime import time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

import pendulum
from pendulum import DateTime

from ..domain.exceptions import BookingNotFoundError, TimeslotConflictError
from ..domain.models import (
    Booking,
    BookingDraft,
    BookingStatus,
    Customer,
    DayWorkingHours,
    Provider,
    Service,
    TimeRange,
)

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_data.json"


class InMemoryStore:
    """
    Store implementation that keeps every record in dictionaries.

    ``reserve`` serializes writers per provider with an ``asyncio.Lock`` and
    runs the conflict scan and the write inside that lock, which is what a
    relational adapter would do with ``SELECT ... FOR UPDATE`` or an
    exclusion constraint.

    Args:
        latency: Seconds every call sleeps, to simulate database round trips
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self._providers: Dict[int, Provider] = {}
        self._customers: Dict[int, Customer] = {}
        self._services: Dict[UUID, Service] = {}
        self._working_hours: Dict[int, Dict[int, DayWorkingHours]] = {}
        self._bookings: Dict[int, Booking] = {}
        self._provider_locks: Dict[int, asyncio.Lock] = {}
        self._next_booking_id = 1

    @classmethod
    def from_json(cls, data_file: Path, latency: float = 0.0) -> "InMemoryStore":
        """
        Load a store from a JSON seed file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If a record is malformed
        """
        if not data_file.exists():
            raise FileNotFoundError(f"Data file not found: {data_file}")

        with open(data_file, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {data_file}: {exc}") from exc

        store = cls(latency=latency)
        store.load(data)
        logger.debug("Loaded %d booking(s) from %s", len(store._bookings), data_file)
        return store

    def load(self, data: Dict[str, Any]) -> None:
        """Add every record of a decoded seed document."""
        try:
            for item in data.get("providers", []):
                self.add_provider(Provider(**item))
            for item in data.get("customers", []):
                self.add_customer(Customer(**item))
            for item in data.get("services", []):
                self.add_service(_service_from_dict(item))
            for item in data.get("working_hours", []):
                self.set_working_hours(_working_hours_from_dict(item))
            for item in data.get("bookings", []):
                self.add_booking(_booking_from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid seed record: {exc}") from exc

    def dump(self) -> Dict[str, Any]:
        """Inverse of ``load``."""
        return {
            "providers": [_plain(vars(p)) for p in self._providers.values()],
            "customers": [_plain(vars(c)) for c in self._customers.values()],
            "services": [_service_to_dict(s) for s in self._services.values()],
            "working_hours": [
                _working_hours_to_dict(hours)
                for per_brand in self._working_hours.values()
                for hours in per_brand.values()
            ],
            "bookings": [_booking_to_dict(b) for b in self._bookings.values()],
        }

    def save_json(self, data_file: Path) -> None:
        data_file.parent.mkdir(parents=True, exist_ok=True)
        with open(data_file, "w", encoding="utf-8") as f:
            json.dump(self.dump(), f, indent=2)

    # Seeding helpers

    def add_provider(self, provider: Provider) -> None:
        self._providers[provider.id] = provider

    def add_customer(self, customer: Customer) -> None:
        self._customers[customer.id] = customer

    def add_service(self, service: Service) -> None:
        self._services[service.id] = service

    def set_working_hours(self, hours: DayWorkingHours) -> None:
        self._working_hours.setdefault(hours.brand_id, {})[hours.day_of_week] = hours

    def add_booking(self, booking: Booking) -> Booking:
        """Insert a booking without any conflict check."""
        if not booking.id:
            booking = replace(booking, id=self._next_booking_id)
        self._bookings[booking.id] = booking
        self._next_booking_id = max(self._next_booking_id, booking.id + 1)
        return booking

    @property
    def bookings(self) -> List[Booking]:
        return sorted(self._bookings.values(), key=lambda b: b.id)

    # BookingStore protocol

    async def get_provider(self, provider_id: int) -> Optional[Provider]:
        await self._round_trip()
        return self._providers.get(provider_id)

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        await self._round_trip()
        return self._customers.get(customer_id)

    async def get_service(self, service_id: UUID) -> Optional[Service]:
        await self._round_trip()
        return self._services.get(service_id)

    async def get_working_hours(self, brand_id: int) -> List[DayWorkingHours]:
        await self._round_trip()
        per_brand = self._working_hours.get(brand_id, {})
        return [per_brand[day] for day in sorted(per_brand)]

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        await self._round_trip()
        return self._bookings.get(booking_id)

    async def find_provider_bookings(
        self,
        provider_id: int,
        window: TimeRange,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Booking]:
        await self._round_trip()
        return self._overlapping(provider_id, window, exclude_booking_id)

    async def list_brand_bookings(self, brand_id: int, window: TimeRange) -> List[Booking]:
        await self._round_trip()
        found = [
            booking
            for booking in self._bookings.values()
            if booking.brand_id == brand_id and window.start <= booking.start_time < window.end
        ]
        return sorted(found, key=lambda b: (b.start_time, b.id))

    async def reserve(self, draft: BookingDraft, *, replaces: Optional[int] = None) -> Booking:
        async with self._lock_for(draft.provider_id):
            await self._round_trip()

            existing = None
            if replaces is not None:
                existing = self._bookings.get(replaces)
                if existing is None:
                    raise BookingNotFoundError(replaces)

            if self._overlapping(draft.provider_id, draft.occupied_interval, replaces):
                raise TimeslotConflictError()

            now = pendulum.now("UTC")
            if existing is None:
                booking = Booking(
                    **_draft_values(draft),
                    id=self._next_booking_id,
                    status=BookingStatus.CONFIRMED,
                    created_at=now,
                    updated_at=now,
                )
                self._next_booking_id += 1
            else:
                booking = Booking(
                    **_draft_values(draft),
                    id=existing.id,
                    status=existing.status,
                    created_at=existing.created_at,
                    updated_at=now,
                )

            self._bookings[booking.id] = booking
            return booking

    def _overlapping(
        self,
        provider_id: int,
        window: TimeRange,
        exclude_booking_id: Optional[int],
    ) -> List[Booking]:
        found = [
            booking
            for booking in self._bookings.values()
            if booking.provider_id == provider_id
            and booking.is_active
            and booking.id != exclude_booking_id
            and booking.occupied_interval.overlaps(window)
        ]
        return sorted(found, key=lambda b: b.start_time)

    def _lock_for(self, provider_id: int) -> asyncio.Lock:
        lock = self._provider_locks.get(provider_id)
        if lock is None:
            lock = self._provider_locks[provider_id] = asyncio.Lock()
        return lock

    async def _round_trip(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)


def _parse_clock(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    return time.fromisoformat(value)


def _parse_instant(value: str) -> DateTime:
    parsed = pendulum.parse(value)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed.in_timezone("UTC")


def _service_from_dict(item: Dict[str, Any]) -> Service:
    cost = item.get("cost")
    return Service(
        id=UUID(str(item["id"])),
        title=item["title"],
        duration=int(item["duration"]),
        brand_id=int(item["brand_id"]),
        buffer_time=int(item.get("buffer_time") or 0),
        cost=Decimal(str(cost)) if cost is not None else None,
        is_visible=bool(item.get("is_visible", True)),
        provider_ids=frozenset(int(p) for p in item.get("provider_ids", [])),
    )


def _service_to_dict(service: Service) -> Dict[str, Any]:
    data = _plain(vars(service))
    data["provider_ids"] = sorted(service.provider_ids)
    return data


def _working_hours_from_dict(item: Dict[str, Any]) -> DayWorkingHours:
    return DayWorkingHours(
        brand_id=int(item["brand_id"]),
        day_of_week=int(item["day_of_week"]),
        open_time=_parse_clock(item.get("open_time")),
        close_time=_parse_clock(item.get("close_time")),
        is_closed=bool(item.get("is_closed", False)),
    )


def _working_hours_to_dict(hours: DayWorkingHours) -> Dict[str, Any]:
    return {
        "brand_id": hours.brand_id,
        "day_of_week": hours.day_of_week,
        "open_time": hours.open_time.strftime("%H:%M") if hours.open_time else None,
        "close_time": hours.close_time.strftime("%H:%M") if hours.close_time else None,
        "is_closed": hours.is_closed,
    }


def _booking_from_dict(item: Dict[str, Any]) -> Booking:
    cost = item.get("cost")
    created_at = item.get("created_at")
    updated_at = item.get("updated_at")
    return Booking(
        id=int(item.get("id") or 0),
        brand_id=int(item["brand_id"]),
        provider_id=int(item["provider_id"]),
        customer_id=int(item["customer_id"]),
        service_id=UUID(str(item["service_id"])),
        start_time=_parse_instant(item["start_time"]),
        end_time=_parse_instant(item["end_time"]),
        provider_name=item.get("provider_name", ""),
        customer_name=item.get("customer_name", ""),
        service_name=item.get("service_name", ""),
        cost=Decimal(str(cost)) if cost is not None else None,
        buffer_time=int(item.get("buffer_time") or 0),
        comment=item.get("comment") or "",
        status=BookingStatus(item.get("status", BookingStatus.CONFIRMED.value)),
        created_at=_parse_instant(created_at) if created_at else None,
        updated_at=_parse_instant(updated_at) if updated_at else None,
    )


def _booking_to_dict(booking: Booking) -> Dict[str, Any]:
    return _plain(vars(booking))


def _plain(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a record's attribute dict to JSON-friendly values."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, DateTime):
            value = value.in_timezone("UTC").to_iso8601_string()
        elif isinstance(value, (UUID, Decimal)):
            value = str(value)
        elif isinstance(value, BookingStatus):
            value = value.value
        result[key] = value
    return result


def _draft_values(draft: BookingDraft) -> Dict[str, Any]:
    return {f.name: getattr(draft, f.name) for f in fields(BookingDraft)}
