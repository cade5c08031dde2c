"""
Shared fixtures: the bundled sample data and a fixed clock.

Sample data (brand 1, Europe/Sofia, EET = UTC+2 in November):
- 2026-11-02 is a Monday, open 09:00-17:00
- Booking 1: provider 1, 10:00-10:30 local, 15 minutes buffer
"""

from datetime import date
from uuid import UUID

import pendulum
import pytest

from timeslotengine.adapters import SAMPLE_DATA_FILE, InMemoryProfileCache, InMemoryStore
from timeslotengine.services import AvailabilityChecker, BookingCoordinator, EntityResolver

TZ = "Europe/Sofia"
HAIRCUT_ID = UUID("6f1c2a9e-3b7d-4c1e-9a52-1f0d3e8b7a10")
COLOURING_ID = UUID("a4e7b0c2-5d6f-4e8a-b1c3-2d4f6a8b0c1e")
BEARD_TRIM_ID = UUID("c0ffee00-1234-4abc-9def-0123456789ab")
MONDAY = date(2026, 11, 2)
SUNDAY = date(2026, 11, 1)
NOW = pendulum.datetime(2026, 10, 19, 9, 0, tz="UTC")


def fixed_clock():
    return NOW


def local(value: str):
    """``YYYY-MM-DD HH:mm`` in the sample brand's timezone."""
    return pendulum.from_format(value, "YYYY-MM-DD HH:mm", tz=TZ)


def booking_payload(start: str, end: str, **overrides):
    """A create/update payload for provider 1, customer 1 and a haircut."""
    payload = {
        "providerId": 1,
        "customerId": 1,
        "serviceId": str(HAIRCUT_ID),
        "brandId": 1,
        "startTime": local(start).to_iso8601_string(),
        "endTime": local(end).to_iso8601_string(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store():
    return InMemoryStore.from_json(SAMPLE_DATA_FILE)


@pytest.fixture
def cache():
    return InMemoryProfileCache()


@pytest.fixture
def coordinator(store):
    return BookingCoordinator(
        store,
        EntityResolver(store, timeout=5.0),
        AvailabilityChecker(store),
        timezone=TZ,
        clock=fixed_clock,
    )
