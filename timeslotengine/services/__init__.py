"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityChecker
from .booking_coordinator import BookingCoordinator
from .entity_resolver import EntityResolver
from .protocols import BookingStore, ProfileCache
from .timeslots import TimeslotService

__all__ = [
    "AvailabilityChecker",
    "BookingCoordinator",
    "BookingStore",
    "EntityResolver",
    "ProfileCache",
    "TimeslotService",
]
