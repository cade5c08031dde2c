"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    CustomerNotFoundError,
    EntityNotFoundError,
    InfrastructureError,
    ProviderNotFoundError,
    ServiceNotFoundError,
    TimeslotConflictError,
    TimeslotEngineError,
)
from .models import (
    Booking,
    BookingDraft,
    BookingStatus,
    Customer,
    DayWorkingHours,
    Provider,
    ResolvedEntities,
    Service,
    TimeRange,
)
from .requests import BookingRequest, TimeslotQuery
from .slot_generator import SLOT_STEP_MINUTES, SlotGenerator

__all__ = [
    "Booking",
    "BookingDraft",
    "BookingNotFoundError",
    "BookingRequest",
    "BookingStatus",
    "BookingValidationError",
    "Customer",
    "CustomerNotFoundError",
    "DayWorkingHours",
    "EntityNotFoundError",
    "InfrastructureError",
    "Provider",
    "ProviderNotFoundError",
    "ResolvedEntities",
    "SLOT_STEP_MINUTES",
    "Service",
    "ServiceNotFoundError",
    "SlotGenerator",
    "TimeRange",
    "TimeslotConflictError",
    "TimeslotEngineError",
    "TimeslotQuery",
]
