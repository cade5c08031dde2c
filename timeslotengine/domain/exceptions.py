"""
Domain-specific exception hierarchy for the timeslot engine.

Lower layers raise these typed conditions; only the outermost caller
(the CLI, or an HTTP layer embedding the engine) turns them into responses.
"""

from typing import Any


class TimeslotEngineError(Exception):
    """Base class for all application-level errors."""

    retryable = False


class BookingValidationError(TimeslotEngineError):
    """Raised when a booking or browsing request is malformed."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


class TimeslotConflictError(TimeslotEngineError):
    """Raised when the requested interval overlaps an existing booking."""

    def __init__(self, message: str = "The requested timeslot is not available for booking"):
        super().__init__(message)


class EntityNotFoundError(TimeslotEngineError):
    """Raised when a referenced record is missing or belongs to another brand."""

    entity = "entity"

    def __init__(self, entity_id: Any):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class ProviderNotFoundError(EntityNotFoundError):
    entity = "provider"


class CustomerNotFoundError(EntityNotFoundError):
    entity = "customer"


class ServiceNotFoundError(EntityNotFoundError):
    entity = "service"


class BookingNotFoundError(EntityNotFoundError):
    entity = "booking"


class InfrastructureError(TimeslotEngineError):
    """Raised when the store or cache cannot be reached. Safe to retry."""

    retryable = True
