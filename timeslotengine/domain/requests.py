"""
Inbound request shapes, validated with pydantic.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Type, TypeVar
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import BookingValidationError

RequestT = TypeVar("RequestT", bound="_Request")


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    @classmethod
    def from_payload(cls: Type[RequestT], payload: Mapping[str, Any]) -> RequestT:
        """
        Build a request from a decoded payload.

        Raises:
            BookingValidationError: carrying the first offending field
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "payload"
            raise BookingValidationError(field, f"{field}: {first['msg']}") from exc


class BookingRequest(_Request):
    """Create or update a booking."""
    provider_id: int = Field(
        gt=0,
        validation_alias=AliasChoices("providerId", "userId", "provider_id"),
    )
    customer_id: int = Field(gt=0, validation_alias=AliasChoices("customerId", "customer_id"))
    service_id: UUID = Field(validation_alias=AliasChoices("serviceId", "service_id"))
    brand_id: int = Field(gt=0, validation_alias=AliasChoices("brandId", "brand_id"))
    start_time: datetime = Field(validation_alias=AliasChoices("startTime", "start_time"))
    end_time: datetime = Field(validation_alias=AliasChoices("endTime", "end_time"))
    comment: str = Field(default="", max_length=2000)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BookingRequest":
        """Reject empty or inverted intervals when both ends share a tz-awareness."""
        same_kind = (self.start_time.tzinfo is None) == (self.end_time.tzinfo is None)
        if same_kind and self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class TimeslotQuery(_Request):
    """Browse the free slots of one provider for one service and day."""
    day: date = Field(validation_alias=AliasChoices("date", "day"))
    service_id: UUID = Field(validation_alias=AliasChoices("serviceId", "service_id"))
    provider_id: int = Field(
        gt=0,
        validation_alias=AliasChoices("providerId", "userId", "provider_id"),
    )
    brand_id: int = Field(gt=0, validation_alias=AliasChoices("brandId", "brand_id"))
