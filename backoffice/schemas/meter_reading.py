"""MeterReading Pydantic schemas for request/response validation.

Device ids travel as two optional fields (``meter_id``, ``submeter_id``) on
the wire. Whether exactly one is set is checked by the reading validator, not
here, so rejections carry the engine's own error types.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, PlainSerializer, model_validator

from backoffice.domain.includes import IncludeSpec
from backoffice.models.meter_reading import MeterReading

JsonNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class MeterReadingCreate(BaseModel):
    """Schema for recording a reading."""

    meter_id: UUID | None = None
    submeter_id: UUID | None = None
    reading_value: Decimal
    reading_date: datetime
    consumption: Decimal | None = None
    entered_by_user_id: UUID | None = None


class MeterReadingUpdate(BaseModel):
    """Schema for correcting a reading; explicit nulls clear a field."""

    meter_id: UUID | None = None
    submeter_id: UUID | None = None
    reading_value: Decimal | None = None
    reading_date: datetime | None = None
    consumption: Decimal | None = None
    entered_by_user_id: UUID | None = None

    @model_validator(mode="after")
    def check_at_least_one_field(self) -> "MeterReadingUpdate":
        """Ensure at least one field is provided for update."""
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class MeterReadingResponse(BaseModel):
    """Schema for meter reading response, with any requested relations."""

    id: UUID
    meter_id: UUID | None
    submeter_id: UUID | None
    reading_value: JsonNumber
    reading_date: datetime
    consumption: JsonNumber | None
    entered_by_user_id: UUID | None
    account_id: UUID | None
    is_deleted: bool
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    meter: dict[str, Any] | None = None
    submeter: dict[str, Any] | None = None
    entered_by: dict[str, Any] | None = None

    @classmethod
    def from_reading(
        cls,
        reading: MeterReading,
        includes: list[IncludeSpec] | None = None,
    ) -> "MeterReadingResponse":
        related = {
            spec.relation.token: spec.project(getattr(reading, spec.relation.token))
            for spec in includes or []
        }
        return cls(
            id=reading.id,
            meter_id=reading.meter_id,
            submeter_id=reading.submeter_id,
            reading_value=reading.reading_value,
            reading_date=reading.reading_date,
            consumption=reading.consumption,
            entered_by_user_id=reading.entered_by_user_id,
            account_id=reading.account_id,
            is_deleted=reading.is_deleted,
            deleted_at=reading.deleted_at,
            created_at=reading.created_at,
            updated_at=reading.updated_at,
            **related,
        )


class ConsumptionRequest(BaseModel):
    """Schema for a consumption calculation over a date range."""

    meter_id: UUID | None = None
    submeter_id: UUID | None = None
    start_date: datetime
    end_date: datetime


class ConsumptionResponse(BaseModel):
    """Consumption between the boundary readings of a date range."""

    consumption: JsonNumber
