"""Meter and submeter Pydantic schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from backoffice.models.enums import DeviceStatus


class MeterCreate(BaseModel):
    """Schema for creating a meter on a property."""

    number: str
    property_id: UUID
    utility_type: str = "electricity"
    unit_of_measure: str = "kWh"
    status: DeviceStatus = DeviceStatus.ACTIVE
    installed_date: date | None = None


class MeterResponse(BaseModel):
    """Schema for meter response."""

    id: UUID
    number: str
    property_id: UUID
    utility_type_id: UUID
    account_id: UUID
    status: DeviceStatus
    installed_date: date | None
    last_reading_date: datetime | None
    is_deleted: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SubmeterCreate(BaseModel):
    """Schema for creating a submeter under a meter."""

    number: str
    meter_id: UUID
    unit_id: UUID
    status: DeviceStatus = DeviceStatus.ACTIVE
    installed_date: date | None = None


class SubmeterResponse(BaseModel):
    """Schema for submeter response."""

    id: UUID
    number: str
    meter_id: UUID
    unit_id: UUID
    account_id: UUID
    status: DeviceStatus
    installed_date: date | None
    is_deleted: bool
    created_at: datetime

    model_config = {"from_attributes": True}
