"""Property and unit Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    display_name: str
    address: str | None = None
    # Only honoured for privileged callers; others always use their own account
    account_id: UUID | None = None


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: UUID
    display_name: str
    address: str | None
    account_id: UUID
    created_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class UnitCreate(BaseModel):
    """Schema for creating a unit inside a property."""

    name: str


class UnitResponse(BaseModel):
    """Schema for unit response."""

    id: UUID
    property_id: UUID
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}
