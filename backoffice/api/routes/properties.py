"""Property API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.dependencies import require_permission
from backoffice.core.database import get_db
from backoffice.core.roles import PROPERTY_MANAGEMENT, Principal
from backoffice.schemas.property import (
    PropertyCreate,
    PropertyResponse,
    UnitCreate,
    UnitResponse,
)
from backoffice.services import property as property_service

router = APIRouter(prefix="/properties", tags=["properties"])

require_property_access = require_permission(PROPERTY_MANAGEMENT)


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_property_access),
) -> PropertyResponse:
    """Create a new property."""
    db_property = property_service.create_property(db, principal, property_data)
    return PropertyResponse.model_validate(db_property)


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_property_access),
) -> PropertyResponse:
    """Get a property by ID."""
    return PropertyResponse.model_validate(
        property_service.get_property(db, principal, property_id)
    )


@router.post(
    "/{property_id}/units",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_unit(
    property_id: UUID,
    unit_data: UnitCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_property_access),
) -> UnitResponse:
    """Add a unit to a property."""
    unit = property_service.create_unit(db, principal, property_id, unit_data)
    return UnitResponse.model_validate(unit)
