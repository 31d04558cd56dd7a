"""Property service for business logic."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backoffice.core.roles import Principal
from backoffice.domain.exceptions import NotFound
from backoffice.models.account import Account
from backoffice.models.property import Property, Unit
from backoffice.schemas.property import PropertyCreate, UnitCreate

logger = logging.getLogger(__name__)


def create_property(db: Session, principal: Principal, property_data: PropertyCreate) -> Property:
    """Create a property in the caller's account (or any account for privileged callers)."""
    account_id = principal.account_id
    if principal.is_privileged and property_data.account_id is not None:
        account_id = property_data.account_id

    if account_id is None or db.get(Account, account_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Property must belong to an existing account",
        )

    db_property = Property(
        display_name=property_data.display_name,
        address=property_data.address,
        account_id=account_id,
    )
    db.add(db_property)
    db.commit()
    db.refresh(db_property)
    logger.info("Created property %s in account %s", db_property.id, account_id)
    return db_property


def get_property(db: Session, principal: Principal, property_id: UUID) -> Property:
    """Get a property by ID."""
    db_property = db.get(Property, property_id)
    scope = principal.scope_account_id
    if not db_property or (scope is not None and db_property.account_id != scope):
        raise NotFound("Property", property_id)
    return db_property


def create_unit(
    db: Session,
    principal: Principal,
    property_id: UUID,
    unit_data: UnitCreate,
) -> Unit:
    """Add a unit to a property."""
    db_property = get_property(db, principal, property_id)
    db_unit = Unit(property_id=db_property.id, name=unit_data.name)
    db.add(db_unit)
    db.commit()
    db.refresh(db_unit)
    return db_unit
