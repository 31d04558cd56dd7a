"""Meter and submeter service for business logic."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.core.roles import Principal
from backoffice.domain.exceptions import NotFound
from backoffice.models.meter import Meter, Submeter
from backoffice.models.property import Property, Unit
from backoffice.models.utility_type import UtilityType
from backoffice.schemas.meter import MeterCreate, SubmeterCreate
from backoffice.services.property import get_property

logger = logging.getLogger(__name__)


def get_or_create_utility_type(db: Session, name: str, unit_of_measure: str) -> UtilityType:
    """Get a utility type by name, creating it on first use."""
    utility_type = db.scalars(select(UtilityType).where(UtilityType.name == name)).first()
    if utility_type is None:
        utility_type = UtilityType(name=name, unit_of_measure=unit_of_measure)
        db.add(utility_type)
        db.flush()
    return utility_type


def create_meter(db: Session, principal: Principal, meter_data: MeterCreate) -> Meter:
    """Create a meter on a property."""
    db_property: Property = get_property(db, principal, meter_data.property_id)

    existing = db.scalars(select(Meter).where(Meter.number == meter_data.number)).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Meter with number '{meter_data.number}' already exists",
        )

    utility_type = get_or_create_utility_type(
        db, meter_data.utility_type, meter_data.unit_of_measure
    )
    db_meter = Meter(
        number=meter_data.number,
        property_id=db_property.id,
        utility_type_id=utility_type.id,
        account_id=db_property.account_id,
        status=meter_data.status,
        installed_date=meter_data.installed_date,
    )
    db.add(db_meter)
    db.commit()
    db.refresh(db_meter)
    logger.info("Created meter %s (%s)", db_meter.id, db_meter.number)
    return db_meter


def get_meter(db: Session, principal: Principal, meter_id: UUID) -> Meter:
    """Get a meter by ID."""
    meter = db.get(Meter, meter_id)
    scope = principal.scope_account_id
    if not meter or meter.is_deleted or (scope is not None and meter.account_id != scope):
        raise NotFound("Meter", meter_id)
    return meter


def create_submeter(db: Session, principal: Principal, submeter_data: SubmeterCreate) -> Submeter:
    """Create a submeter under a meter, installed in a unit of the same property."""
    meter = get_meter(db, principal, submeter_data.meter_id)

    unit = db.get(Unit, submeter_data.unit_id)
    if not unit or unit.property_id != meter.property_id:
        raise NotFound("Unit", submeter_data.unit_id)

    existing = db.scalars(
        select(Submeter).where(
            Submeter.meter_id == meter.id,
            Submeter.number == submeter_data.number,
        )
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Submeter number already exists for this meter",
        )

    db_submeter = Submeter(
        number=submeter_data.number,
        meter_id=meter.id,
        unit_id=unit.id,
        account_id=meter.account_id,
        status=submeter_data.status,
        installed_date=submeter_data.installed_date,
    )
    db.add(db_submeter)
    db.commit()
    db.refresh(db_submeter)
    logger.info("Created submeter %s under meter %s", db_submeter.id, meter.id)
    return db_submeter


def get_submeter(db: Session, principal: Principal, submeter_id: UUID) -> Submeter:
    """Get a submeter by ID."""
    submeter = db.get(Submeter, submeter_id)
    scope = principal.scope_account_id
    if not submeter or submeter.is_deleted or (scope is not None and submeter.account_id != scope):
        raise NotFound("Submeter", submeter_id)
    return submeter
