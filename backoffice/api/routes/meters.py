"""Meter and submeter API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.api.dependencies import require_permission
from backoffice.core.database import get_db
from backoffice.core.roles import METER_MANAGEMENT, SUB_METER_MANAGEMENT, Principal
from backoffice.schemas.meter import (
    MeterCreate,
    MeterResponse,
    SubmeterCreate,
    SubmeterResponse,
)
from backoffice.services import meter as meter_service

router = APIRouter(tags=["meters"])


@router.post("/meters", response_model=MeterResponse, status_code=status.HTTP_201_CREATED)
def create_meter(
    meter_data: MeterCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(METER_MANAGEMENT)),
) -> MeterResponse:
    """Create a meter on a property."""
    meter = meter_service.create_meter(db, principal, meter_data)
    return MeterResponse.model_validate(meter)


@router.get("/meters/{meter_id}", response_model=MeterResponse)
def get_meter(
    meter_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(METER_MANAGEMENT)),
) -> MeterResponse:
    """Get a meter by ID."""
    return MeterResponse.model_validate(meter_service.get_meter(db, principal, meter_id))


@router.post(
    "/submeters",
    response_model=SubmeterResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_submeter(
    submeter_data: SubmeterCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(SUB_METER_MANAGEMENT)),
) -> SubmeterResponse:
    """Create a submeter under a meter, installed in a unit."""
    submeter = meter_service.create_submeter(db, principal, submeter_data)
    return SubmeterResponse.model_validate(submeter)


@router.get("/submeters/{submeter_id}", response_model=SubmeterResponse)
def get_submeter(
    submeter_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(SUB_METER_MANAGEMENT)),
) -> SubmeterResponse:
    """Get a submeter by ID."""
    return SubmeterResponse.model_validate(
        meter_service.get_submeter(db, principal, submeter_id)
    )
