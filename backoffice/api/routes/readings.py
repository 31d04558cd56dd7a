"""MeterReading routes for ledger operations."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from backoffice.api.dependencies import require_permission
from backoffice.core.database import get_db
from backoffice.core.pagination import PageOptions
from backoffice.core.roles import METER_READING_MANAGEMENT, Principal
from backoffice.domain.includes import parse_includes
from backoffice.domain.lifecycle import DeletedPolicy
from backoffice.repositories.meter_reading import ReadingFilter
from backoffice.schemas.meter_reading import (
    ConsumptionRequest,
    ConsumptionResponse,
    MeterReadingCreate,
    MeterReadingResponse,
    MeterReadingUpdate,
)
from backoffice.schemas.pagination import Page
from backoffice.services import meter_reading as reading_service

router = APIRouter(prefix="/meter-readings", tags=["meter-readings"])

require_reading_access = require_permission(METER_READING_MANAGEMENT)


@router.post(
    "",
    response_model=MeterReadingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reading(
    reading_data: MeterReadingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> MeterReadingResponse:
    """Record a single reading for exactly one meter or submeter."""
    reading = reading_service.create_meter_reading(db, principal, reading_data)
    return MeterReadingResponse.from_reading(reading)


@router.get("", response_model=Page[MeterReadingResponse])
def list_readings(
    meter_id: UUID | None = None,
    submeter_id: UUID | None = None,
    reading_date: datetime | None = None,
    entered_by_user_id: UUID | None = None,
    sort_by: str | None = Query(None, description="field:asc|desc, comma separated"),
    limit: int | None = None,
    page: int | None = None,
    deleted: DeletedPolicy = DeletedPolicy.EXCLUDE_DELETED,
    include: str | None = Query(None, description="meter[:attr,...]|submeter|entered_by"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> Page[MeterReadingResponse]:
    """List readings with filters, sorting and pagination."""
    includes = parse_includes(include)
    result = reading_service.get_all_meter_readings(
        db,
        principal,
        ReadingFilter(
            meter_id=meter_id,
            submeter_id=submeter_id,
            reading_date=reading_date,
            entered_by_user_id=entered_by_user_id,
        ),
        PageOptions(sort_by=sort_by, limit=limit, page=page),
        deleted_policy=deleted,
        includes=includes,
    )
    return Page[MeterReadingResponse](
        results=[MeterReadingResponse.from_reading(r, includes) for r in result.results],
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        total_results=result.total_results,
    )


@router.post("/calculate-consumption", response_model=ConsumptionResponse)
def calculate_consumption(
    request_data: ConsumptionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> ConsumptionResponse:
    """
    Calculate consumption for one device over a date range.

    Consumption is the latest reading at or before end_date minus the latest
    reading at or before start_date.
    """
    consumption = reading_service.calculate_consumption(
        db,
        principal,
        request_data.meter_id,
        request_data.submeter_id,
        request_data.start_date,
        request_data.end_date,
    )
    return ConsumptionResponse(consumption=consumption)


@router.get("/{reading_id}", response_model=MeterReadingResponse)
def get_reading(
    reading_id: UUID,
    include: str | None = Query(None, description="meter[:attr,...]|submeter|entered_by"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> MeterReadingResponse:
    """Get a reading, optionally with related meter, submeter and user."""
    includes = parse_includes(include)
    reading = reading_service.get_meter_reading_by_id(db, principal, reading_id, includes)
    return MeterReadingResponse.from_reading(reading, includes)


@router.patch("/{reading_id}", response_model=MeterReadingResponse)
def update_reading(
    reading_id: UUID,
    reading_data: MeterReadingUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> MeterReadingResponse:
    """Correct a reading's value, date or device."""
    reading = reading_service.update_meter_reading(db, principal, reading_id, reading_data)
    return MeterReadingResponse.from_reading(reading)


@router.delete("/{reading_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reading(
    reading_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> Response:
    """Soft delete a reading."""
    reading_service.delete_meter_reading(db, principal, reading_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{reading_id}/restore", response_model=MeterReadingResponse)
def restore_reading(
    reading_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> MeterReadingResponse:
    """Restore a soft deleted reading."""
    reading = reading_service.restore_meter_reading(db, principal, reading_id)
    return MeterReadingResponse.from_reading(reading)


@router.delete("/{reading_id}/hard", status_code=status.HTTP_204_NO_CONTENT)
def hard_delete_reading(
    reading_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_reading_access),
) -> Response:
    """Permanently delete a reading."""
    reading_service.hard_delete_meter_reading(db, principal, reading_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
