"""MeterReading service for business logic."""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.core.pagination import PageOptions, PageResult
from backoffice.core.roles import Principal
from backoffice.domain.dates import as_utc
from backoffice.domain.exceptions import NotFound
from backoffice.domain.includes import IncludeSpec
from backoffice.domain.lifecycle import DeletedPolicy, RecordState
from backoffice.domain.target import DeviceTarget, MeterTarget, target_from_ids, target_to_ids
from backoffice.models.meter import Meter, Submeter
from backoffice.models.meter_reading import MeterReading
from backoffice.models.user import User
from backoffice.repositories.meter_reading import MeterReadingRepository, ReadingFilter
from backoffice.schemas.meter_reading import MeterReadingCreate, MeterReadingUpdate
from backoffice.services import consumption as consumption_service
from backoffice.services.reading_validation import (
    ReadingCandidate,
    merge_update,
    validate_reading,
)

logger = logging.getLogger(__name__)


def _repository(db: Session, principal: Principal) -> MeterReadingRepository:
    return MeterReadingRepository(db, account_id=principal.scope_account_id)


def _check_device_access(
    db: Session, principal: Principal, target: DeviceTarget
) -> Meter | Submeter | None:
    """Load the target device, hiding devices of other accounts.

    A device that does not exist at all is left for the foreign key to reject.
    """
    model = Meter if isinstance(target, MeterTarget) else Submeter
    device = db.get(model, target.id)
    if device is None:
        return None
    scope = principal.scope_account_id
    if scope is not None and device.account_id != scope:
        raise NotFound(model.__name__, target.id)
    return device


def _check_user_access(db: Session, principal: Principal, user_id: UUID | None) -> None:
    """Hide users of other accounts from the entered-by reference.

    Like devices, an unknown user is left for the foreign key to reject.
    """
    if user_id is None or user_id == principal.user_id:
        return
    user = db.get(User, user_id)
    scope = principal.scope_account_id
    if user is not None and scope is not None and user.account_id != scope:
        raise NotFound("User", user_id)


def _sync_last_reading_date(
    repository: MeterReadingRepository,
    meter_id: UUID | None,
    reading_id: UUID,
    reading_date: datetime | None,
) -> None:
    """Point a meter's ``last_reading_date`` at its newest active reading.

    Runs before the change to ``reading_id`` is committed, so that reading
    counts at ``reading_date``, or not at all when that is None.
    """
    if meter_id is None:
        return
    meter = repository.db.get(Meter, meter_id)
    if meter is None:
        return
    dates = [repository.latest_reading_date(meter_id, excluding=reading_id)]
    if reading_date is not None:
        dates.append(as_utc(reading_date))
    meter.last_reading_date = max((d for d in dates if d is not None), default=None)


def create_meter_reading(
    db: Session,
    principal: Principal,
    reading_data: MeterReadingCreate,
) -> MeterReading:
    """Validate and record a new reading.

    The caller is recorded as the entering user when the payload names none.
    The reading belongs to its device's account, and a meter's
    ``last_reading_date`` only moves forward here.
    """
    validated = validate_reading(
        ReadingCandidate(
            meter_id=reading_data.meter_id,
            submeter_id=reading_data.submeter_id,
            reading_value=reading_data.reading_value,
            reading_date=reading_data.reading_date,
            consumption=reading_data.consumption,
            entered_by_user_id=reading_data.entered_by_user_id or principal.user_id,
        )
    )

    device = _check_device_access(db, principal, validated.target)
    _check_user_access(db, principal, validated.entered_by_user_id)
    account_id = device.account_id if device is not None else principal.account_id
    if isinstance(device, Meter) and (
        device.last_reading_date is None
        or validated.reading_date > as_utc(device.last_reading_date)
    ):
        device.last_reading_date = validated.reading_date

    reading = _repository(db, principal).create(validated, account_id=account_id)
    logger.info("Recorded reading %s for %s", reading.id, validated.target)
    return reading


def get_all_meter_readings(
    db: Session,
    principal: Principal,
    filters: ReadingFilter,
    options: PageOptions,
    deleted_policy: DeletedPolicy = DeletedPolicy.EXCLUDE_DELETED,
    includes: list[IncludeSpec] | None = None,
) -> PageResult:
    """List readings visible to the caller, one page at a time."""
    return _repository(db, principal).list_page(filters, options, deleted_policy, includes)


def get_meter_reading_by_id(
    db: Session,
    principal: Principal,
    reading_id: UUID,
    includes: list[IncludeSpec] | None = None,
    include_deleted: bool = False,
) -> MeterReading:
    """Get a single reading, optionally with projections of related records."""
    return _repository(db, principal).get_by_id(
        reading_id, includes=includes, include_deleted=include_deleted
    )


def update_meter_reading(
    db: Session,
    principal: Principal,
    reading_id: UUID,
    reading_data: MeterReadingUpdate,
) -> MeterReading:
    """Correct a reading.

    The update is applied to the stored record first and the merged result is
    validated as a whole, so a patch that leaves zero or two devices set is
    rejected. Moving the reading to another device moves it to that device's
    account.
    """
    repository = _repository(db, principal)
    reading = repository.get_by_id(reading_id, for_update=True)

    patch = reading_data.model_dump(exclude_unset=True)
    validated = validate_reading(merge_update(reading, patch))
    account_id = reading.account_id
    if validated.target != reading.target:
        device = _check_device_access(db, principal, validated.target)
        if device is not None:
            account_id = device.account_id
    if validated.entered_by_user_id != reading.entered_by_user_id:
        _check_user_access(db, principal, validated.entered_by_user_id)

    new_meter_id, _ = target_to_ids(validated.target)
    if reading.meter_id != new_meter_id:
        _sync_last_reading_date(repository, reading.meter_id, reading.id, None)
    _sync_last_reading_date(repository, new_meter_id, reading.id, validated.reading_date)

    reading = repository.update(reading, validated, account_id=account_id)
    logger.info("Updated reading %s (version %s)", reading.id, reading.version)
    return reading


def delete_meter_reading(db: Session, principal: Principal, reading_id: UUID) -> None:
    """Soft delete a reading; deleting an already deleted reading is a no-op."""
    repository = _repository(db, principal)
    reading = repository.get_by_id(reading_id, include_deleted=True)
    if reading.state == RecordState.ACTIVE:
        _sync_last_reading_date(repository, reading.meter_id, reading.id, None)
    repository.set_state(reading, RecordState.SOFT_DELETED)
    logger.info("Soft deleted reading %s", reading_id)


def restore_meter_reading(db: Session, principal: Principal, reading_id: UUID) -> MeterReading:
    """Bring a soft deleted reading back; restoring an active one is a no-op."""
    repository = _repository(db, principal)
    reading = repository.get_by_id(reading_id, include_deleted=True)
    if reading.state == RecordState.SOFT_DELETED:
        _sync_last_reading_date(repository, reading.meter_id, reading.id, reading.reading_date)
    reading = repository.set_state(reading, RecordState.ACTIVE)
    logger.info("Restored reading %s", reading_id)
    return reading


def hard_delete_meter_reading(db: Session, principal: Principal, reading_id: UUID) -> None:
    """Permanently remove a reading, whether or not it was soft deleted."""
    repository = _repository(db, principal)
    reading = repository.get_by_id(reading_id, include_deleted=True)
    _sync_last_reading_date(repository, reading.meter_id, reading.id, None)
    repository.hard_delete(reading)
    logger.info("Hard deleted reading %s", reading_id)



def calculate_consumption(
    db: Session,
    principal: Principal,
    meter_id: UUID | None,
    submeter_id: UUID | None,
    start_date: datetime,
    end_date: datetime,
) -> Decimal:
    """Consumption for one device between two dates."""
    target = target_from_ids(meter_id, submeter_id)
    return consumption_service.calculate_consumption(
        _repository(db, principal), target, start_date, end_date
    )
