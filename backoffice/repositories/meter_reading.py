"""Repository for MeterReading records."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, selectinload

from backoffice.core.pagination import PageOptions, PageResult, paginate
from backoffice.domain.dates import as_utc
from backoffice.domain.exceptions import NotFound
from backoffice.domain.includes import IncludeSpec, ReadingInclude
from backoffice.domain.lifecycle import DeletedPolicy, RecordState, transition
from backoffice.domain.target import DeviceTarget, MeterTarget, target_to_ids
from backoffice.models.meter_reading import MeterReading
from backoffice.repositories.base import BaseRepository
from backoffice.services.reading_validation import ValidatedReading

_RELATIONSHIPS = {
    ReadingInclude.METER: MeterReading.meter,
    ReadingInclude.SUBMETER: MeterReading.submeter,
    ReadingInclude.ENTERED_BY: MeterReading.entered_by,
}

SORTABLE_FIELDS = {
    "reading_date": MeterReading.reading_date,
    "reading_value": MeterReading.reading_value,
    "consumption": MeterReading.consumption,
    "created_at": MeterReading.created_at,
    "updated_at": MeterReading.updated_at,
}


@dataclass(frozen=True)
class ReadingFilter:
    """Equality filters accepted by reading listings."""

    meter_id: UUID | None = None
    submeter_id: UUID | None = None
    reading_date: datetime | None = None
    entered_by_user_id: UUID | None = None


class MeterReadingRepository(BaseRepository[MeterReading]):
    """MeterReading persistence, scoped to one account unless privileged.

    ``account_id=None`` means the caller may see every account.
    """

    def __init__(self, db: Session, account_id: UUID | None = None):
        super().__init__(db, MeterReading)
        self.account_id = account_id

    def _scoped(self, statement: Select) -> Select:
        if self.account_id is not None:
            statement = statement.where(MeterReading.account_id == self.account_id)
        return statement

    def create(
        self,
        reading: ValidatedReading,
        account_id: UUID | None,
    ) -> MeterReading:
        """Persist a validated reading."""
        meter_id, submeter_id = target_to_ids(reading.target)
        db_reading = MeterReading(
            meter_id=meter_id,
            submeter_id=submeter_id,
            reading_value=reading.reading_value,
            reading_date=reading.reading_date,
            consumption=reading.consumption,
            entered_by_user_id=reading.entered_by_user_id,
            account_id=account_id,
            state=RecordState.ACTIVE,
        )
        return self.add(db_reading)

    def get_by_id(
        self,
        reading_id: UUID,
        includes: list[IncludeSpec] | None = None,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> MeterReading:
        """Get a reading, raising ``NotFound`` when absent, foreign or deleted."""
        statement = self._scoped(select(MeterReading).where(MeterReading.id == reading_id))
        for spec in includes or []:
            statement = statement.options(selectinload(_RELATIONSHIPS[spec.relation]))
        if for_update:
            statement = statement.with_for_update()

        reading = self.db.scalars(statement).first()
        if reading is None:
            raise NotFound("MeterReading", reading_id)
        if reading.state == RecordState.SOFT_DELETED and not include_deleted:
            raise NotFound("MeterReading", reading_id)
        return reading

    def list_page(
        self,
        filters: ReadingFilter,
        options: PageOptions,
        deleted_policy: DeletedPolicy = DeletedPolicy.EXCLUDE_DELETED,
        includes: list[IncludeSpec] | None = None,
    ) -> PageResult:
        """List readings matching ``filters`` as one page."""
        statement = self._scoped(select(MeterReading))

        if filters.meter_id is not None:
            statement = statement.where(MeterReading.meter_id == filters.meter_id)
        if filters.submeter_id is not None:
            statement = statement.where(MeterReading.submeter_id == filters.submeter_id)
        if filters.reading_date is not None:
            statement = statement.where(
                MeterReading.reading_date == as_utc(filters.reading_date)
            )
        if filters.entered_by_user_id is not None:
            statement = statement.where(
                MeterReading.entered_by_user_id == filters.entered_by_user_id
            )

        if deleted_policy == DeletedPolicy.EXCLUDE_DELETED:
            statement = statement.where(MeterReading.state == RecordState.ACTIVE)
        elif deleted_policy == DeletedPolicy.ONLY_DELETED:
            statement = statement.where(MeterReading.state == RecordState.SOFT_DELETED)

        for spec in includes or []:
            statement = statement.options(selectinload(_RELATIONSHIPS[spec.relation]))

        return paginate(
            self.db,
            statement,
            options,
            sortable=SORTABLE_FIELDS,
            default_sort=[MeterReading.created_at.asc()],
            tiebreaker=MeterReading.id,
        )

    def update(
        self,
        db_reading: MeterReading,
        reading: ValidatedReading,
        account_id: UUID | None = None,
    ) -> MeterReading:
        """Overwrite a stored reading with already-validated values.

        ``account_id`` re-homes the reading when it moved to another account's device.
        """
        meter_id, submeter_id = target_to_ids(reading.target)
        db_reading.meter_id = meter_id
        db_reading.submeter_id = submeter_id
        db_reading.reading_value = reading.reading_value
        db_reading.reading_date = reading.reading_date
        db_reading.consumption = reading.consumption
        db_reading.entered_by_user_id = reading.entered_by_user_id
        if account_id is not None:
            db_reading.account_id = account_id

        self.commit(db_reading)
        self.db.refresh(db_reading)
        return db_reading

    def set_state(self, db_reading: MeterReading, state: RecordState) -> MeterReading:
        """Move a reading to ``ACTIVE`` or ``SOFT_DELETED``; a no-op if already there."""
        current = RecordState(db_reading.state)
        transition(current, state)
        if current == state:
            return db_reading

        db_reading.state = state
        db_reading.deleted_at = datetime.now(UTC) if state == RecordState.SOFT_DELETED else None
        self.commit(db_reading)
        self.db.refresh(db_reading)
        return db_reading

    def hard_delete(self, db_reading: MeterReading) -> None:
        """Remove a reading permanently."""
        transition(RecordState(db_reading.state), RecordState.HARD_DELETED)
        self.delete(db_reading)

    def find_boundary(self, target: DeviceTarget, at: datetime) -> MeterReading | None:
        """Latest active reading for ``target`` taken at or before ``at``.

        Readings sharing a reading date are ordered by creation time, then id,
        so the most recently entered one wins.
        """
        if isinstance(target, MeterTarget):
            device_clause = MeterReading.meter_id == target.id
        else:
            device_clause = MeterReading.submeter_id == target.id

        statement = self._scoped(
            select(MeterReading).where(
                device_clause,
                MeterReading.state == RecordState.ACTIVE,
                MeterReading.reading_date <= as_utc(at),
            )
        ).order_by(
            MeterReading.reading_date.desc(),
            MeterReading.created_at.desc(),
            MeterReading.id.desc(),
        )
        return self.db.scalars(statement.limit(1)).first()

    def latest_reading_date(
        self, meter_id: UUID, excluding: UUID | None = None
    ) -> datetime | None:
        """Date of the newest active reading taken directly on a meter.

        Not account scoped: every reading on a meter belongs to the meter's account.
        """
        statement = select(func.max(MeterReading.reading_date)).where(
            MeterReading.meter_id == meter_id,
            MeterReading.state == RecordState.ACTIVE,
        )
        if excluding is not None:
            statement = statement.where(MeterReading.id != excluding)
        latest = self.db.scalar(statement)
        return as_utc(latest) if latest is not None else None
