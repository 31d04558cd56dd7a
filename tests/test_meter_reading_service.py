"""Tests for the reading ledger: create, correct, delete and restore."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from backoffice.core.pagination import PageOptions
from backoffice.domain.exceptions import (
    InvalidTarget,
    InvalidValue,
    NotFound,
    PersistenceError,
    StaleRecord,
)
from backoffice.domain.lifecycle import DeletedPolicy, IllegalTransition, RecordState
from backoffice.models.meter_reading import MeterReading
from backoffice.repositories.meter_reading import MeterReadingRepository, ReadingFilter
from backoffice.schemas.meter_reading import MeterReadingCreate, MeterReadingUpdate
from backoffice.services import meter_reading as reading_service
from backoffice.services.reading_validation import ReadingCandidate, validate_reading

JAN_1 = datetime(2025, 1, 1, tzinfo=UTC)
FEB_1 = datetime(2025, 2, 1, tzinfo=UTC)


def _create(db, principal, **fields) -> MeterReading:
    fields.setdefault("reading_date", JAN_1)
    fields.setdefault("reading_value", Decimal("100"))
    return reading_service.create_meter_reading(db, principal, MeterReadingCreate(**fields))


class TestCreateReading:
    def test_records_reading(self, test_db, principal, manager, account, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id, reading_value=Decimal("12.5"))

        assert reading.id is not None
        assert reading.meter_id == meter.id
        assert reading.submeter_id is None
        assert reading.reading_value == Decimal("12.5")
        assert reading.entered_by_user_id == manager.id
        assert reading.account_id == account.id
        assert reading.state == RecordState.ACTIVE
        assert reading.version == 1

    def test_advances_meter_last_reading_date(self, test_db, principal, meter) -> None:
        _create(test_db, principal, meter_id=meter.id, reading_date=FEB_1)
        _create(test_db, principal, meter_id=meter.id, reading_date=JAN_1)

        test_db.refresh(meter)
        assert meter.last_reading_date.replace(tzinfo=UTC) == FEB_1

    def test_both_devices_rejected_before_storage(
        self, test_db, principal, meter, submeter
    ) -> None:
        with pytest.raises(InvalidTarget):
            _create(test_db, principal, meter_id=meter.id, submeter_id=submeter.id)
        assert test_db.query(MeterReading).count() == 0

    def test_negative_value_rejected(self, test_db, principal, meter) -> None:
        with pytest.raises(InvalidValue):
            _create(test_db, principal, meter_id=meter.id, reading_value=Decimal("-5"))

    def test_unknown_device_is_a_storage_error(self, test_db, principal) -> None:
        with pytest.raises(PersistenceError) as exc_info:
            _create(test_db, principal, meter_id=uuid.uuid4())
        assert exc_info.value.integrity

    def test_other_account_device_is_not_found(
        self, test_db, principal, other_devices
    ) -> None:
        other_meter, _ = other_devices
        with pytest.raises(NotFound):
            _create(test_db, principal, meter_id=other_meter.id)

    def test_entered_by_user_of_other_account_is_not_found(
        self, test_db, principal, meter, other_manager
    ) -> None:
        with pytest.raises(NotFound):
            _create(test_db, principal, meter_id=meter.id, entered_by_user_id=other_manager.id)
        assert test_db.query(MeterReading).count() == 0

    def test_super_admin_may_credit_any_user(
        self, test_db, admin_principal, meter, other_manager
    ) -> None:
        reading = _create(
            test_db, admin_principal, meter_id=meter.id, entered_by_user_id=other_manager.id
        )
        assert reading.entered_by_user_id == other_manager.id


    def test_storage_rejects_two_devices(self, test_db, account, meter, submeter) -> None:
        test_db.add(
            MeterReading(
                meter_id=meter.id,
                submeter_id=submeter.id,
                reading_value=Decimal("1"),
                reading_date=JAN_1,
                account_id=account.id,
            )
        )
        repository = MeterReadingRepository(test_db)
        with pytest.raises(PersistenceError):
            repository.commit()


class TestUpdateReading:
    def test_partial_update_keeps_other_fields(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)

        updated = reading_service.update_meter_reading(
            test_db, principal, reading.id, MeterReadingUpdate(reading_value=Decimal("101.5"))
        )

        assert updated.reading_value == Decimal("101.5")
        assert updated.meter_id == meter.id
        assert updated.version == 2

    def test_adding_submeter_to_meter_reading_rejected(
        self, test_db, principal, meter, submeter
    ) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)

        with pytest.raises(InvalidTarget):
            reading_service.update_meter_reading(
                test_db, principal, reading.id, MeterReadingUpdate(submeter_id=submeter.id)
            )

    def test_switch_device(self, test_db, principal, meter, submeter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)

        updated = reading_service.update_meter_reading(
            test_db,
            principal,
            reading.id,
            MeterReadingUpdate(meter_id=None, submeter_id=submeter.id),
        )
        assert updated.meter_id is None
        assert updated.submeter_id == submeter.id

    def test_move_to_other_accounts_device_changes_account(
        self, test_db, principal, admin_principal, other_principal, other_account, meter, other_devices
    ) -> None:
        other_meter, _ = other_devices
        reading = _create(test_db, principal, meter_id=meter.id)

        moved = reading_service.update_meter_reading(
            test_db, admin_principal, reading.id, MeterReadingUpdate(meter_id=other_meter.id)
        )

        assert moved.account_id == other_account.id
        assert reading_service.get_meter_reading_by_id(test_db, other_principal, reading.id)
        with pytest.raises(NotFound):
            reading_service.get_meter_reading_by_id(test_db, principal, reading.id)

    def test_entered_by_user_of_other_account_rejected(
        self, test_db, principal, meter, other_manager
    ) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)

        with pytest.raises(NotFound):
            reading_service.update_meter_reading(
                test_db, principal, reading.id, MeterReadingUpdate(entered_by_user_id=other_manager.id)
            )


    def test_concurrent_update_detected(self, test_db, meter, add_reading) -> None:
        reading = add_reading("100", JAN_1, meter=meter)
        table = MeterReading.__table__
        test_db.connection().execute(
            table.update().where(table.c.id == reading.id).values(version=table.c.version + 1)
        )

        validated = validate_reading(
            ReadingCandidate(
                meter_id=meter.id,
                submeter_id=None,
                reading_value=Decimal("120"),
                reading_date=JAN_1,
            )
        )
        with pytest.raises(StaleRecord):
            MeterReadingRepository(test_db).update(reading, validated)

    def test_update_deleted_reading_not_found(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        reading_service.delete_meter_reading(test_db, principal, reading.id)

        with pytest.raises(NotFound):
            reading_service.update_meter_reading(
                test_db, principal, reading.id, MeterReadingUpdate(reading_value=Decimal("1"))
            )


class TestLifecycle:
    def test_soft_delete_hides_reading(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        reading_service.delete_meter_reading(test_db, principal, reading.id)

        with pytest.raises(NotFound):
            reading_service.get_meter_reading_by_id(test_db, principal, reading.id)
        deleted = reading_service.get_meter_reading_by_id(
            test_db, principal, reading.id, include_deleted=True
        )
        assert deleted.is_deleted
        assert deleted.deleted_at is not None

    def test_soft_delete_twice_is_a_noop(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        reading_service.delete_meter_reading(test_db, principal, reading.id)
        first_deleted_at = reading.deleted_at

        reading_service.delete_meter_reading(test_db, principal, reading.id)
        assert reading.deleted_at == first_deleted_at

    def test_restore_round_trip(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id, reading_value=Decimal("42"))
        reading_service.delete_meter_reading(test_db, principal, reading.id)

        restored = reading_service.restore_meter_reading(test_db, principal, reading.id)

        assert not restored.is_deleted
        assert restored.deleted_at is None
        assert restored.reading_value == Decimal("42")
        assert reading_service.get_meter_reading_by_id(test_db, principal, reading.id)

    def test_restore_active_reading_is_a_noop(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        restored = reading_service.restore_meter_reading(test_db, principal, reading.id)
        assert restored.version == 1

    def test_hard_delete_removes_row(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        reading_id = reading.id
        reading_service.hard_delete_meter_reading(test_db, principal, reading_id)

        assert test_db.get(MeterReading, reading_id) is None
        with pytest.raises(NotFound):
            reading_service.restore_meter_reading(test_db, principal, reading_id)

    def test_hard_delete_soft_deleted_reading(self, test_db, principal, meter) -> None:
        reading = _create(test_db, principal, meter_id=meter.id)
        reading_id = reading.id
        reading_service.delete_meter_reading(test_db, principal, reading_id)
        reading_service.hard_delete_meter_reading(test_db, principal, reading_id)
        assert test_db.get(MeterReading, reading_id) is None

    def test_state_machine_rejects_leaving_hard_deleted(self, test_db, meter, add_reading) -> None:
        reading = add_reading("1", JAN_1, meter=meter)
        reading.state = RecordState.HARD_DELETED
        with pytest.raises(IllegalTransition):
            MeterReadingRepository(test_db).set_state(reading, RecordState.ACTIVE)
        test_db.rollback()


class TestLastReadingDate:
    """A meter's last_reading_date follows its newest active reading."""

    @staticmethod
    def _last_reading_date(db, meter) -> datetime | None:
        db.refresh(meter)
        value = meter.last_reading_date
        return value.replace(tzinfo=UTC) if value is not None else None

    @pytest.fixture
    def readings(self, test_db, principal, meter) -> tuple[MeterReading, MeterReading]:
        older = _create(test_db, principal, meter_id=meter.id, reading_date=JAN_1)
        latest = _create(test_db, principal, meter_id=meter.id, reading_date=FEB_1)
        return older, latest

    def test_soft_delete_and_restore_of_latest(self, test_db, principal, meter, readings) -> None:
        _, latest = readings

        reading_service.delete_meter_reading(test_db, principal, latest.id)
        assert self._last_reading_date(test_db, meter) == JAN_1

        reading_service.restore_meter_reading(test_db, principal, latest.id)
        assert self._last_reading_date(test_db, meter) == FEB_1

    def test_hard_delete_of_latest(self, test_db, principal, meter, readings) -> None:
        _, latest = readings
        reading_service.hard_delete_meter_reading(test_db, principal, latest.id)
        assert self._last_reading_date(test_db, meter) == JAN_1

    def test_cleared_when_no_active_reading_remains(
        self, test_db, principal, meter, readings
    ) -> None:
        for reading in readings:
            reading_service.delete_meter_reading(test_db, principal, reading.id)
        assert self._last_reading_date(test_db, meter) is None

    def test_backdating_latest_reading(self, test_db, principal, meter, readings) -> None:
        _, latest = readings
        dec_1 = datetime(2024, 12, 1, tzinfo=UTC)

        reading_service.update_meter_reading(
            test_db, principal, latest.id, MeterReadingUpdate(reading_date=dec_1)
        )
        assert self._last_reading_date(test_db, meter) == JAN_1

    def test_moving_latest_reading_to_submeter(
        self, test_db, principal, meter, submeter, readings
    ) -> None:
        _, latest = readings
        reading_service.update_meter_reading(
            test_db,
            principal,
            latest.id,
            MeterReadingUpdate(meter_id=None, submeter_id=submeter.id),
        )
        assert self._last_reading_date(test_db, meter) == JAN_1


class TestListing:
    def test_deleted_policies(self, test_db, principal, meter, add_reading) -> None:
        kept = add_reading("1", JAN_1, meter=meter)
        gone = add_reading("2", FEB_1, meter=meter)
        reading_service.delete_meter_reading(test_db, principal, gone.id)

        def ids(policy: DeletedPolicy) -> set:
            page = reading_service.get_all_meter_readings(
                test_db, principal, ReadingFilter(), PageOptions(), deleted_policy=policy
            )
            return {r.id for r in page.results}

        assert ids(DeletedPolicy.EXCLUDE_DELETED) == {kept.id}
        assert ids(DeletedPolicy.ONLY_DELETED) == {gone.id}
        assert ids(DeletedPolicy.ALL) == {kept.id, gone.id}

    def test_filters(self, test_db, principal, meter, submeter, add_reading) -> None:
        add_reading("1", JAN_1, meter=meter)
        on_submeter = add_reading("2", JAN_1, submeter=submeter)
        add_reading("3", FEB_1, submeter=submeter)

        page = reading_service.get_all_meter_readings(
            test_db,
            principal,
            ReadingFilter(submeter_id=submeter.id, reading_date=JAN_1),
            PageOptions(),
        )
        assert [r.id for r in page.results] == [on_submeter.id]

    def test_scoped_to_callers_account(
        self, test_db, principal, other_principal, meter, other_devices, other_account, add_reading
    ) -> None:
        other_meter, _ = other_devices
        mine = add_reading("1", JAN_1, meter=meter)
        theirs = add_reading("2", JAN_1, meter=other_meter, account_id=other_account.id)

        page = reading_service.get_all_meter_readings(
            test_db, principal, ReadingFilter(), PageOptions()
        )
        assert [r.id for r in page.results] == [mine.id]

        with pytest.raises(NotFound):
            reading_service.get_meter_reading_by_id(test_db, principal, theirs.id)
        assert reading_service.get_meter_reading_by_id(
            test_db, other_principal, theirs.id
        )

    def test_super_admin_sees_every_account(
        self, test_db, admin_principal, meter, other_devices, other_account, add_reading
    ) -> None:
        other_meter, _ = other_devices
        add_reading("1", JAN_1, meter=meter)
        add_reading("2", JAN_1, meter=other_meter, account_id=other_account.id)

        page = reading_service.get_all_meter_readings(
            test_db, admin_principal, ReadingFilter(), PageOptions()
        )
        assert page.total_results == 2
