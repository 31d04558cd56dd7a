"""Shared fixtures: in-memory database, users, devices and API clients."""

import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import backoffice.models  # noqa: F401
from backoffice.core.database import Base, get_db
from backoffice.core.roles import Principal
from backoffice.main import app
from backoffice.models.account import Account
from backoffice.models.enums import UserRole
from backoffice.models.meter import Meter, Submeter
from backoffice.models.meter_reading import MeterReading
from backoffice.models.property import Property, Unit
from backoffice.models.user import User
from backoffice.models.utility_type import UtilityType
from backoffice.services.auth import create_access_token


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def client(test_db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(db, instance):
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


def make_user(db, username: str, role: UserRole, account: Account | None) -> User:
    """Create a user without paying for a real password hash."""
    return _add(
        db,
        User(
            username=username,
            email=f"{username}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            account_id=account.id if account else None,
        ),
    )


def make_devices(db, account: Account, prefix: str) -> tuple[Meter, Submeter]:
    """Create a property with one unit, one meter and one submeter."""
    utility_type = db.query(UtilityType).filter_by(name="electricity").first()
    if utility_type is None:
        utility_type = _add(db, UtilityType(name="electricity", unit_of_measure="kWh"))
    prop = _add(db, Property(display_name=f"{prefix} House", account_id=account.id))
    unit = _add(db, Unit(property_id=prop.id, name=f"{prefix}-1A"))
    meter = _add(
        db,
        Meter(
            number=f"{prefix}-M1",
            property_id=prop.id,
            utility_type_id=utility_type.id,
            account_id=account.id,
        ),
    )
    submeter = _add(
        db,
        Submeter(
            number=f"{prefix}-S1",
            meter_id=meter.id,
            unit_id=unit.id,
            account_id=account.id,
        ),
    )
    return meter, submeter


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=UserRole(user.role), account_id=user.account_id)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': user.username})}"}


@pytest.fixture
def account(test_db) -> Account:
    return _add(test_db, Account(name="Main Account"))


@pytest.fixture
def other_account(test_db) -> Account:
    return _add(test_db, Account(name="Other Account"))


@pytest.fixture
def manager(test_db, account) -> User:
    return make_user(test_db, "manager", UserRole.PROPERTY_MANAGER, account)


@pytest.fixture
def other_manager(test_db, other_account) -> User:
    return make_user(test_db, "other_manager", UserRole.PROPERTY_MANAGER, other_account)


@pytest.fixture
def super_admin(test_db) -> User:
    return make_user(test_db, "root", UserRole.SUPER_ADMIN, None)


@pytest.fixture
def tenant(test_db, account) -> User:
    return make_user(test_db, "tenant", UserRole.TENANT, account)


@pytest.fixture
def devices(test_db, account) -> tuple[Meter, Submeter]:
    return make_devices(test_db, account, "MAIN")


@pytest.fixture
def meter(devices) -> Meter:
    return devices[0]


@pytest.fixture
def submeter(devices) -> Submeter:
    return devices[1]


@pytest.fixture
def other_devices(test_db, other_account) -> tuple[Meter, Submeter]:
    return make_devices(test_db, other_account, "OTHER")


@pytest.fixture
def principal(manager) -> Principal:
    return principal_for(manager)


@pytest.fixture
def headers(manager) -> dict[str, str]:
    return auth_headers(manager)


@pytest.fixture
def add_reading(test_db, account, manager):
    """Insert a reading directly, bypassing validation."""

    def _add_reading(
        value: str,
        reading_date: datetime,
        meter: Meter | None = None,
        submeter: Submeter | None = None,
        created_at: datetime | None = None,
        account_id: uuid.UUID | None = None,
    ) -> MeterReading:
        reading = MeterReading(
            meter_id=meter.id if meter else None,
            submeter_id=submeter.id if submeter else None,
            reading_value=Decimal(value),
            reading_date=reading_date,
            entered_by_user_id=manager.id,
            account_id=account_id or account.id,
        )
        if created_at is not None:
            reading.created_at = created_at
        return _add(test_db, reading)

    return _add_reading


@pytest.fixture
def other_principal(other_manager) -> Principal:
    return principal_for(other_manager)


@pytest.fixture
def admin_principal(super_admin) -> Principal:
    return principal_for(super_admin)


@pytest.fixture
def other_headers(other_manager) -> dict[str, str]:
    return auth_headers(other_manager)


@pytest.fixture
def admin_headers(super_admin) -> dict[str, str]:
    return auth_headers(super_admin)


@pytest.fixture
def tenant_headers(tenant) -> dict[str, str]:
    return auth_headers(tenant)


@pytest.fixture
def account_admin(test_db, account) -> User:
    return make_user(test_db, "account_admin", UserRole.ACCOUNT_ADMIN, account)


@pytest.fixture
def account_admin_headers(account_admin) -> dict[str, str]:
    return auth_headers(account_admin)


@pytest.fixture
def accountless_manager(test_db) -> User:
    """A manager stored without an account, as older rows may be."""
    return make_user(test_db, "loose", UserRole.PROPERTY_MANAGER, None)


@pytest.fixture
def accountless_headers(accountless_manager) -> dict[str, str]:
    return auth_headers(accountless_manager)
