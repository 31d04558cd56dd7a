"""Meter and submeter database models."""

import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.core.database import Base
from backoffice.models.enums import DeviceStatus

if TYPE_CHECKING:
    from backoffice.models.meter_reading import MeterReading
    from backoffice.models.property import Property, Unit
    from backoffice.models.utility_type import UtilityType


class Meter(Base):
    """Primary utility meter attached to a property."""

    __tablename__ = "meters"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    status: Mapped[DeviceStatus] = mapped_column(String(20), default=DeviceStatus.ACTIVE)
    installed_date: Mapped[date | None] = mapped_column(nullable=True)
    last_reading_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(default=False)

    # Foreign keys
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True
    )
    utility_type_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("utility_types.id"))
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True
    )

    # Metadata
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    parent_property: Mapped["Property"] = relationship(back_populates="meters")
    utility_type: Mapped["UtilityType"] = relationship()
    submeters: Mapped[list["Submeter"]] = relationship(back_populates="meter")
    readings: Mapped[list["MeterReading"]] = relationship(
        back_populates="meter", passive_deletes=True
    )


class Submeter(Base):
    """Secondary meter installed in a unit, subordinate to a parent meter."""

    __tablename__ = "submeters"
    __table_args__ = (
        UniqueConstraint("number", "meter_id", name="uq_submeter_number_per_meter"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(100))
    status: Mapped[DeviceStatus] = mapped_column(String(20), default=DeviceStatus.ACTIVE)
    installed_date: Mapped[date | None] = mapped_column(nullable=True)
    is_deleted: Mapped[bool] = mapped_column(default=False)

    # Foreign keys
    meter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("meters.id", ondelete="CASCADE"), index=True
    )
    unit_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("units.id"), index=True)
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True
    )

    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    meter: Mapped["Meter"] = relationship(back_populates="submeters")
    unit: Mapped["Unit"] = relationship()
    readings: Mapped[list["MeterReading"]] = relationship(
        back_populates="submeter", passive_deletes=True
    )
