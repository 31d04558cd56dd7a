"""MeterReading database model - the central ledger."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.core.database import Base
from backoffice.domain.lifecycle import RecordState
from backoffice.domain.target import DeviceTarget, target_from_ids

if TYPE_CHECKING:
    from backoffice.models.meter import Meter, Submeter
    from backoffice.models.user import User

# Six fractional digits is the precision readings are validated against
READING_NUMERIC = Numeric(precision=18, scale=6)


class MeterReading(Base):
    """Meter reading ledger entry for exactly one meter or submeter."""

    __tablename__ = "meter_readings"
    __table_args__ = (
        CheckConstraint(
            "(meter_id IS NULL) <> (submeter_id IS NULL)",
            name="ck_meter_readings_single_device",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    # Device: exactly one of the two is set
    meter_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("meters.id", ondelete="CASCADE"), nullable=True, index=True
    )
    submeter_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("submeters.id", ondelete="CASCADE"), nullable=True, index=True
    )

    reading_value: Mapped[Decimal] = mapped_column(READING_NUMERIC)
    reading_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    consumption: Mapped[Decimal | None] = mapped_column(READING_NUMERIC, nullable=True)

    entered_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, index=True
    )

    # Lifecycle
    state: Mapped[RecordState] = mapped_column(
        String(20), default=RecordState.ACTIVE, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    meter: Mapped["Meter | None"] = relationship(back_populates="readings")
    submeter: Mapped["Submeter | None"] = relationship(back_populates="readings")
    entered_by: Mapped["User | None"] = relationship()

    @property
    def target(self) -> DeviceTarget:
        """The device this reading belongs to."""
        return target_from_ids(self.meter_id, self.submeter_id)

    @property
    def is_deleted(self) -> bool:
        return self.state == RecordState.SOFT_DELETED
