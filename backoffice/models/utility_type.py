"""UtilityType database model."""

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.core.database import Base


class UtilityType(Base):
    """Kind of utility a meter measures (electricity, water, gas)."""

    __tablename__ = "utility_types"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    unit_of_measure: Mapped[str] = mapped_column(String(20), default="kWh")
