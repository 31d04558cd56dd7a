"""Device a reading is taken from: a meter or a submeter, never both."""

from dataclasses import dataclass
from uuid import UUID

from backoffice.domain.exceptions import InvalidTarget


@dataclass(frozen=True)
class MeterTarget:
    """Reading taken from a primary meter."""

    id: UUID

    def __str__(self) -> str:
        return f"meter {self.id}"


@dataclass(frozen=True)
class SubmeterTarget:
    """Reading taken from a submeter."""

    id: UUID

    def __str__(self) -> str:
        return f"submeter {self.id}"


DeviceTarget = MeterTarget | SubmeterTarget


def target_from_ids(meter_id: UUID | None, submeter_id: UUID | None) -> DeviceTarget:
    """Build a target from the two-column wire shape."""
    if (meter_id is None) == (submeter_id is None):
        raise InvalidTarget(meter_id=meter_id, submeter_id=submeter_id)
    if meter_id is not None:
        return MeterTarget(meter_id)
    return SubmeterTarget(submeter_id)


def target_to_ids(target: DeviceTarget) -> tuple[UUID | None, UUID | None]:
    """Return ``(meter_id, submeter_id)`` for storage."""
    if isinstance(target, MeterTarget):
        return target.id, None
    return None, target.id
