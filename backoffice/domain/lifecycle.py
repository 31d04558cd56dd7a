"""Record lifecycle: active, soft-deleted, hard-deleted."""

from enum import Enum


class RecordState(str, Enum):
    """Lifecycle state of a stored record.

    ``HARD_DELETED`` is terminal and never persisted: reaching it removes the row.
    """

    ACTIVE = "active"
    SOFT_DELETED = "soft_deleted"
    HARD_DELETED = "hard_deleted"


_TRANSITIONS: dict[RecordState, frozenset[RecordState]] = {
    RecordState.ACTIVE: frozenset(
        {RecordState.ACTIVE, RecordState.SOFT_DELETED, RecordState.HARD_DELETED}
    ),
    RecordState.SOFT_DELETED: frozenset(
        {RecordState.SOFT_DELETED, RecordState.ACTIVE, RecordState.HARD_DELETED}
    ),
    RecordState.HARD_DELETED: frozenset(),
}


class IllegalTransition(Exception):
    """Raised when moving between two states the lifecycle does not connect."""

    def __init__(self, current: RecordState, target: RecordState):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move record from {current.value} to {target.value}")


def transition(current: RecordState, target: RecordState) -> RecordState:
    """Validate a lifecycle move and return the new state.

    Moving to the current state is allowed, so soft delete and restore are
    idempotent.
    """
    if target not in _TRANSITIONS[current]:
        raise IllegalTransition(current, target)
    return target


class DeletedPolicy(str, Enum):
    """Which lifecycle states a listing returns."""

    EXCLUDE_DELETED = "exclude_deleted"
    ONLY_DELETED = "only_deleted"
    ALL = "all"
