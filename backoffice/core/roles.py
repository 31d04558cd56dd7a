"""Role permissions and the resolved caller."""

from dataclasses import dataclass
from uuid import UUID

from backoffice.models.enums import UserRole

METER_READING_MANAGEMENT = "meter_reading:management"
METER_MANAGEMENT = "meter:management"
SUB_METER_MANAGEMENT = "sub_meter:management"
PROPERTY_MANAGEMENT = "property:management"
USER_MANAGEMENT = "user:management"

_MANAGER_RIGHTS = frozenset(
    {
        METER_READING_MANAGEMENT,
        METER_MANAGEMENT,
        SUB_METER_MANAGEMENT,
        PROPERTY_MANAGEMENT,
    }
)

ROLE_RIGHTS: dict[UserRole, frozenset[str]] = {
    UserRole.SUPER_ADMIN: _MANAGER_RIGHTS | {USER_MANAGEMENT},
    UserRole.ACCOUNT_ADMIN: _MANAGER_RIGHTS | {USER_MANAGEMENT},
    UserRole.PROPERTY_MANAGER: _MANAGER_RIGHTS,
    UserRole.TENANT: frozenset(),
}

# Roles that act across every account
PRIVILEGED_ROLES = frozenset({UserRole.SUPER_ADMIN})


@dataclass(frozen=True)
class Principal:
    """The authenticated caller a request acts on behalf of."""

    user_id: UUID
    role: UserRole
    account_id: UUID | None

    def __post_init__(self) -> None:
        if self.account_id is None and not self.is_privileged:
            raise ValueError(f"{self.role} principal must belong to an account")

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def scope_account_id(self) -> UUID | None:
        """Account reads and writes are restricted to.

        None only for privileged callers, which act across every account.
        """
        return None if self.is_privileged else self.account_id

    def has_permission(self, permission: str) -> bool:
        return permission in ROLE_RIGHTS.get(UserRole(self.role), frozenset())
