"""Request dependencies: the authenticated caller and permission checks."""

from collections.abc import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backoffice.core.database import get_db
from backoffice.core.roles import PRIVILEGED_ROLES, Principal
from backoffice.models.enums import UserRole
from backoffice.services.auth import decode_token, get_user_by_username

security = HTTPBearer()


def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the bearer token to the caller's identity, role and account."""
    token_data = decode_token(credentials.credentials)
    user = get_user_by_username(db, token_data.username)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    role = UserRole(user.role)
    if user.account_id is None and role not in PRIVILEGED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not assigned to an account",
        )
    return Principal(user_id=user.id, role=role, account_id=user.account_id)


def require_permission(permission: str) -> Callable[..., Principal]:
    """Dependency factory rejecting callers whose role lacks ``permission``."""

    def permission_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_permission(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return principal

    return permission_checker
