"""Authentication routes for login and user management."""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backoffice.api.dependencies import require_permission
from backoffice.core.config import settings
from backoffice.core.database import get_db
from backoffice.core.roles import USER_MANAGEMENT, Principal
from backoffice.models.enums import UserRole
from backoffice.schemas.user import LoginRequest, Token, UserCreate, UserResponse
from backoffice.services.auth import authenticate_user, create_access_token, create_user

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(USER_MANAGEMENT)),
):
    """Create a user. Account admins may only add non-privileged users to their own account."""
    if not principal.is_privileged:
        if user.role == UserRole.SUPER_ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only super admins can create super admins",
            )
        user = user.model_copy(update={"account_id": principal.account_id})
    return create_user(db, user)


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login and receive a JWT access token."""
    user = authenticate_user(db, login_data.username, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )

    return {"access_token": access_token, "token_type": "bearer"}
