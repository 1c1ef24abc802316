"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from grocery.api.dependencies import CurrentUser
from grocery.database import get_db
from grocery.exceptions import AuthenticationError, ConflictError
from grocery.rate_limit import limiter, login_limit, register_limit
from grocery.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from grocery.schemas.common import Envelope
from grocery.services.auth import (
    authenticate_user,
    create_access_token,
    create_user,
    get_user_by_email,
)
from grocery.services.login_attempts import (
    clear_failed_attempts,
    ensure_not_locked,
    record_failed_login,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register", response_model=Envelope[AuthResponse], status_code=status.HTTP_201_CREATED
)
@limiter.limit(register_limit)
async def register(
    request: Request,
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user."""
    if get_user_by_email(db, user_data.email):
        raise ConflictError("Email already registered")

    user = create_user(db, user_data.email, user_data.password, user_data.name)
    access_token = create_access_token(user.id, user.email)

    return Envelope(
        data=AuthResponse(access_token=access_token, user=UserResponse.model_validate(user)),
        message="Registration successful",
    )


@router.post("/login", response_model=Envelope[AuthResponse])
@limiter.limit(login_limit)
async def login(
    request: Request,
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password.

    Repeated failures lock the account for a while; a locked account is refused
    even with the right password.
    """
    ensure_not_locked(db, credentials.email)

    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        record_failed_login(db, credentials.email, get_remote_address(request))
        raise AuthenticationError("Incorrect email or password")

    clear_failed_attempts(db, user.email)
    logger.info(f"User {user.id} logged in")
    access_token = create_access_token(user.id, user.email)
    return Envelope(
        data=AuthResponse(access_token=access_token, user=UserResponse.model_validate(user)),
    )


@router.get("/me", response_model=Envelope[UserResponse])
async def get_me(current_user: CurrentUser):
    """Get current user information."""
    return Envelope(data=UserResponse.model_validate(current_user))


@router.post("/logout", response_model=Envelope[None])
async def logout(current_user: CurrentUser):
    """Logout (client should discard token)."""
    return Envelope(message="Logged out successfully")
