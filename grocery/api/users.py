"""User lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from grocery.api.dependencies import CurrentUser
from grocery.database import get_db
from grocery.rate_limit import limiter, user_search_limit
from grocery.schemas.common import Envelope, UserSummary
from grocery.services.auth import search_users_by_email

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/search", response_model=Envelope[list[UserSummary]])
@limiter.limit(user_search_limit)
async def search_users(
    request: Request,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[str, Query(min_length=3, max_length=255)],
):
    """Find other users by email, e.g. to share a list with them."""
    users = search_users_by_email(db, email, exclude_user_id=current_user.id)
    return Envelope(data=[UserSummary.model_validate(user) for user in users])
