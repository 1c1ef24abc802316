"""FastAPI dependencies for authentication, list access and services."""

from collections.abc import Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from grocery.database import get_db
from grocery.exceptions import AuthenticationError
from grocery.models.enums import PermissionLevel
from grocery.models.user import User
from grocery.services.activity import ActivityService
from grocery.services.auth import user_id_from_token
from grocery.services.category_service import CategoryService
from grocery.services.collaboration_service import CollaborationService
from grocery.services.item_service import ItemService
from grocery.services.list_service import ListService
from grocery.services.permissions import ListAccess, get_list_access

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise AuthenticationError("Authentication required")

    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError("Invalid authentication credentials")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_list_access(min_level: PermissionLevel) -> Callable[..., ListAccess]:
    """Build a dependency that resolves the caller's access to ``{list_id}``.

    The list must exist (404) and the caller must hold at least ``min_level``
    on it (403).
    """

    def dependency(
        list_id: UUID,
        db: Annotated[Session, Depends(get_db)],
        current_user: CurrentUser,
    ) -> ListAccess:
        return get_list_access(db, list_id, current_user, min_level)

    return dependency


ViewerAccess = Annotated[ListAccess, Depends(require_list_access(PermissionLevel.VIEWER))]
EditorAccess = Annotated[ListAccess, Depends(require_list_access(PermissionLevel.EDITOR))]
OwnerAccess = Annotated[ListAccess, Depends(require_list_access(PermissionLevel.OWNER))]


def get_list_service(db: Annotated[Session, Depends(get_db)]) -> ListService:
    """Get list service with dependencies."""
    return ListService(db)


def get_item_service(db: Annotated[Session, Depends(get_db)]) -> ItemService:
    """Get item service with dependencies."""
    return ItemService(db)


def get_category_service(db: Annotated[Session, Depends(get_db)]) -> CategoryService:
    """Get category service with dependencies."""
    return CategoryService(db)


def get_collaboration_service(
    db: Annotated[Session, Depends(get_db)],
) -> CollaborationService:
    """Get collaboration service with dependencies."""
    return CollaborationService(db, CategoryService(db))


def get_activity_service(db: Annotated[Session, Depends(get_db)]) -> ActivityService:
    """Get activity service with dependencies."""
    return ActivityService(db)
