"""Permission resolution for list members."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from grocery.exceptions import AuthorizationError, NotFoundError
from grocery.models.category import CustomCategory
from grocery.models.enums import PermissionLevel
from grocery.models.list import GroceryList, ListMember
from grocery.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListAccess:
    """The caller's resolved access to one list.

    Produced by the ``require_list_access`` dependency and passed to the
    service methods that act on the list.
    """

    list: GroceryList
    user: User
    permission: PermissionLevel

    @property
    def list_id(self) -> UUID:
        return self.list.id

    @property
    def user_id(self) -> UUID:
        return self.user.id

    def require(self, min_level: PermissionLevel, action: str | None = None) -> None:
        """Raise AuthorizationError unless the caller holds at least ``min_level``."""
        if not self.permission.at_least(min_level):
            what = f" to {action}" if action else ""
            raise AuthorizationError(
                f"{min_level.value.capitalize()} permission required{what}",
                details={"required": min_level.value, "current": self.permission.value},
            )


def resolve_permission(db: Session, user_id: UUID, list_id: UUID) -> PermissionLevel:
    """Return the user's level on the list, or ``none`` when not a member."""
    level = (
        db.query(ListMember.permission_level)
        .filter(ListMember.list_id == list_id, ListMember.user_id == user_id)
        .scalar()
    )
    if level is None:
        return PermissionLevel.NONE
    return PermissionLevel(level)


def get_list_access(
    db: Session,
    list_id: UUID,
    user: User,
    min_level: PermissionLevel = PermissionLevel.VIEWER,
) -> ListAccess:
    """Load the list and check the user's membership level.

    Raises NotFoundError for a missing list and AuthorizationError for
    non-members or members below ``min_level``.
    """
    grocery_list = db.query(GroceryList).filter(GroceryList.id == list_id).first()
    if grocery_list is None:
        raise NotFoundError("List not found")

    permission = resolve_permission(db, user.id, list_id)
    if permission == PermissionLevel.NONE:
        logger.info(f"User {user.id} denied access to list {list_id}: not a member")
        raise AuthorizationError("You do not have access to this list")

    access = ListAccess(list=grocery_list, user=user, permission=permission)
    access.require(min_level)
    return access


def authorize_category_change(access: ListAccess, category: CustomCategory) -> None:
    """Editors may change categories unless the category is locked."""
    access.require(PermissionLevel.EDITOR, "modify categories")
    if category.is_locked and not access.permission.is_owner():
        raise AuthorizationError(
            "This category is locked. Only the list owner can modify it",
            details={"category_id": str(category.id)},
        )
