"""List service: list lifecycle, ownership and membership."""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from grocery.database import atomic
from grocery.exceptions import ConflictError, NotFoundError, ValidationError
from grocery.models import (
    Activity,
    CustomCategory,
    GroceryItem,
    GroceryList,
    ListMember,
    ListPin,
    User,
)
from grocery.models.enums import PermissionLevel
from grocery.models.list import DEFAULT_LIST_COLOR, DEFAULT_LIST_ICON
from grocery.schemas.activity import (
    FieldChange,
    ListArchivedDetails,
    ListCreatedDetails,
    ListRenamedDetails,
    ListUnarchivedDetails,
    MemberAddedDetails,
    MemberPermissionChangedDetails,
    MemberRemovedDetails,
    OwnershipTransferredDetails,
)
from grocery.schemas.list import CategoryCount, ListCreate, ListStats, ListUpdate, MemberResponse
from grocery.services import realtime
from grocery.services.activity import log_activity
from grocery.services.auth import get_user_by_email
from grocery.services.permissions import ListAccess
from grocery.services.realtime import ListEventType
from grocery.tasks import notifications

logger = logging.getLogger(__name__)

MAX_LIST_NAME_LENGTH = 255


def require_name(name: str, label: str = "Name") -> str:
    """Return the trimmed name, raising when nothing is left."""
    name = name.strip()
    if not name:
        raise ValidationError(f"{label} cannot be blank")
    return name


class ListService:
    """Service for list and membership operations."""

    def __init__(self, db: Session):
        self.db = db

    # Lists

    def create_list(self, user: User, data: ListCreate) -> GroceryList:
        """Create a list owned by ``user``."""
        name = require_name(data.name, "List name")
        with atomic(self.db):
            grocery_list = GroceryList(
                name=name,
                owner_id=user.id,
                color=data.color or DEFAULT_LIST_COLOR,
                icon=data.icon or DEFAULT_LIST_ICON,
            )
            self.db.add(grocery_list)
            self.db.flush()
            self.db.add(
                ListMember(
                    list_id=grocery_list.id,
                    user_id=user.id,
                    permission_level=PermissionLevel.OWNER.value,
                )
            )
            log_activity(
                self.db,
                grocery_list.id,
                user.id,
                ListCreatedDetails(list_name=grocery_list.name),
            )

        self.db.refresh(grocery_list)
        logger.info(f"User {user.id} created list {grocery_list.id}")
        return grocery_list

    def get_lists_for_user(
        self, user: User, include_archived: bool = False
    ) -> list[tuple[GroceryList, PermissionLevel, bool]]:
        """Lists the user is a member of with the user's level and pin flag.

        The user's pinned lists come first; within each group newest first.
        """
        unpinned = ListPin.list_id.is_(None)
        query = (
            self.db.query(GroceryList, ListMember.permission_level, unpinned)
            .join(ListMember, ListMember.list_id == GroceryList.id)
            .outerjoin(
                ListPin, (ListPin.list_id == GroceryList.id) & (ListPin.user_id == user.id)
            )
            .filter(ListMember.user_id == user.id)
        )
        if not include_archived:
            query = query.filter(GroceryList.is_archived.is_(False))
        rows = query.order_by(unpinned, GroceryList.created_at.desc(), GroceryList.name).all()
        return [
            (grocery_list, PermissionLevel(level), not is_unpinned)
            for grocery_list, level, is_unpinned in rows
        ]

    def is_pinned(self, list_id: UUID, user_id: UUID) -> bool:
        return self._get_pin(list_id, user_id) is not None

    def _get_pin(self, list_id: UUID, user_id: UUID) -> ListPin | None:
        return (
            self.db.query(ListPin)
            .filter(ListPin.list_id == list_id, ListPin.user_id == user_id)
            .first()
        )

    def pin_list(self, access: ListAccess) -> None:
        """Pin the list to the top of the caller's lists.

        Pins are a personal preference, so they are not recorded as list activity.
        """
        if self._get_pin(access.list_id, access.user_id) is not None:
            raise ConflictError("List is already pinned")
        with atomic(self.db):
            self.db.add(ListPin(list_id=access.list_id, user_id=access.user_id))
        logger.info(f"User {access.user_id} pinned list {access.list_id}")

    def unpin_list(self, access: ListAccess) -> None:
        pin = self._get_pin(access.list_id, access.user_id)
        if pin is None:
            raise ConflictError("List is not pinned")
        with atomic(self.db):
            self.db.delete(pin)
        logger.info(f"User {access.user_id} unpinned list {access.list_id}")

    def get_members(self, list_id: UUID) -> list[MemberResponse]:
        memberships = (
            self.db.query(ListMember)
            .options(joinedload(ListMember.user))
            .filter(ListMember.list_id == list_id)
            .all()
        )
        members = [
            MemberResponse(
                user_id=member.user_id,
                name=member.user.name,
                email=member.user.email,
                permission=member.permission,
                joined_at=member.created_at,
            )
            for member in memberships
        ]
        # Owner first, then editors, then viewers
        members.sort(key=lambda m: (-m.permission.rank, m.name.lower()))
        return members

    def update_list(self, access: ListAccess, data: ListUpdate) -> GroceryList:
        """Rename or restyle a list. Owner only."""
        access.require(PermissionLevel.OWNER, "update the list")
        update_data = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not update_data:
            raise ValidationError("At least one field (name, color, icon) is required")

        if "name" in update_data:
            update_data["name"] = require_name(update_data["name"], "List name")

        grocery_list = access.list
        changes = {
            field: FieldChange(old=getattr(grocery_list, field), new=value)
            for field, value in update_data.items()
            if getattr(grocery_list, field) != value
        }
        if not changes:
            raise ValidationError("No changes to apply")

        with atomic(self.db):
            for field, change in changes.items():
                setattr(grocery_list, field, change.new)
            log_activity(
                self.db, grocery_list.id, access.user_id, ListRenamedDetails(changes=changes)
            )

        self.db.refresh(grocery_list)
        logger.info(f"List {grocery_list.id} updated: {', '.join(changes)}")
        realtime.publish_list_event(
            grocery_list.id, ListEventType.LIST_UPDATED, {"changes": list(changes)}
        )
        return grocery_list

    def delete_list(self, access: ListAccess) -> None:
        """Delete a list and everything in it. Owner only.

        The activity log is removed with the list, so the deletion is only
        recorded in the application log.
        """
        access.require(PermissionLevel.OWNER, "delete the list")
        list_id = access.list_id
        list_name = access.list.name
        with atomic(self.db):
            self.db.delete(access.list)

        logger.info(f"User {access.user_id} deleted list {list_id} ({list_name})")
        realtime.publish_list_event(list_id, ListEventType.LIST_DELETED)

    def archive_list(self, access: ListAccess) -> GroceryList:
        access.require(PermissionLevel.OWNER, "archive the list")
        grocery_list = access.list
        if grocery_list.is_archived:
            raise ConflictError("List is already archived")

        with atomic(self.db):
            grocery_list.archive()
            log_activity(
                self.db,
                grocery_list.id,
                access.user_id,
                ListArchivedDetails(list_name=grocery_list.name),
            )

        self.db.refresh(grocery_list)
        logger.info(f"List {grocery_list.id} archived")
        realtime.publish_list_event(
            grocery_list.id, ListEventType.LIST_UPDATED, {"is_archived": True}
        )
        return grocery_list

    def unarchive_list(self, access: ListAccess) -> GroceryList:
        access.require(PermissionLevel.OWNER, "unarchive the list")
        grocery_list = access.list
        if not grocery_list.is_archived:
            raise ConflictError("List is not archived")

        with atomic(self.db):
            grocery_list.restore()
            log_activity(
                self.db,
                grocery_list.id,
                access.user_id,
                ListUnarchivedDetails(list_name=grocery_list.name),
            )

        self.db.refresh(grocery_list)
        logger.info(f"List {grocery_list.id} unarchived")
        realtime.publish_list_event(
            grocery_list.id, ListEventType.LIST_UPDATED, {"is_archived": False}
        )
        return grocery_list

    def transfer_ownership(
        self, access: ListAccess, new_owner_id: UUID, confirmation: bool
    ) -> GroceryList:
        """Make another member the owner; the previous owner becomes an editor."""
        access.require(PermissionLevel.OWNER, "transfer ownership")
        if not confirmation:
            raise ValidationError("Ownership transfer must be confirmed")
        if new_owner_id == access.user_id:
            raise ValidationError("You already own this list")

        new_owner_member = self._get_member(access.list_id, new_owner_id)
        previous_owner_member = self._get_member(access.list_id, access.user_id)
        grocery_list = access.list

        with atomic(self.db):
            new_owner_member.permission_level = PermissionLevel.OWNER.value
            previous_owner_member.permission_level = PermissionLevel.EDITOR.value
            grocery_list.owner_id = new_owner_id
            log_activity(
                self.db,
                grocery_list.id,
                access.user_id,
                OwnershipTransferredDetails(
                    previous_owner_id=access.user_id,
                    new_owner_id=new_owner_id,
                    new_owner_name=new_owner_member.user.name,
                ),
            )

        self.db.refresh(grocery_list)
        logger.info(
            f"Ownership of list {grocery_list.id} transferred "
            f"from {access.user_id} to {new_owner_id}"
        )
        realtime.publish_list_event(grocery_list.id, ListEventType.MEMBERS_CHANGED)
        return grocery_list

    def duplicate_list(self, access: ListAccess, name: str | None = None) -> GroceryList:
        """Copy a list, its active categories and its items into a new list owned by the caller."""
        source = access.list
        if name is None:
            new_name = f"Copy of {source.name}"[:MAX_LIST_NAME_LENGTH]
        else:
            new_name = require_name(name, "List name")

        with atomic(self.db):
            copy = GroceryList(
                name=new_name,
                owner_id=access.user_id,
                color=source.color,
                icon=source.icon,
            )
            self.db.add(copy)
            self.db.flush()
            self.db.add(
                ListMember(
                    list_id=copy.id,
                    user_id=access.user_id,
                    permission_level=PermissionLevel.OWNER.value,
                )
            )

            category_map: dict[UUID, UUID] = {}
            categories = (
                self.db.query(CustomCategory)
                .filter(
                    CustomCategory.list_id == source.id,
                    CustomCategory.is_archived.is_(False),
                )
                .all()
            )
            for category in categories:
                new_category = CustomCategory(
                    list_id=copy.id,
                    name=category.name,
                    color=category.color,
                    icon=category.icon,
                    display_order=category.display_order,
                    created_by=access.user_id,
                )
                self.db.add(new_category)
                self.db.flush()
                category_map[category.id] = new_category.id

            items = self.db.query(GroceryItem).filter(GroceryItem.list_id == source.id).all()
            for item in items:
                self.db.add(
                    GroceryItem(
                        list_id=copy.id,
                        name=item.name,
                        quantity=item.quantity,
                        category=item.category,
                        custom_category_id=category_map.get(item.custom_category_id),
                        notes=item.notes,
                        gotten=False,
                        created_by=access.user_id,
                    )
                )

            log_activity(
                self.db,
                copy.id,
                access.user_id,
                ListCreatedDetails(list_name=copy.name, duplicated_from=source.id),
            )

        self.db.refresh(copy)
        logger.info(
            f"List {source.id} duplicated as {copy.id} "
            f"({len(items)} items, {len(category_map)} categories)"
        )
        return copy

    def get_stats(self, access: ListAccess) -> ListStats:
        list_id = access.list_id
        total = (
            self.db.query(func.count(GroceryItem.id))
            .filter(GroceryItem.list_id == list_id)
            .scalar()
        )
        gotten = (
            self.db.query(func.count(GroceryItem.id))
            .filter(GroceryItem.list_id == list_id, GroceryItem.gotten.is_(True))
            .scalar()
        )

        label = func.coalesce(CustomCategory.name, GroceryItem.category)
        by_category = (
            self.db.query(label, func.count(GroceryItem.id))
            .outerjoin(CustomCategory, GroceryItem.custom_category_id == CustomCategory.id)
            .filter(GroceryItem.list_id == list_id)
            .group_by(label)
            .order_by(func.count(GroceryItem.id).desc(), label)
            .all()
        )

        member_count = (
            self.db.query(func.count(ListMember.user_id))
            .filter(ListMember.list_id == list_id)
            .scalar()
        )
        since = datetime.now(UTC) - timedelta(days=7)
        recent_activity = (
            self.db.query(func.count(Activity.id))
            .filter(Activity.list_id == list_id, Activity.created_at >= since)
            .scalar()
        )

        return ListStats(
            total_items=total,
            gotten_items=gotten,
            remaining_items=total - gotten,
            completion_percentage=round(gotten / total * 100, 1) if total else 0.0,
            member_count=member_count,
            activities_last_7_days=recent_activity,
            items_by_category=[
                CategoryCount(category=category, count=count) for category, count in by_category
            ],
        )

    # Members

    def _get_member(self, list_id: UUID, user_id: UUID) -> ListMember:
        member = (
            self.db.query(ListMember)
            .filter(ListMember.list_id == list_id, ListMember.user_id == user_id)
            .first()
        )
        if member is None:
            raise NotFoundError("Member not found")
        return member

    def add_member(self, access: ListAccess, email: str, permission: str) -> ListMember:
        """Share the list with an existing user. Owner only."""
        access.require(PermissionLevel.OWNER, "manage members")
        level = PermissionLevel(permission)
        if level not in (PermissionLevel.VIEWER, PermissionLevel.EDITOR):
            raise ValidationError("Members can only be added as viewer or editor")

        user = get_user_by_email(self.db, email)
        if user is None:
            raise NotFoundError("No user with that email address")

        existing = (
            self.db.query(ListMember)
            .filter(ListMember.list_id == access.list_id, ListMember.user_id == user.id)
            .first()
        )
        if existing is not None:
            raise ConflictError("User is already a member of this list")

        with atomic(self.db):
            member = ListMember(
                list_id=access.list_id, user_id=user.id, permission_level=level.value
            )
            self.db.add(member)
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                MemberAddedDetails(
                    member_id=user.id, member_name=user.name, permission=level.value
                ),
            )

        self.db.refresh(member)
        logger.info(f"User {user.id} added to list {access.list_id} as {level.value}")
        realtime.publish_list_event(access.list_id, ListEventType.MEMBERS_CHANGED)
        notifications.dispatch_list_notification(
            access.list_id,
            access.user_id,
            title=f"Shared list: {access.list.name}",
            body=f"{access.user.name} added {user.name} to {access.list.name}",
        )
        return member

    def update_member(self, access: ListAccess, user_id: UUID, permission: str) -> ListMember:
        """Change a member between viewer and editor. Owner only."""
        access.require(PermissionLevel.OWNER, "manage members")
        level = PermissionLevel(permission)
        if level not in (PermissionLevel.VIEWER, PermissionLevel.EDITOR):
            raise ValidationError("Use ownership transfer to make someone the owner")

        member = self._get_member(access.list_id, user_id)
        if member.permission.is_owner():
            raise ValidationError(
                "The owner's permission cannot be changed; transfer ownership instead"
            )

        old_level = member.permission_level
        with atomic(self.db):
            member.permission_level = level.value
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                MemberPermissionChangedDetails(
                    member_id=user_id,
                    member_name=member.user.name,
                    old_permission=old_level,
                    new_permission=level.value,
                ),
            )

        self.db.refresh(member)
        logger.info(f"Member {user_id} on list {access.list_id}: {old_level} -> {level.value}")
        realtime.publish_list_event(access.list_id, ListEventType.MEMBERS_CHANGED)
        return member

    def remove_member(self, access: ListAccess, user_id: UUID) -> None:
        """Remove a non-owner member. Owner only."""
        access.require(PermissionLevel.OWNER, "manage members")
        member = self._get_member(access.list_id, user_id)
        if member.permission.is_owner():
            raise ValidationError("The list owner cannot be removed")
        self._delete_member(access, member, left=False)

    def leave_list(self, access: ListAccess) -> None:
        """Remove the caller from the list."""
        if access.permission.is_owner():
            raise ValidationError("The owner cannot leave the list; transfer ownership first")
        member = self._get_member(access.list_id, access.user_id)
        self._delete_member(access, member, left=True)

    def _delete_member(self, access: ListAccess, member: ListMember, left: bool) -> None:
        member_id = member.user_id
        member_name = member.user.name
        with atomic(self.db):
            self.db.delete(member)
            self.db.query(ListPin).filter(
                ListPin.list_id == access.list_id, ListPin.user_id == member_id
            ).delete(synchronize_session=False)
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                MemberRemovedDetails(member_id=member_id, member_name=member_name, left=left),
            )

        logger.info(f"Member {member_id} removed from list {access.list_id} (left={left})")
        realtime.publish_list_event(access.list_id, ListEventType.MEMBERS_CHANGED)
