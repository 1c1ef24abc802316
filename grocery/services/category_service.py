"""Custom category service."""

import logging
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grocery.database import atomic
from grocery.exceptions import ConflictError, NotFoundError, ValidationError
from grocery.models import CategoryVote, CustomCategory, GroceryItem
from grocery.models.enums import CategoryVoteType, PermissionLevel, PredefinedCategory
from grocery.schemas.activity import (
    CategoryArchivedDetails,
    CategoryCreatedDetails,
    CategoryDeletedDetails,
    CategoryLockedDetails,
    CategoryMergedDetails,
    CategoryRestoredDetails,
    CategoryUnlockedDetails,
    CategoryUpdatedDetails,
    FieldChange,
)
from grocery.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from grocery.services import realtime
from grocery.services.activity import log_activity
from grocery.services.permissions import ListAccess, authorize_category_change
from grocery.services.realtime import ListEventType

logger = logging.getLogger(__name__)

MAX_CATEGORY_NAME_LENGTH = 100


def to_response(
    category: CustomCategory, keep_votes: int = 0, remove_votes: int = 0
) -> CategoryResponse:
    return CategoryResponse.model_validate(category).model_copy(
        update={"keep_votes": keep_votes, "remove_votes": remove_votes}
    )


def _payload(category: CustomCategory) -> dict:
    return to_response(category).model_dump(mode="json")


class CategoryService:
    """Service for custom category operations within one list."""

    def __init__(self, db: Session):
        self.db = db

    def get_category(self, list_id: UUID, category_id: UUID) -> CustomCategory:
        category = (
            self.db.query(CustomCategory)
            .filter(CustomCategory.id == category_id, CustomCategory.list_id == list_id)
            .first()
        )
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def check_name_available(
        self, list_id: UUID, name: str, exclude_id: UUID | None = None
    ) -> str:
        """Return the trimmed name, or raise if it cannot be used in this list."""
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        if len(name) > MAX_CATEGORY_NAME_LENGTH:
            raise ValidationError(
                f"Category name must be at most {MAX_CATEGORY_NAME_LENGTH} characters"
            )
        if PredefinedCategory.matches(name):
            raise ConflictError(f'"{name}" is a built-in category')

        query = self.db.query(CustomCategory.id).filter(
            CustomCategory.list_id == list_id,
            func.lower(CustomCategory.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.filter(CustomCategory.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f'A category named "{name}" already exists in this list')
        return name

    def vote_tallies(self, category_ids: list[UUID]) -> dict[UUID, tuple[int, int]]:
        """Keep/remove vote counts per category."""
        if not category_ids:
            return {}
        keep = func.sum(case((CategoryVote.vote_type == CategoryVoteType.KEEP.value, 1), else_=0))
        remove = func.sum(
            case((CategoryVote.vote_type == CategoryVoteType.REMOVE.value, 1), else_=0)
        )
        rows = (
            self.db.query(CategoryVote.category_id, keep, remove)
            .filter(CategoryVote.category_id.in_(category_ids))
            .group_by(CategoryVote.category_id)
            .all()
        )
        return {category_id: (int(k or 0), int(r or 0)) for category_id, k, r in rows}

    def list_categories(
        self, access: ListAccess, include_archived: bool = False
    ) -> list[CategoryResponse]:
        """Categories ordered by display order (highest first), then name."""
        query = self.db.query(CustomCategory).filter(CustomCategory.list_id == access.list_id)
        if not include_archived:
            query = query.filter(CustomCategory.is_archived.is_(False))
        categories = query.order_by(
            CustomCategory.display_order.desc(), func.lower(CustomCategory.name)
        ).all()

        tallies = self.vote_tallies([category.id for category in categories])
        return [to_response(category, *tallies.get(category.id, (0, 0))) for category in categories]

    def create_category(self, access: ListAccess, data: CategoryCreate) -> CustomCategory:
        access.require(PermissionLevel.EDITOR, "create categories")
        name = self.check_name_available(access.list_id, data.name)

        try:
            with atomic(self.db):
                category = CustomCategory(
                    list_id=access.list_id,
                    name=name,
                    color=data.color,
                    icon=data.icon,
                    display_order=data.display_order,
                    created_by=access.user_id,
                    last_edited_by=access.user_id,
                )
                self.db.add(category)
                self.db.flush()
                log_activity(
                    self.db,
                    access.list_id,
                    access.user_id,
                    CategoryCreatedDetails(category_id=category.id, category_name=category.name),
                )
        except IntegrityError as e:
            raise ConflictError(f'A category named "{name}" already exists in this list') from e

        self.db.refresh(category)
        logger.info(f"Category {category.id} ({name}) created in list {access.list_id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_CREATED, _payload(category)
        )
        return category

    def update_category(
        self, access: ListAccess, category_id: UUID, data: CategoryUpdate
    ) -> CustomCategory:
        category = self.get_category(access.list_id, category_id)
        authorize_category_change(access, category)

        update_data = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not update_data:
            raise ValidationError("No fields to update")
        if "name" in update_data:
            update_data["name"] = self.check_name_available(
                access.list_id, update_data["name"], exclude_id=category.id
            )

        changes = {
            field: FieldChange(old=getattr(category, field), new=value)
            for field, value in update_data.items()
            if getattr(category, field) != value
        }
        if not changes:
            raise ValidationError("No changes to apply")

        try:
            with atomic(self.db):
                for field, change in changes.items():
                    setattr(category, field, change.new)
                category.last_edited_by = access.user_id
                log_activity(
                    self.db,
                    access.list_id,
                    access.user_id,
                    CategoryUpdatedDetails(
                        category_id=category.id, category_name=category.name, changes=changes
                    ),
                )
        except IntegrityError as e:
            raise ConflictError("A category with that name already exists in this list") from e

        self.db.refresh(category)
        logger.info(f"Category {category.id} updated: {', '.join(changes)}")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_UPDATED, _payload(category)
        )
        return category

    def archive_category(self, access: ListAccess, category_id: UUID) -> CustomCategory:
        category = self.get_category(access.list_id, category_id)
        authorize_category_change(access, category)
        if category.is_archived:
            raise ConflictError("Category is already archived")

        with atomic(self.db):
            category.archive()
            category.last_edited_by = access.user_id
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryArchivedDetails(category_id=category.id, category_name=category.name),
            )

        self.db.refresh(category)
        logger.info(f"Category {category.id} archived")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_UPDATED, _payload(category)
        )
        return category

    def restore_category(self, access: ListAccess, category_id: UUID) -> CustomCategory:
        category = self.get_category(access.list_id, category_id)
        authorize_category_change(access, category)
        if not category.is_archived:
            raise ConflictError("Category is not archived")

        with atomic(self.db):
            category.restore()
            category.last_edited_by = access.user_id
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryRestoredDetails(category_id=category.id, category_name=category.name),
            )

        self.db.refresh(category)
        logger.info(f"Category {category.id} restored")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_UPDATED, _payload(category)
        )
        return category

    def delete_category(self, access: ListAccess, category_id: UUID) -> None:
        """Delete a category; its items fall back to their predefined category."""
        category = self.get_category(access.list_id, category_id)
        authorize_category_change(access, category)

        items_affected = (
            self.db.query(func.count(GroceryItem.id))
            .filter(GroceryItem.custom_category_id == category.id)
            .scalar()
        )
        with atomic(self.db):
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryDeletedDetails(
                    category_id=category.id,
                    category_name=category.name,
                    items_affected=items_affected,
                ),
            )
            self.db.delete(category)

        logger.info(f"Category {category_id} deleted ({items_affected} items uncategorized)")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_DELETED, {"id": str(category_id)}
        )

    def set_locked(self, access: ListAccess, category_id: UUID, locked: bool) -> CustomCategory:
        """Lock or unlock a category. Owner only."""
        access.require(PermissionLevel.OWNER, "lock categories")
        category = self.get_category(access.list_id, category_id)
        if category.is_locked == locked:
            state = "locked" if locked else "unlocked"
            raise ConflictError(f"Category is already {state}")

        with atomic(self.db):
            category.is_locked = locked
            category.last_edited_by = access.user_id
            details_type = CategoryLockedDetails if locked else CategoryUnlockedDetails
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                details_type(category_id=category.id, category_name=category.name),
            )

        self.db.refresh(category)
        logger.info(f"Category {category.id} {'locked' if locked else 'unlocked'}")
        realtime.publish_list_event(
            access.list_id, ListEventType.CATEGORY_UPDATED, _payload(category)
        )
        return category

    def merge_categories(
        self,
        access: ListAccess,
        source_ids: list[UUID],
        target_id: UUID,
        archive_sources: bool = False,
    ) -> tuple[CustomCategory, list[UUID], int]:
        """Move every item of the sources into the target, then remove the sources.

        Returns the target, the merged source ids and the number of items moved.
        """
        access.require(PermissionLevel.EDITOR, "merge categories")
        source_ids = list(dict.fromkeys(source_ids))
        if target_id in source_ids:
            raise ValidationError("The target category cannot also be a source")

        target = self.get_category(access.list_id, target_id)
        if target.is_archived:
            raise ValidationError("Cannot merge into an archived category")
        sources = [self.get_category(access.list_id, source_id) for source_id in source_ids]
        for category in [target, *sources]:
            authorize_category_change(access, category)

        source_names = [source.name for source in sources]
        with atomic(self.db):
            items_moved = (
                self.db.query(GroceryItem)
                .filter(GroceryItem.custom_category_id.in_(source_ids))
                .update(
                    {GroceryItem.custom_category_id: target.id}, synchronize_session=False
                )
            )
            for source in sources:
                if archive_sources:
                    if not source.is_archived:
                        source.archive()
                    source.last_edited_by = access.user_id
                else:
                    self.db.delete(source)
            target.last_edited_by = access.user_id
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                CategoryMergedDetails(
                    target_id=target.id,
                    target_name=target.name,
                    source_ids=source_ids,
                    source_names=source_names,
                    items_moved=items_moved,
                    archived_sources=archive_sources,
                ),
            )

        self.db.refresh(target)
        logger.info(
            f"Merged {len(source_ids)} categories into {target.id} ({items_moved} items moved)"
        )
        realtime.publish_list_event(
            access.list_id,
            ListEventType.CATEGORIES_MERGED,
            {"target_id": str(target.id), "source_ids": [str(i) for i in source_ids]},
        )
        return target, source_ids, items_moved
