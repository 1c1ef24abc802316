"""Item service: grocery items on a list."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from grocery.database import atomic
from grocery.exceptions import NotFoundError, ValidationError
from grocery.models import CustomCategory, GroceryItem
from grocery.models.enums import PermissionLevel, PredefinedCategory
from grocery.schemas.activity import (
    FieldChange,
    ItemAddedDetails,
    ItemCheckedDetails,
    ItemDeletedDetails,
    ItemsBulkDeletedDetails,
    ItemsClearedDetails,
    ItemUncheckedDetails,
    ItemUpdatedDetails,
)
from grocery.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from grocery.services import realtime
from grocery.services.activity import log_activity
from grocery.services.list_service import require_name
from grocery.services.permissions import ListAccess
from grocery.services.realtime import ListEventType
from grocery.tasks import notifications

logger = logging.getLogger(__name__)


def _item_payload(item: GroceryItem) -> dict:
    return ItemResponse.model_validate(item).model_dump(mode="json")


class ItemService:
    """Service for item operations within one list."""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, list_id: UUID, item_id: UUID) -> GroceryItem:
        item = (
            self.db.query(GroceryItem)
            .filter(GroceryItem.id == item_id, GroceryItem.list_id == list_id)
            .first()
        )
        if item is None:
            raise NotFoundError("Item not found")
        return item

    def _check_custom_category(self, list_id: UUID, category_id: UUID) -> CustomCategory:
        category = (
            self.db.query(CustomCategory)
            .filter(CustomCategory.id == category_id, CustomCategory.list_id == list_id)
            .first()
        )
        if category is None:
            raise NotFoundError("Custom category not found in this list")
        if category.is_archived:
            raise ValidationError("Cannot assign items to an archived category")
        return category

    def list_items(
        self,
        access: ListAccess,
        gotten: bool | None = None,
        category: str | None = None,
        custom_category_id: UUID | None = None,
    ) -> list[GroceryItem]:
        """Items on the list, not-yet-gotten first."""
        query = self.db.query(GroceryItem).filter(GroceryItem.list_id == access.list_id)
        if gotten is not None:
            query = query.filter(GroceryItem.gotten.is_(gotten))
        if category is not None:
            query = query.filter(GroceryItem.category == category)
        if custom_category_id is not None:
            query = query.filter(GroceryItem.custom_category_id == custom_category_id)
        return query.order_by(
            GroceryItem.gotten, GroceryItem.created_at.desc(), GroceryItem.name
        ).all()

    def create_item(self, access: ListAccess, data: ItemCreate) -> GroceryItem:
        access.require(PermissionLevel.EDITOR, "add items")
        name = require_name(data.name, "Item name")
        if data.custom_category_id is not None:
            self._check_custom_category(access.list_id, data.custom_category_id)

        with atomic(self.db):
            item = GroceryItem(
                list_id=access.list_id,
                name=name,
                quantity=data.quantity,
                category=data.category.value,
                custom_category_id=data.custom_category_id,
                notes=data.notes,
                created_by=access.user_id,
            )
            self.db.add(item)
            self.db.flush()
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                ItemAddedDetails(item_id=item.id, item_name=item.name, quantity=item.quantity),
            )

        self.db.refresh(item)
        logger.info(f"Item {item.id} added to list {access.list_id}")
        realtime.publish_list_event(access.list_id, ListEventType.ITEM_CREATED, _item_payload(item))
        notifications.dispatch_list_notification(
            access.list_id,
            access.user_id,
            title=access.list.name,
            body=f"{access.user.name} added {item.name}",
        )
        return item

    def update_item(self, access: ListAccess, item_id: UUID, data: ItemUpdate) -> GroceryItem:
        access.require(PermissionLevel.EDITOR, "edit items")
        item = self.get_item(access.list_id, item_id)
        update_data = data.model_dump(exclude_unset=True)
        # Only the custom category may be cleared explicitly
        update_data = {
            field: value
            for field, value in update_data.items()
            if value is not None or field == "custom_category_id"
        }
        if not update_data:
            raise ValidationError("No fields to update")
        if update_data.get("custom_category_id") is not None:
            self._check_custom_category(access.list_id, update_data["custom_category_id"])
        if "name" in update_data:
            update_data["name"] = require_name(update_data["name"], "Item name")
        if isinstance(update_data.get("category"), PredefinedCategory):
            update_data["category"] = update_data["category"].value

        changes = {
            field: FieldChange(old=getattr(item, field), new=value)
            for field, value in update_data.items()
            if getattr(item, field) != value
        }
        if not changes:
            raise ValidationError("No changes to apply")

        with atomic(self.db):
            for field, change in changes.items():
                setattr(item, field, change.new)
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                ItemUpdatedDetails(item_id=item.id, item_name=item.name, changes=changes),
            )

        self.db.refresh(item)
        logger.info(f"Item {item.id} updated: {', '.join(changes)}")
        realtime.publish_list_event(access.list_id, ListEventType.ITEM_UPDATED, _item_payload(item))
        return item

    def set_gotten(self, access: ListAccess, item_id: UUID, gotten: bool) -> GroceryItem:
        """Check an item off (or back on) the list."""
        access.require(PermissionLevel.EDITOR, "check off items")
        item = self.get_item(access.list_id, item_id)

        with atomic(self.db):
            item.gotten = gotten
            item.gotten_at = datetime.now(UTC) if gotten else None
            details_type = ItemCheckedDetails if gotten else ItemUncheckedDetails
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                details_type(item_id=item.id, item_name=item.name),
            )

        self.db.refresh(item)
        event = ListEventType.ITEM_CHECKED if gotten else ListEventType.ITEM_UNCHECKED
        realtime.publish_list_event(access.list_id, event, _item_payload(item))
        if gotten:
            notifications.dispatch_list_notification(
                access.list_id,
                access.user_id,
                title=access.list.name,
                body=f"{access.user.name} got {item.name}",
            )
        return item

    def delete_item(self, access: ListAccess, item_id: UUID) -> None:
        access.require(PermissionLevel.EDITOR, "delete items")
        item = self.get_item(access.list_id, item_id)

        with atomic(self.db):
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                ItemDeletedDetails(item_id=item.id, item_name=item.name),
            )
            self.db.delete(item)

        logger.info(f"Item {item_id} deleted from list {access.list_id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.ITEM_DELETED, {"id": str(item_id)}
        )

    def clear_gotten(self, access: ListAccess) -> int:
        """Delete every gotten item on the list. Returns how many were removed."""
        access.require(PermissionLevel.EDITOR, "clear items")
        with atomic(self.db):
            count = (
                self.db.query(GroceryItem)
                .filter(GroceryItem.list_id == access.list_id, GroceryItem.gotten.is_(True))
                .delete(synchronize_session=False)
            )
            log_activity(
                self.db, access.list_id, access.user_id, ItemsClearedDetails(count=count)
            )

        logger.info(f"Cleared {count} gotten items from list {access.list_id}")
        realtime.publish_list_event(
            access.list_id, ListEventType.ITEMS_BULK_DELETED, {"count": count}
        )
        return count

    def bulk_delete(self, access: ListAccess, item_ids: list[UUID]) -> int:
        access.require(PermissionLevel.EDITOR, "delete items")
        ids = list(dict.fromkeys(item_ids))
        found = [
            item_id
            for (item_id,) in self.db.query(GroceryItem.id)
            .filter(GroceryItem.list_id == access.list_id, GroceryItem.id.in_(ids))
            .all()
        ]
        if not found:
            raise NotFoundError("None of the items were found in this list")

        with atomic(self.db):
            count = (
                self.db.query(GroceryItem)
                .filter(GroceryItem.id.in_(found))
                .delete(synchronize_session=False)
            )
            log_activity(
                self.db,
                access.list_id,
                access.user_id,
                ItemsBulkDeletedDetails(count=count, item_ids=found),
            )

        logger.info(f"Bulk deleted {count} items from list {access.list_id}")
        realtime.publish_list_event(
            access.list_id,
            ListEventType.ITEMS_BULK_DELETED,
            {"ids": [str(item_id) for item_id in found]},
        )
        return count
