"""Item API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from grocery.api.dependencies import EditorAccess, ViewerAccess, get_item_service
from grocery.models.enums import PredefinedCategory
from grocery.schemas.common import Envelope
from grocery.schemas.item import (
    BulkResult,
    ItemBulkDelete,
    ItemCreate,
    ItemGottenUpdate,
    ItemResponse,
    ItemUpdate,
)
from grocery.services.item_service import ItemService

router = APIRouter(prefix="/api/lists/{list_id}/items", tags=["items"])

ItemServiceDep = Annotated[ItemService, Depends(get_item_service)]


@router.get("", response_model=Envelope[list[ItemResponse]])
async def get_items(
    access: ViewerAccess,
    service: ItemServiceDep,
    gotten: bool | None = None,
    category: PredefinedCategory | None = None,
    custom_category_id: Annotated[UUID | None, Query()] = None,
):
    """Get the items on a list, optionally filtered."""
    items = service.list_items(
        access,
        gotten=gotten,
        category=category.value if category else None,
        custom_category_id=custom_category_id,
    )
    return Envelope(data=[ItemResponse.model_validate(item) for item in items])


@router.post("", response_model=Envelope[ItemResponse], status_code=status.HTTP_201_CREATED)
async def create_item(item_data: ItemCreate, access: EditorAccess, service: ItemServiceDep):
    """Add an item to a list."""
    item = service.create_item(access, item_data)
    return Envelope(data=ItemResponse.model_validate(item), message="Item added")


@router.post("/clear-gotten", response_model=Envelope[BulkResult])
async def clear_gotten_items(access: EditorAccess, service: ItemServiceDep):
    """Delete every item that has been gotten."""
    count = service.clear_gotten(access)
    return Envelope(data=BulkResult(count=count), message=f"Cleared {count} items")


@router.post("/bulk-delete", response_model=Envelope[BulkResult])
async def bulk_delete_items(
    request: ItemBulkDelete, access: EditorAccess, service: ItemServiceDep
):
    count = service.bulk_delete(access, request.item_ids)
    return Envelope(data=BulkResult(count=count), message=f"Deleted {count} items")


@router.put("/{item_id}", response_model=Envelope[ItemResponse])
async def update_item(
    item_id: UUID, item_data: ItemUpdate, access: EditorAccess, service: ItemServiceDep
):
    item = service.update_item(access, item_id, item_data)
    return Envelope(data=ItemResponse.model_validate(item), message="Item updated")


@router.patch("/{item_id}/gotten", response_model=Envelope[ItemResponse])
async def set_item_gotten(
    item_id: UUID, update: ItemGottenUpdate, access: EditorAccess, service: ItemServiceDep
):
    """Mark an item as gotten or not gotten."""
    item = service.set_gotten(access, item_id, update.gotten)
    return Envelope(data=ItemResponse.model_validate(item))


@router.delete("/{item_id}", response_model=Envelope[None])
async def delete_item(item_id: UUID, access: EditorAccess, service: ItemServiceDep):
    service.delete_item(access, item_id)
    return Envelope(message="Item deleted")
