"""Custom category API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from grocery.api.dependencies import (
    EditorAccess,
    OwnerAccess,
    ViewerAccess,
    get_category_service,
)
from grocery.schemas.category import (
    CategoryCreate,
    CategoryMerge,
    CategoryResponse,
    CategoryUpdate,
    MergeResult,
)
from grocery.schemas.common import Envelope
from grocery.services.category_service import CategoryService, to_response

router = APIRouter(prefix="/api/lists/{list_id}/categories", tags=["categories"])

CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]


@router.get("", response_model=Envelope[list[CategoryResponse]])
async def get_categories(
    access: ViewerAccess,
    service: CategoryServiceDep,
    include_archived: bool = False,
):
    """Get the list's custom categories with their vote tallies."""
    return Envelope(data=service.list_categories(access, include_archived))


@router.post(
    "", response_model=Envelope[CategoryResponse], status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_data: CategoryCreate, access: EditorAccess, service: CategoryServiceDep
):
    """Create a new custom category."""
    category = service.create_category(access, category_data)
    return Envelope(data=to_response(category), message="Category created successfully")


@router.post("/merge", response_model=Envelope[MergeResult])
async def merge_categories(
    merge: CategoryMerge, access: EditorAccess, service: CategoryServiceDep
):
    """Move all items of the source categories into the target category."""
    target, merged_ids, items_moved = service.merge_categories(
        access, merge.source_ids, merge.target_id, merge.archive_sources
    )
    return Envelope(
        data=MergeResult(
            target=to_response(target), merged_category_ids=merged_ids, items_moved=items_moved
        ),
        message=f"Merged {len(merged_ids)} categories",
    )


@router.put("/{category_id}", response_model=Envelope[CategoryResponse])
async def update_category(
    category_id: UUID,
    category_data: CategoryUpdate,
    access: EditorAccess,
    service: CategoryServiceDep,
):
    category = service.update_category(access, category_id, category_data)
    return Envelope(data=to_response(category), message="Category updated successfully")


@router.delete("/{category_id}", response_model=Envelope[None])
async def delete_category(
    category_id: UUID, access: EditorAccess, service: CategoryServiceDep
):
    """Delete a category; its items keep their predefined category."""
    service.delete_category(access, category_id)
    return Envelope(message="Category deleted successfully")


@router.post("/{category_id}/archive", response_model=Envelope[CategoryResponse])
async def archive_category(
    category_id: UUID, access: EditorAccess, service: CategoryServiceDep
):
    category = service.archive_category(access, category_id)
    return Envelope(data=to_response(category), message="Category archived")


@router.post("/{category_id}/restore", response_model=Envelope[CategoryResponse])
async def restore_category(
    category_id: UUID, access: EditorAccess, service: CategoryServiceDep
):
    category = service.restore_category(access, category_id)
    return Envelope(data=to_response(category), message="Category restored")


@router.post("/{category_id}/lock", response_model=Envelope[CategoryResponse])
async def lock_category(category_id: UUID, access: OwnerAccess, service: CategoryServiceDep):
    """Lock a category so only the owner can change it."""
    category = service.set_locked(access, category_id, True)
    return Envelope(data=to_response(category), message="Category locked")


@router.post("/{category_id}/unlock", response_model=Envelope[CategoryResponse])
async def unlock_category(
    category_id: UUID, access: OwnerAccess, service: CategoryServiceDep
):
    category = service.set_locked(access, category_id, False)
    return Envelope(data=to_response(category), message="Category unlocked")
