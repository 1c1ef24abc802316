"""List and membership API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from grocery.api.dependencies import (
    CurrentUser,
    OwnerAccess,
    ViewerAccess,
    get_list_service,
)
from grocery.models import GroceryList
from grocery.models.enums import PermissionLevel
from grocery.schemas.common import Envelope
from grocery.schemas.list import (
    ListCreate,
    ListDetailResponse,
    ListDuplicate,
    ListResponse,
    ListStats,
    ListUpdate,
    MemberAdd,
    MemberResponse,
    MemberUpdate,
    OwnershipTransfer,
)
from grocery.services.list_service import ListService

router = APIRouter(prefix="/api/lists", tags=["lists"])

ListServiceDep = Annotated[ListService, Depends(get_list_service)]


def _list_response(
    grocery_list: GroceryList, permission: PermissionLevel, is_pinned: bool = False
) -> ListResponse:
    return ListResponse.model_validate(grocery_list).model_copy(
        update={"permission": permission, "is_pinned": is_pinned}
    )


def _member_response(service: ListService, list_id: UUID, user_id: UUID) -> MemberResponse:
    return next(m for m in service.get_members(list_id) if m.user_id == user_id)


@router.get("", response_model=Envelope[list[ListResponse]])
async def get_lists(
    current_user: CurrentUser,
    service: ListServiceDep,
    include_archived: bool = False,
):
    """Get all lists the current user is a member of, pinned lists first."""
    lists = service.get_lists_for_user(current_user, include_archived)
    return Envelope(
        data=[_list_response(lst, permission, pinned) for lst, permission, pinned in lists]
    )


@router.post("", response_model=Envelope[ListResponse], status_code=status.HTTP_201_CREATED)
async def create_list(
    list_data: ListCreate,
    current_user: CurrentUser,
    service: ListServiceDep,
):
    """Create a new list owned by the current user."""
    grocery_list = service.create_list(current_user, list_data)
    return Envelope(
        data=_list_response(grocery_list, PermissionLevel.OWNER),
        message="List created successfully",
    )


@router.get("/{list_id}", response_model=Envelope[ListDetailResponse])
async def get_list(access: ViewerAccess, service: ListServiceDep):
    """Get a list with its members."""
    summary = _list_response(
        access.list, access.permission, service.is_pinned(access.list_id, access.user_id)
    )
    detail = ListDetailResponse(
        **summary.model_dump(), members=service.get_members(access.list_id)
    )
    return Envelope(data=detail)


@router.put("/{list_id}", response_model=Envelope[ListResponse])
async def update_list(list_data: ListUpdate, access: OwnerAccess, service: ListServiceDep):
    """Rename or restyle a list."""
    grocery_list = service.update_list(access, list_data)
    return Envelope(
        data=_list_response(grocery_list, access.permission),
        message="List updated successfully",
    )


@router.delete("/{list_id}", response_model=Envelope[None])
async def delete_list(access: OwnerAccess, service: ListServiceDep):
    """Delete a list and all of its contents."""
    service.delete_list(access)
    return Envelope(message="List deleted successfully")


@router.post("/{list_id}/archive", response_model=Envelope[ListResponse])
async def archive_list(access: OwnerAccess, service: ListServiceDep):
    grocery_list = service.archive_list(access)
    return Envelope(
        data=_list_response(grocery_list, access.permission), message="List archived"
    )


@router.post("/{list_id}/unarchive", response_model=Envelope[ListResponse])
async def unarchive_list(access: OwnerAccess, service: ListServiceDep):
    grocery_list = service.unarchive_list(access)
    return Envelope(
        data=_list_response(grocery_list, access.permission), message="List unarchived"
    )


@router.post("/{list_id}/transfer", response_model=Envelope[ListResponse])
async def transfer_ownership(
    transfer: OwnershipTransfer, access: OwnerAccess, service: ListServiceDep
):
    """Hand the list over to another member; the caller becomes an editor."""
    grocery_list = service.transfer_ownership(
        access, transfer.new_owner_id, transfer.confirmation
    )
    return Envelope(
        data=_list_response(grocery_list, PermissionLevel.EDITOR),
        message="Ownership transferred successfully",
    )


@router.post(
    "/{list_id}/duplicate",
    response_model=Envelope[ListResponse],
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_list(
    access: ViewerAccess,
    service: ListServiceDep,
    duplicate: ListDuplicate | None = None,
):
    """Copy a list and its items into a new list owned by the caller."""
    copy = service.duplicate_list(access, duplicate.name if duplicate else None)
    return Envelope(
        data=_list_response(copy, PermissionLevel.OWNER),
        message="List duplicated successfully",
    )


@router.get("/{list_id}/stats", response_model=Envelope[ListStats])
async def get_list_stats(access: ViewerAccess, service: ListServiceDep):
    return Envelope(data=service.get_stats(access))


@router.post("/{list_id}/pin", response_model=Envelope[None])
async def pin_list(access: ViewerAccess, service: ListServiceDep):
    """Pin the list to the top of the caller's lists."""
    service.pin_list(access)
    return Envelope(message="List pinned")


@router.delete("/{list_id}/pin", response_model=Envelope[None])
async def unpin_list(access: ViewerAccess, service: ListServiceDep):
    service.unpin_list(access)
    return Envelope(message="List unpinned")


# Members


@router.get("/{list_id}/members", response_model=Envelope[list[MemberResponse]])
async def get_members(access: ViewerAccess, service: ListServiceDep):
    return Envelope(data=service.get_members(access.list_id))


@router.post(
    "/{list_id}/members",
    response_model=Envelope[MemberResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_member(member_data: MemberAdd, access: OwnerAccess, service: ListServiceDep):
    """Share the list with another user."""
    member = service.add_member(access, member_data.email, member_data.permission)
    return Envelope(
        data=_member_response(service, access.list_id, member.user_id),
        message="Member added successfully",
    )


@router.put("/{list_id}/members/{user_id}", response_model=Envelope[MemberResponse])
async def update_member(
    user_id: UUID, member_data: MemberUpdate, access: OwnerAccess, service: ListServiceDep
):
    """Change a member's permission level."""
    service.update_member(access, user_id, member_data.permission)
    return Envelope(
        data=_member_response(service, access.list_id, user_id),
        message="Member permission updated",
    )


@router.delete("/{list_id}/members/{user_id}", response_model=Envelope[None])
async def remove_member(user_id: UUID, access: OwnerAccess, service: ListServiceDep):
    service.remove_member(access, user_id)
    return Envelope(message="Member removed successfully")


@router.post("/{list_id}/leave", response_model=Envelope[None])
async def leave_list(access: ViewerAccess, service: ListServiceDep):
    """Remove the current user from a shared list."""
    service.leave_list(access)
    return Envelope(message="You have left the list")
