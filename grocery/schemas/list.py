"""List and membership schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from grocery.models.enums import PermissionLevel
from grocery.schemas.common import LIST_COLOR_PATTERN


class ListCreate(BaseModel):
    """Create a new list."""

    name: str = Field(..., min_length=1, max_length=255)
    color: str | None = Field(None, pattern=LIST_COLOR_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=10)


class ListUpdate(BaseModel):
    """Update a list."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, pattern=LIST_COLOR_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=10)


class ListResponse(BaseModel):
    """List response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    owner_id: UUID
    color: str
    icon: str
    is_archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime
    permission: PermissionLevel | None = None
    is_pinned: bool = False


class MemberResponse(BaseModel):
    """A member of a list."""

    user_id: UUID
    name: str
    email: str
    permission: PermissionLevel
    joined_at: datetime


class ListDetailResponse(ListResponse):
    """List with its members."""

    members: list[MemberResponse] = []


class MemberAdd(BaseModel):
    """Add a user to a list by email."""

    email: EmailStr = Field(..., max_length=255)
    permission: Literal["viewer", "editor"] = "editor"


class MemberUpdate(BaseModel):
    """Change a member's permission level."""

    permission: Literal["viewer", "editor"]


class OwnershipTransfer(BaseModel):
    """Hand the list over to another member."""

    new_owner_id: UUID
    confirmation: bool = False


class ListDuplicate(BaseModel):
    """Copy a list; the name defaults to "Copy of <name>"."""

    name: str | None = Field(None, min_length=1, max_length=255)


class CategoryCount(BaseModel):
    category: str
    count: int


class ListStats(BaseModel):
    """Summary numbers for a list."""

    total_items: int
    gotten_items: int
    remaining_items: int
    completion_percentage: float
    member_count: int
    activities_last_7_days: int
    items_by_category: list[CategoryCount]
