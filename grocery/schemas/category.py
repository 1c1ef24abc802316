"""Custom category schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from grocery.schemas.common import CATEGORY_COLOR_PATTERN


class CategoryCreate(BaseModel):
    """Create a new custom category."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=CATEGORY_COLOR_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=10)
    display_order: int = 0


class CategoryUpdate(BaseModel):
    """Update a custom category."""

    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=CATEGORY_COLOR_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=10)
    display_order: int | None = None


class CategoryMerge(BaseModel):
    """Fold one or more source categories into a target."""

    source_ids: list[UUID] = Field(..., min_length=1)
    target_id: UUID
    archive_sources: bool = False


class CategoryResponse(BaseModel):
    """Custom category response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    list_id: UUID
    name: str
    color: str | None
    icon: str | None
    display_order: int
    is_archived: bool
    archived_at: datetime | None
    is_locked: bool
    created_by: UUID | None
    last_edited_by: UUID | None
    created_at: datetime
    updated_at: datetime
    keep_votes: int = 0
    remove_votes: int = 0


class MergeResult(BaseModel):
    target: CategoryResponse
    merged_category_ids: list[UUID]
    items_moved: int
