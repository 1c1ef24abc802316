"""Item schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from grocery.models.enums import PredefinedCategory


class ItemCreate(BaseModel):
    """Create a new item."""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, gt=0)
    category: PredefinedCategory = PredefinedCategory.OTHER
    custom_category_id: UUID | None = None
    notes: str | None = Field(None, max_length=1000)


class ItemUpdate(BaseModel):
    """Update an item. Only fields that are sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=255)
    quantity: int | None = Field(None, gt=0)
    category: PredefinedCategory | None = None
    custom_category_id: UUID | None = None
    notes: str | None = Field(None, max_length=1000)


class ItemGottenUpdate(BaseModel):
    gotten: bool


class ItemBulkDelete(BaseModel):
    item_ids: list[UUID] = Field(..., min_length=1)


class ItemResponse(BaseModel):
    """Item response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    list_id: UUID
    name: str
    quantity: int
    gotten: bool
    gotten_at: datetime | None
    category: str
    custom_category_id: UUID | None
    notes: str | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime


class BulkResult(BaseModel):
    count: int
