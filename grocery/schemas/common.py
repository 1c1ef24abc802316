"""Shared response envelope and small reusable schemas."""

from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

LIST_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
CATEGORY_COLOR_PATTERN = r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$"


class Envelope(BaseModel, Generic[T]):
    """Standard JSON response wrapper."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    error: str | None = None


class UserSummary(BaseModel):
    """Public fields of a user shown next to lists, comments and activities."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
