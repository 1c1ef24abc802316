"""Pydantic schemas for API requests and responses."""

from grocery.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from grocery.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from grocery.schemas.common import Envelope, UserSummary
from grocery.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from grocery.schemas.list import ListCreate, ListResponse, ListUpdate

__all__ = [
    "Envelope",
    "UserSummary",
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "ListCreate",
    "ListUpdate",
    "ListResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "ItemCreate",
    "ItemUpdate",
    "ItemResponse",
]
