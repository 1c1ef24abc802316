"""Notification-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PushSubscriptionCreate(BaseModel):
    """Schema for creating a push subscription."""

    endpoint: str = Field(..., min_length=1, max_length=500)
    p256dh_key: str = Field(..., min_length=1, max_length=200)
    auth_key: str = Field(..., min_length=1, max_length=100)
    expiration_time: datetime | None = None


class PushSubscriptionResponse(BaseModel):
    """Schema for push subscription response."""

    id: UUID
    endpoint: str
    expiration_time: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class VapidPublicKeyResponse(BaseModel):
    """Schema for VAPID public key response."""

    public_key: str | None


class PushTestResult(BaseModel):
    sent: bool
