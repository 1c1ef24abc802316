"""Notification API endpoints for push subscriptions."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grocery.api.dependencies import CurrentUser
from grocery.config import get_settings
from grocery.database import get_db
from grocery.exceptions import NotFoundError
from grocery.models import PushSubscription
from grocery.schemas.common import Envelope
from grocery.schemas.notification import (
    PushSubscriptionCreate,
    PushSubscriptionResponse,
    PushTestResult,
    VapidPublicKeyResponse,
)
from grocery.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def get_notification_service() -> NotificationService:
    """Get notification service instance."""
    return NotificationService()


@router.get("/vapid-public-key", response_model=Envelope[VapidPublicKeyResponse])
async def get_vapid_public_key():
    """Get the VAPID public key for push notification subscription."""
    settings = get_settings()
    return Envelope(data=VapidPublicKeyResponse(public_key=settings.vapid_public_key))


@router.post("/subscribe", response_model=Envelope[PushSubscriptionResponse])
async def subscribe_push(
    subscription: PushSubscriptionCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
):
    """Subscribe to push notifications."""
    # Check if subscription already exists
    push_sub = (
        db.query(PushSubscription)
        .filter(
            PushSubscription.user_id == current_user.id,
            PushSubscription.endpoint == subscription.endpoint,
        )
        .first()
    )

    if push_sub:
        # Update keys if changed
        push_sub.p256dh_key = subscription.p256dh_key
        push_sub.auth_key = subscription.auth_key
        push_sub.expiration_time = subscription.expiration_time
    else:
        push_sub = PushSubscription(
            user_id=current_user.id,
            endpoint=subscription.endpoint,
            p256dh_key=subscription.p256dh_key,
            auth_key=subscription.auth_key,
            expiration_time=subscription.expiration_time,
        )
        db.add(push_sub)

    db.commit()
    db.refresh(push_sub)
    return Envelope(
        data=PushSubscriptionResponse.model_validate(push_sub),
        message="Subscribed to push notifications",
    )


@router.delete("/subscribe", response_model=Envelope[None])
async def unsubscribe_push(
    endpoint: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
):
    """Unsubscribe from push notifications."""
    subscription = (
        db.query(PushSubscription)
        .filter(
            PushSubscription.user_id == current_user.id,
            PushSubscription.endpoint == endpoint,
        )
        .first()
    )

    if subscription is None:
        raise NotFoundError("Subscription not found")

    db.delete(subscription)
    db.commit()
    return Envelope(message="Unsubscribed successfully")


@router.post("/test", response_model=Envelope[PushTestResult])
async def send_test_notification(
    db: Annotated[Session, Depends(get_db)],
    current_user: CurrentUser,
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
):
    """Send a test push to the current user's devices."""
    sent = notification_service.send_push(
        db=db,
        user_id=current_user.id,
        title="Test notification",
        body="Push notifications are working",
        tag="test",
    )
    message = "Test notification sent" if sent else "No device accepted the notification"
    return Envelope(data=PushTestResult(sent=sent), message=message)
