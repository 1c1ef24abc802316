"""Web push notification delivery."""

import json
import logging
from uuid import UUID

from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from grocery.config import Settings, get_settings
from grocery.models import PushSubscription

logger = logging.getLogger(__name__)

# Push services answer with these when a subscription is gone for good
EXPIRED_SUBSCRIPTION_STATUSES = (404, 410)


class NotificationService:
    """Service for sending web push notifications to a user's devices."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._webpush_available = self.settings.push_enabled
        if not self._webpush_available:
            logger.info("VAPID credentials not configured, push disabled")

    @property
    def available(self) -> bool:
        return self._webpush_available

    def send_push(
        self,
        db: Session,
        user_id: UUID,
        title: str,
        body: str,
        url: str | None = None,
        tag: str | None = None,
        data: dict | None = None,
    ) -> bool:
        """
        Send push notification to all user's subscribed devices.

        Returns True if at least one device accepted the notification.
        """
        if not self._webpush_available:
            logger.warning("Push notifications not available")
            return False

        subscriptions = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()

        if not subscriptions:
            logger.info(f"No push subscriptions for user {user_id}")
            return False

        payload = json.dumps(
            {
                "title": title,
                "body": body,
                "tag": tag or "notification",
                "url": url or "/",
                "data": data or {},
            },
            default=str,
        )

        success_count = 0
        expired = []
        for sub in subscriptions:
            try:
                webpush(
                    subscription_info={
                        "endpoint": sub.endpoint,
                        "keys": {
                            "p256dh": sub.p256dh_key,
                            "auth": sub.auth_key,
                        },
                    },
                    data=payload,
                    vapid_private_key=self.settings.vapid_private_key,
                    vapid_claims={
                        "sub": f"mailto:{self.settings.vapid_email}",
                    },
                )
                success_count += 1
            except WebPushException as e:
                logger.error(f"Push failed for subscription {sub.id}: {e}")
                response = getattr(e, "response", None)
                if response is not None and response.status_code in EXPIRED_SUBSCRIPTION_STATUSES:
                    logger.info(f"Removing expired subscription {sub.id}")
                    expired.append(sub)

        if expired:
            for sub in expired:
                db.delete(sub)
            db.commit()

        logger.info(f"Sent push to {success_count}/{len(subscriptions)} devices for user {user_id}")
        return success_count > 0
