"""Celery tasks for list push notifications."""

import logging
from uuid import UUID

from celery.signals import worker_process_shutdown
from sqlalchemy.orm import Session

from grocery.celery_app import app as celery_app
from grocery.config import get_settings
from grocery.database import Database
from grocery.models import ListMember
from grocery.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

_database: Database | None = None


def get_worker_database() -> Database:
    """Database owned by the worker process, created on first use."""
    global _database
    if _database is None:
        _database = Database.from_settings(get_settings())
    return _database


@worker_process_shutdown.connect
def _dispose_worker_database(**kwargs) -> None:
    global _database
    if _database is not None:
        _database.dispose()
        _database = None


def notify_list_members(
    db: Session,
    notification_service: NotificationService,
    list_id: UUID,
    actor_id: UUID | None,
    title: str,
    body: str,
    url: str | None = None,
) -> dict:
    """Push a notification to every member of a list except the actor."""
    query = db.query(ListMember.user_id).filter(ListMember.list_id == list_id)
    if actor_id is not None:
        query = query.filter(ListMember.user_id != actor_id)
    recipients = query.all()

    stats = {"recipients": len(recipients), "delivered": 0}
    for (user_id,) in recipients:
        if notification_service.send_push(
            db=db,
            user_id=user_id,
            title=title,
            body=body,
            url=url or f"/lists/{list_id}",
            tag=f"list-{list_id}",
            data={"list_id": str(list_id)},
        ):
            stats["delivered"] += 1
    return stats


@celery_app.task
def send_list_notification(
    list_id: str, actor_id: str | None, title: str, body: str, url: str | None = None
) -> dict:
    """Fan a push notification out to the members of a list.

    Returns:
        dict with the number of recipients and successful deliveries
    """
    notification_service = NotificationService()
    if not notification_service.available:
        return {"recipients": 0, "delivered": 0}

    db: Session = get_worker_database().session_factory()
    try:
        stats = notify_list_members(
            db,
            notification_service,
            UUID(list_id),
            UUID(actor_id) if actor_id else None,
            title,
            body,
            url,
        )
        logger.info(f"List {list_id} notification: {stats}")
        return stats
    finally:
        db.close()


def dispatch_list_notification(
    list_id: UUID,
    actor_id: UUID | None,
    title: str,
    body: str,
    url: str | None = None,
) -> None:
    """Enqueue a list notification without affecting the caller on failure."""
    try:
        send_list_notification.delay(
            str(list_id), str(actor_id) if actor_id else None, title, body, url
        )
    except Exception as e:
        # Delivery is best-effort; the mutation has already been committed
        logger.error(f"Failed to enqueue notification for list {list_id}: {e}")
