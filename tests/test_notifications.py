"""Tests for push subscriptions and list notifications."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest
from pywebpush import WebPushException

from conftest import add_member, app, create_item
from grocery.api.notifications import get_notification_service
from grocery.config import Settings
from grocery.models import PushSubscription
from grocery.services.notification_service import NotificationService
from grocery.tasks.notifications import dispatch_list_notification, notify_list_members

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/send/abc",
    "p256dh_key": "p256dh-key",
    "auth_key": "auth-key",
}


@pytest.fixture
def push_settings():
    return Settings(vapid_public_key="public-key", vapid_private_key="private-key")


def _subscribe(db, user_id, endpoint=SUBSCRIPTION["endpoint"]):
    subscription = PushSubscription(
        user_id=UUID(user_id),
        endpoint=endpoint,
        p256dh_key="p256dh-key",
        auth_key="auth-key",
    )
    db.add(subscription)
    db.commit()
    return subscription


def test_get_vapid_public_key(client):
    response = client.get("/api/notifications/vapid-public-key")
    assert response.status_code == 200
    assert "public_key" in response.json()["data"]


def test_subscribe_push(client, auth_headers, db):
    """Test registering a device for push."""
    response = client.post(
        "/api/notifications/subscribe", headers=auth_headers, json=SUBSCRIPTION
    )
    assert response.status_code == 200
    assert response.json()["data"]["endpoint"] == SUBSCRIPTION["endpoint"]

    # Subscribing again updates the keys instead of adding a row
    response = client.post(
        "/api/notifications/subscribe",
        headers=auth_headers,
        json={**SUBSCRIPTION, "auth_key": "new-auth-key"},
    )
    assert response.status_code == 200
    subscriptions = db.query(PushSubscription).all()
    assert len(subscriptions) == 1
    assert subscriptions[0].auth_key == "new-auth-key"


def test_unsubscribe_push(client, auth_headers):
    client.post("/api/notifications/subscribe", headers=auth_headers, json=SUBSCRIPTION)

    params = {"endpoint": SUBSCRIPTION["endpoint"]}
    response = client.delete("/api/notifications/subscribe", headers=auth_headers, params=params)
    assert response.status_code == 200
    response = client.delete("/api/notifications/subscribe", headers=auth_headers, params=params)
    assert response.status_code == 404


def test_send_test_notification(client, auth_headers):
    service = MagicMock()
    service.send_push.return_value = True
    app.dependency_overrides[get_notification_service] = lambda: service

    response = client.post("/api/notifications/test", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["sent"] is True
    assert service.send_push.call_args.kwargs["user_id"] == UUID(auth_headers.user_id)


def test_push_disabled_without_vapid_keys(db, auth_headers):
    service = NotificationService(Settings(vapid_public_key=None, vapid_private_key=None))
    assert service.available is False
    assert service.send_push(db, UUID(auth_headers.user_id), "Title", "Body") is False


def test_send_push_to_each_device(db, auth_headers, push_settings):
    _subscribe(db, auth_headers.user_id)
    _subscribe(db, auth_headers.user_id, "https://push.example.com/send/def")
    service = NotificationService(push_settings)

    with patch("grocery.services.notification_service.webpush") as mock_webpush:
        sent = service.send_push(db, UUID(auth_headers.user_id), "Groceries", "Milk added")

    assert sent is True
    assert mock_webpush.call_count == 2
    assert mock_webpush.call_args.kwargs["vapid_private_key"] == "private-key"


def test_expired_subscription_removed(db, auth_headers, push_settings):
    """Test that subscriptions the push service reports as gone are deleted."""
    _subscribe(db, auth_headers.user_id)
    service = NotificationService(push_settings)
    gone = WebPushException("Gone", response=MagicMock(status_code=410))

    with patch("grocery.services.notification_service.webpush", side_effect=gone):
        sent = service.send_push(db, UUID(auth_headers.user_id), "Groceries", "Milk added")

    assert sent is False
    assert db.query(PushSubscription).count() == 0


def test_transient_push_failure_keeps_subscription(db, auth_headers, push_settings):
    _subscribe(db, auth_headers.user_id)
    service = NotificationService(push_settings)
    error = WebPushException("Server error", response=MagicMock(status_code=500))

    with patch("grocery.services.notification_service.webpush", side_effect=error):
        assert service.send_push(db, UUID(auth_headers.user_id), "Groceries", "Hi") is False

    assert db.query(PushSubscription).count() == 1


def test_notify_list_members_skips_actor(
    db, client, auth_headers, member_headers, outsider_headers, grocery_list
):
    list_id = grocery_list["id"]
    add_member(client, auth_headers, list_id, member_headers, "editor")
    add_member(client, auth_headers, list_id, outsider_headers, "viewer")
    service = MagicMock()
    service.send_push.side_effect = [True, False]

    stats = notify_list_members(
        db, service, UUID(list_id), UUID(auth_headers.user_id), "Groceries", "Milk added"
    )

    assert stats == {"recipients": 2, "delivered": 1}
    recipients = {call.kwargs["user_id"] for call in service.send_push.call_args_list}
    assert recipients == {UUID(member_headers.user_id), UUID(outsider_headers.user_id)}
    assert service.send_push.call_args.kwargs["url"] == f"/lists/{list_id}"


def test_item_added_enqueues_notification(client, auth_headers, grocery_list, mock_enqueue):
    mock_enqueue.reset_mock()
    create_item(client, auth_headers, grocery_list["id"], "Milk")

    mock_enqueue.assert_called_once()
    list_id, actor_id, title, body, url = mock_enqueue.call_args.args
    assert list_id == grocery_list["id"]
    assert actor_id == auth_headers.user_id
    assert title == "Groceries"
    assert body == "Test User added Milk"


def test_enqueue_failure_does_not_fail_request(client, auth_headers, grocery_list, mock_enqueue):
    mock_enqueue.side_effect = ConnectionError("Broker unavailable")
    response = client.post(
        f"/api/lists/{grocery_list['id']}/items", headers=auth_headers, json={"name": "Milk"}
    )
    assert response.status_code == 201


def test_dispatch_swallows_broker_errors(mock_enqueue):
    mock_enqueue.side_effect = ConnectionError("Broker unavailable")
    # Should not raise
    dispatch_list_notification(
        UUID("00000000-0000-0000-0000-000000000001"), None, "Title", "Body"
    )
