"""Tests for list membership and ownership."""

from uuid import UUID

import pytest

from conftest import add_member, create_list
from grocery.exceptions import ValidationError
from grocery.models import ListMember


def _members(client, headers, list_id):
    response = client.get(f"/api/lists/{list_id}/members", headers=headers)
    assert response.status_code == 200
    return {m["user_id"]: m["permission"] for m in response.json()["data"]}


def test_add_member(client, auth_headers, member_headers, grocery_list):
    """Test sharing a list with another user."""
    response = client.post(
        f"/api/lists/{grocery_list['id']}/members",
        headers=auth_headers,
        json={"email": member_headers.email, "permission": "viewer"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user_id"] == member_headers.user_id
    assert data["permission"] == "viewer"
    assert data["name"] == "Member User"

    # The list now shows up for the member with their level
    lists = client.get("/api/lists", headers=member_headers).json()["data"]
    assert [(lst["id"], lst["permission"]) for lst in lists] == [
        (grocery_list["id"], "viewer")
    ]


def test_add_member_email_is_case_insensitive(client, auth_headers, member_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/members",
        headers=auth_headers,
        json={"email": "MEMBER@example.com"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["permission"] == "editor"


def test_add_member_unknown_email(client, auth_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/members",
        headers=auth_headers,
        json={"email": "nobody@example.com"},
    )
    assert response.status_code == 404


def test_add_member_twice(client, auth_headers, member_headers, shared_list):
    response = client.post(
        f"/api/lists/{shared_list['id']}/members",
        headers=auth_headers,
        json={"email": member_headers.email},
    )
    assert response.status_code == 409


def test_add_member_as_owner_is_rejected(client, auth_headers, member_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/members",
        headers=auth_headers,
        json={"email": member_headers.email, "permission": "owner"},
    )
    assert response.status_code == 400


def test_only_owner_manages_members(
    client, auth_headers, member_headers, outsider_headers, shared_list
):
    """Test that editors cannot share the list further."""
    response = client.post(
        f"/api/lists/{shared_list['id']}/members",
        headers=member_headers,
        json={"email": outsider_headers.email},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "AuthorizationError"


def test_update_member_permission(client, auth_headers, member_headers, shared_list):
    list_id = shared_list["id"]
    response = client.put(
        f"/api/lists/{list_id}/members/{member_headers.user_id}",
        headers=auth_headers,
        json={"permission": "viewer"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["permission"] == "viewer"
    assert _members(client, auth_headers, list_id)[member_headers.user_id] == "viewer"


def test_owner_permission_cannot_change(client, auth_headers, grocery_list):
    response = client.put(
        f"/api/lists/{grocery_list['id']}/members/{auth_headers.user_id}",
        headers=auth_headers,
        json={"permission": "editor"},
    )
    assert response.status_code == 400


def test_remove_member(client, auth_headers, member_headers, shared_list):
    list_id = shared_list["id"]
    response = client.delete(
        f"/api/lists/{list_id}/members/{member_headers.user_id}", headers=auth_headers
    )
    assert response.status_code == 200
    assert member_headers.user_id not in _members(client, auth_headers, list_id)

    # The removed member loses access
    response = client.get(f"/api/lists/{list_id}", headers=member_headers)
    assert response.status_code == 403


def test_owner_cannot_be_removed(client, auth_headers, grocery_list):
    response = client.delete(
        f"/api/lists/{grocery_list['id']}/members/{auth_headers.user_id}", headers=auth_headers
    )
    assert response.status_code == 400


def test_leave_list(client, auth_headers, member_headers, shared_list):
    list_id = shared_list["id"]
    response = client.post(f"/api/lists/{list_id}/leave", headers=member_headers)
    assert response.status_code == 200
    assert member_headers.user_id not in _members(client, auth_headers, list_id)

    activities = client.get(f"/api/lists/{list_id}/activities", headers=auth_headers).json()
    assert activities["data"]["activities"][0]["message"] == "Member User left the list"


def test_owner_cannot_leave(client, auth_headers, grocery_list):
    response = client.post(f"/api/lists/{grocery_list['id']}/leave", headers=auth_headers)
    assert response.status_code == 400


def test_transfer_ownership(client, auth_headers, member_headers, shared_list):
    """Test handing a list to another member."""
    list_id = shared_list["id"]
    response = client.post(
        f"/api/lists/{list_id}/transfer",
        headers=auth_headers,
        json={"new_owner_id": member_headers.user_id, "confirmation": True},
    )
    assert response.status_code == 200
    assert response.json()["data"]["owner_id"] == member_headers.user_id

    members = _members(client, member_headers, list_id)
    assert members == {member_headers.user_id: "owner", auth_headers.user_id: "editor"}

    # The previous owner can no longer manage the list
    response = client.delete(f"/api/lists/{list_id}", headers=auth_headers)
    assert response.status_code == 403


def test_transfer_requires_confirmation(client, auth_headers, member_headers, shared_list):
    response = client.post(
        f"/api/lists/{shared_list['id']}/transfer",
        headers=auth_headers,
        json={"new_owner_id": member_headers.user_id},
    )
    assert response.status_code == 400


def test_transfer_to_non_member(client, auth_headers, outsider_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/transfer",
        headers=auth_headers,
        json={"new_owner_id": outsider_headers.user_id, "confirmation": True},
    )
    assert response.status_code == 404


def test_list_always_keeps_an_owner(db, client, auth_headers, grocery_list):
    """Test that a flush removing the only owner is rejected."""

    def get_owner():
        return (
            db.query(ListMember)
            .filter(
                ListMember.list_id == UUID(grocery_list["id"]),
                ListMember.user_id == UUID(auth_headers.user_id),
            )
            .one()
        )

    db.delete(get_owner())
    with pytest.raises(ValidationError):
        db.flush()
    db.rollback()

    get_owner().permission_level = "editor"
    with pytest.raises(ValidationError):
        db.flush()
    db.rollback()

    assert db.query(ListMember).filter(ListMember.permission_level == "owner").count() == 1


def test_multiple_lists_each_keep_their_owner(client, auth_headers, member_headers):
    first = create_list(client, auth_headers, "First")
    second = create_list(client, member_headers, "Second")
    add_member(client, auth_headers, first["id"], member_headers, "viewer")

    assert _members(client, auth_headers, first["id"])[auth_headers.user_id] == "owner"
    assert _members(client, member_headers, second["id"]) == {member_headers.user_id: "owner"}
