"""Tests for the activity log."""

import uuid
from uuid import UUID

from conftest import add_member, create_category, create_item
from grocery.models import Activity
from grocery.schemas.activity import (
    CategoryMergedDetails,
    FieldChange,
    ItemCheckedDetails,
    ListRenamedDetails,
    MemberRemovedDetails,
)
from grocery.services.activity import format_activity_message, parse_details


def _activities(client, headers, list_id, **params):
    response = client.get(f"/api/lists/{list_id}/activities", headers=headers, params=params)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _count(db, list_id):
    return db.query(Activity).filter(Activity.list_id == UUID(list_id)).count()


def test_create_list_records_activity(client, auth_headers, grocery_list):
    page = _activities(client, auth_headers, grocery_list["id"])
    assert page["total"] == 1
    activity = page["activities"][0]
    assert activity["action"] == "list_created"
    assert activity["details"] == {
        "action": "list_created",
        "list_name": "Groceries",
        "duplicated_from": None,
    }
    assert activity["message"] == "Test User created the list"
    assert activity["list_name"] == "Groceries"
    assert activity["user"]["id"] == auth_headers.user_id


def test_one_activity_per_mutation(db, client, auth_headers, grocery_list):
    """Test that each successful mutation appends exactly one activity."""
    list_id = grocery_list["id"]
    assert _count(db, list_id) == 1

    item = create_item(client, auth_headers, list_id, "Milk")
    assert _count(db, list_id) == 2

    client.put(
        f"/api/lists/{list_id}/items/{item['id']}", headers=auth_headers, json={"quantity": 2}
    )
    assert _count(db, list_id) == 3

    client.patch(
        f"/api/lists/{list_id}/items/{item['id']}/gotten",
        headers=auth_headers,
        json={"gotten": True},
    )
    assert _count(db, list_id) == 4

    category = create_category(client, auth_headers, list_id, "Snacks")
    assert _count(db, list_id) == 5

    client.post(f"/api/lists/{list_id}/categories/{category['id']}/lock", headers=auth_headers)
    assert _count(db, list_id) == 6

    client.delete(f"/api/lists/{list_id}/items/{item['id']}", headers=auth_headers)
    assert _count(db, list_id) == 7


def test_failed_mutation_records_nothing(db, client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    create_category(client, auth_headers, list_id, "Snacks")
    before = _count(db, list_id)

    response = client.post(
        f"/api/lists/{list_id}/categories", headers=auth_headers, json={"name": "snacks"}
    )
    assert response.status_code == 409
    assert _count(db, list_id) == before


def test_activities_newest_first(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    create_item(client, auth_headers, list_id, "Milk")
    create_item(client, auth_headers, list_id, "Eggs")

    page = _activities(client, auth_headers, list_id)
    assert [a["message"] for a in page["activities"]] == [
        'Test User added "Eggs"',
        'Test User added "Milk"',
        "Test User created the list",
    ]


def test_activity_pagination(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    for name in ("Milk", "Eggs", "Bread", "Butter"):
        create_item(client, auth_headers, list_id, name)

    page = _activities(client, auth_headers, list_id, limit=2, offset=1)
    assert page["total"] == 5
    assert page["limit"] == 2
    assert page["offset"] == 1
    assert [a["details"]["item_name"] for a in page["activities"]] == ["Bread", "Eggs"]


def test_activity_limit_bounds(client, auth_headers, grocery_list):
    url = f"/api/lists/{grocery_list['id']}/activities"
    assert client.get(url, headers=auth_headers, params={"limit": 0}).status_code == 400
    assert client.get(url, headers=auth_headers, params={"limit": 201}).status_code == 400
    assert client.get(url, headers=auth_headers, params={"offset": -1}).status_code == 400


def test_viewer_reads_activity(client, auth_headers, member_headers, grocery_list):
    add_member(client, auth_headers, grocery_list["id"], member_headers, "viewer")
    page = _activities(client, member_headers, grocery_list["id"])
    assert page["activities"][0]["message"] == "Test User added Member User to the list"


def test_outsider_cannot_read_activity(client, outsider_headers, grocery_list):
    response = client.get(
        f"/api/lists/{grocery_list['id']}/activities", headers=outsider_headers
    )
    assert response.status_code == 403


def test_record_client_activity(client, auth_headers, grocery_list, mock_redis):
    """Test that clients can append a valid activity."""
    list_id = grocery_list["id"]
    response = client.post(
        f"/api/lists/{list_id}/activities",
        headers=auth_headers,
        json={
            "action": "item_checked",
            "details": {"item_id": str(uuid.uuid4()), "item_name": "Milk"},
        },
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["action"] == "item_checked"
    assert data["message"] == 'Test User marked "Milk" as gotten'
    assert mock_redis.publish.called


def test_viewer_cannot_record_activity(db, client, auth_headers, member_headers, grocery_list):
    """Test that viewers cannot write entries into the audit trail."""
    list_id = grocery_list["id"]
    add_member(client, auth_headers, list_id, member_headers, "viewer")
    before = _count(db, list_id)

    response = client.post(
        f"/api/lists/{list_id}/activities",
        headers=member_headers,
        json={
            "action": "ownership_transferred",
            "details": {
                "previous_owner_id": auth_headers.user_id,
                "new_owner_id": member_headers.user_id,
                "new_owner_name": "Member User",
            },
        },
    )
    assert response.status_code == 403
    assert _count(db, list_id) == before


def test_record_unknown_action(client, auth_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/activities",
        headers=auth_headers,
        json={"action": "item_teleported", "details": {}},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid activity action"


def test_record_invalid_details(client, auth_headers, grocery_list):
    response = client.post(
        f"/api/lists/{grocery_list['id']}/activities",
        headers=auth_headers,
        json={"action": "item_checked", "details": {"item_name": "Milk"}},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid activity details"


def test_unparseable_stored_details_fall_back(db, client, auth_headers, grocery_list):
    """Test that old rows with unexpected details still render."""
    db.add(
        Activity(
            list_id=UUID(grocery_list["id"]),
            user_id=UUID(auth_headers.user_id),
            action="item_added",
            details={"unexpected": True},
        )
    )
    db.commit()

    page = _activities(client, auth_headers, grocery_list["id"])
    assert page["activities"][0]["message"] == "Test User performed an action"


def test_deleted_user_shows_as_someone(db, client, auth_headers, grocery_list):
    db.add(
        Activity(
            list_id=UUID(grocery_list["id"]),
            user_id=None,
            action="list_archived",
            details={"list_name": "Groceries"},
        )
    )
    db.commit()

    activity = _activities(client, auth_headers, grocery_list["id"])["activities"][0]
    assert activity["user"] is None
    assert activity["message"] == "Someone archived the list"


def test_format_activity_messages():
    """Test message rendering for a sample of actions."""
    assert (
        format_activity_message(
            "Ana", ListRenamedDetails(changes={"name": FieldChange(old="Old", new="New")})
        )
        == 'Ana renamed the list to "New"'
    )
    assert (
        format_activity_message(
            "Ana", ItemCheckedDetails(item_id=uuid.uuid4(), item_name="Milk")
        )
        == 'Ana marked "Milk" as gotten'
    )
    assert (
        format_activity_message(
            "Ana",
            MemberRemovedDetails(member_id=uuid.uuid4(), member_name="Ben", left=True),
        )
        == "Ben left the list"
    )
    merged = CategoryMergedDetails(
        target_id=uuid.uuid4(),
        target_name="Snacks",
        source_ids=[uuid.uuid4(), uuid.uuid4()],
        source_names=["Chips", "Candy"],
        items_moved=3,
    )
    assert format_activity_message("Ana", merged) == 'Ana merged 2 categories into "Snacks"'


def test_parse_details_selects_variant():
    details = parse_details(
        "category_voted",
        {"category_id": str(uuid.uuid4()), "category_name": "Snacks", "vote_type": "keep"},
    )
    assert details.action == "category_voted"
    assert format_activity_message("Ana", details) == 'Ana voted to keep category "Snacks"'
