"""Tests for custom categories."""

from conftest import add_member, create_category, create_item
from grocery.models import Activity


def _category_url(list_id, category_id=None):
    url = f"/api/lists/{list_id}/categories"
    return f"{url}/{category_id}" if category_id else url


def _active_names(client, headers, list_id):
    response = client.get(_category_url(list_id), headers=headers)
    assert response.status_code == 200
    return [c["name"] for c in response.json()["data"]]


def test_create_category(client, auth_headers, grocery_list):
    """Test creating a custom category."""
    response = client.post(
        _category_url(grocery_list["id"]),
        headers=auth_headers,
        json={"name": " Snacks ", "color": "#F90", "icon": "🍿"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Snacks"
    assert data["color"] == "#F90"
    assert data["is_locked"] is False
    assert data["is_archived"] is False
    assert data["created_by"] == auth_headers.user_id
    assert data["keep_votes"] == 0
    assert data["remove_votes"] == 0


def test_category_names_unique_ignoring_case(client, auth_headers, grocery_list):
    """Test that "Snacks" then "snacks" is a conflict."""
    create_category(client, auth_headers, grocery_list["id"], "Snacks")
    response = client.post(
        _category_url(grocery_list["id"]), headers=auth_headers, json={"name": "snacks"}
    )
    assert response.status_code == 409
    assert _active_names(client, auth_headers, grocery_list["id"]) == ["Snacks"]


def test_same_name_allowed_in_different_lists(client, auth_headers, grocery_list):
    other = client.post("/api/lists", headers=auth_headers, json={"name": "Other"}).json()["data"]
    create_category(client, auth_headers, grocery_list["id"], "Snacks")
    create_category(client, auth_headers, other["id"], "Snacks")


def test_predefined_category_name_rejected(client, auth_headers, grocery_list):
    response = client.post(
        _category_url(grocery_list["id"]), headers=auth_headers, json={"name": "dairy"}
    )
    assert response.status_code == 409


def test_blank_category_name_rejected(client, auth_headers, grocery_list):
    response = client.post(
        _category_url(grocery_list["id"]), headers=auth_headers, json={"name": "   "}
    )
    assert response.status_code == 400


def test_invalid_category_color_rejected(client, auth_headers, grocery_list):
    response = client.post(
        _category_url(grocery_list["id"]),
        headers=auth_headers,
        json={"name": "Snacks", "color": "orange"},
    )
    assert response.status_code == 400


def test_viewer_cannot_create_category(client, auth_headers, member_headers, grocery_list):
    add_member(client, auth_headers, grocery_list["id"], member_headers, "viewer")
    response = client.post(
        _category_url(grocery_list["id"]), headers=member_headers, json={"name": "Snacks"}
    )
    assert response.status_code == 403


def test_categories_ordered_by_display_order_then_name(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    create_category(client, auth_headers, list_id, "zucchini things")
    create_category(client, auth_headers, list_id, "Baking")
    create_category(client, auth_headers, list_id, "Spices", display_order=5)

    assert _active_names(client, auth_headers, list_id) == ["Spices", "Baking", "zucchini things"]


def test_update_category(client, auth_headers, grocery_list):
    category = create_category(client, auth_headers, grocery_list["id"], "Snacks")
    response = client.put(
        _category_url(grocery_list["id"], category["id"]),
        headers=auth_headers,
        json={"name": "Treats", "display_order": 3},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Treats"
    assert data["display_order"] == 3
    assert data["last_edited_by"] == auth_headers.user_id


def test_update_category_name_conflict(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    create_category(client, auth_headers, list_id, "Snacks")
    treats = create_category(client, auth_headers, list_id, "Treats")
    response = client.put(
        _category_url(list_id, treats["id"]), headers=auth_headers, json={"name": "SNACKS"}
    )
    assert response.status_code == 409


def test_renaming_category_to_its_own_name_in_new_case(client, auth_headers, grocery_list):
    category = create_category(client, auth_headers, grocery_list["id"], "Snacks")
    response = client.put(
        _category_url(grocery_list["id"], category["id"]),
        headers=auth_headers,
        json={"name": "SNACKS"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "SNACKS"


def test_update_category_without_changes(db, client, auth_headers, grocery_list):
    """Test that an update repeating the current values is rejected without a log entry."""
    category = create_category(client, auth_headers, grocery_list["id"], "Snacks", color="#F90")
    before = db.query(Activity).count()

    response = client.put(
        _category_url(grocery_list["id"], category["id"]),
        headers=auth_headers,
        json={"name": " Snacks", "color": "#F90"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "No changes to apply"
    assert db.query(Activity).count() == before


def test_archive_and_restore_category(client, auth_headers, grocery_list):
    """Test that archived categories leave the default listing."""
    list_id = grocery_list["id"]
    category = create_category(client, auth_headers, list_id, "Snacks")
    url = _category_url(list_id, category["id"])

    response = client.post(f"{url}/archive", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_archived"] is True
    assert _active_names(client, auth_headers, list_id) == []

    response = client.get(
        _category_url(list_id), headers=auth_headers, params={"include_archived": True}
    )
    assert [c["name"] for c in response.json()["data"]] == ["Snacks"]

    assert client.post(f"{url}/archive", headers=auth_headers).status_code == 409

    response = client.post(f"{url}/restore", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["archived_at"] is None
    assert _active_names(client, auth_headers, list_id) == ["Snacks"]
    assert client.post(f"{url}/restore", headers=auth_headers).status_code == 409


def test_archived_category_cannot_take_new_items(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    category = create_category(client, auth_headers, list_id, "Snacks")
    client.post(f"{_category_url(list_id, category['id'])}/archive", headers=auth_headers)

    response = client.post(
        f"/api/lists/{list_id}/items",
        headers=auth_headers,
        json={"name": "Chips", "custom_category_id": category["id"]},
    )
    assert response.status_code == 400


def test_delete_category_uncategorizes_items(client, auth_headers, grocery_list):
    """Test that deleting a category keeps its items."""
    list_id = grocery_list["id"]
    category = create_category(client, auth_headers, list_id, "Snacks")
    item = create_item(
        client, auth_headers, list_id, "Chips", category="Pantry", custom_category_id=category["id"]
    )

    response = client.delete(_category_url(list_id, category["id"]), headers=auth_headers)
    assert response.status_code == 200

    items = client.get(f"/api/lists/{list_id}/items", headers=auth_headers).json()["data"]
    assert [(i["id"], i["custom_category_id"], i["category"]) for i in items] == [
        (item["id"], None, "Pantry")
    ]


def test_lock_blocks_editor_but_not_owner(client, auth_headers, member_headers, shared_list):
    """Test that a locked category can only be changed by the owner."""
    list_id = shared_list["id"]
    category = create_category(client, auth_headers, list_id, "Snacks")
    url = _category_url(list_id, category["id"])

    response = client.post(f"{url}/lock", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_locked"] is True

    response = client.put(url, headers=member_headers, json={"name": "Treats"})
    assert response.status_code == 403
    assert client.post(f"{url}/archive", headers=member_headers).status_code == 403
    assert client.delete(url, headers=member_headers).status_code == 403

    response = client.put(url, headers=auth_headers, json={"name": "Treats"})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Treats"


def test_only_owner_can_lock(client, auth_headers, member_headers, shared_list):
    category = create_category(client, auth_headers, shared_list["id"], "Snacks")
    url = _category_url(shared_list["id"], category["id"])
    assert client.post(f"{url}/lock", headers=member_headers).status_code == 403


def test_lock_twice_is_conflict(client, auth_headers, grocery_list):
    category = create_category(client, auth_headers, grocery_list["id"], "Snacks")
    url = _category_url(grocery_list["id"], category["id"])

    assert client.post(f"{url}/unlock", headers=auth_headers).status_code == 409
    assert client.post(f"{url}/lock", headers=auth_headers).status_code == 200
    assert client.post(f"{url}/lock", headers=auth_headers).status_code == 409
    response = client.post(f"{url}/unlock", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_locked"] is False


def test_merge_categories(client, auth_headers, grocery_list):
    """Test that merging moves every item and removes the sources."""
    list_id = grocery_list["id"]
    chips = create_category(client, auth_headers, list_id, "Chips")
    candy = create_category(client, auth_headers, list_id, "Candy")
    snacks = create_category(client, auth_headers, list_id, "Snacks")
    for name, category in [("Pringles", chips), ("Doritos", chips), ("Gummies", candy)]:
        create_item(client, auth_headers, list_id, name, custom_category_id=category["id"])
    create_item(client, auth_headers, list_id, "Popcorn", custom_category_id=snacks["id"])

    response = client.post(
        f"{_category_url(list_id)}/merge",
        headers=auth_headers,
        json={"source_ids": [chips["id"], candy["id"]], "target_id": snacks["id"]},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["target"]["id"] == snacks["id"]
    assert set(data["merged_category_ids"]) == {chips["id"], candy["id"]}
    assert data["items_moved"] == 3

    items = client.get(f"/api/lists/{list_id}/items", headers=auth_headers).json()["data"]
    assert {i["custom_category_id"] for i in items} == {snacks["id"]}
    assert _active_names(client, auth_headers, list_id) == ["Snacks"]

    response = client.get(
        _category_url(list_id), headers=auth_headers, params={"include_archived": True}
    )
    assert [c["name"] for c in response.json()["data"]] == ["Snacks"]


def test_merge_categories_archiving_sources(client, auth_headers, grocery_list):
    list_id = grocery_list["id"]
    chips = create_category(client, auth_headers, list_id, "Chips")
    snacks = create_category(client, auth_headers, list_id, "Snacks")
    create_item(client, auth_headers, list_id, "Pringles", custom_category_id=chips["id"])

    response = client.post(
        f"{_category_url(list_id)}/merge",
        headers=auth_headers,
        json={"source_ids": [chips["id"]], "target_id": snacks["id"], "archive_sources": True},
    )
    assert response.status_code == 200
    assert response.json()["data"]["items_moved"] == 1

    assert _active_names(client, auth_headers, list_id) == ["Snacks"]
    response = client.get(
        _category_url(list_id), headers=auth_headers, params={"include_archived": True}
    )
    archived = {c["name"]: c["is_archived"] for c in response.json()["data"]}
    assert archived == {"Chips": True, "Snacks": False}


def test_merge_into_itself_rejected(client, auth_headers, grocery_list):
    category = create_category(client, auth_headers, grocery_list["id"], "Snacks")
    response = client.post(
        f"{_category_url(grocery_list['id'])}/merge",
        headers=auth_headers,
        json={"source_ids": [category["id"]], "target_id": category["id"]},
    )
    assert response.status_code == 400


def test_merge_with_locked_source_requires_owner(
    client, auth_headers, member_headers, shared_list
):
    list_id = shared_list["id"]
    chips = create_category(client, auth_headers, list_id, "Chips")
    snacks = create_category(client, auth_headers, list_id, "Snacks")
    client.post(f"{_category_url(list_id, chips['id'])}/lock", headers=auth_headers)

    response = client.post(
        f"{_category_url(list_id)}/merge",
        headers=member_headers,
        json={"source_ids": [chips["id"]], "target_id": snacks["id"]},
    )
    assert response.status_code == 403
    assert _active_names(client, auth_headers, list_id) == ["Chips", "Snacks"]


def test_category_from_another_list_not_found(client, auth_headers, grocery_list):
    other = client.post("/api/lists", headers=auth_headers, json={"name": "Other"}).json()["data"]
    category = create_category(client, auth_headers, other["id"], "Snacks")

    response = client.put(
        _category_url(grocery_list["id"], category["id"]),
        headers=auth_headers,
        json={"name": "Treats"},
    )
    assert response.status_code == 404
