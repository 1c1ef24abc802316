"""Tests for finding users by email."""

from conftest import register


def _search(client, headers, email):
    return client.get("/api/users/search", headers=headers, params={"email": email})


def test_search_by_partial_email(client, auth_headers, member_headers, outsider_headers):
    response = _search(client, auth_headers, "r@example.com")
    assert response.status_code == 200
    data = response.json()["data"]
    assert [user["email"] for user in data] == ["member@example.com", "outsider@example.com"]
    assert data[0] == {
        "id": member_headers.user_id,
        "email": "member@example.com",
        "name": "Member User",
    }


def test_search_is_case_insensitive(client, auth_headers, member_headers):
    response = _search(client, auth_headers, "MEMBER@Example.COM")
    assert response.status_code == 200
    assert [user["id"] for user in response.json()["data"]] == [member_headers.user_id]


def test_search_excludes_caller(client, auth_headers):
    response = _search(client, auth_headers, auth_headers.email)
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_search_returns_at_most_ten(client, auth_headers):
    for i in range(12):
        register(client, f"cook{i:02d}x@example.com", f"Cook {i}")

    response = _search(client, auth_headers, "x@example.com")
    emails = [user["email"] for user in response.json()["data"]]
    assert len(emails) == 10
    assert emails == sorted(emails)


def test_search_treats_wildcards_literally(client, auth_headers, member_headers):
    response = _search(client, auth_headers, "%@example.com")
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_search_rejects_invalid_email(client, auth_headers):
    response = _search(client, auth_headers, "member")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_search_requires_authentication(client):
    assert client.get("/api/users/search", params={"email": "a@b.co"}).status_code == 401


def test_search_rate_limit(client, auth_headers, rate_limiter):
    rate_limiter.enabled = True
    for _ in range(30):
        assert _search(client, auth_headers, "member@example.com").status_code == 200

    response = _search(client, auth_headers, "member@example.com")
    assert response.status_code == 429
