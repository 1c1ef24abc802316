"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from grocery.database import Base, Database, get_db
from grocery.main import create_app
from grocery.rate_limit import limiter


class AuthHeaders(dict):
    """Dict subclass that also stores the user's id, email and name."""

    def __init__(self, *args, user_id: str | None = None, email: str = "", name: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email
        self.name = name


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/grocery_list", "/grocery_list_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

test_database = Database(SQLALCHEMY_DATABASE_URL, pool_size=5)
app = create_app(database=test_database)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    test_database.create_all()
    yield
    test_database.dispose()


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = test_database.session_factory()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def mock_redis():
    """Replace the pub/sub client so publishing never needs a Redis server."""
    redis_client = MagicMock()
    with patch("grocery.services.realtime.get_sync_redis", return_value=redis_client):
        yield redis_client


@pytest.fixture(autouse=True)
def mock_enqueue():
    """Capture Celery enqueues instead of talking to a broker."""
    with patch("grocery.tasks.notifications.send_list_notification") as task:
        yield task.delay


@pytest.fixture(autouse=True)
def rate_limiter():
    """Per-client limits are off unless a test turns them back on."""
    limiter.enabled = False
    limiter.reset()
    yield limiter
    limiter.enabled = False
    limiter.reset()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, name: str, password: str = "testpass123") -> AuthHeaders:
    """Register a user and return auth headers with user info."""
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
        name=name,
    )


def create_list(client, headers: AuthHeaders, name: str = "Groceries") -> dict:
    response = client.post("/api/lists", headers=headers, json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def add_member(
    client, owner: AuthHeaders, list_id: str, member: AuthHeaders, permission: str = "editor"
) -> None:
    response = client.post(
        f"/api/lists/{list_id}/members",
        headers=owner,
        json={"email": member.email, "permission": permission},
    )
    assert response.status_code == 201, response.text


def create_category(client, headers: AuthHeaders, list_id: str, name: str, **fields) -> dict:
    response = client.post(
        f"/api/lists/{list_id}/categories", headers=headers, json={"name": name, **fields}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_item(client, headers: AuthHeaders, list_id: str, name: str, **fields) -> dict:
    response = client.post(
        f"/api/lists/{list_id}/items", headers=headers, json={"name": name, **fields}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def auth_headers(client):
    """The list owner in most tests."""
    return register(client, "test@example.com", "Test User")


@pytest.fixture
def member_headers(client):
    """A second user, added to lists by individual tests."""
    return register(client, "member@example.com", "Member User")


@pytest.fixture
def outsider_headers(client):
    """A user who is never added to any list."""
    return register(client, "outsider@example.com", "Outsider User")


@pytest.fixture
def grocery_list(client, auth_headers):
    """A list owned by ``auth_headers``."""
    return create_list(client, auth_headers)


@pytest.fixture
def shared_list(client, auth_headers, member_headers, grocery_list):
    """The owner's list with ``member_headers`` added as editor."""
    add_member(client, auth_headers, grocery_list["id"], member_headers, "editor")
    return grocery_list
