"""
User API tests - REST CRUD, lookups and the standard error body (TDD).
Challenge: Ensure endpoints return correct status codes and shape, never a password.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from app.db.repositories.user_repository import UserRepository
from app.main import app

ERROR_FIELDS = {"timestamp", "status", "error", "code", "message", "path"}


def parse_ts(value: str) -> datetime:
    """ISO-8601 with a trailing Z (fromisoformat accepts Z only from 3.11)."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def assert_no_password(body):
    items = body if isinstance(body, list) else [body]
    for item in items:
        assert "password" not in item
        assert "hashedPassword" not in item
        assert "hashed_password" not in item


async def create(client: AsyncClient, **overrides) -> dict:
    payload = {
        "username": "john_doe",
        "email": "john@example.com",
        "password": "secret-pass",
        "firstName": "John",
        "lastName": "Doe",
    }
    payload.update(overrides)
    response = await client.post("/users", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_user(client: AsyncClient, user_payload: dict):
    """POST /users returns 201 with id, camelCase fields, no password."""
    response = await client.post("/users", json=user_payload)
    assert response.status_code == 201
    data = response.json()
    assert data["id"] >= 1
    assert data["username"] == "john_doe"
    assert data["firstName"] == "John"
    assert data["lastName"] == "Doe"
    assert data["createdAt"] == data["updatedAt"]
    assert_no_password(data)


@pytest.mark.asyncio
async def test_create_duplicate_email_returns_409(client: AsyncClient):
    await create(client)
    response = await client.post(
        "/users",
        json={
            "username": "another",
            "email": "john@example.com",
            "password": "secret-pass",
            "firstName": "A",
            "lastName": "B",
        },
    )
    assert response.status_code == 409
    body = response.json()
    assert ERROR_FIELDS <= body.keys()
    assert body["code"] == "DUPLICATE_USER"
    assert body["status"] == 409
    assert body["error"] == "Conflict"
    assert body["path"] == "/users"
    assert "john@example.com" in body["message"]


@pytest.mark.asyncio
async def test_create_duplicate_username_returns_409(client: AsyncClient):
    await create(client)
    response = await client.post(
        "/users",
        json={
            "username": "john_doe",
            "email": "other@example.com",
            "password": "secret-pass",
            "firstName": "A",
            "lastName": "B",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_USER"


@pytest.mark.asyncio
async def test_create_invalid_payload_returns_400_with_field_details(client: AsyncClient):
    response = await client.post(
        "/users",
        json={"username": "jd", "email": "not-an-email", "password": "x", "firstName": "J"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"] == "Input validation failed"
    assert {"username", "email", "password", "lastName"} <= body["details"].keys()


@pytest.mark.asyncio
async def test_get_user_by_id(client: AsyncClient):
    created = await create(client)
    response = await client.get(f"/users/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created


@pytest.mark.asyncio
async def test_get_missing_user_returns_404(client: AsyncClient):
    response = await client.get("/users/999")
    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "USER_NOT_FOUND"
    assert body["error"] == "Not Found"
    assert body["path"] == "/users/999"
    assert "details" not in body
    # ISO-8601 UTC
    datetime.strptime(body["timestamp"], "%Y-%m-%dT%H:%M:%SZ")


@pytest.mark.asyncio
async def test_non_numeric_id_is_a_validation_error(client: AsyncClient):
    response = await client.get("/users/abc")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_list_users(client: AsyncClient):
    assert (await client.get("/users")).json() == []
    await create(client)
    await create(client, username="jane", email="jane@example.com")
    response = await client.get("/users")
    assert response.status_code == 200
    data = response.json()
    assert [u["username"] for u in data] == ["john_doe", "jane"]
    assert_no_password(data)


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient):
    created = await create(client)
    response = await client.put(
        f"/users/{created['id']}",
        json={
            "username": "johnny",
            "email": "johnny@example.com",
            "firstName": "Johnny",
            "lastName": "Doe",
            "password": "ignored-new-pass",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == created["id"]
    assert data["username"] == "johnny"
    assert data["createdAt"] == created["createdAt"]
    assert parse_ts(data["updatedAt"]) >= parse_ts(created["updatedAt"])
    assert_no_password(data)


@pytest.mark.asyncio
async def test_update_ignores_password_in_body(client: AsyncClient, session):
    from app.core.security import verify_password

    created = await create(client)
    await client.put(
        f"/users/{created['id']}",
        json={
            "username": "john_doe",
            "email": "john@example.com",
            "firstName": "John",
            "lastName": "Doe",
            "password": "brand-new-pass",
        },
    )
    stored = await UserRepository(session).get_by_id(created["id"])
    assert verify_password("secret-pass", stored.hashed_password)


@pytest.mark.asyncio
async def test_update_missing_user_returns_404(client: AsyncClient):
    response = await client.put(
        "/users/999",
        json={"username": "ghost", "email": "ghost@example.com", "firstName": "G", "lastName": "H"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"
    assert (await client.get("/users/count")).json() == 0


@pytest.mark.asyncio
async def test_update_to_taken_email_returns_409(client: AsyncClient):
    await create(client)
    jane = await create(client, username="jane", email="jane@example.com")
    response = await client.put(
        f"/users/{jane['id']}",
        json={"username": "jane", "email": "john@example.com", "firstName": "Jane", "lastName": "D"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_USER"


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient):
    created = await create(client)
    response = await client.delete(f"/users/{created['id']}")
    assert response.status_code == 204
    assert response.content == b""
    assert (await client.get(f"/users/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_missing_user_returns_404(client: AsyncClient):
    response = await client.delete("/users/999")
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_lookup_by_email_and_username(client: AsyncClient):
    created = await create(client)
    by_email = await client.get("/users/email/john@example.com")
    assert by_email.status_code == 200
    assert by_email.json()["id"] == created["id"]
    by_username = await client.get("/users/username/john_doe")
    assert by_username.status_code == 200
    assert_no_password(by_username.json())

    missing = await client.get("/users/email/nobody@example.com")
    assert missing.status_code == 404
    assert missing.json()["code"] == "USER_NOT_FOUND"
    assert (await client.get("/users/username/nobody")).status_code == 404


@pytest.mark.asyncio
async def test_exists_and_count(client: AsyncClient):
    assert (await client.get("/users/count")).json() == 0
    await create(client)
    assert (await client.get("/users/exists/email/john@example.com")).json() is True
    assert (await client.get("/users/exists/email/x@example.com")).json() is False
    assert (await client.get("/users/exists/username/john_doe")).json() is True
    assert (await client.get("/users/exists/username/JOHN_DOE")).json() is False
    response = await client.get("/users/count")
    assert response.status_code == 200
    assert response.json() == 1


@pytest.mark.asyncio
async def test_search(client: AsyncClient):
    await create(client)
    await create(client, username="jane_doe", email="jane@shop.io", firstName="Jane")
    response = await client.get("/users/search", params={"firstName": "JANE"})
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["jane_doe"]

    response = await client.get(
        "/users/search", params={"lastName": "doe", "emailDomain": "example.com"}
    )
    assert [u["username"] for u in response.json()] == ["john_doe"]

    response = await client.get("/users/search", params={"usernameContains": "_doe"})
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_search_inverted_range_returns_400(client: AsyncClient):
    response = await client.get(
        "/users/search",
        params={"createdFrom": "2024-02-01T00:00:00Z", "createdTo": "2024-01-01T00:00:00Z"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "createdFrom" in body["details"]


@pytest.mark.asyncio
async def test_storage_constraint_is_not_reported_as_duplicate(client: AsyncClient, monkeypatch):
    """A uniqueness race lost at the store surfaces as CONSTRAINT_VIOLATION."""
    await create(client)

    async def never_exists(self, value):
        return False

    monkeypatch.setattr(UserRepository, "exists_by_email", never_exists)
    monkeypatch.setattr(UserRepository, "exists_by_username", never_exists)

    response = await client.post(
        "/users",
        json={
            "username": "john_doe",
            "email": "john@example.com",
            "password": "secret-pass",
            "firstName": "John",
            "lastName": "Doe",
        },
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "CONSTRAINT_VIOLATION"
    assert body["message"] == "Data constraint violation"


@pytest.mark.asyncio
async def test_storage_failure_returns_generic_500(client: AsyncClient, monkeypatch):
    async def broken_count(self):
        raise OperationalError("SELECT count(*) FROM users", {}, Exception("db host secret-host down"))

    monkeypatch.setattr(UserRepository, "count", broken_count)
    response = await client.get("/users/count")
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["message"] == "An unexpected error occurred"
    assert "secret-host" not in response.text


@pytest.mark.asyncio
async def test_unexpected_failure_returns_generic_500(client: AsyncClient, monkeypatch):
    async def boom(self):
        raise RuntimeError("internal detail")

    monkeypatch.setattr(UserRepository, "get_all", boom)
    # The catch-all handler answers, then Starlette re-raises for the server to log
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        response = await ac.get("/users")
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "UNKNOWN_ERROR"
    assert body["message"] == "An unexpected error occurred"
    assert "internal detail" not in response.text


@pytest.mark.asyncio
async def test_timestamps_are_emitted_in_utc(client: AsyncClient):
    created = await create(client)
    for field in ("createdAt", "updatedAt"):
        assert parse_ts(created[field]).utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_update_moves_updated_at_forward(client: AsyncClient, monkeypatch):
    created_time = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    ticks = iter([created_time, created_time + timedelta(minutes=1)])
    monkeypatch.setattr("app.services.user_service._utcnow", lambda: next(ticks))

    created = await create(client)
    response = await client.put(
        f"/users/{created['id']}",
        json={"username": "john_doe", "email": "john@example.com", "firstName": "Jon", "lastName": "Doe"},
    )
    data = response.json()
    assert data["createdAt"] == created["createdAt"]
    assert parse_ts(data["createdAt"]) == created_time
    assert parse_ts(data["updatedAt"]) > parse_ts(data["createdAt"])


@pytest.mark.asyncio
async def test_search_with_offset_window(client: AsyncClient):
    created = await create(client)
    created_at = parse_ts(created["createdAt"])
    eastern = timezone(timedelta(hours=-5))
    window = {
        "createdFrom": (created_at - timedelta(minutes=5)).astimezone(eastern).isoformat(),
        "createdTo": (created_at + timedelta(minutes=5)).astimezone(eastern).isoformat(),
    }
    response = await client.get("/users/search", params=window)
    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == [created["id"]]

    later = {
        "createdFrom": (created_at + timedelta(minutes=1)).astimezone(eastern).isoformat(),
    }
    assert (await client.get("/users/search", params=later)).json() == []


@pytest.mark.asyncio
async def test_email_round_trip_with_mixed_case_domain(client: AsyncClient):
    created = await create(client, email="John@Example.COM")
    assert created["email"] == "John@example.com"

    response = await client.get("/users/email/John@Example.COM")
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert (await client.get("/users/exists/email/John@Example.COM")).json() is True
    assert (await client.get("/users/exists/email/not-an-email")).json() is False


@pytest.mark.asyncio
async def test_collection_routes_accept_trailing_slash(client: AsyncClient, user_payload: dict):
    response = await client.post("/users/", json=user_payload)
    assert response.status_code == 201
    listed = await client.get("/users/")
    assert listed.status_code == 200
    assert [u["id"] for u in listed.json()] == [response.json()["id"]]
