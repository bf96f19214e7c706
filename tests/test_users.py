"""
User endpoint tests — registration, login, and reading and editing the
current user, including input validation and the error envelope.
"""
import pytest
from httpx import AsyncClient

from conduit.security import decode_access_token


def _signup(username: str = "newuser", email: str = "newuser@example.com", password: str = "password123") -> dict:
    return {"user": {"username": username, "email": email, "password": password}}


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register(async_client: AsyncClient):
    """Registration returns 201 with the user envelope and a token."""
    resp = await async_client.post("/api/users", json=_signup())
    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["username"] == "newuser"
    assert user["email"] == "newuser@example.com"
    assert user["bio"] == ""
    assert user["image"] == ""
    assert decode_access_token(user["token"]) > 0
    assert "password" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client: AsyncClient):
    """A second account with the same email is a 409 conflict."""
    await async_client.post("/api/users", json=_signup("first", "dup@example.com"))
    resp = await async_client.post("/api/users", json=_signup("second", "dup@example.com"))
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"body": ["email already registered"]}}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"user": {"email": "a@x", "password": "password123"}},
        {"user": {"username": "", "email": "a@x", "password": "password123"}},
        {"user": {"username": "u", "email": "not-an-email", "password": "password123"}},
        {"user": {"username": "u", "email": "a@x", "password": "short"}},
        {"user": {"username": "u", "email": "a@x", "password": "x" * 73}},
        {"username": "u", "email": "a@x", "password": "password123"},
    ],
)
async def test_register_validation(async_client: AsyncClient, payload: dict):
    """Malformed registrations are rejected with 422 and a readable message."""
    resp = await async_client.post("/api/users", json=payload)
    assert resp.status_code == 422
    assert resp.json()["errors"]["body"]


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login(async_client: AsyncClient, register):
    """Login returns a fresh token for the same user."""
    registered = await register("loginuser")
    resp = await async_client.post("/api/users/login", json={"user": {
        "email": "loginuser@example.com",
        "password": "password123",
    }})
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["username"] == "loginuser"
    assert decode_access_token(user["token"]) == decode_access_token(registered["token"])


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, register):
    await register("loginuser")
    resp = await async_client.post("/api/users/login", json={"user": {
        "email": "loginuser@example.com",
        "password": "not-the-password",
    }})
    assert resp.status_code == 401
    assert resp.json() == {"errors": {"body": ["invalid credentials"]}}


@pytest.mark.asyncio
async def test_login_unknown_email(async_client: AsyncClient):
    resp = await async_client.post("/api/users/login", json={"user": {
        "email": "ghost@example.com",
        "password": "password123",
    }})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_current_user_echoes_token(async_client: AsyncClient, register, auth_headers):
    """GET /api/user returns the caller with the very token they presented."""
    user = await register("me")
    resp = await async_client.get("/api/user", headers=auth_headers(user["token"]))
    assert resp.status_code == 200
    body = resp.json()["user"]
    assert body["username"] == "me"
    assert body["token"] == user["token"]


@pytest.mark.asyncio
async def test_get_current_user_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/user")
    assert resp.status_code == 401
    assert resp.json()["errors"]["body"] == ["missing authorization token"]


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Bearer abc", "Token", "Token not.a.jwt"])
async def test_get_current_user_bad_header(async_client: AsyncClient, header: str):
    resp = await async_client.get("/api/user", headers={"Authorization": header})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_update_user(async_client: AsyncClient, register, auth_headers):
    """Only the fields sent are changed."""
    user = await register("editor")
    resp = await async_client.put("/api/user", headers=auth_headers(user["token"]), json={"user": {
        "bio": "I edit things",
        "image": "https://example.com/me.png",
    }})
    assert resp.status_code == 200
    body = resp.json()["user"]
    assert body["bio"] == "I edit things"
    assert body["image"] == "https://example.com/me.png"
    assert body["email"] == "editor@example.com"
    assert body["token"] == user["token"]


@pytest.mark.asyncio
async def test_update_user_null_is_ignored(async_client: AsyncClient, register, auth_headers):
    user = await register("editor")
    headers = auth_headers(user["token"])
    await async_client.put("/api/user", headers=headers, json={"user": {"bio": "kept"}})
    resp = await async_client.put("/api/user", headers=headers, json={"user": {"bio": None}})
    assert resp.status_code == 200
    assert resp.json()["user"]["bio"] == "kept"


@pytest.mark.asyncio
async def test_update_user_password(async_client: AsyncClient, register, auth_headers):
    """A changed password works for login and the old one stops working."""
    user = await register("editor")
    await async_client.put("/api/user", headers=auth_headers(user["token"]), json={"user": {
        "password": "brand-new-password",
    }})
    old = await async_client.post("/api/users/login", json={"user": {
        "email": "editor@example.com", "password": "password123",
    }})
    new = await async_client.post("/api/users/login", json={"user": {
        "email": "editor@example.com", "password": "brand-new-password",
    }})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_user_taken_username(async_client: AsyncClient, register, auth_headers):
    await register("taken")
    user = await register("editor")
    resp = await async_client.put("/api/user", headers=auth_headers(user["token"]), json={"user": {
        "username": "taken",
    }})
    assert resp.status_code == 409
    assert resp.json()["errors"]["body"] == ["username already taken"]
