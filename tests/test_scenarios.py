"""
End-to-end scenarios over HTTP, one test per user story: register and log
in, duplicate usernames, the article lifecycle with favorites, self-follow,
authors favoriting their own work, and comment ownership.
"""
import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy import func, select

from conduit.config import settings
from conduit.models import User
from conduit.security import ALGORITHM, ISSUER


def _headers(token: str) -> dict:
    return {"Authorization": f"Token {token}"}


async def _signup(client: AsyncClient, username: str, email: str, password: str = "pw123456"):
    return await client.post("/api/users", json={"user": {
        "username": username, "email": email, "password": password,
    }})


async def _alice_article(client: AsyncClient) -> tuple[str, str]:
    alice = (await _signup(client, "alice", "a@x")).json()["user"]["token"]
    bob = (await _signup(client, "bob", "b@x")).json()["user"]["token"]
    resp = await client.post("/api/articles", headers=_headers(alice), json={"article": {
        "title": "Hello World", "description": "d", "body": "b", "tagList": ["go", "web"],
    }})
    assert resp.status_code == 201
    return alice, bob


@pytest.mark.asyncio
async def test_register_then_login(async_client: AsyncClient):
    resp = await _signup(async_client, "alice", "a@x")
    assert resp.status_code == 201
    t1 = resp.json()["user"]["token"]

    resp = await async_client.post("/api/users/login", json={"user": {"email": "a@x", "password": "pw123456"}})
    assert resp.status_code == 200
    t2 = resp.json()["user"]["token"]

    subjects = {
        jwt.decode(t, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM], issuer=ISSUER)["sub"]
        for t in (t1, t2)
    }
    assert len(subjects) == 1


@pytest.mark.asyncio
async def test_duplicate_username(async_client: AsyncClient, db_session):
    assert (await _signup(async_client, "alice", "a@x")).status_code == 201
    resp = await _signup(async_client, "alice", "other@x")
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"body": ["username already taken"]}}
    count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_article_lifecycle(async_client: AsyncClient):
    _, bob = await _alice_article(async_client)

    article = (await async_client.get("/api/articles/hello-world")).json()["article"]
    assert article["slug"] == "hello-world"
    assert article["favorited"] is False
    assert article["favoritesCount"] == 0
    assert article["tagList"] == ["go", "web"]
    assert article["author"]["following"] is False

    for _ in range(2):
        resp = await async_client.post("/api/articles/hello-world/favorite", headers=_headers(bob))
        assert resp.json()["article"]["favoritesCount"] == 1

    article = (await async_client.get("/api/articles/hello-world", headers=_headers(bob))).json()["article"]
    assert article["favorited"] is True
    assert article["favoritesCount"] == 1


@pytest.mark.asyncio
async def test_self_follow(async_client: AsyncClient):
    alice = (await _signup(async_client, "alice", "a@x")).json()["user"]["token"]
    resp = await async_client.post("/api/profiles/alice/follow", headers=_headers(alice))
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"body": ["cannot follow yourself"]}}


@pytest.mark.asyncio
async def test_author_cannot_favorite(async_client: AsyncClient):
    alice, _ = await _alice_article(async_client)
    resp = await async_client.post("/api/articles/hello-world/favorite", headers=_headers(alice))
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"body": ["article author cannot favorite their own article"]}}
    article = (await async_client.get("/api/articles/hello-world")).json()["article"]
    assert article["favoritesCount"] == 0


@pytest.mark.asyncio
async def test_comment_ownership(async_client: AsyncClient):
    alice, bob = await _alice_article(async_client)
    resp = await async_client.post("/api/articles/hello-world/comments", headers=_headers(bob),
                                   json={"comment": {"body": "Nice post"}})
    assert resp.status_code == 201
    comment_id = resp.json()["comment"]["id"]

    resp = await async_client.delete(f"/api/articles/hello-world/comments/{comment_id}", headers=_headers(alice))
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"body": ["not authorized"]}}

    resp = await async_client.delete(f"/api/articles/hello-world/comments/{comment_id}", headers=_headers(bob))
    assert resp.status_code == 204
