"""
Article endpoint tests — the CRUD lifecycle, ownership, favorites, the
listing filters and feed, camelCase payloads and diagnostic headers.
"""
import pytest
from httpx import AsyncClient


async def _create_article(client: AsyncClient, headers: dict, title: str = "Hello World", tags=None) -> dict:
    resp = await client.post("/api/articles", headers=headers, json={"article": {
        "title": title,
        "description": "A short description",
        "body": "The body",
        "tagList": tags or [],
    }})
    assert resp.status_code == 201, resp.text
    return resp.json()["article"]


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    """Health endpoint reports status, service name and version."""
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "conduit-api"
    assert data["version"]
    assert data["timestamp"]


@pytest.mark.asyncio
async def test_response_timing_headers(async_client: AsyncClient):
    """Every response carries X-Response-Time-Ms and X-Query-Count."""
    resp = await async_client.get("/api/articles")
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) >= 0


@pytest.mark.asyncio
async def test_openapi_documents_error_envelope(async_client: AsyncClient):
    """Error responses are published with the shared envelope model."""
    schema = (await async_client.get("/openapi.json")).json()
    assert "GenericErrorModel" in schema["components"]["schemas"]
    responses = schema["paths"]["/api/articles"]["post"]["responses"]
    assert responses["422"]["content"]["application/json"]["schema"]["$ref"].endswith("GenericErrorModel")


# ---------------------------------------------------------------------------
# Create + get
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_article(async_client: AsyncClient, register, auth_headers):
    """Creation returns the camelCase article view with a derived slug."""
    alice = await register("alice")
    article = await _create_article(async_client, auth_headers(alice["token"]), tags=["go", "web"])
    assert article["slug"] == "hello-world"
    assert article["tagList"] == ["go", "web"]
    assert article["favorited"] is False
    assert article["favoritesCount"] == 0
    assert article["author"] == {"username": "alice", "bio": "", "image": "", "following": False}
    assert article["createdAt"]
    assert article["updatedAt"]


@pytest.mark.asyncio
async def test_create_article_requires_auth(async_client: AsyncClient):
    resp = await async_client.post("/api/articles", json={"article": {
        "title": "t", "description": "d", "body": "b",
    }})
    assert resp.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "article",
    [
        {"description": "d", "body": "b"},
        {"title": "", "description": "d", "body": "b"},
        {"title": "!!!", "description": "d", "body": "b"},
        {"title": "Feed", "description": "d", "body": "b"},
        {"title": " feed! ", "description": "d", "body": "b"},
        {"title": "t", "description": "", "body": "b"},
        {"title": "t", "description": "d", "body": ""},
        {"title": "t", "description": "d", "body": "b", "tagList": [""]},
    ],
)
async def test_create_article_validation(async_client: AsyncClient, register, auth_headers, article):
    alice = await register("alice")
    resp = await async_client.post("/api/articles", headers=auth_headers(alice["token"]), json={"article": article})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_article_duplicate_title(async_client: AsyncClient, register, auth_headers):
    alice = await register("alice")
    headers = auth_headers(alice["token"])
    await _create_article(async_client, headers)
    resp = await async_client.post("/api/articles", headers=headers, json={"article": {
        "title": "hello world", "description": "d", "body": "b",
    }})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_get_article_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"body": ["article not found"]}}


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_article(async_client: AsyncClient, register, auth_headers):
    """Only sent fields change and the slug stays put."""
    alice = await register("alice")
    headers = auth_headers(alice["token"])
    await _create_article(async_client, headers)

    resp = await async_client.put("/api/articles/hello-world", headers=headers, json={"article": {
        "title": "Totally Different",
    }})
    assert resp.status_code == 200
    article = resp.json()["article"]
    assert article["title"] == "Totally Different"
    assert article["slug"] == "hello-world"
    assert article["description"] == "A short description"


@pytest.mark.asyncio
async def test_update_article_not_author(async_client: AsyncClient, register, auth_headers):
    alice = await register("alice")
    bob = await register("bob")
    await _create_article(async_client, auth_headers(alice["token"]))

    resp = await async_client.put("/api/articles/hello-world", headers=auth_headers(bob["token"]), json={
        "article": {"body": "defaced"},
    })
    assert resp.status_code == 403
    assert (await async_client.get("/api/articles/hello-world")).json()["article"]["body"] == "The body"


@pytest.mark.asyncio
async def test_delete_article(async_client: AsyncClient, register, auth_headers):
    alice = await register("alice")
    bob = await register("bob")
    await _create_article(async_client, auth_headers(alice["token"]))

    resp = await async_client.delete("/api/articles/hello-world", headers=auth_headers(bob["token"]))
    assert resp.status_code == 403

    resp = await async_client.delete("/api/articles/hello-world", headers=auth_headers(alice["token"]))
    assert resp.status_code == 204
    assert resp.content == b""
    assert (await async_client.get("/api/articles/hello-world")).status_code == 404


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_favorite_and_unfavorite(async_client: AsyncClient, register, auth_headers):
    alice = await register("alice")
    bob = await register("bob")
    await _create_article(async_client, auth_headers(alice["token"]))
    headers = auth_headers(bob["token"])

    resp = await async_client.post("/api/articles/hello-world/favorite", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["article"]["favorited"] is True
    assert resp.json()["article"]["favoritesCount"] == 1

    resp = await async_client.delete("/api/articles/hello-world/favorite", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["article"]["favorited"] is False
    assert resp.json()["article"]["favoritesCount"] == 0


@pytest.mark.asyncio
async def test_favorite_missing_article(async_client: AsyncClient, register, auth_headers):
    bob = await register("bob")
    resp = await async_client.post("/api/articles/nope/favorite", headers=auth_headers(bob["token"]))
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Listing and feed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_articles_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/articles")
    assert resp.status_code == 200
    assert resp.json() == {"articles": [], "articlesCount": 0}


@pytest.mark.asyncio
async def test_list_articles_filters(async_client: AsyncClient, register, auth_headers):
    alice = await register("alice")
    bob = await register("bob")
    await _create_article(async_client, auth_headers(alice["token"]), "Alice Go", ["go"])
    await _create_article(async_client, auth_headers(alice["token"]), "Alice Web", ["web"])
    await _create_article(async_client, auth_headers(bob["token"]), "Bob Go", ["go"])
    await async_client.post("/api/articles/alice-web/favorite", headers=auth_headers(bob["token"]))

    data = (await async_client.get("/api/articles")).json()
    assert data["articlesCount"] == 3
    assert [a["slug"] for a in data["articles"]] == ["bob-go", "alice-web", "alice-go"]

    data = (await async_client.get("/api/articles", params={"tag": "go"})).json()
    assert {a["slug"] for a in data["articles"]} == {"alice-go", "bob-go"}

    data = (await async_client.get("/api/articles", params={"author": "alice"})).json()
    assert data["articlesCount"] == 2

    data = (await async_client.get("/api/articles", params={"favorited": "bob"})).json()
    assert [a["slug"] for a in data["articles"]] == ["alice-web"]


@pytest.mark.asyncio
async def test_list_articles_pagination(async_client: AsyncClient, register, auth_headers):
    """``articlesCount`` is the total match count, not the page size."""
    alice = await register("alice")
    for i in range(5):
        await _create_article(async_client, auth_headers(alice["token"]), f"Article {i}")

    data = (await async_client.get("/api/articles", params={"limit": 2, "offset": 2})).json()
    assert data["articlesCount"] == 5
    assert [a["slug"] for a in data["articles"]] == ["article-2", "article-1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 101}, {"offset": -1}])
async def test_list_articles_bad_pagination(async_client: AsyncClient, params: dict):
    resp = await async_client.get("/api/articles", params=params)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_feed(async_client: AsyncClient, register, auth_headers):
    """The feed holds only articles by followed authors."""
    alice = await register("alice")
    carol = await register("carol")
    bob = await register("bob")
    await _create_article(async_client, auth_headers(alice["token"]), "From Alice")
    await _create_article(async_client, auth_headers(carol["token"]), "From Carol")
    await async_client.post("/api/profiles/alice/follow", headers=auth_headers(bob["token"]))

    resp = await async_client.get("/api/articles/feed", headers=auth_headers(bob["token"]))
    assert resp.status_code == 200
    data = resp.json()
    assert data["articlesCount"] == 1
    assert data["articles"][0]["slug"] == "from-alice"
    assert data["articles"][0]["author"]["following"] is True


@pytest.mark.asyncio
async def test_feed_requires_auth(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/feed")
    assert resp.status_code == 401
