"""
Test infrastructure for the Conduit API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no running Postgres is needed.
- StaticPool makes every session share the single in-memory connection;
  a second connection would see an empty database.
- Foreign keys are switched on for the test engine, otherwise SQLite skips
  the cascades and FK violations the repositories rely on.
- The app's get_db dependency is overridden so every request uses the test
  session factory.
- Tables are created before each test and dropped after it.
- Redis is disabled by nulling ``cache._redis``; the CacheManager treats a
  missing client as a permanent miss.
- bcrypt runs at its minimum work factor to keep the suite fast.
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "10")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from conduit.cache import cache
from conduit.database import Base, get_db, install_sqlite_foreign_keys
from conduit.main import app
from conduit.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)
install_sqlite_foreign_keys(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for repository and service tests."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register(async_client: AsyncClient):
    """
    Return a coroutine that registers a user over HTTP and returns the
    ``user`` payload (including ``token``).
    """
    async def _register(username: str, email: str | None = None, password: str = "password123") -> dict:
        resp = await async_client.post("/api/users", json={"user": {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        }})
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    return _register


def auth(token: str) -> dict:
    return {"Authorization": f"Token {token}"}


@pytest.fixture
def auth_headers():
    """Build an ``Authorization: Token <jwt>`` header dict."""
    return auth
