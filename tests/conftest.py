"""Shared fixtures: per-test SQLite database, users and authenticated HTTP clients."""

import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SENTRY_DSN", "")
os.environ.setdefault("OTLP_ENDPOINT", "")
os.environ.setdefault("GITHUB_CLIENT_ID", "")
os.environ.setdefault("GOOGLE_CLIENT_ID", "")

from collections.abc import AsyncGenerator  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from linkbio.core.config import get_settings  # noqa: E402
from linkbio.core.database import Database, get_database  # noqa: E402
from linkbio.core.redis import LinktreeCache, get_cache  # noqa: E402
from linkbio.core.security import AUTH_COOKIE_NAME, create_access_token  # noqa: E402
from linkbio.core.tasks import TelemetryTasks, get_telemetry_tasks  # noqa: E402
from linkbio.main import app  # noqa: E402
from linkbio.models import User  # noqa: E402


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """A fresh SQLite file per test.

    Every session gets its own connection, so background writes and
    concurrent sessions commit independently the way they do on Postgres.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'linkbio.db'}", poolclass=NullPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def telemetry(database: Database) -> AsyncGenerator[TelemetryTasks, None]:
    """Background writes of one test; finished before the database closes."""
    tasks = TelemetryTasks()
    yield tasks
    await tasks.drain()


@pytest.fixture
def test_app(database: Database, telemetry: TelemetryTasks):
    cache = LinktreeCache.from_settings(get_settings())
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_telemetry_tasks] = lambda: telemetry
    yield app
    app.dependency_overrides.clear()


async def create_user(database: Database, email: str) -> User:
    async with database.session() as session:
        user = User(
            email=email,
            name=email.split("@")[0],
            provider="github",
            provider_id=str(uuid4()),
        )
        session.add(user)
        await session.commit()
        return user


def auth_cookies(user: User) -> dict[str, str]:
    return {AUTH_COOKIE_NAME: create_access_token(user.id, user.email)}


@pytest.fixture
async def owner(database: Database) -> User:
    return await create_user(database, "owner@example.com")


@pytest.fixture
async def other_user(database: Database) -> User:
    return await create_user(database, "other@example.com")


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous visitor."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def owner_client(test_app, owner: User) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies=auth_cookies(owner),
    ) as c:
        yield c


@pytest.fixture
async def other_client(test_app, other_user: User) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        cookies=auth_cookies(other_user),
    ) as c:
        yield c


@pytest.fixture
async def linktree(owner_client: AsyncClient) -> dict:
    """The "Me" linktree with a single enabled "Site" link."""
    response = await owner_client.post("/api/linktrees", json={"title": "Me", "slug": "me"})
    assert response.status_code == 201
    link = await owner_client.post(
        "/api/linktrees/me/links",
        json={"title": "Site", "url": "https://x.com", "enabled": True, "order": 0},
    )
    assert link.status_code == 201
    body = response.json()
    body["links"] = [link.json()]
    return body
