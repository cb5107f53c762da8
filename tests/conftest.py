"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Settings are read once at import time, so the environment is pointed
   at SQLite (aiosqlite), a cheap bcrypt work factor and a temp upload
   directory BEFORE anything from companion is imported.
2. Each test gets its own in-memory engine. StaticPool keeps the single
   connection alive, so every session in the test sees the same database.
3. get_db is overridden to hand out sessions from that engine; the rest
   of the stack (token gate, policy, services) runs for real.

No Redis in tests: the lifespan never runs under ASGITransport, so rate
limiting is skipped unless a test plugs a client in.
"""

import os
import tempfile

os.environ.setdefault("COMPANION_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("COMPANION_BCRYPT_ROUNDS", "4")
os.environ.setdefault("COMPANION_ENVIRONMENT", "development")
os.environ.setdefault("COMPANION_LOG_LEVEL", "WARNING")
os.environ.setdefault("COMPANION_UPLOAD_DIR", tempfile.mkdtemp(prefix="companion-uploads-"))

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from companion.auth.password import hash_password  # noqa: E402
from companion.db.engine import get_db  # noqa: E402
from companion.db.models import Base, User  # noqa: E402
from companion.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "secret-pass-123"


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for arranging and inspecting rows directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client over the real app with only get_db overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Users and tokens ───────────────────────────────────


async def signup_and_signin(client, username: str, password: str = PASSWORD) -> dict:
    """Register a user and sign in. Returns the signin body plus headers."""
    r = await client.post(
        "/api/auth/signup",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
        },
    )
    assert r.status_code == 201, r.text

    r = await client.post(
        "/api/auth/signin",
        json={"username": username, "password": password},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
    return body


@pytest_asyncio.fixture()
async def alice(client):
    return await signup_and_signin(client, "alice")


@pytest_asyncio.fixture()
async def bob(client):
    return await signup_and_signin(client, "bob")


@pytest_asyncio.fixture()
async def admin(client, db_session):
    """An admin account, created straight in the database like the CLI does."""
    user = User(
        username="root",
        email="root@example.com",
        password_hash=hash_password(PASSWORD),
        role="admin",
    )
    db_session.add(user)
    await db_session.commit()

    r = await client.post(
        "/api/auth/signin",
        json={"email": "root@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    body["headers"] = {"x-access-token": body["access_token"]}
    return body


@pytest_asyncio.fixture()
async def make_user(client):
    """Factory: `await make_user("carol")` → signin body with headers."""

    async def _make(username: str, password: str = PASSWORD) -> dict:
        return await signup_and_signin(client, username, password)

    return _make
