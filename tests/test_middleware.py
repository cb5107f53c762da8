"""Middleware tests — request ids, security headers, rate limiting, 500s."""

import pytest
from httpx import ASGITransport, AsyncClient

from companion.config import settings
from companion.main import create_app
from companion.middleware.rate_limit import is_auth_path
from companion.redis_client import set_redis


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the rate limiter."""

    def __init__(self):
        self.counters: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def expire(self, key, seconds):
        self.ttls[key] = seconds


@pytest.fixture()
def fake_redis():
    fake = FakeRedis()
    set_redis(fake)
    yield fake
    set_redis(None)


# ─── Request id / security headers ──────────────────────


@pytest.mark.asyncio
async def test_request_id_is_generated(client):
    r = await client.get("/api/status")
    assert len(r.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_request_id_is_propagated(client):
    r = await client.get("/api/status", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_security_headers(client):
    r = await client.get("/api/status")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Cache-Control"] == "no-store"
    assert "Strict-Transport-Security" not in r.headers


# ─── Rate limiting ──────────────────────────────────────


def test_auth_paths():
    assert is_auth_path("/api/auth/signin")
    assert is_auth_path("/api/auth/register")
    assert not is_auth_path("/api/auth/refresh")
    assert not is_auth_path("/api/tasks")


@pytest.mark.asyncio
async def test_no_rate_limit_headers_without_redis(client):
    r = await client.get("/api/status")
    assert "X-RateLimit-Limit" not in r.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client, fake_redis):
    r = await client.get("/api/status")
    assert r.headers["X-RateLimit-Limit"] == str(settings.rate_limit_rpm)
    assert r.headers["X-RateLimit-Remaining"] == str(settings.rate_limit_rpm - 1)
    assert list(fake_redis.ttls.values()) == [120]


@pytest.mark.asyncio
async def test_auth_bucket_is_stricter(client, fake_redis):
    body = {"username": "nobody", "password": "whatever"}
    for _ in range(settings.rate_limit_auth_rpm):
        r = await client.post("/api/auth/signin", json=body)
        assert r.status_code == 404

    r = await client.post("/api/auth/signin", json=body)
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"
    assert r.json() == {"message": "Too many requests. Try again later."}

    # the general bucket is counted separately
    r = await client.get("/api/status")
    assert r.status_code == 200


# ─── Unhandled errors ───────────────────────────────────


@pytest.mark.asyncio
async def test_unhandled_error_becomes_500():
    app = create_app()

    @app.get("/api/boom")
    async def boom():
        raise RuntimeError("kaboom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/boom")

    assert r.status_code == 500
    assert r.json()["message"] == "Something went wrong!"
    assert r.json()["error"] == "kaboom"  # development mode only
