"""Unit tests for the Redis-backed rate limiting middleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.bm_gateway.middleware import rate_limit
from src.bm_gateway.middleware.rate_limit import RateLimitMiddleware, client_key


def _fake_redis() -> MagicMock:
    counts: dict[str, int] = {}

    async def incr(key: str) -> int:
        counts[key] = counts.get(key, 0) + 1
        return counts[key]

    redis = MagicMock()
    redis.incr = AsyncMock(side_effect=incr)
    redis.expire = AsyncMock()
    return redis


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.get("/q")
    async def query() -> dict[str, str]:
        return {"ok": "q"}

    @app.post("/w")
    async def write() -> dict[str, str]:
        return {"ok": "w"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


@pytest.fixture
def redis(monkeypatch) -> MagicMock:
    fake = _fake_redis()
    monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=fake))
    monkeypatch.setattr(rate_limit.settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limit.settings, "RATE_LIMIT_WRITE_PER_MINUTE", 2)
    monkeypatch.setattr(rate_limit.settings, "RATE_LIMIT_QUERY_PER_MINUTE", 3)
    return fake


@pytest.fixture
async def limited_client(redis) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        yield ac


async def test_write_group_limit(limited_client, redis) -> None:
    assert (await limited_client.post("/w")).status_code == 200
    assert (await limited_client.post("/w")).status_code == 200
    resp = await limited_client.post("/w")
    assert resp.status_code == 429
    assert resp.json()["code"] == 9001
    assert resp.headers["Retry-After"] == "60"
    redis.expire.assert_awaited_once()


async def test_groups_are_independent(limited_client) -> None:
    for _ in range(2):
        await limited_client.post("/w")
    assert (await limited_client.get("/q")).status_code == 200


async def test_health_is_exempt(limited_client, redis) -> None:
    for _ in range(5):
        assert (await limited_client.get("/health")).status_code == 200
    redis.incr.assert_not_awaited()


async def test_clients_counted_separately(limited_client) -> None:
    for _ in range(2):
        await limited_client.post("/w", headers={"X-Forwarded-For": "10.0.0.1"})
    resp = await limited_client.post("/w", headers={"X-Forwarded-For": "10.0.0.2"})
    assert resp.status_code == 200


async def test_disabled_skips_redis(monkeypatch) -> None:
    fake = _fake_redis()
    monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=fake))
    monkeypatch.setattr(rate_limit.settings, "RATE_LIMIT_ENABLED", False)
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        assert (await ac.post("/w")).status_code == 200
    fake.incr.assert_not_awaited()


def test_client_key_prefers_first_forwarded_hop() -> None:
    request = MagicMock()
    request.headers = {"x-forwarded-for": "1.2.3.4, 10.0.0.1"}
    assert client_key(request) == "1.2.3.4"


def test_client_key_falls_back_to_peer() -> None:
    request = MagicMock()
    request.headers = {}
    request.client.host = "127.0.0.1"
    assert client_key(request) == "127.0.0.1"
