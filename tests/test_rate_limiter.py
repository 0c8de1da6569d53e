from collections import defaultdict

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from leadflow.middleware.rate_limiter import RateLimitingMiddleware


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def incr(self, key):
        self.ops.append(("incr", key))

    def expire(self, key, seconds):
        self.ops.append(("expire", key, seconds))

    async def execute(self):
        results = []
        for op in self.ops:
            if op[0] == "incr":
                self.store.counts[op[1]] += 1
                results.append(self.store.counts[op[1]])
            else:
                self.store.expiries[op[1]] = op[2]
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.counts = defaultdict(int)
        self.expiries = {}

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class BrokenRedis:
    def pipeline(self, transaction=True):
        raise ConnectionError("redis down")


def build_app(redis_client, limit=2):
    app = FastAPI()
    app.add_middleware(
        RateLimitingMiddleware,
        redis_client=redis_client,
        limit=limit,
        period=60,
        path_prefix="/api/public",
    )

    @app.post("/api/public/leads")
    async def receive():
        return {"success": True}

    @app.get("/api/leads")
    async def private():
        return {"items": []}

    return app


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_limit_per_api_key():
    redis = FakeRedis()
    async with _client(build_app(redis)) as client:
        headers = {"X-API-Key": "lf_secret"}
        first = await client.post("/api/public/leads", headers=headers)
        second = await client.post("/api/public/leads", headers=headers)
        third = await client.post("/api/public/leads", headers=headers)
        other_key = await client.post("/api/public/leads", headers={"X-API-Key": "lf_other"})

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.status_code == 200
    assert third.status_code == 429
    assert int(third.headers["Retry-After"]) >= 0
    body = third.json()
    assert body["success"] is False
    assert body["code"] == "rate_limited"
    assert other_key.status_code == 200

    # Keys are stored hashed
    assert all("lf_secret" not in key for key in redis.counts)
    assert set(redis.expiries.values()) == {60}


@pytest.mark.asyncio
async def test_falls_back_to_forwarded_ip():
    redis = FakeRedis()
    async with _client(build_app(redis, limit=1)) as client:
        ok = await client.post("/api/public/leads", headers={"X-Forwarded-For": "203.0.113.7"})
        blocked = await client.post("/api/public/leads", headers={"X-Forwarded-For": "203.0.113.7"})
        other_ip = await client.post("/api/public/leads", headers={"X-Forwarded-For": "203.0.113.8"})

    assert ok.status_code == 200
    assert blocked.status_code == 429
    assert other_ip.status_code == 200
    assert any("203.0.113.7" in key for key in redis.counts)


@pytest.mark.asyncio
async def test_other_paths_are_not_limited():
    redis = FakeRedis()
    async with _client(build_app(redis, limit=1)) as client:
        for _ in range(3):
            response = await client.get("/api/leads")
            assert response.status_code == 200
            assert "X-RateLimit-Limit" not in response.headers

    assert redis.counts == {}


@pytest.mark.asyncio
async def test_fails_open_without_redis():
    async with _client(build_app(BrokenRedis(), limit=1)) as client:
        for _ in range(3):
            response = await client.post("/api/public/leads")
            assert response.status_code == 200
