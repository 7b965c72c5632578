import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from codetrail.core.config import settings
from codetrail.services.analytics_service import AnalyticsService
from codetrail.services.cache_service import CacheService, cache_key
from factories import NOW, store_profile


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}
        self.deleted = []

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        self.ttls[key] = ex

    async def delete(self, *keys):
        self.deleted.extend(keys)
        for key in keys:
            self.values.pop(key, None)


class DownRedis:
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def delete(self, *keys):
        raise RedisConnectionError("connection refused")


@pytest.fixture
def redis_client(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(CacheService, "_client", client)
    return client


@pytest.fixture
def cache(redis_client):
    return CacheService(enabled=True)


def test_cache_key():
    assert cache_key("coach", 7) == "codetrail:coach:7"


async def test_set_then_get(cache, redis_client):
    assert await cache.set("dashboard", 1, {"total": 3, "when": NOW}) is True

    assert await cache.get("dashboard", 1) == {"total": 3, "when": NOW.isoformat()}
    assert json.loads(redis_client.values["codetrail:dashboard:1"])["total"] == 3


@pytest.mark.parametrize("kind, ttl", [
    ("dashboard", settings.DASHBOARD_CACHE_TTL),
    ("coach", settings.COACH_CACHE_TTL),
    ("analytics", settings.ANALYTICS_CACHE_TTL),
])
async def test_set_uses_kind_ttl(cache, redis_client, kind, ttl):
    await cache.set(kind, 1, {"ok": True})
    assert redis_client.ttls[cache_key(kind, 1)] == ttl


async def test_get_miss(cache):
    assert await cache.get("coach", 1) is None


async def test_invalidate_clears_every_kind(cache, redis_client):
    for kind in ("dashboard", "coach", "analytics"):
        await cache.set(kind, 1, {"kind": kind})
    await cache.set("coach", 2, {"other": "user"})

    await cache.invalidate(1)

    assert sorted(redis_client.deleted) == [
        "codetrail:analytics:1", "codetrail:coach:1", "codetrail:dashboard:1",
    ]
    assert list(redis_client.values) == ["codetrail:coach:2"]


async def test_invalidate_single_kind(cache, redis_client):
    await cache.invalidate(1, "analytics")
    assert redis_client.deleted == ["codetrail:analytics:1"]


async def test_redis_down_is_a_miss(monkeypatch):
    monkeypatch.setattr(CacheService, "_client", DownRedis())
    cache = CacheService(enabled=True)

    assert await cache.get("coach", 1) is None
    assert await cache.set("coach", 1, {"score": 10}) is False
    await cache.invalidate(1)


async def test_disabled_cache_never_calls_redis(monkeypatch):
    monkeypatch.setattr(CacheService, "_client", DownRedis())
    cache = CacheService(enabled=False)

    assert await cache.get("coach", 1) is None
    assert await cache.set("coach", 1, {"score": 10}) is False


async def test_analytics_served_from_cache(db, user, cache, redis_client):
    await store_profile(db, user.id, platform="codeforces", handle="tourist", rating=1530)
    service = AnalyticsService(db, cache)

    first = await service.get_analytics(user, now=NOW)
    second = await service.get_analytics(user, now=NOW)

    assert first["cache_hit"] is False
    assert second["cache_hit"] is True
    assert second["user_profiles"]["codeforces_handle"] == "tourist"
    assert cache_key("analytics", user.id) in redis_client.values

    await service.invalidate(user)
    assert (await service.get_analytics(user, now=NOW))["cache_hit"] is False
