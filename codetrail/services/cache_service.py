"""
Redis-backed JSON cache for the per-user pages (dashboard, coach overview,
analytics). Every Redis failure is logged and treated as a miss, so the
pages keep working with Redis down.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from fastapi.encoders import jsonable_encoder
from redis.exceptions import RedisError

from codetrail.core.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "codetrail"
CACHE_KINDS = ("dashboard", "coach", "analytics")


def _ttl(kind: str) -> int:
    return {
        "dashboard": settings.DASHBOARD_CACHE_TTL,
        "coach": settings.COACH_CACHE_TTL,
        "analytics": settings.ANALYTICS_CACHE_TTL,
    }[kind]


def cache_key(kind: str, user_id: int) -> str:
    return f"{KEY_PREFIX}:{kind}:{user_id}"


class CacheService:
    _client: Optional[redis.Redis] = None

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.CACHE_ENABLED if enabled is None else enabled

    @classmethod
    def client(cls) -> redis.Redis:
        if cls._client is None:
            cls._client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        return cls._client

    @classmethod
    async def close(cls):
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None

    async def get(self, kind: str, user_id: int) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = await self.client().get(cache_key(kind, user_id))
        except RedisError as e:
            logger.warning("⚠️  Cache read failed for %s/%s: %s", kind, user_id, e)
            return None
        if raw is None:
            logger.debug("Cache MISS %s/%s", kind, user_id)
            return None
        logger.debug("Cache HIT %s/%s", kind, user_id)
        return json.loads(raw)

    async def set(self, kind: str, user_id: int, value: Any) -> bool:
        if not self.enabled:
            return False
        try:
            await self.client().set(
                cache_key(kind, user_id),
                json.dumps(jsonable_encoder(value)),
                ex=_ttl(kind),
            )
        except RedisError as e:
            logger.warning("⚠️  Cache write failed for %s/%s: %s", kind, user_id, e)
            return False
        return True

    async def invalidate(self, user_id: int, *kinds: str) -> None:
        """Drop the given cached pages for a user, or all of them."""
        if not self.enabled:
            return
        keys = [cache_key(kind, user_id) for kind in (kinds or CACHE_KINDS)]
        try:
            await self.client().delete(*keys)
        except RedisError as e:
            logger.warning("⚠️  Cache invalidation failed for user %s: %s", user_id, e)
            return
        logger.info("🧹 Cleared cached %s for user %s", ", ".join(kinds or CACHE_KINDS), user_id)
