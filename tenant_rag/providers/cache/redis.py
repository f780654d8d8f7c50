"""
FILE: tenant_rag/providers/cache/redis.py

Redis-backed embedding cache (CACHE_PROVIDER=redis).

Values are stored as JSON under `<key_prefix><key>`. An unreachable Redis
turns the cache into a pass-through: reads miss and writes are dropped, each
logged as a warning, so a cache outage never fails an index or search call.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis

from tenant_rag.providers.cache.base import ICacheProvider

logger = logging.getLogger(__name__)

KEY_PREFIX = "tenant_rag:"


class RedisCacheProvider(ICacheProvider):
    name = "redis"

    def __init__(
        self,
        url: str,
        timeout_s: float = 2.0,
        default_ttl: Optional[int] = None,
        key_prefix: str = KEY_PREFIX,
        client: Optional[aioredis.Redis] = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.default_ttl = default_ttl
        self.key_prefix = key_prefix
        self.client = client
        self.available = False

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def initialize(self) -> None:
        if self.client is None:
            self.client = aioredis.from_url(
                self.url,
                socket_timeout=self.timeout_s,
                socket_connect_timeout=self.timeout_s,
                decode_responses=True,
            )
        try:
            await self.client.ping()
        except (aioredis.RedisError, OSError) as e:
            logger.warning("Redis unreachable at startup, embedding cache disabled: %s", e)
            self.available = False
            return
        self.available = True
        logger.info("✓ Redis embedding cache connected (ttl=%ss)", self.default_ttl)

    async def get(self, key: str) -> Optional[Any]:
        if not self.available:
            return None
        try:
            raw = await self.client.get(self._key(key))
        except (aioredis.RedisError, OSError) as e:
            logger.warning("Redis GET failed, treating as miss: %s", e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Dropping undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if not self.available:
            return
        ttl = self.default_ttl if ttl is None else ttl
        try:
            await self.client.set(self._key(key), json.dumps(value), ex=ttl)
        except (aioredis.RedisError, OSError, TypeError) as e:
            logger.warning("Redis SET failed, value not cached: %s", e)

    async def shutdown(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        self.client = None
        self.available = False
        logger.info("Redis embedding cache closed")


def build_provider(settings) -> RedisCacheProvider:
    return RedisCacheProvider(
        url=settings.redis_url,
        timeout_s=settings.redis_timeout,
        default_ttl=settings.cache_ttl_default,
    )


__all__ = ["RedisCacheProvider", "build_provider"]
