"""Async Redis cache client with connection management.

Cache failures never propagate to callers: reads degrade to "absent",
writes report False. The cache is advisory; the upstream APIs are the
source of truth.
"""

import json
import time
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from memeradar.config.settings import get_settings
from memeradar.core.exceptions import CacheError

log = structlog.get_logger(__name__)

# Connection-level failures surface as OSError subclasses as well as RedisError
_CACHE_ERRORS = (RedisError, OSError)


class RedisCache:
    """JSON-over-Redis store with a default TTL.

    Example:
        cache = RedisCache()
        await cache.connect()
        await cache.set_json("records:all", [...])
        records = await cache.get_json("records:all")
    """

    def __init__(
        self,
        url: str | None = None,
        ttl_seconds: int | None = None,
        client: Redis | None = None,
    ) -> None:
        """Initialize cache wrapper.

        Args:
            url: Redis URL (default: settings.redis_url).
            ttl_seconds: Default TTL (default: settings.cache_ttl_seconds).
            client: Pre-built Redis client, mainly for tests.
        """
        settings = get_settings()
        self.url = url or settings.redis_url
        self.ttl_seconds = ttl_seconds or settings.cache_ttl_seconds
        self._client = client

    @property
    def client(self) -> Redis:
        """Underlying Redis client, created lazily."""
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=True)
        return self._client

    async def connect(self) -> None:
        """Create the client and verify the server answers.

        Raises:
            CacheError: If the server is unreachable. The client is kept so
                later calls can succeed once Redis comes back.
        """
        try:
            await self.client.ping()
        except _CACHE_ERRORS as e:
            log.error("cache_connection_failed", url=self.url, error=str(e))
            raise CacheError(f"Redis: {e}") from e
        log.info("cache_connected", url=self.url, ttl_seconds=self.ttl_seconds)

    async def disconnect(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("cache_disconnected")

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value; None when absent or unreadable."""
        try:
            raw = await self.client.get(key)
        except _CACHE_ERRORS as e:
            log.warning("cache_get_failed", key=key, error=str(e))
            return None
        return self._decode(key, raw)

    async def get_many_json(self, keys: list[str]) -> list[Any | None]:
        """Read several keys in one round trip; unreadable entries are None."""
        if not keys:
            return []
        try:
            raws = await self.client.mget(keys)
        except _CACHE_ERRORS as e:
            log.warning("cache_mget_failed", key_count=len(keys), error=str(e))
            return [None] * len(keys)
        return [self._decode(key, raw) for key, raw in zip(keys, raws, strict=True)]

    async def set_json(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Encode and store a value with TTL. Returns False on failure."""
        try:
            await self.client.set(key, json.dumps(value), ex=ttl_seconds or self.ttl_seconds)
        except _CACHE_ERRORS as e:
            log.warning("cache_set_failed", key=key, error=str(e))
            return False
        return True

    async def set_many_json(
        self, items: dict[str, Any], ttl_seconds: int | None = None
    ) -> bool:
        """Store several values in one pipelined round trip."""
        if not items:
            return True
        ttl = ttl_seconds or self.ttl_seconds
        try:
            async with self.client.pipeline(transaction=False) as pipe:
                for key, value in items.items():
                    pipe.set(key, json.dumps(value), ex=ttl)
                await pipe.execute()
        except _CACHE_ERRORS as e:
            log.warning("cache_pipeline_failed", key_count=len(items), error=str(e))
            return False
        return True

    async def ping(self) -> bool:
        """Whether Redis answers right now."""
        try:
            return bool(await self.client.ping())
        except _CACHE_ERRORS as e:
            log.warning("cache_ping_failed", error=str(e))
            return False

    async def health_check(self) -> dict[str, Any]:
        """Report cache reachability.

        Returns:
            Dict with status, healthy flag, and ping latency.
        """
        started = time.perf_counter()
        healthy = await self.ping()
        latency_ms = round((time.perf_counter() - started) * 1000, 1)
        return {
            "status": "connected" if healthy else "unreachable",
            "healthy": healthy,
            "latency_ms": latency_ms,
        }

    @staticmethod
    def _decode(key: str, raw: str | bytes | None) -> Any | None:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            log.warning("cache_value_not_json", key=key, error=str(e))
            return None

