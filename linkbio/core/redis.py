"""Redis cache of resolved linktree snapshots.

The cache is an explicitly constructed ``LinktreeCache`` created at
application startup and stored on ``app.state``; routes receive it through
``get_cache``. Redis failures are logged and treated as cache misses.
"""

import json
from typing import Annotated, Any

import redis.asyncio as redis
import structlog
from fastapi import Depends, Request

from linkbio.core.config import Settings

logger = structlog.get_logger()

# Cache key prefixes
LINKTREE_CACHE_PREFIX = "linktree:"


class LinktreeCache:
    """Snapshot cache keyed by slug.

    The Redis client is created on first use so a disabled cache never
    opens a connection.
    """

    def __init__(
        self,
        url: str,
        ttl: int,
        enabled: bool = True,
        client: redis.Redis | None = None,
    ) -> None:
        self.url = url
        self.ttl = ttl
        self.enabled = enabled
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "LinktreeCache":
        return cls(
            settings.redis_url,
            ttl=settings.public_cache_ttl,
            enabled=settings.cache_enabled,
        )

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis client initialized", url=self.url)
        return self._client

    @staticmethod
    def _key(slug: str) -> str:
        return f"{LINKTREE_CACHE_PREFIX}{slug}"

    async def get(self, slug: str) -> dict[str, Any] | None:
        """Get a linktree snapshot by slug.

        Returns None on a miss, when caching is disabled, or when Redis fails.
        """
        if not self.enabled:
            return None
        try:
            data = await self._get_client().get(self._key(slug))
        except redis.RedisError as e:
            logger.warning("Redis get error", slug=slug, error=str(e))
            return None
        if not data:
            logger.debug("Cache miss", slug=slug)
            return None
        logger.debug("Cache hit", slug=slug)
        return json.loads(data)

    async def set(self, slug: str, snapshot: dict[str, Any], ttl: int | None = None) -> None:
        """Cache a JSON-compatible snapshot."""
        if not self.enabled:
            return
        ttl = ttl or self.ttl
        try:
            await self._get_client().setex(self._key(slug), ttl, json.dumps(snapshot))
            logger.debug("Linktree cached", slug=slug, ttl=ttl)
        except redis.RedisError as e:
            logger.warning("Redis set error", slug=slug, error=str(e))

    async def invalidate(self, *slugs: str) -> None:
        """Drop cached snapshots so the next public view reads the store."""
        if not self.enabled or not slugs:
            return
        try:
            await self._get_client().delete(*(self._key(slug) for slug in slugs))
            logger.debug("Cache invalidated", slugs=list(slugs))
        except redis.RedisError as e:
            logger.warning("Redis delete error", slugs=list(slugs), error=str(e))

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")


def get_cache(request: Request) -> LinktreeCache:
    """Dependency returning the application's snapshot cache."""
    return request.app.state.cache


CacheDep = Annotated[LinktreeCache, Depends(get_cache)]
