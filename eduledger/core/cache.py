# eduledger/core/cache.py
"""Redis caching implementation."""
import json
import logging
from typing import Any, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from .config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    def __init__(self, url: str = None):
        self.url = url or settings.redis_url
        self.redis: Optional[redis.Redis] = None

    @property
    def enabled(self) -> bool:
        return settings.cache_enabled

    async def connect(self):
        """Initialize Redis connection."""
        if not self.redis:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    @staticmethod
    def make_key(*parts: Any) -> str:
        return ":".join(str(part) for part in parts)

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache. Misses and cache outages both return None."""
        if not self.enabled:
            return None
        if not self.redis:
            await self.connect()

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.enabled:
            return False
        if not self.redis:
            await self.connect()

        try:
            serialized = json.dumps(value, default=str)
            if expire:
                if isinstance(expire, timedelta):
                    expire = int(expire.total_seconds())
                return bool(await self.redis.setex(key, expire, serialized))
            return bool(await self.redis.set(key, serialized))
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def incr(self, key: str) -> int:
        """Atomically bump a counter. Returns 0 when caching is off or Redis is down."""
        if not self.enabled:
            return 0
        if not self.redis:
            await self.connect()

        try:
            return await self.redis.incr(key)
        except redis.RedisError as e:
            logger.warning(f"Cache increment failed for {key}: {e}")
            return 0

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern."""
        if not self.enabled:
            return 0
        if not self.redis:
            await self.connect()

        try:
            deleted = 0
            async for key in self.redis.scan_iter(match=pattern):
                deleted += await self.redis.delete(key)
            return deleted
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {pattern}: {e}")
            return 0


# Global cache instance
cache_manager = CacheManager()
