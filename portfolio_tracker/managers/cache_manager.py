from typing import Any, Optional

import redis

from portfolio_tracker.core.config import settings
from portfolio_tracker.core.logger import logger
from portfolio_tracker.core.redis_client import redis_client
from portfolio_tracker.utils.json_utils import from_json, to_json


class CacheManager:
    """
    JSON response cache in Redis. Redis outages are logged and behave like a
    cache miss, so callers always fall through to the database.
    """

    def __init__(self, prefix: str = "", client: Optional[redis.Redis] = None):
        self.prefix = prefix.rstrip(":")
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client or redis_client

    def _build_key(self, *parts: Any, user: Optional[str] = None) -> str:
        """builds a cache key: holdings:user:alice:list or assets:page:1:50"""
        segments = [self.prefix]
        if user is not None:
            segments.append(f"user:{user}")
        segments.extend(str(p) for p in parts if p is not None)
        return ":".join(segments)

    def get(self, *parts, user: Optional[str] = None):
        key = self._build_key(*parts, user=user)
        try:
            data = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if data:
            logger.debug(f"Cache hit: {key}")
            return from_json(data)
        logger.debug(f"Cache miss: {key}")
        return None

    def set(self, data: Any, *parts, user: Optional[str] = None, ttl: int = settings.API_CACHE_TTL_SECONDS):
        key = self._build_key(*parts, user=user)
        try:
            self.client.set(key, to_json(data), ex=ttl)
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return
        logger.debug(f"Cache set: {key} (TTL={ttl}s)")

    def clear(self, pattern: Optional[str] = None) -> int:
        """Delete all cache entries matching the given pattern."""
        pattern = pattern or f"{self.prefix}*"
        count = 0
        try:
            for key in self.client.scan_iter(pattern):
                self.client.delete(key)
                count += 1
        except redis.RedisError as e:
            logger.warning(f"Cache clear failed for pattern '{pattern}': {e}")
            return count
        logger.info(f"Cleared {count} cache entries for pattern '{pattern}'")
        return count


PRICE_CACHE_PREFIXES = ("assets", "holdings")


def clear_price_caches() -> int:
    """Drop cached responses that embed asset prices: asset pages and holding lists."""
    return sum(CacheManager(prefix=prefix).clear() for prefix in PRICE_CACHE_PREFIXES)
