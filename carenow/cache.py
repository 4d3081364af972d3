"""
Redis caching utilities for frequently read, rarely written data
(service catalog listings). Fail-open: Redis errors behave like misses.
"""

import json
import logging
import os
from functools import wraps
from typing import Any, Callable, Optional

import redis

from .shared.failures import CacheFailure

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create the Redis client.
    REDIS_URL takes precedence over the individual REDIS_* settings.
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for caching...")
        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD", None),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )

        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise CacheFailure(f"Redis unavailable: {e}") from e

        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


class Cache:
    """Redis cache wrapper with JSON serialization"""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis_client = client

    def _get_client(self) -> Optional[redis.Redis]:
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except CacheFailure as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e.message}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Cache get error for {key}: {e}")
            return None

        if value:
            logger.debug(f"✅ Cache HIT: {key}")
            return json.loads(value)
        logger.debug(f"❌ Cache MISS: {key}")
        return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.warning(f"⚠️ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'services:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if not keys:
                return 0
            deleted = client.delete(*keys)
            logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
            return deleted
        except redis.RedisError as e:
            logger.warning(f"⚠️ Cache delete pattern error for {pattern}: {e}")
            return 0

    def ping(self) -> bool:
        """
        Raises:
            CacheFailure: If Redis is unreachable
        """
        client = self._get_client()
        if not client:
            raise CacheFailure("Redis cache unavailable")
        try:
            return bool(client.ping())
        except redis.RedisError as e:
            raise CacheFailure(f"Redis ping failed: {e}") from e


# Global cache instance
cache = Cache()


def cached(key_builder: Callable[..., str], ttl: int = 3600):
    """
    Cache a method's JSON-serializable return value.

    ``key_builder`` receives the same arguments as the wrapped method.
    The instance's ``cache`` attribute is used when present.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            store = getattr(self, "cache", None) or cache
            cache_key = key_builder(*args, **kwargs)

            cached_value = store.get(cache_key)
            if cached_value is not None:
                return cached_value

            result = func(self, *args, **kwargs)
            if result is not None:
                store.set(cache_key, result, ttl)
            return result

        return wrapper

    return decorator
