"""
Redis helpers: cohort analytics cache-aside and gamification event fan-out

Redis is optional. When the server cannot be reached at import time every
call degrades to a miss or a no-op.
"""
import json
import logging
from typing import Any, Callable, Optional

import redis

from fellowship.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Thin wrapper over a Redis client for analytics rollups"""

    KEY_PREFIX = "analytics"

    def __init__(self):
        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def generate_cohort_key(self, cohort_id: str, view: str) -> str:
        """Key for one cohort rollup, e.g. analytics:<cohort>:stats"""
        return f"{self.KEY_PREFIX}:{cohort_id}:{view}"

    def get(self, key: str) -> Optional[Any]:
        if not self.redis_client:
            return None

        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache read failed for {key}: {str(e)}")
            return None

        logger.debug(f"Cache {'hit' if raw else 'miss'}: {key}")
        return json.loads(raw) if raw else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON value; UUIDs and datetimes are stored as strings"""
        if not self.redis_client:
            return False

        ttl = ttl or settings.ANALYTICS_CACHE_TTL
        try:
            self.redis_client.setex(key, ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            logger.error(f"Cache write failed for {key}: {str(e)}")
            return False

        return True

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """
        Cache-aside read

        Args:
            key: Cache key
            compute: Zero-argument loader called on a miss

        Returns:
            Cached value, or the freshly computed one (then stored)
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = compute()
        self.set(key, value)
        return value

    def clear_cohort_cache(self, cohort_id: str) -> int:
        """Drop every cached rollup for a cohort; returns the number removed"""
        if not self.redis_client:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=f"{self.KEY_PREFIX}:{cohort_id}:*"))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Cache invalidation failed for cohort {cohort_id}: {str(e)}")
            return 0

        logger.info(f"Cleared {len(keys)} cached rollups for cohort {cohort_id}")
        return len(keys)

    def publish(self, channel: str, message: Any) -> bool:
        """Publish a JSON message without waiting for subscribers"""
        if not self.redis_client:
            return False

        try:
            self.redis_client.publish(channel, json.dumps(message, default=str))
        except redis.RedisError as e:
            logger.error(f"Publish failed on {channel}: {str(e)}")
            return False

        return True


cache_service = CacheService()
