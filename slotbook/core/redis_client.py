"""Redis connection and the provider read-through cache."""

import json
from typing import Any, cast

import redis
import structlog

from slotbook.config import settings

logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Shared Redis client, created on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_timeout=2,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """True if Redis answers a PING."""
    try:
        get_redis_client().ping()
        return True
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """
    JSON cache over Redis.

    Slot and booking reads must keep working while Redis is down, so every
    Redis error is logged and treated as a miss (reads) or a no-op (writes).
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    @staticmethod
    def _log_failure(operation: str, key: str, error: Exception) -> None:
        logger.warning("cache_unavailable", operation=operation, key=key, error=str(error))

    def get_json(self, key: str) -> Any | None:
        """
        Read and decode a cached JSON value.

        Args:
            key: Cache key

        Returns:
            Decoded value, or None on a miss, a Redis error or a corrupt entry
        """
        try:
            value = cast(str | None, self.redis.get(key))
        except Exception as e:
            self._log_failure("get", key, e)
            return None

        if not value:
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Encode and store a JSON value.

        Args:
            key: Cache key
            value: JSON-serializable value; dates and UUIDs are stored as strings
            ttl: Time to live in seconds

        Returns:
            True if stored
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
            return True
        except Exception as e:
            self._log_failure("set", key, e)
            return False

    def delete(self, key: str) -> bool:
        """Remove one entry."""
        try:
            self.redis.delete(key)
            return True
        except Exception as e:
            self._log_failure("delete", key, e)
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Remove every entry matching a glob pattern (e.g. ``provider:*``).

        Uses SCAN so a large keyspace does not block the server.

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern, count=500))
            if not keys:
                return 0
            return cast(int, self.redis.delete(*keys))
        except Exception as e:
            self._log_failure("delete_pattern", pattern, e)
            return 0
