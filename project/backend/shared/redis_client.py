"""
Redis client.

Async Redis wrapper with key prefixing and JSON helpers. Used for the JWT
validation cache.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis

from shared.config import Settings
from shared.errors import CacheError, ConfigError
from shared.logging import get_logger

logger = get_logger("redis_client")

KEY_PREFIX = "roastme:cache:"


class RedisClient:
    """Async Redis client with a fixed key prefix."""

    def __init__(self, settings: Settings):
        """Initialize Redis client (connects lazily on first command)."""
        if not settings.redis_url:
            raise ConfigError("REDIS_URL is not configured")
        try:
            self.client = redis.from_url(settings.redis_url)
        except Exception as e:
            raise ConfigError(f"Failed to initialize Redis client: {str(e)}") from e
        self.prefix = KEY_PREFIX

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        """
        Set a string value.

        Args:
            key: Cache key (prefix is added)
            value: String value
            ex: Optional TTL in seconds

        Returns:
            True if the value was stored
        """
        try:
            result = await self.client.set(self._key(key), value.encode("utf-8"), ex=ex)
            return bool(result)
        except Exception as e:
            raise CacheError(f"Failed to set Redis key {key}: {str(e)}") from e

    async def get(self, key: str) -> Optional[str]:
        """Get a string value, or None if missing."""
        try:
            value = await self.client.get(self._key(key))
        except Exception as e:
            raise CacheError(f"Failed to get Redis key {key}: {str(e)}") from e
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value."""
        return await self.set(key, json.dumps(value), ex=ttl)

    async def get_json(self, key: str) -> Optional[Any]:
        """Load a JSON value, or None if missing."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"Failed to decode JSON for key {key}: {str(e)}") from e

    async def health_check(self) -> bool:
        """Return True if Redis answers PING."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning("Redis health check failed", extra={"error": str(e)})
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        await self.client.aclose()
