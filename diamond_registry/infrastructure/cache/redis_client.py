"""
Async Redis connection used for routing table snapshots.
Values are stored as JSON strings.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import CacheError
from diamond_registry.core.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Lazily connected Redis client with JSON values."""

    def __init__(self, uri: Optional[str] = None, db: Optional[int] = None):
        self.uri = uri or settings.REDIS_URI
        self.db = settings.REDIS_DB if db is None else db
        self._client: Optional[redis.Redis] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """
        Open the connection pool and check the server answers.

        Raises:
            CacheError: if Redis cannot be reached
        """
        client = redis.Redis.from_url(
            self.uri, db=self.db, decode_responses=True, retry_on_timeout=True
        )
        try:
            await client.ping()
        except RedisError as e:
            await client.aclose()
            logger.error(f"Redis unreachable at {self.uri}: {e}")
            raise CacheError(f"Cannot connect to Redis: {e}") from e

        self._client = client
        logger.info(f"Connected to Redis at {self.uri} (db {self.db})")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        """Decoded JSON value at ``key``, or None when the key is absent."""
        if not self.connected:
            await self.connect()

        raw = await self._client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"Value at {key} is not JSON", {"key": key}) from e

    async def set(self, key: str, value: Any) -> bool:
        """
        Store ``value`` as JSON.

        Returns:
            bool: False when Redis rejected or failed the write
        """
        if not self.connected:
            await self.connect()

        try:
            return bool(await self._client.set(key, json.dumps(value)))
        except RedisError as e:
            logger.error(f"Redis write failed for {key}: {e}")
            return False


# Global Redis client instance
redis_client = RedisClient()


async def get_redis_client() -> RedisClient:
    if not redis_client.connected:
        await redis_client.connect()
    return redis_client
