"""
Redis Key-Value Store
Durable storage for installed addons and catalog preferences
"""
import json
import logging
from typing import Optional, Any
import redis.asyncio as redis
from addonhub.core.config import settings
from addonhub.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Redis-backed JSON blob store with async support"""

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        self._redis_client = client
        self.url = url or settings.REDIS_URL

    async def get_client(self) -> redis.Redis:
        """Get or create Redis client"""
        if self._redis_client is None:
            self._redis_client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
        return self._redis_client

    async def get_json(self, key: str) -> Optional[Any]:
        """
        Read a JSON blob

        Args:
            key: Storage key

        Returns:
            Decoded value or None if the key was never written

        Raises:
            StorageError: if the store is unreachable or the blob is corrupt
        """
        try:
            client = await self.get_client()
            value = await client.get(key)
        except Exception as e:
            raise StorageError(f"Storage read error for key {key}: {e}") from e

        if value is None:
            return None
        try:
            return json.loads(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Corrupt JSON stored under {key}: {e}") from e

    async def set_json(self, key: str, value: Any) -> bool:
        """
        Write a JSON blob

        Args:
            key: Storage key
            value: Value to store (must be JSON serializable)

        Returns:
            True if successful, False otherwise
        """
        try:
            client = await self.get_client()
            await client.set(key, json.dumps(value))
            return True

        except Exception as e:
            logger.error(f"Storage write error for key {key}: {e}")
            return False

    async def close(self):
        """Close Redis connection"""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
