"""
Snapshot store for the routing table.
Persists the selector -> facet mapping to Redis after each committed write
and restores it at startup.
"""

from typing import Dict, Optional

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import CacheError
from diamond_registry.core.logging import get_logger
from diamond_registry.infrastructure.cache.redis_client import get_redis_client

logger = get_logger(__name__)


class SnapshotStore:
    """Saves and loads routing table snapshots."""

    def __init__(self, key: Optional[str] = None):
        self.key = key or settings.REGISTRY_SNAPSHOT_KEY
        self._redis_client = None

    async def _get_client(self):
        """Get Redis client instance."""
        if not self._redis_client:
            self._redis_client = await get_redis_client()
        return self._redis_client

    async def save(self, routes: Dict[str, str]) -> bool:
        """
        Persist a snapshot.

        Returns:
            bool: True if the snapshot was written
        """
        client = await self._get_client()
        saved = await client.set(self.key, routes)
        if saved:
            logger.info(f"Routing table snapshot saved ({len(routes)} selectors)")
        return saved

    async def load(self) -> Dict[str, str]:
        """
        Load the last snapshot; an absent snapshot is an empty table.

        Raises:
            CacheError: if the stored value is not a selector mapping
        """
        client = await self._get_client()
        routes = await client.get(self.key)
        if routes is None:
            return {}
        if not isinstance(routes, dict):
            raise CacheError(f"Corrupt routing snapshot at {self.key}")
        return routes


# Global snapshot store instance
snapshot_store = SnapshotStore()


async def get_snapshot_store() -> SnapshotStore:
    """
    Get snapshot store instance.

    Returns:
        SnapshotStore: Snapshot store instance
    """
    return snapshot_store
