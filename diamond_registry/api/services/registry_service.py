"""
Registry Service Layer.
Builds the routing table components for the application and keeps the
Redis snapshot in step with committed writes.
"""

import asyncio
from typing import Optional

from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import CacheError
from diamond_registry.core.logging import get_logger
from diamond_registry.domain.access_control import AccessControl
from diamond_registry.domain.registry import SelectorRegistry
from diamond_registry.infrastructure.cache import get_snapshot_store

logger = get_logger(__name__)

_persist_lock = asyncio.Lock()


def build_access_control() -> AccessControl:
    """Access control seeded with the configured admin addresses."""
    if not settings.REGISTRY_ADMIN_ADDRESSES:
        logger.warning("REGISTRY_ADMIN_ADDRESSES is empty; registry is read-only")
    return AccessControl(settings.REGISTRY_ADMIN_ADDRESSES)


async def load_registry(access_control: AccessControl) -> SelectorRegistry:
    """Restore the routing table from its snapshot when persistence is enabled."""
    if not settings.REGISTRY_PERSISTENCE_ENABLED:
        return SelectorRegistry(access_control)

    store = await get_snapshot_store()
    routes = await store.load()
    logger.info(f"Restored routing table with {len(routes)} selectors")
    return SelectorRegistry.restore(routes, access_control)


async def persist_registry(registry: SelectorRegistry) -> Optional[bool]:
    """
    Save the current table after a committed write.

    The in-memory table stays authoritative; a failed save is logged and
    retried implicitly by the next write.
    """
    if not settings.REGISTRY_PERSISTENCE_ENABLED:
        return None

    # Snapshot taken under the lock so the last save holds the newest table
    async with _persist_lock:
        try:
            store = await get_snapshot_store()
            saved = await store.save(registry.snapshot())
        except CacheError as e:
            logger.error(f"Routing table snapshot not saved: {e.message}")
            return False

    if not saved:
        logger.error("Failed to persist routing table snapshot")
    return saved
