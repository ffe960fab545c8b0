"""
Cache infrastructure module.
Redis connection and the routing table snapshot stored in it.
"""

from .redis_client import RedisClient, redis_client, get_redis_client
from .snapshot_store import SnapshotStore, snapshot_store, get_snapshot_store

__all__ = [
    "RedisClient",
    "redis_client",
    "get_redis_client",
    "SnapshotStore",
    "snapshot_store",
    "get_snapshot_store",
]
