# ==============================================================================
# Infrastructure Layer
# ==============================================================================
"""
Redis-backed implementations of the base interfaces.

- sharding: consistent-hash routing of keys to shards
- pool: shard-set handles borrowed per operation
- serializers: key and value serializers
- cache: the sharded cache manager
"""

from shardcache.infrastructure.pool import ShardedRedisPool, ShardSession, ShardSetHandle
from shardcache.infrastructure.sharding import ShardInfo, ShardRing

__all__ = [
    "ShardInfo",
    "ShardRing",
    "ShardSession",
    "ShardSetHandle",
    "ShardedRedisPool",
]
