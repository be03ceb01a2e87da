# ==============================================================================
# shardcache
# ==============================================================================
"""
Sharded Redis cache manager for method-result caching.

Stores serialized result wrappers across a statically configured set of
Redis shards, routing every key to its owning shard by consistent hashing.
"""

from shardcache.core.exceptions import (
    ConnectionCenterError,
    ProtocolError,
    SerializationError,
    ShardCacheError,
)
from shardcache.core.models import CacheKey, CacheWrapper, FlatKey, HashKey, MSetParam, make_cache_key

__version__ = "1.0.0"

__all__ = [
    "CacheKey",
    "CacheWrapper",
    "ConnectionCenterError",
    "FlatKey",
    "HashKey",
    "MSetParam",
    "ProtocolError",
    "SerializationError",
    "ShardCacheError",
    "make_cache_key",
]
