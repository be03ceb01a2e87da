# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain types with no I/O.

This module contains:
- Cache keys (FlatKey, HashKey) and the CacheWrapper envelope
- The exception taxonomy
- The OpResult boundary result type
"""

from shardcache.core.exceptions import (
    ConnectionCenterError,
    ProtocolError,
    SerializationError,
    ShardCacheError,
)
from shardcache.core.models import CacheKey, CacheWrapper, FlatKey, HashKey, MSetParam, make_cache_key
from shardcache.core.results import OpResult, OpStatus

__all__ = [
    "CacheKey",
    "CacheWrapper",
    "ConnectionCenterError",
    "FlatKey",
    "HashKey",
    "MSetParam",
    "OpResult",
    "OpStatus",
    "ProtocolError",
    "SerializationError",
    "ShardCacheError",
    "make_cache_key",
]
