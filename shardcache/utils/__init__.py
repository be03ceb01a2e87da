# ==============================================================================
# Shared Utilities
# ==============================================================================
"""
Configuration, retry policies and type helpers shared across shardcache.
"""

from shardcache.utils.config import (
    CacheSettings,
    RedisShardSettings,
    Settings,
    get_settings,
    parse_shard_spec,
)
from shardcache.utils.types import return_type_of

__all__ = [
    "CacheSettings",
    "RedisShardSettings",
    "Settings",
    "get_settings",
    "parse_shard_spec",
    "return_type_of",
]
