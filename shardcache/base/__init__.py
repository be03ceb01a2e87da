# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the contracts between the cache manager
and its collaborators (serializers, cache backends).
"""

from shardcache.base.cache_manager import CacheManager
from shardcache.base.serializer import Serializer

__all__ = [
    "CacheManager",
    "Serializer",
]
