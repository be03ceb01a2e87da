# ==============================================================================
# Cache Exceptions
# ==============================================================================
"""
Exception taxonomy for the sharded cache.

Only ConnectionCenterError is ever surfaced to callers of the cache manager;
the others are logged at the adapter boundary and degrade the operation to a
miss (reads) or a dropped write.
"""


class ShardCacheError(Exception):
    """Base class for all shardcache errors."""


class ConnectionCenterError(ShardCacheError):
    """The shard pool could not hand out a connection handle."""


class SerializationError(ShardCacheError):
    """A key or value could not be encoded or decoded."""


class ProtocolError(ShardCacheError):
    """The backing store rejected a command (wrong type, bad argument, ...)."""
