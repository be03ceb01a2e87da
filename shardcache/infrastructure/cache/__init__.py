# ==============================================================================
# Cache Infrastructure
# ==============================================================================
"""
Cache manager implementations and factories.

Available implementations:
- ShardedRedisCacheManager: Redis cache spread over consistent-hashed shards
"""

import logging
from typing import Optional

from redis.exceptions import RedisError

from shardcache.infrastructure.cache.sharded_redis import ShardedRedisCacheManager
from shardcache.infrastructure.pool import ShardedRedisPool
from shardcache.utils.config import Settings, get_settings
from shardcache.utils.retry import retry_health_check

logger = logging.getLogger(__name__)


def get_sharded_cache_manager(settings: Optional[Settings] = None) -> ShardedRedisCacheManager:
    """
    Get a ShardedRedisCacheManager configured from settings.

    Each call builds a new pool. For long-lived applications, create one
    manager at startup and share it.

    Args:
        settings: Application settings. If None, uses get_settings().

    Returns:
        Configured ShardedRedisCacheManager
    """
    settings = settings or get_settings()
    pool = ShardedRedisPool.from_settings(settings.redis)
    return ShardedRedisCacheManager(pool, hash_expire=settings.cache.hash_expire)


def check_shard_connections(pool: ShardedRedisPool) -> dict[str, bool]:
    """
    Check which shards are reachable.

    Each shard is pinged up to 3 times, backing off between attempts.

    Args:
        pool: Pool whose shards to check

    Returns:
        Dict mapping shard name to reachability
    """
    results = {}
    for shard in pool.shards:
        ping = retry_health_check(logger)(pool.ping_shard)
        try:
            results[shard.name] = ping(shard)
        except RedisError as e:
            logger.warning("Shard %s is unreachable: %s", shard.name, e)
            results[shard.name] = False
    return results


__all__ = [
    "ShardedRedisCacheManager",
    "check_shard_connections",
    "get_sharded_cache_manager",
]
