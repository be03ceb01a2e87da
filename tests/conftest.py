# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- Two fakeredis-backed shards ("s1", "s2"), each on its own FakeServer
- A ShardedRedisPool and ShardedRedisCacheManager over those shards
- A variant of the pool whose shard clients are MagicMocks, for asserting
  the exact commands each shard receives
- A `keys_on` helper to pick keys that route to a given shard
- A `connection_checkouts` recorder of connections taken from and given
  back to the shard connection pools
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from shardcache.infrastructure.cache import ShardedRedisCacheManager
from shardcache.infrastructure.pool import ShardedRedisPool
from shardcache.infrastructure.sharding import ShardInfo

SHARDS = [
    ShardInfo(name="s1", url="redis://shard-1:6379/0"),
    ShardInfo(name="s2", url="redis://shard-2:6379/0"),
]


@pytest.fixture()
def fake_servers():
    """One clean FakeServer per shard."""
    return {shard.name: fakeredis.FakeServer() for shard in SHARDS}


@pytest.fixture()
def shard_clients(fake_servers):
    """Direct fakeredis clients for inspecting each shard's contents."""
    clients = {name: fakeredis.FakeRedis(server=server) for name, server in fake_servers.items()}
    yield clients
    for client in clients.values():
        client.close()


@pytest.fixture()
def pool(fake_servers):
    """A ShardedRedisPool whose shards are backed by fakeredis."""

    def factory(shard: ShardInfo) -> redis.ConnectionPool:
        return redis.ConnectionPool(
            connection_class=fakeredis.FakeConnection,
            server=fake_servers[shard.name],
            retry=Retry(NoBackoff(), 0),
        )

    pool = ShardedRedisPool(SHARDS, connection_pool_factory=factory, max_active=4, borrow_timeout=0.2)
    yield pool
    pool.close()


@pytest.fixture()
def manager(pool):
    """A ShardedRedisCacheManager over the fakeredis shards."""
    return ShardedRedisCacheManager(pool)


@pytest.fixture()
def mock_clients(pool, monkeypatch):
    """Replace each shard's client with a MagicMock.

    Every shard keeps one mock client across handles, and each client
    hands out one mock pipeline, so tests can read the calls a shard got
    from `mock_clients[name].pipeline.return_value.mock_calls`.
    """
    clients = {shard.name: MagicMock(name=f"client-{shard.name}") for shard in SHARDS}
    monkeypatch.setattr(pool, "open_client", lambda shard: clients[shard.name])
    return clients


@pytest.fixture()
def keys_on(pool):
    """Find keys that the pool's ring routes to a given shard."""

    def _keys_on(shard_name: str, count: int, prefix: str = "key") -> list[str]:
        found = []
        i = 0
        while len(found) < count:
            candidate = f"{prefix}:{i}"
            if pool.ring.get_shard_info(candidate).name == shard_name:
                found.append(candidate)
            i += 1
        return found

    return _keys_on


@pytest.fixture()
def connection_checkouts(monkeypatch):
    """Record connections taken from and returned to any shard ConnectionPool."""
    taken, returned = [], []
    get_connection = redis.ConnectionPool.get_connection
    release = redis.ConnectionPool.release

    def _get_connection(self, *args, **kwargs):
        connection = get_connection(self, *args, **kwargs)
        taken.append(connection)
        return connection

    def _release(self, connection):
        returned.append(connection)
        return release(self, connection)

    monkeypatch.setattr(redis.ConnectionPool, "get_connection", _get_connection)
    monkeypatch.setattr(redis.ConnectionPool, "release", _release)
    return SimpleNamespace(taken=taken, returned=returned)
