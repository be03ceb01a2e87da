# ==============================================================================
# Sharded Redis Connection Pool
# ==============================================================================
"""
Pool of shard-set handles over a static list of Redis shards.

A ShardSetHandle is borrowed for the duration of one cache operation. It
exposes one session per shard, created the first time a key routes to
that shard. A session checks out a single connection on its first command
and runs every later command and pipeline on it; closing the handle gives
every connection back. lease() wraps borrow/close so the handle is
released exactly once on every exit path.

Configured with:
- a bounded number of concurrently borrowed handles (max_active)
- a borrow timeout, after which ConnectionCenterError is raised
- socket timeouts and small redis-py retries on each shard connection
"""

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Optional, Union

import redis
from redis.client import Pipeline
from redis.connection import Connection
from redis.exceptions import RedisError

from shardcache.core.exceptions import ConnectionCenterError
from shardcache.infrastructure.sharding import ShardInfo, ShardRing
from shardcache.utils.retry import TRANSIENT_REDIS_ERRORS, redis_retry_strategy

if TYPE_CHECKING:
    from shardcache.utils.config import RedisShardSettings

logger = logging.getLogger(__name__)

ConnectionPoolFactory = Callable[[ShardInfo], redis.ConnectionPool]


def default_connection_pool(
    shard: ShardInfo,
    socket_timeout: int = 10,
    max_connections: int = 50,
    health_check_interval: int = 30,
) -> redis.ConnectionPool:
    """
    Create the connection pool for one shard.

    Responses are left as bytes: keys, fields and values are all binary.

    Args:
        shard: Shard to connect to
        socket_timeout: Socket and connect timeout in seconds
        max_connections: Maximum open connections to this shard
        health_check_interval: Seconds between connection health checks

    Returns:
        redis.ConnectionPool for the shard's URL
    """
    return redis.ConnectionPool.from_url(
        shard.url,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        retry=redis_retry_strategy(),
        retry_on_error=list(TRANSIENT_REDIS_ERRORS),
        health_check_interval=health_check_interval,
    )


class SessionConnectionPool:
    """
    Connection source for one session: the first checkout takes a connection
    from the shard's pool and every later checkout returns that same one.

    redis-py clients and pipelines release their connection after each
    command; here that is a no-op, so a session's commands and pipelines all
    run on one connection until release_held() gives it back. Everything
    else (encoder, connection kwargs) is read from the shard's pool.
    """

    def __init__(self, pool: redis.ConnectionPool):
        self._pool = pool
        self._connection: Optional[Connection] = None

    @property
    def held(self) -> Optional[Connection]:
        return self._connection

    def get_connection(self, *args, **kwargs) -> Connection:
        if self._connection is None:
            self._connection = self._pool.get_connection(*args, **kwargs)
        return self._connection

    def release(self, connection: Connection) -> None:
        pass

    def release_held(self) -> None:
        """Return the held connection to the shard's pool."""
        connection, self._connection = self._connection, None
        if connection is not None:
            self._pool.release(connection)

    def __getattr__(self, name: str):
        return getattr(self._pool, name)


class ShardSession:
    """
    One shard's connection within a borrowed handle.

    Attributes:
        info: The shard this session talks to
        client: Redis client whose commands and pipelines share one connection
    """

    def __init__(self, info: ShardInfo, client: redis.Redis):
        self.info = info
        self.client = client

    def pipeline(self) -> Pipeline:
        """Start a non-transactional command pipeline on this session's connection."""
        return self.client.pipeline(transaction=False)

    def close(self) -> None:
        try:
            self.client.close()
        finally:
            source = self.client.connection_pool
            if isinstance(source, SessionConnectionPool):
                source.release_held()

    def __repr__(self) -> str:
        return f"ShardSession({self.info.name!r})"


class ShardSetHandle:
    """
    A borrowed view over every shard, valid for one operation.

    Not thread-safe: a handle belongs to the operation that borrowed it.
    """

    def __init__(self, pool: "ShardedRedisPool"):
        self._pool = pool
        self._sessions: dict[str, ShardSession] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def shard_info(self, key: Union[str, bytes]) -> ShardInfo:
        """Get the shard owning a key without opening a connection."""
        return self._pool.ring.get_shard_info(key)

    def shard_for(self, key: Union[str, bytes]) -> ShardSession:
        """
        Get the session of the shard owning a key.

        No connection is made here; the session checks one out on its first
        command and keeps it for the rest of this handle's lifetime.

        Raises:
            ConnectionCenterError: If the handle was already closed
        """
        if self._closed:
            raise ConnectionCenterError("Shard-set handle is already closed")
        info = self.shard_info(key)
        session = self._sessions.get(info.name)
        if session is None:
            session = ShardSession(info, self._pool.open_client(info))
            self._sessions[info.name] = session
        return session

    def close(self) -> None:
        """Give every connection back and return the handle to the pool."""
        if self._closed:
            return
        self._closed = True
        try:
            for session in self._sessions.values():
                try:
                    session.close()
                except RedisError as e:
                    logger.warning("Failed to release connection to shard %s: %s", session.info.name, e)
        finally:
            self._sessions.clear()
            self._pool.release(self)

    def __enter__(self) -> "ShardSetHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ShardedRedisPool:
    """
    Hands out ShardSetHandles over a static set of shards.

    Thread-safe: any number of threads may borrow concurrently, up to
    max_active handles at a time.

    Args:
        shards: Shards to route across (see ShardRing)
        connection_pool_factory: Creates the redis.ConnectionPool of a shard;
            defaults to default_connection_pool
        max_active: Maximum handles borrowed at the same time
        borrow_timeout: Seconds to wait for a free handle (None waits forever)
        key_tag_pattern: Optional routing regex (see ShardRing)
    """

    def __init__(
        self,
        shards: Sequence[ShardInfo],
        connection_pool_factory: Optional[ConnectionPoolFactory] = None,
        max_active: int = 8,
        borrow_timeout: Optional[float] = 5.0,
        key_tag_pattern: Optional[str] = None,
    ):
        if max_active < 1:
            raise ValueError("max_active must be at least 1")
        self._ring = ShardRing(shards, key_tag_pattern=key_tag_pattern)
        factory = connection_pool_factory or default_connection_pool
        self._connection_pools = {shard.name: factory(shard) for shard in self._ring.shards}
        self._permits = threading.BoundedSemaphore(max_active)
        self._borrow_timeout = borrow_timeout
        self._lock = threading.Lock()
        self._num_active = 0
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Optional["RedisShardSettings"] = None) -> "ShardedRedisPool":
        """
        Build a pool from RedisShardSettings.

        Args:
            settings: Shard settings. If None, uses application settings.
        """
        if settings is None:
            # Import here to avoid circular imports
            from shardcache.utils.config import get_settings

            settings = get_settings().redis

        def factory(shard: ShardInfo) -> redis.ConnectionPool:
            return default_connection_pool(
                shard,
                socket_timeout=settings.socket_timeout,
                max_connections=settings.max_connections,
                health_check_interval=settings.health_check_interval,
            )

        return cls(
            settings.shard_infos,
            connection_pool_factory=factory,
            max_active=settings.max_active,
            borrow_timeout=settings.borrow_timeout,
            key_tag_pattern=settings.key_tag_pattern,
        )

    @property
    def ring(self) -> ShardRing:
        """The routing ring shared by all handles."""
        return self._ring

    @property
    def shards(self) -> tuple[ShardInfo, ...]:
        return self._ring.shards

    @property
    def num_active(self) -> int:
        """Number of handles currently borrowed."""
        return self._num_active

    def open_client(self, shard: ShardInfo) -> redis.Redis:
        """Open a client to a shard whose commands all share one connection."""
        return redis.Redis(connection_pool=SessionConnectionPool(self._connection_pools[shard.name]))

    def borrow(self) -> ShardSetHandle:
        """
        Borrow a shard-set handle. The caller must close() it.

        Raises:
            ConnectionCenterError: If the pool is closed or no handle became
                available within borrow_timeout
        """
        if self._closed:
            raise ConnectionCenterError("Shard pool is closed")
        if self._borrow_timeout is None:
            acquired = self._permits.acquire()
        else:
            acquired = self._permits.acquire(timeout=self._borrow_timeout)
        if not acquired:
            raise ConnectionCenterError(
                f"Timed out after {self._borrow_timeout}s waiting for a shard-set handle"
            )
        with self._lock:
            self._num_active += 1
        return ShardSetHandle(self)

    def release(self, handle: ShardSetHandle) -> None:
        """Return a handle's permit. Called by ShardSetHandle.close()."""
        with self._lock:
            self._num_active -= 1
        self._permits.release()

    @contextmanager
    def lease(self) -> Iterator[ShardSetHandle]:
        """
        Borrow a handle for the duration of a with-block.

        Example:
            with pool.lease() as shards:
                shards.shard_for("user:1").client.get(b"user:1")
        """
        handle = self.borrow()
        try:
            yield handle
        finally:
            handle.close()

    def ping_shard(self, shard: ShardInfo) -> bool:
        """
        Ping one shard outside of any handle.

        Raises:
            redis.exceptions.RedisError: If the shard is unreachable
        """
        client = redis.Redis(connection_pool=self._connection_pools[shard.name])
        return bool(client.ping())

    def close(self) -> None:
        """Disconnect every shard connection pool."""
        self._closed = True
        for name, pool in self._connection_pools.items():
            try:
                pool.disconnect()
            except RedisError as e:
                logger.warning("Failed to disconnect shard %s: %s", name, e)
