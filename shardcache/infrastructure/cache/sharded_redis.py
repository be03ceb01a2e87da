# ==============================================================================
# Sharded Redis Cache Manager
# ==============================================================================
"""
CacheManager implementation over a ShardedRedisPool.

Storage layout per key variant:
- FlatKey: SET key value (expire == 0) or SETEX key expire value (expire > 0)
- HashKey: HSET key field value, followed by EXPIRE key H in the same
  pipeline when the effective hash TTL H is positive. H is the manager's
  hash_expire when non-negative, otherwise the entry's own expire.

Batch operations (delete, mget, mset) group keys by owning shard and send
one pipeline per shard; pipelines are synced in the order their shards were
first seen.

Failures are logged once per operation at this boundary and never reach the
caller, except ConnectionCenterError when no shard handle can be borrowed.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any, NamedTuple, Optional

from redis.client import Pipeline
from redis.exceptions import RedisError, ResponseError

from shardcache.base import CacheManager, Serializer
from shardcache.core.exceptions import ConnectionCenterError, ProtocolError, SerializationError
from shardcache.core.models import CacheKey, CacheWrapper, HashKey, MSetParam
from shardcache.core.results import OpResult, OpStatus
from shardcache.infrastructure.pool import ShardedRedisPool, ShardSetHandle
from shardcache.infrastructure.serializers import JsonSerializer, StringSerializer
from shardcache.utils.types import return_type_of

logger = logging.getLogger(__name__)


class _Write(NamedTuple):
    """Commands needed to store one entry."""

    key: bytes
    field: Optional[bytes]
    value: bytes
    ttl: int


def _has_key(cache_key: Optional[CacheKey]) -> bool:
    return cache_key is not None and bool(cache_key.cache_key)


def _describe(cache_key: CacheKey) -> str:
    match cache_key:
        case HashKey(field=field) if field:
            return f"{cache_key.cache_key} [{field}]"
        case _:
            return cache_key.cache_key


def _apply_write(target: Any, write: _Write) -> None:
    """Queue or send the commands of a write on a client or pipeline."""
    if write.field is None:
        if write.ttl == 0:
            target.set(write.key, write.value)
        else:
            target.setex(write.key, write.ttl, write.value)
    else:
        target.hset(write.key, write.field, write.value)
        if write.ttl > 0:
            target.expire(write.key, write.ttl)


class _ShardBatch:
    """
    One pipeline per shard for the duration of a batch operation.

    Pipelines are keyed by shard name and created on first use; execute_each
    syncs them in insertion order, one shard at a time.
    """

    def __init__(self, shards: ShardSetHandle):
        self._shards = shards
        self._pipelines: dict[str, Pipeline] = {}

    def __len__(self) -> int:
        return len(self._pipelines)

    def pipeline_for(self, key: str) -> tuple[str, Pipeline]:
        """Get the shard name and pipeline for a key."""
        session = self._shards.shard_for(key)
        pipeline = self._pipelines.get(session.info.name)
        if pipeline is None:
            pipeline = session.pipeline()
            self._pipelines[session.info.name] = pipeline
        return session.info.name, pipeline

    def execute_each(self) -> Iterator[tuple[str, list]]:
        """Sync every pipeline, yielding each shard's responses as it completes."""
        for name, pipeline in self._pipelines.items():
            yield name, pipeline.execute()

    def sync(self) -> None:
        for _ in self.execute_each():
            pass


class ShardedRedisCacheManager(CacheManager):
    """
    Redis cache manager that spreads keys over statically configured shards.

    Thread-safe as long as the pool is: every operation borrows its own
    shard-set handle and keeps no state between calls.

    Args:
        pool: Shard pool to borrow handles from
        serializer: Value serializer for CacheWrapper envelopes
        key_serializer: Serializer for keys and hash fields
        hash_expire: TTL for hash containers; negative inherits each
            entry's expire
    """

    def __init__(
        self,
        pool: ShardedRedisPool,
        serializer: Optional[Serializer[CacheWrapper]] = None,
        key_serializer: Optional[Serializer[str]] = None,
        hash_expire: int = -1,
    ):
        self._pool = pool
        self._serializer = serializer or JsonSerializer()
        self._key_serializer = key_serializer or StringSerializer()
        self._hash_expire = hash_expire

    @property
    def pool(self) -> ShardedRedisPool:
        return self._pool

    @property
    def hash_expire(self) -> int:
        """TTL applied to hash containers (negative: use the entry's expire)."""
        return self._hash_expire

    @hash_expire.setter
    def hash_expire(self, value: int) -> None:
        self._hash_expire = value

    # ==========================================================================
    # Storage Codec
    # ==========================================================================

    def _plan_write(self, cache_key: CacheKey, result: CacheWrapper) -> Optional[_Write]:
        """
        Decide how an entry is stored.

        Returns:
            The write to perform, or None when the expire policy says to
            store nothing (negative TTL)
        """
        match cache_key:
            case HashKey(field=field) if field:
                ttl = self._hash_expire if self._hash_expire >= 0 else result.expire
                if ttl < 0:
                    return None
                field_bytes: Optional[bytes] = self._key_serializer.serialize(field)
            case _:
                ttl = result.expire
                if ttl < 0:
                    return None
                field_bytes = None
        return _Write(
            key=self._key_serializer.serialize(cache_key.cache_key),
            field=field_bytes,
            value=self._serializer.serialize(result),
            ttl=ttl,
        )

    def _read_command(self, target: Any, cache_key: CacheKey) -> Any:
        """Send or queue the read matching the key's layout."""
        key = self._key_serializer.serialize(cache_key.cache_key)
        match cache_key:
            case HashKey(field=field) if field:
                return target.hget(key, self._key_serializer.serialize(field))
            case _:
                return target.get(key)

    def _delete_command(self, target: Any, cache_key: CacheKey) -> None:
        """Queue the delete matching the key's layout."""
        key = self._key_serializer.serialize(cache_key.cache_key)
        match cache_key:
            case HashKey(field=field) if field:
                target.hdel(key, self._key_serializer.serialize(field))
            case _:
                target.delete(key)

    # ==========================================================================
    # Boundary
    # ==========================================================================

    def _run(
        self,
        action: str,
        subject: str,
        operation: Callable[[ShardSetHandle], OpResult],
        on_error: Callable[[Exception], OpResult],
    ) -> OpResult:
        """
        Run an operation inside a lease and turn failures into results.

        Args:
            action: Operation name for log messages
            subject: Key(s) for log messages
            operation: Work to do with the borrowed handle
            on_error: Builds the result for a logged, swallowed failure
        """
        try:
            with self._pool.lease() as shards:
                return operation(shards)
        except ConnectionCenterError as e:
            logger.error("Cache %s of %s failed: no shard handle available: %s", action, subject, e)
            return OpResult.fatal(e)
        except SerializationError as e:
            logger.error("Cache %s of %s failed: %s", action, subject, e, exc_info=True)
            return on_error(e)
        except ResponseError as e:
            error = ProtocolError(str(e))
            error.__cause__ = e
            logger.error("Cache %s of %s rejected by Redis: %s", action, subject, e, exc_info=True)
            return on_error(error)
        except RedisError as e:
            logger.error("Cache %s of %s failed: %s", action, subject, e, exc_info=True)
            return on_error(e)
        except Exception as e:
            logger.exception("Unexpected error in cache %s of %s", action, subject)
            return on_error(e)

    # ==========================================================================
    # Single-key Operations
    # ==========================================================================

    def try_set_cache(
        self,
        cache_key: Optional[CacheKey],
        result: CacheWrapper,
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> OpResult:
        """
        Store an entry, reporting the outcome instead of raising.

        Returns:
            OK when stored, MISS when there was nothing to store (empty key or
            negative expire), ERROR on a logged failure, FATAL when no shard
            handle could be borrowed
        """
        if not _has_key(cache_key):
            return OpResult.miss()

        def operation(shards: ShardSetHandle) -> OpResult:
            write = self._plan_write(cache_key, result)
            if write is None:
                logger.warning(
                    "Not caching %s: negative expire %d with hash_expire %d",
                    _describe(cache_key),
                    result.expire,
                    self._hash_expire,
                )
                return OpResult.miss()
            session = shards.shard_for(cache_key.cache_key)
            if write.field is not None and write.ttl > 0:
                pipeline = session.pipeline()
                _apply_write(pipeline, write)
                pipeline.execute()
            else:
                _apply_write(session.client, write)
            return OpResult.ok()

        return self._run("set", _describe(cache_key), operation, OpResult.failed)

    def try_get(
        self,
        cache_key: Optional[CacheKey],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> OpResult:
        """
        Fetch an entry, reporting the outcome instead of raising.

        Returns:
            OK with the wrapper, MISS when absent or unreadable, FATAL when no
            shard handle could be borrowed
        """
        if not _has_key(cache_key):
            return OpResult.miss()

        def operation(shards: ShardSetHandle) -> OpResult:
            session = shards.shard_for(cache_key.cache_key)
            data = self._read_command(session.client, cache_key)
            wrapper = self._serializer.deserialize(data, return_type_of(method))
            if wrapper is None:
                return OpResult.miss()
            return OpResult.ok(wrapper)

        return self._run("get", _describe(cache_key), operation, OpResult.miss)

    # ==========================================================================
    # Batch Operations
    # ==========================================================================

    def try_delete(self, keys: Optional[Iterable[Optional[CacheKey]]]) -> OpResult:
        """
        Delete keys with one pipeline per shard.

        Pipelines synced before a failure stay effective; the rest are
        dropped. Nothing is retried.

        Returns:
            OK when every pipeline synced, MISS when there was nothing to
            delete, ERROR on a logged failure, FATAL when no shard handle
            could be borrowed
        """
        pending = [cache_key for cache_key in keys or () if _has_key(cache_key)]
        if not pending:
            return OpResult.miss()

        def operation(shards: ShardSetHandle) -> OpResult:
            batch = _ShardBatch(shards)
            for cache_key in pending:
                _, pipeline = batch.pipeline_for(cache_key.cache_key)
                self._delete_command(pipeline, cache_key)
            batch.sync()
            logger.debug("Deleted %d cache keys across %d shards", len(pending), len(batch))
            return OpResult.ok()

        return self._run("delete", f"{len(pending)} keys", operation, OpResult.failed)

    def try_mget(
        self,
        keys: Optional[Iterable[Optional[CacheKey]]],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> OpResult:
        """
        Fetch several entries with one pipeline per shard.

        Returns:
            OK with a dict of the entries found; ERROR with the entries
            collected before a failure; FATAL when no shard handle could be
            borrowed
        """
        wanted = list(dict.fromkeys(cache_key for cache_key in keys or () if _has_key(cache_key)))
        if not wanted:
            return OpResult.ok({})
        found: dict[CacheKey, CacheWrapper] = {}

        def operation(shards: ShardSetHandle) -> OpResult:
            return_type = return_type_of(method)
            batch = _ShardBatch(shards)
            routed: dict[str, list[CacheKey]] = {}
            for cache_key in wanted:
                name, pipeline = batch.pipeline_for(cache_key.cache_key)
                self._read_command(pipeline, cache_key)
                routed.setdefault(name, []).append(cache_key)

            undecodable = []
            for name, responses in batch.execute_each():
                for cache_key, data in zip(routed[name], responses):
                    try:
                        wrapper = self._serializer.deserialize(data, return_type)
                    except SerializationError:
                        undecodable.append(_describe(cache_key))
                        continue
                    if wrapper is not None:
                        found[cache_key] = wrapper
            if undecodable:
                logger.warning("Ignoring %d undecodable cache entries: %s", len(undecodable), undecodable)
            return OpResult.ok(found)

        def on_error(error: Exception) -> OpResult:
            return OpResult(OpStatus.ERROR, dict(found), error)

        return self._run("mget", f"{len(wanted)} keys", operation, on_error)

    def try_mset(self, params: Optional[Iterable[MSetParam]]) -> OpResult:
        """
        Store several entries with one pipeline per shard.

        Returns:
            OK when every pipeline synced, MISS when there was nothing to
            store, ERROR on a logged failure, FATAL when no shard handle could
            be borrowed
        """
        items = [param for param in params or () if _has_key(param.cache_key)]
        if not items:
            return OpResult.miss()

        def operation(shards: ShardSetHandle) -> OpResult:
            batch = _ShardBatch(shards)
            skipped = []
            for param in items:
                write = self._plan_write(param.cache_key, param.result)
                if write is None:
                    skipped.append(_describe(param.cache_key))
                    continue
                _, pipeline = batch.pipeline_for(param.cache_key.cache_key)
                _apply_write(pipeline, write)
            if skipped:
                logger.warning("Not caching %d entries with negative expire: %s", len(skipped), skipped)
            batch.sync()
            return OpResult.ok() if len(batch) else OpResult.miss()

        return self._run("mset", f"{len(items)} keys", operation, OpResult.failed)

    # ==========================================================================
    # CacheManager Interface Implementation
    # ==========================================================================

    def set_cache(
        self,
        cache_key: Optional[CacheKey],
        result: CacheWrapper,
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> None:
        self.try_set_cache(cache_key, result, method, args).unwrap()

    def get(
        self,
        cache_key: Optional[CacheKey],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> Optional[CacheWrapper]:
        return self.try_get(cache_key, method, args).unwrap()

    def delete(self, keys: Optional[Iterable[Optional[CacheKey]]]) -> None:
        self.try_delete(keys).unwrap()

    def mget(
        self,
        keys: Optional[Iterable[Optional[CacheKey]]],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> dict[CacheKey, CacheWrapper]:
        return self.try_mget(keys, method, args).unwrap() or {}

    def mset(self, params: Optional[Iterable[MSetParam]]) -> None:
        self.try_mset(params).unwrap()
