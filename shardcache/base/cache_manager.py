# ==============================================================================
# Cache Manager Abstract Base Class
# ==============================================================================
"""
Abstract interface for the backends of the method-result cache.

A cache manager persists, retrieves and deletes CacheWrapper envelopes
addressed by CacheKey. It is a best-effort accelerator: write and delete
failures never reach the caller and read failures present as a miss. Only a
failure to acquire a connection may propagate (ConnectionCenterError).

Implementations: ShardedRedisCacheManager.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, Optional

from shardcache.core.models import CacheKey, CacheWrapper, MSetParam


class CacheManager(ABC):
    """
    Cache manager contract used by the method-caching layer.

    The optional method and args describe the invocation whose result is
    cached; backends use the method's return annotation to rebuild values.
    """

    @abstractmethod
    def set_cache(
        self,
        cache_key: Optional[CacheKey],
        result: CacheWrapper,
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> None:
        """
        Store a result.

        Args:
            cache_key: Where to store it; a missing or empty key is a no-op
            result: Wrapper to store
            method: Method that produced the result
            args: Arguments of the invocation
        """
        ...

    @abstractmethod
    def get(
        self,
        cache_key: Optional[CacheKey],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> Optional[CacheWrapper]:
        """
        Fetch a result.

        Args:
            cache_key: Key to read; a missing or empty key returns None
            method: Method whose return annotation describes the payload
            args: Arguments of the invocation

        Returns:
            The stored wrapper, or None when absent
        """
        ...

    @abstractmethod
    def delete(self, keys: Optional[Iterable[Optional[CacheKey]]]) -> None:
        """
        Delete a batch of keys.

        Args:
            keys: Keys to delete; empty keys are skipped
        """
        ...

    @abstractmethod
    def mget(
        self,
        keys: Optional[Iterable[Optional[CacheKey]]],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> dict[CacheKey, CacheWrapper]:
        """
        Fetch several results at once.

        Args:
            keys: Keys to read
            method: Method whose return annotation describes the payloads
            args: Arguments of the invocation

        Returns:
            Dict mapping each found key to its wrapper (missing keys omitted)
        """
        ...

    @abstractmethod
    def mset(self, params: Optional[Iterable[MSetParam]]) -> None:
        """
        Store several results at once.

        Args:
            params: Key/wrapper pairs to store
        """
        ...

    def get_cache_object(
        self,
        cache_key: Optional[CacheKey],
        method: Optional[Callable] = None,
        args: Optional[tuple] = None,
    ) -> Any:
        """Fetch only the cached value, ignoring expired wrappers."""
        wrapper = self.get(cache_key, method, args)
        if wrapper is None or wrapper.is_expired():
            return None
        return wrapper.cache_object
