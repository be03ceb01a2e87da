# ==============================================================================
# Cache Domain Models
# ==============================================================================
"""
Keys and value wrappers handled by the cache manager.

A cache key is a tagged variant:
- FlatKey: stored as a top-level key/value
- HashKey: stored as a field inside a hash container; TTL applies to the container

CacheWrapper is the envelope around a cached method result. The adapter
treats it as opaque and only reads its expire policy.
"""

import time
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


def _current_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class FlatKey:
    """
    Key stored with the flat layout.

    Attributes:
        key: Identifier within the namespace
        namespace: Optional prefix, joined to the key with ':'
    """

    key: str
    namespace: Optional[str] = None

    @property
    def cache_key(self) -> str:
        """The key as stored in Redis."""
        if self.namespace and self.key:
            return f"{self.namespace}:{self.key}"
        return self.key or ""


@dataclass(frozen=True)
class HashKey:
    """
    Key stored as a field of a hash container.

    Attributes:
        key: Identifier of the hash container within the namespace
        field: Field inside the container
        namespace: Optional prefix, joined to the key with ':'
    """

    key: str
    field: str
    namespace: Optional[str] = None

    @property
    def cache_key(self) -> str:
        """The container key as stored in Redis."""
        if self.namespace and self.key:
            return f"{self.namespace}:{self.key}"
        return self.key or ""


CacheKey = Union[FlatKey, HashKey]


def make_cache_key(key: str, field: Optional[str] = None, namespace: Optional[str] = None) -> CacheKey:
    """
    Build the key variant matching the presence of a field.

    Args:
        key: Cache key
        field: Optional hash field; an empty field selects the flat layout
        namespace: Optional namespace prefix

    Returns:
        HashKey when field is non-empty, FlatKey otherwise
    """
    if field:
        return HashKey(key=key, field=field, namespace=namespace)
    return FlatKey(key=key, namespace=namespace)


class CacheWrapper(BaseModel):
    """
    Envelope around a cached method result.

    Attributes:
        cache_object: The cached value (any JSON-compatible or pydantic value)
        last_load_time: When the value was loaded, epoch milliseconds
        expire: Expiration policy in seconds (0 = never, < 0 = inherit)
    """

    model_config = {"arbitrary_types_allowed": True}

    cache_object: Any = Field(default=None, description="Cached method result")
    last_load_time: int = Field(default_factory=_current_millis, description="Load time (ms)")
    expire: int = Field(default=0, description="TTL in seconds")

    def is_expired(self) -> bool:
        """Whether the wrapper has outlived its own expire setting."""
        if self.expire > 0:
            return (_current_millis() - self.last_load_time) > self.expire * 1000
        return False


@dataclass(frozen=True)
class MSetParam:
    """One entry of a batch write."""

    cache_key: CacheKey
    result: CacheWrapper
