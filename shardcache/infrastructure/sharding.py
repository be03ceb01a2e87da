# ==============================================================================
# Shard Routing
# ==============================================================================
"""
Consistent-hash routing of cache keys to shards.

Each shard owns VIRTUAL_NODES * weight points on a 64-bit ring; a key
belongs to the first point at or after its own hash, wrapping around.
Adding or removing a shard only remaps the keys adjacent to its points.

The router is pure: it selects a ShardInfo and never opens connections.
"""

import bisect
import hashlib
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union

# Points per unit of weight on the hash ring
VIRTUAL_NODES = 160


def ring_hash(data: bytes) -> int:
    """
    Hash bytes onto the ring.

    Uses the first 8 bytes of the MD5 digest as a big-endian integer so that
    every process computes the same position for the same key.
    """
    return int.from_bytes(hashlib.md5(data).digest()[:8], byteorder="big")


@dataclass(frozen=True)
class ShardInfo:
    """
    Static description of one shard.

    Attributes:
        name: Stable shard identity; ring positions derive from it
        url: Redis connection URL (redis:// or rediss://)
        weight: Relative share of the keyspace
    """

    name: str
    url: str = "redis://localhost:6379/0"
    weight: int = 1


class ShardRing:
    """
    Maps keys to shards with ketama-style consistent hashing.

    Args:
        shards: Shards to place on the ring (names must be unique)
        key_tag_pattern: Optional regex; when it matches a key, the first
            group is hashed instead of the whole key so that related keys
            can share a shard
    """

    def __init__(self, shards: Sequence[ShardInfo], key_tag_pattern: Optional[str] = None):
        if not shards:
            raise ValueError("At least one shard is required")
        names = [shard.name for shard in shards]
        if len(set(names)) != len(names):
            raise ValueError(f"Shard names must be unique: {names}")

        self._shards = tuple(shards)
        self._tag_pattern = re.compile(key_tag_pattern) if key_tag_pattern else None
        if self._tag_pattern is not None and self._tag_pattern.groups < 1:
            raise ValueError(f"key_tag_pattern needs a capture group: {key_tag_pattern!r}")

        points: list[tuple[int, int]] = []
        for index, shard in enumerate(self._shards):
            for node in range(VIRTUAL_NODES * max(shard.weight, 1)):
                points.append((ring_hash(f"{shard.name}*{node}".encode("utf-8")), index))
        points.sort()
        self._positions = [position for position, _ in points]
        self._owners = [index for _, index in points]

    @property
    def shards(self) -> tuple[ShardInfo, ...]:
        """All shards on the ring, in configuration order."""
        return self._shards

    def key_tag(self, key: str) -> str:
        """Return the part of the key used for routing."""
        if self._tag_pattern is not None:
            match = self._tag_pattern.search(key)
            if match:
                return match.group(1)
        return key

    def get_shard_info(self, key: Union[str, bytes]) -> ShardInfo:
        """
        Get the shard owning a key.

        Args:
            key: Cache key, as text or UTF-8 bytes; both forms route the same

        Returns:
            The owning ShardInfo
        """
        # surrogateescape keeps non-UTF-8 bytes keys hashing on their exact bytes
        if isinstance(key, bytes):
            key = key.decode("utf-8", errors="surrogateescape")
        data = self.key_tag(key).encode("utf-8", errors="surrogateescape")
        idx = bisect.bisect_left(self._positions, ring_hash(data))
        if idx == len(self._positions):
            idx = 0
        return self._shards[self._owners[idx]]
