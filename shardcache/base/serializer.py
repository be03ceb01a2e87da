# ==============================================================================
# Serializer Abstract Base Class
# ==============================================================================
"""
Abstract interface for turning keys and cached values into bytes.

Implementations: StringSerializer (keys and hash fields), JsonSerializer
(CacheWrapper envelopes).
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class Serializer(ABC, Generic[T]):
    """
    Encoder/decoder between Python values and the bytes stored in Redis.

    Implementations must be deterministic: the same value always encodes to
    the same bytes, otherwise keys written by one process cannot be read by
    another.
    """

    @abstractmethod
    def serialize(self, obj: T) -> bytes:
        """
        Encode a value.

        Args:
            obj: Value to encode

        Returns:
            Encoded bytes

        Raises:
            SerializationError: If the value cannot be encoded
        """
        ...

    @abstractmethod
    def deserialize(self, data: Optional[bytes], return_type: Any = None) -> Optional[T]:
        """
        Decode a value.

        Args:
            data: Bytes read from the store; None means the key was absent
            return_type: Optional type descriptor used to rebuild nested values

        Returns:
            Decoded value, or None when data is None

        Raises:
            SerializationError: If the bytes cannot be decoded
        """
        ...
