# ==============================================================================
# Serializers
# ==============================================================================
"""
Serializer implementations.

- StringSerializer: UTF-8 encoding for keys and hash fields
- JsonSerializer: JSON encoding for CacheWrapper envelopes; uses the cached
  method's return type to rebuild pydantic models and generic containers
"""

import json
import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from shardcache.base.serializer import Serializer
from shardcache.core.exceptions import SerializationError
from shardcache.core.models import CacheWrapper

logger = logging.getLogger(__name__)


class StringSerializer(Serializer[str]):
    """UTF-8 serializer for keys and hash fields."""

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding

    def serialize(self, obj: str) -> bytes:
        try:
            return obj.encode(self._encoding)
        except (AttributeError, UnicodeEncodeError) as e:
            raise SerializationError(f"Cannot encode key {obj!r}: {e}") from e

    def deserialize(self, data: Optional[bytes], return_type: Any = None) -> Optional[str]:
        if data is None:
            return None
        try:
            return data.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise SerializationError(f"Cannot decode key: {e}") from e


class JsonSerializer(Serializer[CacheWrapper]):
    """
    JSON serializer for CacheWrapper envelopes.

    The envelope is stored as a compact JSON object:
        {"cache_object": ..., "last_load_time": ..., "expire": ...}

    Without a return type, cache_object comes back as plain JSON data
    (dicts, lists, strings, numbers). With one, it is validated into that
    type, so list[Widget] comes back as a list of Widget models.
    """

    def __init__(self):
        self._adapters: dict[Any, TypeAdapter] = {}

    def _adapter(self, return_type: Any) -> TypeAdapter:
        try:
            adapter = self._adapters.get(return_type)
        except TypeError:
            # Unhashable annotation
            return TypeAdapter(return_type)
        if adapter is None:
            adapter = TypeAdapter(return_type)
            self._adapters[return_type] = adapter
        return adapter

    def serialize(self, obj: CacheWrapper) -> bytes:
        try:
            document = {
                "cache_object": to_jsonable_python(obj.cache_object),
                "last_load_time": obj.last_load_time,
                "expire": obj.expire,
            }
            return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (AttributeError, TypeError, ValueError, PydanticSerializationError) as e:
            raise SerializationError(f"Cannot serialize cache entry: {e}") from e

    def deserialize(self, data: Optional[bytes], return_type: Any = None) -> Optional[CacheWrapper]:
        if data is None:
            return None
        try:
            document = json.loads(data)
            cache_object = document.get("cache_object")
            if return_type is not None and cache_object is not None:
                cache_object = self._adapter(return_type).validate_python(cache_object)
            return CacheWrapper(
                cache_object=cache_object,
                last_load_time=document["last_load_time"],
                expire=document["expire"],
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise SerializationError(f"Cannot deserialize cache entry: {e}") from e
