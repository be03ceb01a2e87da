# ==============================================================================
# Tests for Serializers and Return Type Descriptors
# ==============================================================================
"""
Unit tests for StringSerializer, JsonSerializer and return_type_of.
"""

from typing import Optional

import pytest
from pydantic import BaseModel

from shardcache.core.exceptions import SerializationError
from shardcache.core.models import CacheWrapper
from shardcache.infrastructure.serializers import JsonSerializer, StringSerializer
from shardcache.utils.types import return_type_of


class Widget(BaseModel):
    name: str
    size: int


class WidgetService:
    def find(self, name: str) -> Optional[Widget]:
        return None

    def by_name(self) -> dict[str, Widget]:
        return {}

    def untyped(self):
        return None


class TestStringSerializer:
    def test_utf8_round_trip(self):
        serializer = StringSerializer()

        assert serializer.serialize("clé") == "clé".encode("utf-8")
        assert serializer.deserialize("clé".encode("utf-8")) == "clé"

    def test_none_is_absent(self):
        assert StringSerializer().deserialize(None) is None

    def test_non_string_rejected(self):
        with pytest.raises(SerializationError):
            StringSerializer().serialize(42)


class TestJsonSerializer:
    def test_none_is_absent(self):
        assert JsonSerializer().deserialize(None, list[Widget]) is None

    def test_plain_json_without_type(self):
        serializer = JsonSerializer()
        entry = CacheWrapper(cache_object={"a": [1, 2]}, expire=5, last_load_time=123)

        assert serializer.deserialize(serializer.serialize(entry)) == entry

    def test_compact_envelope(self):
        entry = CacheWrapper(cache_object="x", expire=5, last_load_time=123)

        assert JsonSerializer().serialize(entry) == b'{"cache_object":"x","last_load_time":123,"expire":5}'

    def test_models_without_type_come_back_as_dicts(self):
        serializer = JsonSerializer()
        entry = CacheWrapper(cache_object=Widget(name="a", size=1))

        assert serializer.deserialize(serializer.serialize(entry)).cache_object == {"name": "a", "size": 1}

    @pytest.mark.parametrize(
        "value, return_type",
        [
            ([Widget(name="a", size=1)], list[Widget]),
            ({"a": Widget(name="a", size=1)}, dict[str, Widget]),
            (Widget(name="a", size=1), Optional[Widget]),
        ],
    )
    def test_rebuilds_declared_type(self, value, return_type):
        serializer = JsonSerializer()
        data = serializer.serialize(CacheWrapper(cache_object=value))

        assert serializer.deserialize(data, return_type).cache_object == value

    def test_null_object_skips_validation(self):
        serializer = JsonSerializer()
        data = serializer.serialize(CacheWrapper(cache_object=None))

        assert serializer.deserialize(data, Widget).cache_object is None

    @pytest.mark.parametrize("data", [b"not json", b"[1, 2]", b'{"cache_object": 1}'])
    def test_malformed_payload(self, data):
        with pytest.raises(SerializationError):
            JsonSerializer().deserialize(data)

    def test_payload_not_matching_type(self):
        serializer = JsonSerializer()
        data = serializer.serialize(CacheWrapper(cache_object=[{"name": "a"}]))

        with pytest.raises(SerializationError):
            serializer.deserialize(data, list[Widget])

    def test_unserializable_value(self):
        with pytest.raises(SerializationError):
            JsonSerializer().serialize(CacheWrapper(cache_object=object()))


class TestReturnTypeOf:
    def test_no_method(self):
        assert return_type_of(None) is None

    def test_bound_method(self):
        service = WidgetService()

        assert return_type_of(service.find) == Optional[Widget]
        assert return_type_of(service.by_name) == dict[str, Widget]

    def test_unannotated(self):
        assert return_type_of(WidgetService().untyped) is None

    def test_unparseable_annotation(self):
        def malformed() -> "list[":
            return None

        assert return_type_of(malformed) is None

    def test_unresolvable_forward_reference(self):
        def broken() -> "DoesNotExist":  # noqa: F821
            return None

        assert return_type_of(broken) == "DoesNotExist"
