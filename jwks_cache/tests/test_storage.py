"""
Unit tests for the key-value stores.
"""

import pytest
import redis
from unittest.mock import MagicMock

from jwks_cache.app.storage import InMemoryKeyValueStore, RedisKeyValueStore
from shared.errors import StorageError


class TestInMemoryKeyValueStore:
    """Test cases for InMemoryKeyValueStore."""

    def test_missing_keys_return_none(self):
        store = InMemoryKeyValueStore()

        assert store.get_string("realm_jwks_content") is None
        assert store.get_double("realm_requested_date") is None

    def test_string_and_double_round_trip(self):
        store = InMemoryKeyValueStore()
        store.set_string("realm_jwks_content", '{"keys": []}')
        store.set_double("realm_requested_date", 1700000000.5)

        assert store.get_string("realm_jwks_content") == '{"keys": []}'
        assert store.get_double("realm_requested_date") == 1700000000.5
        assert len(store) == 2

    def test_type_mismatch_reads_as_absent(self):
        store = InMemoryKeyValueStore({"a": "text", "b": 12})

        assert store.get_double("a") is None
        assert store.get_string("b") is None
        assert store.get_double("b") == 12.0


class TestRedisKeyValueStore:
    """Test cases for RedisKeyValueStore."""

    @pytest.fixture
    def redis_client(self):
        """Mock Redis client."""
        return MagicMock()

    @pytest.fixture
    def store(self, redis_client):
        """Create RedisKeyValueStore instance."""
        return RedisKeyValueStore("redis://localhost:6379/0", prefix="jwks:", client=redis_client)

    def test_get_string_uses_prefix(self, store, redis_client):
        redis_client.get.return_value = '{"keys": []}'

        assert store.get_string("realm_jwks_content") == '{"keys": []}'
        redis_client.get.assert_called_once_with("jwks:realm_jwks_content")

    def test_get_string_decodes_bytes(self, store, redis_client):
        redis_client.get.return_value = b"value"

        assert store.get_string("key") == "value"

    def test_set_double_stores_text(self, store, redis_client):
        store.set_double("realm_requested_date", 1700000000.25)

        redis_client.set.assert_called_once_with("jwks:realm_requested_date", "1700000000.25")

    def test_get_double_parses_float(self, store, redis_client):
        redis_client.get.return_value = "1700000000.25"

        assert store.get_double("realm_requested_date") == 1700000000.25

    def test_get_double_missing(self, store, redis_client):
        redis_client.get.return_value = None

        assert store.get_double("realm_requested_date") is None

    def test_get_double_non_numeric_reads_as_absent(self, store, redis_client):
        redis_client.get.return_value = "yesterday"

        assert store.get_double("realm_requested_date") is None

    def test_read_failure_raises_storage_error(self, store, redis_client):
        redis_client.get.side_effect = redis.ConnectionError("connection refused")

        with pytest.raises(StorageError) as exc_info:
            store.get_string("key")

        assert exc_info.value.details == {"key": "key"}

    def test_write_failure_raises_storage_error(self, store, redis_client):
        redis_client.set.side_effect = redis.TimeoutError("timeout")

        with pytest.raises(StorageError):
            store.set_string("key", "value")
