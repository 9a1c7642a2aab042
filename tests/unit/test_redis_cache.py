"""
Unit tests for the best-effort Redis cache.
"""
import hashlib
import json
from unittest.mock import MagicMock

import pytest
import redis

from aichat.cache.redis_cache import (
    CONTENT_TTL,
    SESSION_TTL,
    USER_TTL,
    VECTOR_TTL,
    RedisCache,
    embedding_digest,
    vector_cache_key,
)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def cache(client):
    return RedisCache(client=client)


class TestKeysAndTtls:
    def test_user_entries(self, cache, client):
        assert cache.set_cached_user("u1", {"plan": "pro"})
        client.setex.assert_called_once_with("user:u1", USER_TTL, json.dumps({"plan": "pro"}))

    def test_session_and_content_entries(self, cache, client):
        cache.set_cached_session("abc", {"id": "u1"})
        cache.set_cached_content("u1:c1", {"title": "Notes"})
        keys = [(c.args[0], c.args[1]) for c in client.setex.call_args_list]
        assert keys == [("session:abc", SESSION_TTL), ("content:u1:c1", CONTENT_TTL)]

    def test_vector_key(self):
        digest = hashlib.md5(f"pricing:10:{embedding_digest([0.1, 0.2])}:global".encode()).hexdigest()
        assert vector_cache_key("pricing", 10, [0.1, 0.2]) == f"vector:{digest}"
        assert vector_cache_key("pricing", 10, [0.1, 0.2], "u1") != vector_cache_key("pricing", 10, [0.1, 0.2])

    def test_vector_key_depends_on_embedding(self):
        assert vector_cache_key("pricing", 10, [0.1, 0.2]) != vector_cache_key("pricing", 10, [0.9, 0.2])
        assert embedding_digest([1, 2]) == embedding_digest([1.0, 2.0])

    def test_similar_documents(self, cache, client):
        assert cache.set_cached_similar_documents("pricing", 5, [0.3], [{"id": 1}], user_id="u1")
        key, ttl, _ = client.setex.call_args.args
        assert key == vector_cache_key("pricing", 5, [0.3], "u1")
        assert ttl == VECTOR_TTL
        client.sadd.assert_called_once_with("vector-keys:u1", key)
        client.expire.assert_called_once_with("vector-keys:u1", VECTOR_TTL)

    def test_similar_documents_lookup(self, cache, client):
        client.get.return_value = json.dumps([{"id": 1}])
        assert cache.get_cached_similar_documents("pricing", 5, [0.3]) == [{"id": 1}]
        client.get.assert_called_once_with(vector_cache_key("pricing", 5, [0.3]))


class TestReads:
    def test_hit_decodes_json(self, cache, client):
        client.get.return_value = json.dumps({"id": "u1"})
        assert cache.get_cached_user("u1") == {"id": "u1"}
        client.get.assert_called_once_with("user:u1")

    def test_miss(self, cache, client):
        client.get.return_value = None
        assert cache.get_cached_session("nope") is None

    def test_redis_failure_returns_none(self, cache, client):
        client.get.side_effect = redis.ConnectionError("down")
        assert cache.get_cached_content("u1:c1") is None

    def test_garbage_value_returns_none(self, cache, client):
        client.get.return_value = "{not json"
        assert cache.get("user:u1") is None


class TestWritesAndClears:
    def test_write_failure_returns_false(self, cache, client):
        client.setex.side_effect = redis.TimeoutError("slow")
        assert cache.set_cached_user("u1", {"a": 1}) is False

    def test_clear_user_cache_scans_prefix(self, cache, client):
        client.scan_iter.return_value = iter(["user:u1", "user:u1:stats"])
        client.delete.return_value = 2

        assert cache.clear_user_cache("u1") == 2
        assert client.scan_iter.call_args.kwargs["match"] == "user:u1*"
        client.delete.assert_called_once_with("user:u1", "user:u1:stats")

    def test_clear_content_cache_nothing_to_delete(self, cache, client):
        client.scan_iter.return_value = iter([])

        assert cache.clear_content_cache("u1") == 0
        assert client.scan_iter.call_args.kwargs["match"] == "content:u1*"
        client.delete.assert_not_called()

    def test_clear_vector_cache_uses_index(self, cache, client):
        client.smembers.return_value = {"vector:a", "vector:b"}
        client.delete.return_value = 2

        assert cache.clear_vector_cache("u1") == 2
        client.smembers.assert_called_once_with("vector-keys:u1")
        assert sorted(client.delete.call_args_list[0].args) == ["vector:a", "vector:b"]
        assert client.delete.call_args_list[1].args == ("vector-keys:u1",)

    def test_clear_global_vector_cache_empty(self, cache, client):
        client.smembers.return_value = set()

        assert cache.clear_vector_cache() == 0
        client.delete.assert_called_once_with("vector-keys:global")

    def test_unindexed_vector_entry_is_dropped(self, cache, client):
        client.sadd.side_effect = redis.ConnectionError("down")
        client.delete.return_value = 1

        assert cache.set_cached_similar_documents("pricing", 5, [0.3], [{"id": 1}], user_id="u1") is False
        client.delete.assert_called_once_with(vector_cache_key("pricing", 5, [0.3], "u1"))

    def test_clear_failure_returns_zero(self, cache, client):
        client.scan_iter.side_effect = redis.ConnectionError("down")
        assert cache.clear_user_cache("u1") == 0


class TestHealth:
    def test_ping(self, cache, client):
        assert cache.check_health().healthy

    def test_ping_failure(self, cache, client):
        client.ping.side_effect = redis.ConnectionError("Connection refused")
        status = cache.check_health()
        assert not status.healthy
        assert status.message == "Connection refused"
