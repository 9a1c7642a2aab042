"""
Redis cache - best-effort caching of users, sessions, content and vector
search results.

A cache failure never fails a request: reads log and return None, writes
and clears log and return False / 0.
"""
import hashlib
import json
from typing import Any, List, Optional, Sequence

import redis

from aichat.core.health import HealthStatus
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)

USER_TTL = 300
VECTOR_TTL = 1800
CONTENT_TTL = 600
SESSION_TTL = 3600

SCAN_BATCH_SIZE = 500


def embedding_digest(embedding: Sequence[float]) -> str:
    return hashlib.md5(",".join(repr(float(x)) for x in embedding).encode("utf-8")).hexdigest()


def vector_cache_key(
    query: str,
    limit: int,
    embedding: Sequence[float],
    user_id: Optional[str] = None
) -> str:
    """Key for a similarity search; the embedding takes part so equal query texts never share results."""
    raw = f"{query}:{limit}:{embedding_digest(embedding)}:{user_id or 'global'}"
    return f"vector:{hashlib.md5(raw.encode('utf-8')).hexdigest()}"


def vector_index_key(user_id: Optional[str] = None) -> str:
    return f"vector-keys:{user_id or 'global'}"


class RedisCache:
    """
    JSON cache over a Redis connection pool.

    Example:
        >>> cache = RedisCache("redis://localhost:6379/0")
        >>> cache.set_cached_user("user-1", {"id": "user-1"})
        True
        >>> cache.get_cached_user("user-1")
        {'id': 'user-1'}
    """

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None:
            if url is None:
                from aichat.core.config import get_settings
                url = get_settings().redis_url
            client = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True,
            )
        self.client = client

    # ==================== PRIMITIVES ====================

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Error getting cache key '{key}': {e}")
            return None

        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Discarding undecodable cache value for '{key}'")
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        try:
            self.client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except (TypeError, ValueError) as e:
            logger.warning(f"Cannot serialize cache value for '{key}': {e}")
            return False
        except redis.RedisError as e:
            logger.warning(f"Error setting cache key '{key}': {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            return self.client.delete(key) > 0
        except redis.RedisError as e:
            logger.warning(f"Error deleting cache key '{key}': {e}")
            return False

    def clear_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns the number removed."""
        try:
            keys: List[str] = list(self.client.scan_iter(match=pattern, count=SCAN_BATCH_SIZE))
            if not keys:
                return 0
            return self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Error clearing cache pattern '{pattern}': {e}")
            return 0

    # ==================== USER ====================

    def get_cached_user(self, user_id: str) -> Optional[Any]:
        return self.get(f"user:{user_id}")

    def set_cached_user(self, user_id: str, data: Any, ttl: int = USER_TTL) -> bool:
        return self.set(f"user:{user_id}", data, ttl)

    def clear_user_cache(self, user_id: str) -> int:
        return self.clear_pattern(f"user:{user_id}*")

    # ==================== VECTOR ====================

    def get_cached_similar_documents(
        self,
        query: str,
        limit: int,
        embedding: Sequence[float],
        user_id: Optional[str] = None
    ) -> Optional[Any]:
        return self.get(vector_cache_key(query, limit, embedding, user_id))

    def set_cached_similar_documents(
        self,
        query: str,
        limit: int,
        embedding: Sequence[float],
        documents: Any,
        user_id: Optional[str] = None,
        ttl: int = VECTOR_TTL
    ) -> bool:
        """
        Cache search results and record the key in the scope's index set.

        The index outlives every key it lists, so clear_vector_cache() can
        find them all without scanning the keyspace.
        """
        key = vector_cache_key(query, limit, embedding, user_id)
        if not self.set(key, documents, ttl):
            return False

        index = vector_index_key(user_id)
        try:
            self.client.sadd(index, key)
            self.client.expire(index, ttl)
            return True
        except redis.RedisError as e:
            logger.warning(f"Error indexing vector cache key '{key}': {e}")
            self.delete(key)
            return False

    def clear_vector_cache(self, user_id: Optional[str] = None) -> int:
        """Delete every cached search of a scope (a user, or global when None)."""
        index = vector_index_key(user_id)
        try:
            keys: List[str] = list(self.client.smembers(index))
            removed = self.client.delete(*keys) if keys else 0
            self.client.delete(index)
            return removed
        except redis.RedisError as e:
            logger.warning(f"Error clearing vector cache '{index}': {e}")
            return 0

    # ==================== CONTENT ====================

    def get_cached_content(self, key: str) -> Optional[Any]:
        return self.get(f"content:{key}")

    def set_cached_content(self, key: str, content: Any, ttl: int = CONTENT_TTL) -> bool:
        return self.set(f"content:{key}", content, ttl)

    def clear_content_cache(self, pattern: str) -> int:
        return self.clear_pattern(f"content:{pattern}*")

    # ==================== SESSION ====================

    def get_cached_session(self, session_id: str) -> Optional[Any]:
        return self.get(f"session:{session_id}")

    def set_cached_session(self, session_id: str, data: Any, ttl: int = SESSION_TTL) -> bool:
        return self.set(f"session:{session_id}", data, ttl)

    # ==================== LIFECYCLE ====================

    def check_health(self) -> HealthStatus:
        try:
            self.client.ping()
            return HealthStatus.ok()
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return HealthStatus.failed(e)

    def close(self) -> None:
        self.client.close()
        logger.info("Redis connection closed")


_cache: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get or create the Redis cache singleton."""
    global _cache
    if _cache is None:
        _cache = RedisCache()
    return _cache


def reset_cache() -> None:
    global _cache
    if _cache is not None:
        _cache.close()
    _cache = None
