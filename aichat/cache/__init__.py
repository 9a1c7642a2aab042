"""
Cache module - Redis-backed best-effort caching.
"""
from aichat.cache.redis_cache import RedisCache, get_cache, reset_cache, vector_cache_key

__all__ = [
    "RedisCache",
    "get_cache",
    "reset_cache",
    "vector_cache_key",
]
