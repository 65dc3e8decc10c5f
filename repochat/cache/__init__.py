"""
Context cache layer.

Namespaced, TTL-based caching in front of GitHub fetches and AI file
selection, with graceful degradation when the backing store is down:
- File content keyed by blob sha (self-invalidating)
- Repository metadata, profile metadata, file trees
- Query -> selected files, keyed by normalized query text

Usage:
    from repochat.cache import CacheFacade, create_store

    cache = CacheFacade(create_store(), operation_timeout=0.5)
    files = await cache.get_cached_query_selection("acme", "widget", "How does auth work?")
    if files is None:
        files = await selector.select_files(...)
        await cache.cache_query_selection("acme", "widget", "How does auth work?", files)
"""

from repochat.cache.cache_keys import CacheKeys, normalize_query
from repochat.cache.exceptions import (
    CacheError,
    CacheSerializationError,
    CacheUnavailableError,
    InvalidCacheKeyError,
)
from repochat.cache.facade import CacheFacade
from repochat.cache.results import CacheResult, CacheStats, CacheStatus
from repochat.cache.store import CacheStore, InMemoryStore, create_redis_store, create_store

__all__ = [
    "CacheFacade",
    "CacheKeys",
    "normalize_query",
    "CacheStore",
    "InMemoryStore",
    "create_redis_store",
    "create_store",
    "CacheResult",
    "CacheStats",
    "CacheStatus",
    "CacheError",
    "CacheSerializationError",
    "CacheUnavailableError",
    "InvalidCacheKeyError",
]
