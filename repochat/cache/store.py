"""
Backing stores for the cache facade.

Provides:
- CacheStore protocol (the subset of redis.asyncio.Redis the facade uses)
- InMemoryStore with lazy TTL eviction and an injectable clock
- Redis store factory with short socket timeouts
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Optional, Protocol

import redis.asyncio as redis

from repochat.config import Settings, get_settings
from repochat.logging import get_logger

logger = get_logger("cache.store")


class CacheStore(Protocol):
    """Protocol for cache backends. Values are strings; index entries are sorted sets."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> Any:
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        ...

    async def zrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        ...

    async def zremrangebyscore(self, key: str, min: Any, max: Any) -> int:
        ...

    async def zrem(self, key: str, *members: str) -> int:
        ...

    async def expire(self, key: str, seconds: int) -> bool:
        ...

    async def ping(self) -> Any:
        ...

    async def aclose(self) -> None:
        ...


class InMemoryStore:
    """
    Process-local store with per-key expiry.

    Expired entries are evicted lazily when touched, which matches what
    callers observe from Redis. Intended for tests and single-process
    development; nothing is shared between workers.

    Usage:
        store = InMemoryStore()
        await store.set("repo:acme/widget", '{"stars": 10}', ex=900)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, Any] = {}
        self._expires: dict[str, float] = {}

    def _live(self, key: str) -> bool:
        expires_at = self._expires.get(key)
        if expires_at is not None and self._clock() >= expires_at:
            self._data.pop(key, None)
            self._expires.pop(key, None)
        return key in self._data

    async def get(self, key: str) -> Optional[str]:
        if not self._live(key):
            return None
        value = self._data[key]
        if isinstance(value, dict):
            raise TypeError(f"Key {key!r} holds a sorted set, not a string")
        return value

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._data[key] = value
        if ex is not None:
            self._expires[key] = self._clock() + ex
        else:
            self._expires.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._live(key):
                deleted += 1
            self._data.pop(key, None)
            self._expires.pop(key, None)
        return deleted

    def _zset(self, key: str, create: bool = False) -> Optional[dict[str, float]]:
        if not self._live(key):
            if not create:
                return None
            self._data[key] = {}
            self._expires.pop(key, None)
        value = self._data[key]
        if not isinstance(value, dict):
            raise TypeError(f"Key {key!r} holds a string, not a sorted set")
        return value

    def _drop_if_empty(self, key: str, zset: dict[str, float]) -> None:
        # Redis deletes a sorted set once its last member is removed
        if not zset:
            self._data.pop(key, None)
            self._expires.pop(key, None)

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self._zset(key, create=True)
        added = sum(1 for member in mapping if member not in zset)
        zset.update({member: float(score) for member, score in mapping.items()})
        return added

    async def zrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        zset = self._zset(key) or {}
        ordered = sorted(zset.items(), key=lambda item: (item[1], item[0]))
        size = len(ordered)
        if start < 0:
            start = max(size + start, 0)
        if end < 0:
            end = size + end
        window = ordered[start:end + 1] if end >= start else []
        if withscores:
            return window
        return [member for member, _ in window]

    async def zremrangebyscore(self, key: str, min: Any, max: Any) -> int:
        zset = self._zset(key)
        if zset is None:
            return 0
        low, high = float(min), float(max)
        doomed = [member for member, score in zset.items() if low <= score <= high]
        for member in doomed:
            del zset[member]
        self._drop_if_empty(key, zset)
        return len(doomed)

    async def zrem(self, key: str, *members: str) -> int:
        zset = self._zset(key)
        if zset is None:
            return 0
        removed = 0
        for member in members:
            if zset.pop(member, None) is not None:
                removed += 1
        self._drop_if_empty(key, zset)
        return removed

    async def expire(self, key: str, seconds: int) -> bool:
        if not self._live(key):
            return False
        self._expires[key] = self._clock() + seconds
        return True

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self._data.clear()
        self._expires.clear()

    def __len__(self) -> int:
        return sum(1 for key in list(self._data) if self._live(key))


def create_redis_store(settings: Optional[Settings] = None) -> "redis.Redis":
    """
    Build an asyncio Redis client.

    No connection is opened here; the pool connects on first command, so a
    down Redis only shows up as per-operation errors the facade absorbs.
    """
    settings = settings or get_settings()
    timeout = settings.cache_operation_timeout
    client = redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        health_check_interval=30,
    )
    logger.info("redis_store_created", from_url=bool(settings.redis_url_override), timeout=timeout)
    return client


def create_store(settings: Optional[Settings] = None) -> CacheStore:
    """Pick the backing store named by CACHE_BACKEND."""
    settings = settings or get_settings()
    if settings.cache_backend == "memory":
        logger.info("memory_store_created")
        return InMemoryStore()
    return create_redis_store(settings)


__all__ = ["CacheStore", "InMemoryStore", "create_redis_store", "create_store"]
