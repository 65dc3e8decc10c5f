"""
Namespaced cache facade.

Sits in front of the expensive steps of context acquisition:
- Raw file content, keyed by blob sha so new commits are automatic misses
- Repository and profile metadata
- File trees per branch
- AI file selections per normalized query

Every operation degrades to "not cached" when the store misbehaves. Nothing
here raises across the public API; failures are logged as warnings and
counted in CacheFacade.stats.

Usage:
    from repochat.cache import CacheFacade, InMemoryStore

    cache = CacheFacade(InMemoryStore())
    await cache.cache_repo_metadata("acme", "widget", {"stars": 10})
    meta = await cache.get_cached_repo_metadata("acme", "widget")
"""

import asyncio
import json
import math
import time
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from redis.exceptions import RedisError

from repochat.cache.cache_keys import CacheKeys
from repochat.cache.exceptions import (
    CacheError,
    CacheSerializationError,
    CacheUnavailableError,
    InvalidCacheKeyError,
)
from repochat.cache.results import CacheResult, CacheStats, CacheStatus
from repochat.cache.store import CacheStore
from repochat.logging import get_logger

logger = get_logger("cache")

INVALID_KEY = "<invalid>"


def _encode_text(value: Any) -> str:
    if not isinstance(value, str):
        raise CacheSerializationError(f"Expected str content, got {type(value).__name__}")
    return value


def _encode_json(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(str(e)) from e


def _json_decoder(expected: type) -> Callable[[str], Any]:
    def decode(raw: str) -> Any:
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(str(e)) from e
        if not isinstance(value, expected):
            raise CacheSerializationError(
                f"Expected {expected.__name__}, found {type(value).__name__}"
            )
        return value

    return decode


_decode_dict = _json_decoder(dict)
_decode_list = _json_decoder(list)


def _decode_text(raw: Any) -> str:
    if not isinstance(raw, str):
        raise CacheSerializationError(f"Expected str content, got {type(raw).__name__}")
    return raw


class CacheFacade:
    """
    Failure-isolated get/set contract over a key-value store.

    The store is injected; production wiring passes a redis.asyncio client,
    tests pass an InMemoryStore. Each store round trip is bounded by
    ``operation_timeout`` seconds and a timeout counts as unavailability.

    ``clock`` supplies the wall time used to score the per-repository key
    index; it must advance at the same rate as the store's expiry clock.

    There is no locking or single-flight: concurrent misses on the same key
    may each compute and write the same value (last write wins).
    """

    def __init__(
        self,
        store: CacheStore,
        operation_timeout: float = 0.5,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._clock = clock
        self._timeout = operation_timeout
        self._stats = CacheStats()

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def stats(self) -> CacheStats:
        return self._stats

    # =========================================================================
    # Store primitives (return CacheResult, never raise)
    # =========================================================================

    async def _run(self, operation: Awaitable[Any]) -> Any:
        """Await a store call under the timeout, normalizing store errors."""
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise CacheUnavailableError(f"store call exceeded {self._timeout}s") from e
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(str(e)) from e

    def _record(self, op: str, result: CacheResult) -> CacheResult:
        self._stats.record(result)
        if result.status is CacheStatus.ERROR:
            logger.warning(
                f"cache_{op}_error",
                key=result.key,
                error=str(result.error),
                error_type=type(result.error).__name__,
            )
        elif result.status is CacheStatus.HIT:
            logger.debug("cache_hit", key=result.key)
        elif result.status is CacheStatus.MISS:
            logger.debug("cache_miss", key=result.key)
        return result

    async def _read(self, key: str, decode: Callable[[Any], Any]) -> CacheResult:
        try:
            raw = await self._run(self._store.get(key))
            if raw is None:
                return self._record("get", CacheResult.miss(key))
            return self._record("get", CacheResult.hit(key, decode(raw)))
        except Exception as e:  # noqa: BLE001 - any store fault reads as a miss
            return self._record("get", CacheResult.failed(key, e))

    async def _write(
        self,
        key: str,
        value: Any,
        ttl: int,
        encode: Callable[[Any], str],
        index_key: Optional[str] = None,
    ) -> CacheResult:
        try:
            if ttl <= 0:
                raise CacheError(f"ttl must be positive, got {ttl}")
            payload = encode(value)
            await self._run(self._store.set(key, payload, ex=ttl))
        except Exception as e:  # noqa: BLE001 - a failed write means nothing was cached
            return self._record("set", CacheResult.failed(key, e))

        result = self._record("set", CacheResult.stored(key))
        if index_key is not None:
            await self._add_to_index(index_key, key, ttl)
        return result

    async def _add_to_index(self, index_key: str, key: str, ttl: int) -> None:
        """
        Track a repo-scoped key so clear_repo_cache can find it.

        The index is a sorted set scored by each member's expiry time.
        Members whose entries have expired are pruned on every write, and
        the index itself expires with its longest-lived member.
        """
        now = self._clock()
        try:
            await self._run(self._store.zremrangebyscore(index_key, "-inf", now))
            await self._run(self._store.zadd(index_key, {key: now + ttl}))
            newest = await self._run(self._store.zrange(index_key, -1, -1, withscores=True))
            expires_at = newest[0][1] if newest else now + ttl
            await self._run(self._store.expire(index_key, max(1, math.ceil(expires_at - now))))
        except Exception as e:  # noqa: BLE001 - the entry itself is already stored
            self._record("index", CacheResult.failed(index_key, e))

    def _invalid(self, op: str, error: InvalidCacheKeyError) -> CacheResult:
        return self._record(op, CacheResult.failed(INVALID_KEY, error))

    # =========================================================================
    # File content (self-invalidating via blob sha)
    # =========================================================================

    async def cache_file(self, owner: str, repo: str, path: str, sha: str, content: str) -> None:
        """Cache file content under its blob sha for one hour."""
        try:
            key = CacheKeys.file_content(owner, repo, path, sha)
        except InvalidCacheKeyError as e:
            self._invalid("set", e)
            return
        await self._write(
            key, content, CacheKeys.TTL_FILE, _encode_text, CacheKeys.repo_index(owner, repo)
        )

    async def get_cached_file(self, owner: str, repo: str, path: str, sha: str) -> Optional[str]:
        """
        Get cached file content by sha.

        Returns None if not found, expired, or the store is unavailable. A
        stale sha simply misses.
        """
        try:
            key = CacheKeys.file_content(owner, repo, path, sha)
        except InvalidCacheKeyError as e:
            self._invalid("get", e)
            return None
        return (await self._read(key, _decode_text)).unwrap()

    # =========================================================================
    # Repository metadata
    # =========================================================================

    async def cache_repo_metadata(
        self,
        owner: str,
        repo: str,
        data: dict,
        ttl: int = CacheKeys.TTL_REPO,
    ) -> None:
        """Cache repository metadata; ttl may be shortened for busy repositories."""
        try:
            key = CacheKeys.repo_metadata(owner, repo)
        except InvalidCacheKeyError as e:
            self._invalid("set", e)
            return
        await self._write(key, data, ttl, _encode_json, CacheKeys.repo_index(owner, repo))

    async def get_cached_repo_metadata(self, owner: str, repo: str) -> Optional[dict]:
        try:
            key = CacheKeys.repo_metadata(owner, repo)
        except InvalidCacheKeyError as e:
            self._invalid("get", e)
            return None
        return (await self._read(key, _decode_dict)).unwrap()

    # =========================================================================
    # Profile metadata (not repository-scoped)
    # =========================================================================

    async def cache_profile_data(
        self,
        username: str,
        data: dict,
        ttl: int = CacheKeys.TTL_PROFILE,
    ) -> None:
        try:
            key = CacheKeys.profile(username)
        except InvalidCacheKeyError as e:
            self._invalid("set", e)
            return
        await self._write(key, data, ttl, _encode_json)

    async def get_cached_profile_data(self, username: str) -> Optional[dict]:
        try:
            key = CacheKeys.profile(username)
        except InvalidCacheKeyError as e:
            self._invalid("get", e)
            return None
        return (await self._read(key, _decode_dict)).unwrap()

    # =========================================================================
    # File trees
    # =========================================================================

    async def cache_file_tree(
        self,
        owner: str,
        repo: str,
        branch: str,
        tree: list,
        ttl: int = CacheKeys.TTL_TREE,
    ) -> None:
        """Cache the ordered tree entries of a branch. Trees are large; order is preserved."""
        try:
            key = CacheKeys.file_tree(owner, repo, branch)
        except InvalidCacheKeyError as e:
            self._invalid("set", e)
            return
        await self._write(key, tree, ttl, _encode_json, CacheKeys.repo_index(owner, repo))

    async def get_cached_file_tree(self, owner: str, repo: str, branch: str) -> Optional[list]:
        try:
            key = CacheKeys.file_tree(owner, repo, branch)
        except InvalidCacheKeyError as e:
            self._invalid("get", e)
            return None
        return (await self._read(key, _decode_list)).unwrap()

    # =========================================================================
    # Query selections
    # =========================================================================

    async def cache_query_selection(
        self,
        owner: str,
        repo: str,
        query: str,
        files: list[str],
    ) -> None:
        """
        Map a query to the files the AI selected for it.

        The query is lowercased and trimmed first, so "  Foo Bar " and
        "foo bar" share one entry. Selections live for 24 hours.
        """
        try:
            key = CacheKeys.query_selection(owner, repo, query)
        except InvalidCacheKeyError as e:
            self._invalid("set", e)
            return
        await self._write(
            key, list(files), CacheKeys.TTL_QUERY, _encode_json, CacheKeys.repo_index(owner, repo)
        )

    async def get_cached_query_selection(
        self,
        owner: str,
        repo: str,
        query: str,
    ) -> Optional[list[str]]:
        try:
            key = CacheKeys.query_selection(owner, repo, query)
        except InvalidCacheKeyError as e:
            self._invalid("get", e)
            return None
        return (await self._read(key, _decode_list)).unwrap()

    # =========================================================================
    # Invalidation and health
    # =========================================================================

    async def clear_repo_cache(self, owner: str, repo: str) -> int:
        """
        Delete every entry written for a repository.

        Uses the per-repository key index maintained on write. Best-effort:
        returns the number of entries removed, 0 when the store is down.
        """
        try:
            index_key = CacheKeys.repo_index(owner, repo)
        except InvalidCacheKeyError as e:
            self._invalid("clear", e)
            return 0

        try:
            keys = await self._run(self._store.zrange(index_key, 0, -1))
            deleted = 0
            if keys:
                deleted = int(await self._run(self._store.delete(*keys)) or 0)
                # Remove only the members read above
                await self._run(self._store.zrem(index_key, *keys))
        except Exception as e:  # noqa: BLE001 - entries will still expire on their own
            self._record("clear", CacheResult.failed(index_key, e))
            return 0

        logger.info("cache_repo_cleared", owner=owner, repo=repo, deleted=deleted)
        return deleted

    async def health_check(self) -> dict[str, bool]:
        """Ping the store. Returns {"available": bool} and never raises."""
        try:
            await self._run(self._store.ping())
        except Exception as e:  # noqa: BLE001
            logger.warning("cache_health_check_failed", error=str(e), error_type=type(e).__name__)
            return {"available": False}
        return {"available": True}

    async def close(self) -> None:
        """Release the store connection pool."""
        try:
            await self._store.aclose()
        except Exception as e:  # noqa: BLE001
            logger.warning("cache_close_error", error=str(e))


__all__ = ["CacheFacade"]
