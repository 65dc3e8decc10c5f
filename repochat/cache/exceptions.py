"""
Cache error taxonomy.

These never cross the public CacheFacade API. They are captured in
CacheResult.error so failures stay visible to logs and stats.
"""


class CacheError(Exception):
    """Base class for cache failures."""


class CacheUnavailableError(CacheError):
    """Backing store unreachable, refused auth, or timed out."""


class CacheSerializationError(CacheError):
    """Value could not be encoded for, or decoded from, the backing store."""


class InvalidCacheKeyError(CacheError, ValueError):
    """An identifier cannot be turned into a well-formed cache key."""


__all__ = [
    "CacheError",
    "CacheUnavailableError",
    "CacheSerializationError",
    "InvalidCacheKeyError",
]
