"""Outcome types for individual store operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CacheStatus(str, Enum):
    """What happened on a single store round trip."""
    HIT = "hit"
    MISS = "miss"
    STORED = "stored"
    ERROR = "error"


@dataclass(frozen=True)
class CacheResult:
    """
    Result of one store operation.

    ERROR results carry the captured exception; the facade logs and counts
    them and then reports them to callers exactly like a MISS.
    """

    status: CacheStatus
    key: str
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def hit(cls, key: str, value: Any) -> "CacheResult":
        return cls(CacheStatus.HIT, key, value=value)

    @classmethod
    def miss(cls, key: str) -> "CacheResult":
        return cls(CacheStatus.MISS, key)

    @classmethod
    def stored(cls, key: str) -> "CacheResult":
        return cls(CacheStatus.STORED, key)

    @classmethod
    def failed(cls, key: str, error: BaseException) -> "CacheResult":
        return cls(CacheStatus.ERROR, key, error=error)

    @property
    def ok(self) -> bool:
        return self.status is not CacheStatus.ERROR

    def unwrap(self) -> Any:
        """Collapse to the public contract: the value on a hit, otherwise None."""
        return self.value if self.status is CacheStatus.HIT else None


@dataclass
class CacheStats:
    """In-process counters for one facade instance."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0
    last_error: Optional[str] = field(default=None)

    def record(self, result: CacheResult) -> None:
        if result.status is CacheStatus.HIT:
            self.hits += 1
        elif result.status is CacheStatus.MISS:
            self.misses += 1
        elif result.status is CacheStatus.STORED:
            self.writes += 1
        else:
            self.errors += 1
            self.last_error = type(result.error).__name__ if result.error else None

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return round(self.hits / lookups, 3) if lookups else 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "errors": self.errors,
            "hit_rate": self.hit_rate,
            "last_error": self.last_error,
        }
