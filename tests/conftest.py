"""
Pytest fixtures for RepoChat tests.

Caches run against InMemoryStore with a controllable clock, so expiry is
tested by advancing time rather than sleeping.
"""

import asyncio
import os
import sys

# Must be set before repochat.config.get_settings() is first called
os.environ.setdefault("CACHE_BACKEND", "memory")

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

import pytest  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402

from repochat.cache import CacheFacade, InMemoryStore  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore:
    """Store whose every operation fails like an unreachable Redis."""

    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    get = set = delete = zadd = zrange = zremrangebyscore = zrem = expire = ping = aclose = _fail


class SlowStore(InMemoryStore):
    """Store that answers, but slower than any sane cache timeout."""

    def __init__(self, delay: float = 1.0):
        super().__init__()
        self.delay = delay

    async def get(self, key):
        await asyncio.sleep(self.delay)
        return await super().get(key)

    async def set(self, key, value, ex=None):
        await asyncio.sleep(self.delay)
        return await super().set(key, value, ex=ex)

    async def ping(self):
        await asyncio.sleep(self.delay)
        return True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock=clock)


@pytest.fixture
def cache(store: InMemoryStore, clock: FakeClock) -> CacheFacade:
    return CacheFacade(store, operation_timeout=0.5, clock=clock)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_cache(failing_store: FailingStore) -> CacheFacade:
    return CacheFacade(failing_store, operation_timeout=0.5)


@pytest.fixture
def slow_cache() -> CacheFacade:
    return CacheFacade(SlowStore(delay=1.0), operation_timeout=0.05)


@pytest.fixture
def sample_repo_metadata() -> dict:
    """Sample repository descriptor as returned by the metadata fetcher."""
    return {
        "name": "widget",
        "full_name": "acme/widget",
        "description": "Widgets for everyone",
        "stargazers_count": 10,
        "forks_count": 2,
        "language": "Python",
        "default_branch": "main",
    }


@pytest.fixture
def sample_tree() -> list[dict]:
    """Sample file tree for acme/widget@main."""
    return [
        {"path": "README.md", "type": "blob", "sha": "a1"},
        {"path": "src", "type": "tree", "sha": "t1"},
        {"path": "src/app.py", "type": "blob", "sha": "b2"},
        {"path": "src/auth.py", "type": "blob", "sha": "c3"},
        {"path": "tests/test_auth.py", "type": "blob", "sha": "d4"},
    ]
