from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor


def test_get_cache_initializes_once(monkeypatch):
    """
    get_cache() must not build the facade concurrently.

    We patch the store factory with a counting fake and verify it runs
    exactly once even under concurrent first access.
    """
    import backend.app.dependencies as deps
    from repochat.cache import InMemoryStore

    calls = {"count": 0}

    def fake_create_store(settings):
        calls["count"] += 1
        return InMemoryStore()

    monkeypatch.setattr(deps, "_cache", None, raising=True)
    monkeypatch.setattr(deps, "create_store", fake_create_store, raising=True)

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: deps.get_cache(), range(100)))

    assert all(r is results[0] for r in results)
    assert calls["count"] == 1
