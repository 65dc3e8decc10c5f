from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

import backend.app.dependencies as deps
from backend.app.main import create_app
from repochat.services import Collaborators


@pytest.fixture
def collaborators(sample_repo_metadata, sample_tree) -> Collaborators:
    github = AsyncMock()
    github.fetch_repo = AsyncMock(return_value=sample_repo_metadata)
    github.fetch_profile = AsyncMock(return_value={"login": "octocat", "followers": 3000})
    github.fetch_tree = AsyncMock(return_value=sample_tree)
    github.fetch_file = AsyncMock(side_effect=lambda owner, repo, path, ref: f"<{path}@{ref}>")

    selector = AsyncMock()
    selector.select_files = AsyncMock(return_value=["src/auth.py"])

    return Collaborators(
        content_fetcher=github,
        metadata_fetcher=github,
        tree_fetcher=github,
        file_selector=selector,
    )


def _client(monkeypatch, facade, collaborators=None) -> Iterator[TestClient]:
    # Startup and the Depends(get_cache) wiring both read the module-level facade
    monkeypatch.setattr(deps, "_cache", facade, raising=True)
    app = create_app(collaborators=collaborators)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(monkeypatch, cache, collaborators) -> Iterator[TestClient]:
    yield from _client(monkeypatch, cache, collaborators)


@pytest.fixture
def bare_client(monkeypatch, cache) -> Iterator[TestClient]:
    """App without GitHub / AI collaborators."""
    yield from _client(monkeypatch, cache)


@pytest.fixture
def down_client(monkeypatch, failing_cache, collaborators) -> Iterator[TestClient]:
    """App whose cache store refuses every connection."""
    yield from _client(monkeypatch, failing_cache, collaborators)
