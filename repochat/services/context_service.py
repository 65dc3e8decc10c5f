"""
Context Service - cache-aside acquisition of repository context.

Decides which files go into the assistant's context window for a query and
reuses earlier work wherever the cache allows:
1. Repository metadata and file trees are served from cache until TTL expiry
2. AI file selections are reused for any query that normalizes the same
3. File bodies are keyed by blob sha, so only changed files are re-fetched

The GitHub and AI clients are collaborators passed in by the caller; this
module only defines the shape it needs from them.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from repochat.cache import CacheFacade
from repochat.logging import LogContext, get_logger

logger = get_logger("context.service")

DEFAULT_BRANCH = "main"


class ContextFetchError(Exception):
    """A collaborator (GitHub fetcher or AI selector) failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


# =============================================================================
# Collaborator protocols
# =============================================================================


class ContentFetcher(Protocol):
    async def fetch_file(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Return the raw text of ``path`` at ``ref`` (a blob sha)."""
        ...


class MetadataFetcher(Protocol):
    async def fetch_repo(self, owner: str, repo: str) -> dict:
        ...

    async def fetch_profile(self, username: str) -> dict:
        ...


class TreeFetcher(Protocol):
    async def fetch_tree(self, owner: str, repo: str, branch: str) -> list[dict]:
        """Return tree entries with at least ``path``, ``type`` and ``sha``."""
        ...


class FileSelector(Protocol):
    async def select_files(
        self, owner: str, repo: str, query: str, tree: list[dict]
    ) -> list[str]:
        """Return the paths most relevant to ``query``."""
        ...


@dataclass
class Collaborators:
    """The external clients a ContextService is built from."""

    content_fetcher: ContentFetcher
    metadata_fetcher: MetadataFetcher
    tree_fetcher: TreeFetcher
    file_selector: FileSelector


@dataclass
class RepoContext:
    """Everything loaded into the assistant's context for one query."""

    owner: str
    repo: str
    branch: str
    query: str
    metadata: dict
    selected_paths: list[str]
    files: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "query": self.query,
            "metadata": self.metadata,
            "selected_paths": self.selected_paths,
            "files": self.files,
        }


def _blob_shas(tree: list[dict]) -> dict[str, str]:
    """Map file paths to blob shas, skipping directories and malformed entries."""
    return {
        entry["path"]: entry["sha"]
        for entry in tree
        if entry.get("type") == "blob" and entry.get("path") and entry.get("sha")
    }


class ContextService:
    """
    Cache-aside wrapper around the GitHub and AI collaborators.

    Usage:
        service = ContextService(
            cache=cache,
            content_fetcher=github,
            metadata_fetcher=github,
            tree_fetcher=github,
            file_selector=selector,
        )
        context = await service.build_context("acme", "widget", "How is auth done?")
    """

    def __init__(
        self,
        cache: CacheFacade,
        content_fetcher: ContentFetcher,
        metadata_fetcher: MetadataFetcher,
        tree_fetcher: TreeFetcher,
        file_selector: FileSelector,
        max_context_files: int = 20,
    ):
        self.cache = cache
        self.content_fetcher = content_fetcher
        self.metadata_fetcher = metadata_fetcher
        self.tree_fetcher = tree_fetcher
        self.file_selector = file_selector
        self.max_context_files = max_context_files

    async def _call(self, operation: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except Exception as e:
            logger.error("collaborator_failed", operation=operation, error=str(e), error_type=type(e).__name__)
            raise ContextFetchError(operation, str(e)) from e

    # Metadata

    async def get_repo_metadata(self, owner: str, repo: str) -> dict:
        cached = await self.cache.get_cached_repo_metadata(owner, repo)
        if cached is not None:
            return cached

        metadata = await self._call("fetch_repo", self.metadata_fetcher.fetch_repo(owner, repo))
        await self.cache.cache_repo_metadata(owner, repo, metadata)
        return metadata

    async def get_profile(self, username: str) -> dict:
        cached = await self.cache.get_cached_profile_data(username)
        if cached is not None:
            return cached

        profile = await self._call("fetch_profile", self.metadata_fetcher.fetch_profile(username))
        await self.cache.cache_profile_data(username, profile)
        return profile

    # Trees and files

    async def get_file_tree(self, owner: str, repo: str, branch: str) -> list[dict]:
        cached = await self.cache.get_cached_file_tree(owner, repo, branch)
        if cached is not None:
            return cached

        tree = await self._call("fetch_tree", self.tree_fetcher.fetch_tree(owner, repo, branch))
        await self.cache.cache_file_tree(owner, repo, branch, tree)
        return tree

    async def get_file_content(self, owner: str, repo: str, path: str, sha: str) -> str:
        """Return file text, fetching only when this blob sha was never cached."""
        cached = await self.cache.get_cached_file(owner, repo, path, sha)
        if cached is not None:
            return cached

        content = await self._call("fetch_file", self.content_fetcher.fetch_file(owner, repo, path, sha))
        await self.cache.cache_file(owner, repo, path, sha, content)
        return content

    # Selection

    def _keep_known(self, paths: list[str], tree: list[dict]) -> list[str]:
        """Drop paths absent from the tree and cap at max_context_files, preserving order."""
        known = _blob_shas(tree)
        kept: list[str] = []
        for path in paths:
            if path in known and path not in kept:
                kept.append(path)
            if len(kept) >= self.max_context_files:
                break
        return kept

    async def select_files(
        self, owner: str, repo: str, query: str, tree: list[dict]
    ) -> list[str]:
        """
        Pick the files relevant to a query.

        The AI selector is the most expensive step in the pipeline, so its
        answer is cached per normalized query for 24 hours. Cached paths
        are re-checked against the current tree before use.
        """
        cached = await self.cache.get_cached_query_selection(owner, repo, query)
        if cached is not None:
            logger.debug("selection_cache_hit", owner=owner, repo=repo)
            return self._keep_known(cached, tree)

        selected = await self._call(
            "select_files", self.file_selector.select_files(owner, repo, query, tree)
        )
        kept = self._keep_known(list(selected), tree)
        await self.cache.cache_query_selection(owner, repo, query, kept)
        return kept

    # Assembly

    async def build_context(
        self,
        owner: str,
        repo: str,
        query: str,
        branch: Optional[str] = None,
    ) -> RepoContext:
        """
        Assemble the context for a query.

        Order: metadata -> tree -> selection -> file bodies. File bodies are
        fetched concurrently; the first collaborator failure aborts the build.
        """
        with LogContext(owner=owner, repo=repo):
            start = time.perf_counter()

            metadata = await self.get_repo_metadata(owner, repo)
            branch = branch or metadata.get("default_branch") or DEFAULT_BRANCH

            tree = await self.get_file_tree(owner, repo, branch)
            paths = await self.select_files(owner, repo, query, tree)

            shas = _blob_shas(tree)
            contents = await asyncio.gather(
                *(self.get_file_content(owner, repo, path, shas[path]) for path in paths)
            )

            logger.info(
                "context_built",
                branch=branch,
                files=len(paths),
                duration_seconds=round(time.perf_counter() - start, 3),
            )

        return RepoContext(
            owner=owner,
            repo=repo,
            branch=branch,
            query=query,
            metadata=metadata,
            selected_paths=paths,
            files=dict(zip(paths, contents)),
        )


__all__ = [
    "Collaborators",
    "ContextService",
    "ContextFetchError",
    "RepoContext",
    "ContentFetcher",
    "MetadataFetcher",
    "TreeFetcher",
    "FileSelector",
]
