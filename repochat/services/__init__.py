"""
Service Layer.

Cache-aside orchestration of the GitHub and AI collaborators.
"""

from repochat.services.context_service import (
    Collaborators,
    ContentFetcher,
    ContextFetchError,
    ContextService,
    FileSelector,
    MetadataFetcher,
    RepoContext,
    TreeFetcher,
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
