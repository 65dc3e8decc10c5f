"""
FastAPI dependency injection module.

Provides centralized dependencies for:
- The process-wide cache facade
- Context services built from the registered collaborators
"""

import threading
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from repochat.cache import CacheFacade, create_store
from repochat.config import get_settings
from repochat.logging import get_logger
from repochat.services import ContextService

logger = get_logger("api.dependencies")

# =============================================================================
# Cache Dependencies
# =============================================================================

_cache: Optional[CacheFacade] = None
_cache_lock = threading.Lock()


def get_cache() -> CacheFacade:
    """
    Get the process-wide cache facade, creating it on first use.

    Creation is serialized so concurrent first requests share one store
    client; the store itself connects lazily.
    """
    global _cache
    if _cache is not None:
        return _cache

    with _cache_lock:
        if _cache is None:
            settings = get_settings()
            _cache = CacheFacade(
                create_store(settings),
                operation_timeout=settings.cache_operation_timeout,
            )
            logger.info("cache_facade_created", backend=settings.cache_backend)
    return _cache


async def close_cache() -> None:
    """Close and forget the process-wide facade. Called on shutdown."""
    global _cache
    with _cache_lock:
        facade, _cache = _cache, None
    if facade is not None:
        await facade.close()


# =============================================================================
# Service Dependencies
# =============================================================================


def get_context_service(
    request: Request,
    cache: CacheFacade = Depends(get_cache),
) -> ContextService:
    """
    Build a ContextService from the collaborators registered on the app.

    Returns 503 when no GitHub / AI collaborators were wired in.
    """
    collaborators = getattr(request.app.state, "collaborators", None)
    if collaborators is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Context acquisition is not configured",
        )
    return ContextService(
        cache=cache,
        content_fetcher=collaborators.content_fetcher,
        metadata_fetcher=collaborators.metadata_fetcher,
        tree_fetcher=collaborators.tree_fetcher,
        file_selector=collaborators.file_selector,
        max_context_files=get_settings().max_context_files,
    )


__all__ = [
    "get_cache",
    "close_cache",
    "get_context_service",
]
