"""
Cache administration endpoints.

Manual invalidation for a repository and cache diagnostics.
"""

from fastapi import APIRouter, Depends, Path

from repochat.cache import CacheFacade
from repochat.config import get_settings
from repochat.logging import get_logger

from ..dependencies import get_cache
from ..schemas import NAME_PATTERN, CacheClearResponse, CacheStatusResponse

logger = get_logger("api.cache")

router = APIRouter(prefix="/cache", tags=["cache"])


@router.delete("/repos/{owner}/{repo}", response_model=CacheClearResponse)
async def clear_repo_cache(
    owner: str = Path(min_length=1, max_length=100, pattern=NAME_PATTERN),
    repo: str = Path(min_length=1, max_length=100, pattern=NAME_PATTERN),
    cache: CacheFacade = Depends(get_cache),
):
    """
    Drop every cached entry for a repository.

    Best-effort: entries missed here still expire through their TTLs.
    """
    deleted = await cache.clear_repo_cache(owner, repo)
    logger.info("repo_cache_clear_requested", owner=owner, repo=repo, deleted=deleted)
    return CacheClearResponse(owner=owner, repo=repo, deleted=deleted)


@router.get("/status", response_model=CacheStatusResponse)
async def cache_status(cache: CacheFacade = Depends(get_cache)):
    """Store availability plus this process's hit/miss counters."""
    health = await cache.health_check()
    return CacheStatusResponse(
        available=health["available"],
        backend=get_settings().cache_backend,
        stats=cache.stats.to_dict(),
    )
