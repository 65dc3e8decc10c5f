"""
Context acquisition endpoints.

Assembles the files an assistant needs for a query, served from cache
where possible.
"""

from fastapi import APIRouter, Depends, Path

from repochat.logging import get_logger
from repochat.services import ContextService

from ..dependencies import get_context_service
from ..schemas import NAME_PATTERN, ContextRequest, ContextResponse

logger = get_logger("api.context")

router = APIRouter(tags=["context"])


@router.post("/context", response_model=ContextResponse)
async def build_context(
    body: ContextRequest,
    service: ContextService = Depends(get_context_service),
):
    """Select and load the repository files relevant to a query."""
    context = await service.build_context(body.owner, body.repo, body.query, branch=body.branch)
    return context.to_dict()


@router.get("/profiles/{username}")
async def get_profile(
    username: str = Path(min_length=1, max_length=100, pattern=NAME_PATTERN),
    service: ContextService = Depends(get_context_service),
):
    """Profile descriptor for a GitHub user, cached for 30 minutes."""
    return await service.get_profile(username)
