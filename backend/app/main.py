"""
FastAPI application entry point.

Uses structured logging from repochat.logging. The cache is optional
infrastructure: the app starts and serves with Redis down, just slower.
"""

import os
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from repochat.cache import CacheFacade
from repochat.config import get_settings
from repochat.logging import RequestLoggingMiddleware, configure_logging, get_logger
from repochat.services import Collaborators

from .dependencies import close_cache, get_cache
from .error_handlers import register_exception_handlers
from .middleware.request_id import RequestIDMiddleware
from .routers import cache as cache_router
from .routers import context as context_router

# Configure structured logging
settings = get_settings()
log_level = "DEBUG" if settings.debug else settings.log_level
configure_logging(level=log_level)
logger = get_logger("api")


def _is_production() -> bool:
    return os.getenv("ENV", "development").lower() in ("production", "prod")


def create_app(collaborators: Optional[Collaborators] = None) -> FastAPI:
    """
    Build the API.

    Args:
        collaborators: GitHub fetchers and AI selector used by the context
            endpoints. Without them those endpoints answer 503 while health
            and cache administration keep working.
    """
    api_version = "v1"
    api_prefix = f"{settings.api_prefix}/{api_version}"

    app = FastAPI(title=settings.app_name, debug=settings.debug)
    app.state.collaborators = collaborators

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
    )

    # Context payloads carry whole files
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # Structured request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Request ID middleware (outermost, so the logger sees its ID)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        """Create the cache facade and report whether the store answers."""
        logger.info("app_startup", app_name=settings.app_name)

        health = await get_cache().health_check()
        if health["available"]:
            logger.info("cache_initialized", backend=settings.cache_backend)
        else:
            logger.warning("cache_unavailable", backend=settings.cache_backend)

        if collaborators is None:
            logger.warning("context_collaborators_missing")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("app_shutdown")
        await close_cache()

    @app.get("/health", tags=["health"])
    def health_check():
        """
        Health check endpoint (liveness probe).

        Returns minimal information to avoid exposing infrastructure details.
        """
        return {"status": "ok"}

    @app.get("/health/ready", tags=["health"])
    async def readiness_check(cache: CacheFacade = Depends(get_cache)):
        """
        Readiness check endpoint.

        The cache is reported but never blocks readiness: a missing cache
        only costs latency.
        """
        health = await cache.health_check()
        return {"status": "ready", "checks": {"cache": health["available"]}}

    @app.get("/health/detailed", tags=["health"])
    async def health_check_detailed(cache: CacheFacade = Depends(get_cache)):
        """
        Detailed health check with cache status and counters.

        Only available in debug mode to prevent information disclosure.
        """
        if _is_production() or not settings.debug:
            return {"error": "Detailed health info only available in debug mode"}

        return {
            "status": "ok",
            "cache": {
                **(await cache.health_check()),
                "backend": settings.cache_backend,
                "stats": cache.stats.to_dict(),
            },
            "context": "configured" if collaborators is not None else "not_configured",
        }

    # Register routers with versioned API prefix
    # API is accessible at /api/v1/*
    app.include_router(context_router.router, prefix=api_prefix)
    app.include_router(cache_router.router, prefix=api_prefix)

    return app


app = create_app()
