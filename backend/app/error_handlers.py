"""
Custom exception handlers for FastAPI.

Security:
- Error bodies carry detail and status_code (plus field errors on 422),
  never the request ID; clients get it from the X-Request-ID response
  header and it is logged with every handled error
- Generic error messages for 5xx errors so upstream details stay private
"""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from repochat.logging import get_logger
from repochat.services import ContextFetchError

logger = get_logger("backend.errors")


def _get_request_id() -> str:
    """Current request ID from the logging context, for log lines."""
    return structlog.contextvars.get_contextvars().get("request_id", "-")


def _response_payload(detail: str, status_code: int) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_response_payload(str(exc.detail), exc.status_code),
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=422,
            content={
                **_response_payload("Validation error", 422),
                "errors": exc.errors(),
            },
        )

    @app.exception_handler(ContextFetchError)
    async def context_fetch_exception_handler(request: Request, exc: ContextFetchError):
        # Upstream GitHub / AI failure; the cache never produces this
        logger.error(
            "context_fetch_failed",
            operation=exc.operation,
            error=str(exc),
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=502,
            content=_response_payload("Upstream service unavailable", 502),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=500,
            content=_response_payload("Internal server error", 500),
        )
