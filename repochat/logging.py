"""
Structured logging for RepoChat.

structlog renders to the console in development and to JSON lines
elsewhere. Cache keys can embed a user's free-text query, so long ``key``
fields are shortened before rendering.

Usage:
    from repochat.logging import get_logger, LogContext

    logger = get_logger("cache")
    with LogContext(owner="acme", repo="widget"):
        logger.info("context_built", files=3)
"""

import logging
import os
import sys
import time
import uuid
from collections.abc import MutableMapping
from functools import lru_cache
from typing import Any, Optional

import structlog
from structlog.types import Processor

from . import __version__

MAX_LOGGED_KEY_LENGTH = 120

# Liveness and readiness probes hit these every few seconds
QUIET_PATHS = frozenset({"/health", "/health/ready"})


def _is_development() -> bool:
    from .config import get_settings

    return get_settings().debug or os.getenv("ENV", "development") == "development"


def _add_app_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict["app"] = "repochat"
    event_dict["version"] = __version__
    return event_dict


def _shorten_cache_keys(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Truncate ``key`` values; query keys carry the whole normalized question."""
    key = event_dict.get("key")
    if isinstance(key, str) and len(key) > MAX_LOGGED_KEY_LENGTH:
        event_dict["key"] = key[:MAX_LOGGED_KEY_LENGTH] + "..."
    return event_dict


def get_processors(development: Optional[bool] = None) -> list[Processor]:
    """Processor chain for the console (development) or JSON renderer."""
    if development is None:
        development = _is_development()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_app_context,
        _shorten_cache_keys,
    ]

    if development:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    return processors


@lru_cache(maxsize=1)
def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog and the stdlib root logger. Idempotent.

    ``level`` defaults to LOG_LEVEL from settings.
    """
    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # redis-py logs every reconnect attempt; the cache facade already reports failures
    logging.getLogger("redis").setLevel(logging.WARNING)

    structlog.configure(
        processors=get_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """
    Bind fields for the duration of a block.

    Fields that were already bound (for example ``repo`` inside an outer
    request context) get their previous value back on exit instead of
    being dropped.
    """

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self._previous: dict[str, Any] = {}

    def __enter__(self):
        current = structlog.contextvars.get_contextvars()
        self._previous = {k: current[k] for k in self.kwargs if k in current}
        structlog.contextvars.bind_contextvars(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.unbind_contextvars(*self.kwargs)
        if self._previous:
            structlog.contextvars.bind_contextvars(**self._previous)
        return False


class RequestLoggingMiddleware:
    """
    ASGI middleware logging one line per request with status and duration.

    Health probes are logged at debug level. The request id comes from
    RequestIDMiddleware when it wraps this middleware.
    """

    def __init__(self, app):
        self.app = app
        self._logger: Optional[structlog.stdlib.BoundLogger] = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger("http")
        return self._logger

    def _log_method(self, path: str, status_code: int):
        if status_code >= 500:
            return self.logger.error
        if status_code >= 400:
            return self.logger.warning
        if path in QUIET_PATHS:
            return self.logger.debug
        return self.logger.info

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = scope.get("state", {}).get("request_id") or uuid.uuid4().hex[:16]
        bind_context(request_id=request_id)

        path = scope.get("path", "")
        method = scope.get("method", "")
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            self._log_method(path, status_code)(
                "request_complete",
                method=method,
                path=path,
                status_code=status_code,
                duration_seconds=round(time.perf_counter() - start, 3),
            )
            clear_context()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "LogContext",
    "RequestLoggingMiddleware",
]
