"""Logging setup: one stdout stream, records tagged with their request id."""

from __future__ import annotations

import contextvars
import logging
import sys
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("tgrelay.access")


def loggable_path(path: str) -> str:
    """Request path as written to the access log; update URLs carry the bot token."""
    if path.startswith("/tg/"):
        return "/tg/***"
    return path


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag records with ``X-Request-ID`` (echoed back) and log one line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        token = _request_id.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                loggable_path(request.url.path),
                response.status_code,
                (time.perf_counter() - start) * 1000.0,
            )
            return response
        finally:
            _request_id.reset(token)


class _RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def configure_logging(log_level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_RequestIDFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    # force: replace handlers installed before the app module is imported
    logging.basicConfig(level=log_level.upper(), handlers=[handler], force=True)

    # httpx logs request URLs at INFO, and Bot API URLs contain the token.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # The middleware writes the masked access line instead.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
