"""ASGI middleware logging one line per request."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("cad_doctree.api")


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration; adds ``X-Process-Time`` to the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed * 1000)
        return response
