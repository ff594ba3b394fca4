from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.types import ASGIApp

logger = get_logger(__name__)

_SLOW_REQUEST_SECONDS = 5.0


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers and logs slow or failing API calls."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        if request.url.path.startswith(settings.api_prefix):
            response.headers["Cache-Control"] = "no-store"
            if response.status_code >= 500 or elapsed > _SLOW_REQUEST_SECONDS:
                logger.info(
                    "API request %s %s -> %d in %.2fs",
                    request.method,
                    request.url.path,
                    response.status_code,
                    elapsed,
                    extra={"path": request.url.path, "status_code": response.status_code},
                )

        return response
