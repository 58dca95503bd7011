"""HTTP middleware: security headers + request timing log."""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    Video files and thumbnails come from upstream CDNs whose hosts are not
    known ahead of time, so media and images allow any https source. Scripts
    are limited to self plus the configured ad hosts.
    """

    def __init__(self, app, script_hosts=()):
        super().__init__(app)
        script_src = " ".join(["'self'", "'unsafe-inline'"] + [f"https://{h}" for h in script_hosts])
        self.csp = (
            "default-src 'self'; "
            f"script-src {script_src}; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https:; "
            "media-src 'self' https:; "
            "frame-src https:; "
            "connect-src 'self'; "
            "object-src 'none'; "
            "base-uri 'self'"
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self.csp
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and elapsed time for every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug("%s %s -> %d (%.1f ms)", request.method, request.url.path,
                     response.status_code, elapsed_ms)
        return response
