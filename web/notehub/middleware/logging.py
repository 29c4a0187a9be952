"""
NoteHub Web — Request Logging Middleware
==========================================

What:  One access log line per request with status and duration.
How:   Measures from middleware entry to response return; the level
       follows the status code (5xx ERROR, 4xx WARNING, else INFO).

Typical durations:
    - GET /notes/filter/all: one upstream list call plus template render
    - POST /notes/action/create: one upstream create call, then a redirect
    - GET /api/notes: sub-millisecond on a cache hit

What we log vs what we DON'T log:
    ✅ method, path, status, duration, client IP, request ID
    ❌ form bodies (note titles and content are user data), cookies
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notehub.middleware.request_id import request_id_var

logger = logging.getLogger("notehub.access")

QUIET_PATHS = frozenset({"/health", "/favicon.ico"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every non-probe request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
