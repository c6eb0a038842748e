"""
ReadNote Server — Request Logging Middleware
==============================================

What:  One log line per HTTP request: method, path, status, duration.
Why:   Shows which reader actions hit the store and how long they took.
How:   Times the downstream call and picks the level from the status class.

What we log vs what we DON'T log:
    Log: method, path, status, duration, client IP, request ID
    Don't log: request bodies (book payloads, notes) or query strings
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from readnote.middleware.request_id import request_id_var

logger = logging.getLogger("readnote.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request after the response is produced.

    Level by status:
        5xx → ERROR, 4xx → WARNING, static files → DEBUG, other → INFO

    Static hits are logged at DEBUG: one page load fetches dozens of assets.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        elif not path.startswith("/api/"):
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
