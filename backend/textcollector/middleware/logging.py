"""
TextCollector — Request Logging Middleware
===========================================

What:  One access-log line per request: method, path, status, duration.
How:   Times the request around call_next and logs to `textcollector.access`
       at a level chosen from the status code.
When:  Runs inside RequestIDMiddleware, so the request ID is already set.

Log line:
    2026-01-15T12:00:00 [INFO] textcollector.access [a1b2c3d4]: POST /api/snippets 201 12.3ms

Request bodies are never logged: they hold the user's snippet text.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from textcollector.middleware.request_id import request_id_var

logger = logging.getLogger("textcollector.access")

# Polled by monitors; not worth a log line each time
_QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each HTTP request with its outcome.

    Levels:
        5xx → ERROR, 4xx → WARNING, everything else → INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            request.method,
            path,
            status,
            duration_ms,
            client_ip,
            extra={
                "request_id": request_id_var.get(""),
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
