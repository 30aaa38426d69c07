"""
TextCollector — Request ID Middleware
======================================

What:  Tags each request with a short correlation ID and echoes it back.
How:   Reads X-Request-ID from the client or generates one, stores it in a
       ContextVar, and sets it on the response. RequestIDLogFilter copies it
       onto every log record so all lines of one request share the same ID.
Who:   Applied to every request; the filter is installed by setup_logging().

A UI that sends its own X-Request-ID can match a failed action to the
server log lines for it.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to log records ("-" outside a request, e.g. the CLI)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID before any other processing.

    Behavior:
        1. Use the client's X-Request-ID header if present
        2. Otherwise generate one (first 8 hex chars of a UUID4)
        3. Store it in the ContextVar and on request.state
        4. Add it to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
