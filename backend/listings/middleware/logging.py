"""
Listings Backend — Request Logging Middleware
===============================================

What:  One access-log line per HTTP request.
How:   Measures time around the downstream handler and logs method, path,
       status, duration, request ID and client IP on the `listings.access`
       logger. Level follows the status: 5xx ERROR, 4xx WARNING, else INFO.

Example line:
    2024-01-15T12:00:00 [INFO] listings.access: POST /items 200 12.3ms [a1b2c3d4] from 127.0.0.1

Request bodies (form fields, image bytes) are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from listings.middleware.request_id import request_id_var

logger = logging.getLogger("listings.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    # Probes hit these every few seconds
    SKIPPED_PATHS = frozenset({"/health"})

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            rid,
            client,
            extra={"request_id": rid, "duration_ms": round(elapsed_ms, 2)},
        )
        return response
