"""
Natours Backend — Request Logging Middleware
=============================================

What:  One access log line per request: method, path, status, duration.
Why:   Quick feedback while developing; installed only in development mode
       (production relies on the proxy's access log).
How:   Times the downstream call and logs at a level matching the status
       class, correlated by the request ID.

Log line:
    GET /api/v1/tours 200 3.4 ms - 512 [a1b2c3d4]

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, response size, request ID
    ❌ Don't log: request bodies, cookies, query strings (may carry tokens)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from natours.middleware.request_id import request_id_var

logger = logging.getLogger("natours.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Development access log in the compact `dev` layout."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1f ms - %s [%s]",
            request.method,
            request.url.path,
            status,
            duration_ms,
            response.headers.get("content-length", "-"),
            request_id_var.get(""),
        )
        return response
