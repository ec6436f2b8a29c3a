"""
Photobook Backend — Request Logging Middleware
================================================

What:  One access log line per request with status and duration.
Who:   Logger `photobook.access`; health probes are not logged.

Logged: method, path, status, duration, client IP, request ID, acting user.
Not logged: bodies (registrations carry email and mobile numbers).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from photobook.middleware.request_id import request_id_var

logger = logging.getLogger("photobook.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Level follows the status class:
        5xx → ERROR, 4xx → WARNING, otherwise INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        user_id = request.headers.get("X-User-Id", "-")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
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
