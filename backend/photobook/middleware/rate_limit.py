"""
Photobook Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window limit on mutating requests.
Why:   Registrations and homepage requests each fan out an admin
       notification; a flood of writes would bury the admin inbox.
How:   Timestamps per client IP kept in memory. Only POST, PUT and DELETE
       count; reads and badge polling are never limited.

Scope:
    In-memory, so the limit is per process. Multi-worker deployments get
    one window per worker.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from photobook.config import settings
from photobook.exceptions import RateLimitExceededError
from photobook.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration (from settings):
        rate_limit_requests: max writes per window
        rate_limit_window:   window length in seconds

    Over the limit: 429 with Retry-After and the standard error envelope.
    Runs inside RequestIDMiddleware so the envelope carries the request ID.
    """

    LIMITED_METHODS = {"POST", "PUT", "DELETE"}
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if (
            request.method not in self.LIMITED_METHODS
            or request.url.path in self.EXCLUDED_PATHS
        ):
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )
        now = time.time()
        window_start = now - settings.rate_limit_window

        self._requests[client_ip] = [
            ts for ts in self._requests[client_ip] if ts > window_start
        ]

        if len(self._requests[client_ip]) >= settings.rate_limit_requests:
            oldest = self._requests[client_ip][0]
            retry_after = int(oldest + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d writes in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                settings.rate_limit_window,
            )
            # Raised exceptions never reach the app handlers from here
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": exc.message,
                    "code": exc.code,
                    "details": {"retryAfter": exc.retry_after},
                    "requestId": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        self._requests[client_ip].append(now)

        # Amortized cleanup of IPs with no writes left in the window
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
