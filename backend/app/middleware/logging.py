"""
Inkwell Backend - Access Log Middleware
========================================

What:  One access-log line per request on the "inkwell.access" logger.
Why:   Status and latency per request, joinable with service logs through
       the request id, without ever reading request bodies.
How:   Level follows the outcome:

           5xx                     → ERROR
           4xx                     → WARNING
           2xx/3xx under /uploads/ → DEBUG  (image hits from every page view)
           other 2xx/3xx           → INFO

       /health is never logged (probes call it every few seconds).

What we log vs what we don't:
    ✅ method, path, status, duration, request id, client address, user agent
    ❌ request bodies (passwords, uploads) and the Authorization header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("inkwell.access")

SILENT_PATHS = frozenset({"/health"})
QUIET_PREFIXES = ("/uploads/",)


def access_log_level(path: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if path.startswith(QUIET_PREFIXES):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs a summary of each HTTP request once its response is ready."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SILENT_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        level = access_log_level(path, response.status_code)
        if not logger.isEnabledFor(level):
            return response

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "-")

        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
                "client_ip": client_ip,
                "user_agent": user_agent,
            },
        )
        return response
