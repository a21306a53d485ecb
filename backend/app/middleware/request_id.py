"""
Inkwell Backend - Request ID Middleware
========================================

What:  Assigns a correlation id to each request and echoes it in X-Request-ID.
Why:   Error bodies carry the same id as the log lines for that request, so a
       user reporting "request_id: 3f9a1c2e" points straight at the trace.
How:   A client-supplied X-Request-ID is reused when it looks like an id
       (1-64 characters from [A-Za-z0-9._-]); anything else is replaced by
       a fresh 8-character id. The value lives in a ContextVar for loggers
       and exception handlers, and on request.state for route handlers.
When:  Outermost application middleware, ahead of the access log.

Why validate client ids:
    The header is echoed into every log line and response. An unchecked
    value could smuggle newlines into logs or bloat every response.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: str) -> str:
    """Reuse a well-formed client id, otherwise mint a new one."""
    candidate = (supplied or "").strip()
    if _VALID_REQUEST_ID.match(candidate):
        return candidate
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attaches and returns the X-Request-ID correlation header.

    Behavior:
        1. Read X-Request-ID from the client (the frontend may send one)
        2. Keep it if well-formed, otherwise generate one
        3. Expose it via request_id_var and request.state.request_id
        4. Echo it on the response, including error responses
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
