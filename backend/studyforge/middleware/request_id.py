"""
StudyForge Backend — Request ID Middleware
============================================

What:  Tags every request with a short correlation ID.
How:   Reuses a client-sent X-Request-ID or generates one, stores it in a
       ContextVar (for loggers and exception handlers) and request.state (for
       route handlers), and echoes it in the response header.
Who:   Applied to every request; error bodies carry the same ID so a user can
       quote it when reporting a failed generation.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def current_request_id() -> str:
    return request_id_var.get("")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID (client value wins, else 8 hex chars of a UUID4)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
