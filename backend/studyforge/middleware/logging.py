"""
StudyForge Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request with status and duration.
How:   Times the downstream call with perf_counter and logs at a level chosen
       from the status code (5xx ERROR, 4xx WARNING, else INFO).
When:  Runs inside RequestIDMiddleware, so the request ID is already set.

Generation requests are slow (seconds, dominated by the provider call), so the
duration is the main thing to watch here. Request bodies are never logged:
they contain the user's notes.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from studyforge.middleware.request_id import current_request_id

logger = logging.getLogger("studyforge.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
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
        rid = current_request_id()
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
