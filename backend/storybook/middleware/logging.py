"""
Storybook Backend - Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration,
       request id.
When:  Runs inside RequestIDMiddleware so the id is already set, and outside
       MethodOverrideMiddleware so an overridden form post is logged as
       "POST>PUT /stories/...".

Severity follows the status class: 5xx is ERROR, 4xx is WARNING, and
anything else (the 303s after form submissions included) is INFO.

Request bodies are never logged; story text is user content.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from storybook.middleware.request_id import request_id_var

logger = logging.getLogger("storybook.access")

# Probes hit these every few seconds
QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        submitted = request.method
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        # The override middleware rewrites the shared scope
        dispatched = request.scope.get("method", submitted)
        method = submitted if dispatched == submitted else f"{submitted}>{dispatched}"
        rid = request_id_var.get("")

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s]",
            method,
            path,
            response.status_code,
            elapsed_ms,
            rid,
            extra={"request_id": rid, "user_id": getattr(request.state, "user_id", None)},
        )
        return response
