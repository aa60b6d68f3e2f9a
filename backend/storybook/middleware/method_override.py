"""
Storybook Backend - HTTP Method Override Middleware
=====================================================

What:  Lets HTML forms reach PUT and DELETE routes.
How:   A POST carrying `_method` in the query string, or an
       X-HTTP-Method-Override header, is re-dispatched with that method
       before routing:

           <form action="/stories/{id}?_method=PUT" method="POST">

Only PUT, PATCH and DELETE may be requested; other values are ignored and
the request stays a POST.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

OVERRIDE_HEADER = "X-HTTP-Method-Override"
OVERRIDE_PARAM = "_method"
ALLOWED_OVERRIDES = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "POST":
            requested = (
                request.query_params.get(OVERRIDE_PARAM)
                or request.headers.get(OVERRIDE_HEADER)
                or ""
            ).upper()
            if requested in ALLOWED_OVERRIDES:
                logger.debug("Overriding POST %s as %s", request.url.path, requested)
                request.scope["method"] = requested
        return await call_next(request)
