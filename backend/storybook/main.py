"""
Storybook Backend - FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires logging, middleware, exception handlers and routers.
Who:   uvicorn storybook.main:app

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────────┐  │
    │  │ Req ID   │→│ Logging  │→│ Method Override     │  │
    │  └──────────┘ └──────────┘ └─────────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌────────────┐   │
    │  │ /stories/... │ │ /, /dashboard│ │ /health    │   │
    │  └──────────────┘ └──────────────┘ └────────────┘   │
    │                                                     │
    │  Exception Handlers (HTML view or JSON body):       │
    │  Validation→400 │ Auth→login/401 │ Owner→/stories/403│
    │  NotFound→404   │ Database→500   │ Unexpected→500   │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from storybook import __version__
from storybook.auth import identity_from_headers
from storybook.config import settings
from storybook.database import dispose_engine
from storybook.exceptions import (
    AuthenticationRequiredError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    StorybookError,
    ValidationError,
)
from storybook.middleware.logging import RequestLoggingMiddleware
from storybook.middleware.method_override import MethodOverrideMiddleware
from storybook.middleware.request_id import RequestIDMiddleware, request_id_var
from storybook.routes import health, pages, stories
from storybook.views import render

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure application-wide logging to stdout.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Storybook %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report the problem
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Storybook shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Endpoints whose every answer, errors included, is JSON
JSON_ONLY_PREFIXES = ("/stories/likes/",)


def wants_json(request: Request) -> bool:
    """True for JSON-only endpoints and fetch/XHR callers, False for page loads."""
    if request.url.path.startswith(JSON_ONLY_PREFIXES):
        return True
    accept = request.headers.get("accept", "")
    content_type = request.headers.get("content-type", "")
    return "application/json" in accept or content_type.startswith("application/json")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    template: str,
    details: Optional[dict] = None,
) -> Response:
    rid = request_id_var.get("")
    if wants_json(request):
        content = {"error": error, "message": message, "request_id": rid}
        if details:
            content["details"] = details
        return JSONResponse(status_code=status_code, content=content)
    # Error views keep the signed-in navigation
    return render(
        request,
        template,
        {"message": message, "request_id": rid, "user": identity_from_headers(request)},
        status_code=status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to responses.

    Every handler answers browsers with a rendered view (or a redirect) and
    JSON callers with {error, message, details?, request_id}. Internal
    details (SQL, exception types) are logged, never rendered.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(
            request, 400, "validation_error", exc.message, "error/400.html", exc.context
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        status_code = 422 if wants_json(request) else 400
        return _error_response(
            request, status_code, "validation_error", message, "error/400.html",
            {"error_count": len(errors)},
        )

    @app.exception_handler(AuthenticationRequiredError)
    async def handle_authentication_required(request: Request, exc: AuthenticationRequiredError):
        if wants_json(request):
            return _error_response(
                request, 401, "authentication_required", exc.message, "error/400.html"
            )
        return RedirectResponse(url=settings.login_path, status_code=303)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        if wants_json(request):
            return _error_response(
                request, 403, "permission_denied", exc.message, "error/400.html"
            )
        return RedirectResponse(url="/stories", status_code=303)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message, "error/404.html")

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(
            request, 500, "server_error",
            "An internal error occurred. Please try again later.",
            "error/500.html",
        )

    @app.exception_handler(StorybookError)
    async def handle_storybook_error(request: Request, exc: StorybookError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(request, 500, "server_error", exc.message, "error/500.html")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True
        )
        return _error_response(
            request, 500, "internal_server_error",
            "An unexpected error occurred. Please try again later.",
            "error/500.html",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Storybook",
        description="Share public and private stories; like and comment on others' stories.",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → MethodOverride → routes
    app.add_middleware(MethodOverrideMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(pages.router)
    app.include_router(stories.router)
    app.include_router(health.router)

    return app


app = create_app()
