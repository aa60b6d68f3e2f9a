"""
Storybook Backend - Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the error scenarios of the app.
How:   Each exception carries a user-safe message and an optional context
       dict. Global handlers registered in main.py turn them into rendered
       error views (browsers) or JSON error bodies (fetch/XHR callers).
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    StorybookError (base)            → 500
    ├── ValidationError              → 400 Bad Request
    ├── AuthenticationRequiredError  → redirect to login (HTML) / 401 (JSON)
    ├── PermissionDeniedError        → redirect to /stories (HTML) / 403 (JSON)
    ├── NotFoundError                → 404 Not Found
    └── DatabaseError                → 500 Internal Server Error

Not-found and store failure are separate types so a missing story never
renders the generic failure page, and a broken database never renders 404.
"""

from typing import Any, Dict, Optional


class StorybookError(Exception):
    """
    Base exception for all Storybook application errors.

    Attributes:
        message:  User-facing error description (safe to render)
        context:  Additional debug info (logged but NOT shown to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StorybookError):
    """
    Raised when a submitted form fails validation.

    When:    Missing title/body, unknown status, comment without text,
             liking without an email address on the identity.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationRequiredError(StorybookError):
    """
    Raised when a route needs an identity and the gateway supplied none.

    Browsers are redirected to the login page; JSON callers get 401.
    """

    def __init__(
        self,
        message: str = "You need to sign in to do that",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(StorybookError):
    """
    Raised when the current user does not own the story they act on.

    The persisted story is left untouched. Browsers are redirected to the
    public story list; JSON callers get 403.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        user_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        if user_id:
            ctx["user_id"] = user_id
        super().__init__(message=f"You do not own this {resource}", context=ctx)


class NotFoundError(StorybookError):
    """
    Raised when a requested record does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    (and ids that cannot be parsed) into this exception.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(StorybookError):
    """
    Raised when a database operation fails unexpectedly.

    The rendered message is always generic; the context (operation name,
    original exception type) is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
