"""
Storybook Backend - FastAPI Auth Dependencies
===============================================

What:  Turns the gateway's identity headers into a CurrentUser.
How:   The upstream authentication gateway handles sign-in and sets
       X-Auth-User-* headers (names configurable) on each proxied request.
       These dependencies read them, provision the local User row, and
       either return the identity or raise AuthenticationRequiredError.

Usage:
    @router.get("/dashboard")
    async def dashboard(user: CurrentUser = Depends(require_user)):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storybook.auth.models import CurrentUser
from storybook.config import settings
from storybook.database import get_db_session
from storybook.exceptions import AuthenticationRequiredError
from storybook.services.user_service import user_service

logger = logging.getLogger(__name__)


def _header(request: Request, name: str) -> Optional[str]:
    value = request.headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def identity_from_headers(request: Request) -> Optional[CurrentUser]:
    """Build a CurrentUser from the identity headers, or None for a guest."""
    user_id = _header(request, settings.auth_user_id_header)
    if not user_id:
        return None

    first_name = _header(request, settings.auth_user_first_name_header)
    last_name = _header(request, settings.auth_user_last_name_header)
    display_name = _header(request, settings.auth_user_name_header)
    if not display_name:
        display_name = " ".join(part for part in (first_name, last_name) if part)

    return CurrentUser(
        id=user_id,
        email=_header(request, settings.auth_user_email_header),
        display_name=display_name,
        first_name=first_name,
        last_name=last_name,
        image=_header(request, settings.auth_user_image_header),
    )


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[CurrentUser]:
    """
    The current user, or None for guests.

    Used by public pages that still show owner-only controls (edit icons)
    when a signed-in owner views them.
    """
    identity = identity_from_headers(request)
    if identity is None:
        return None

    await user_service.ensure_user(db, identity)
    request.state.user_id = identity.id
    return identity


async def require_user(
    user: Optional[CurrentUser] = Depends(get_current_user_optional),
) -> CurrentUser:
    """
    The current user; raises AuthenticationRequiredError for guests.

    Raises:
        AuthenticationRequiredError: no identity header on the request
    """
    if user is None:
        raise AuthenticationRequiredError()
    return user
