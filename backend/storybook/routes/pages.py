"""
Storybook Backend - Page Route Handlers
=========================================

What:  The landing page and the dashboard every story mutation returns to.

    GET /           guests: sign-in page; signed-in users: → /dashboard
    GET /dashboard  (auth) the current user's stories, all statuses
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from storybook.auth import CurrentUser, get_current_user_optional, require_user
from storybook.database import get_db_session
from storybook.services.story_service import story_service
from storybook.views import render

router = APIRouter(tags=["Pages"])


@router.get("/", summary="Landing / sign-in page")
async def landing(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_current_user_optional),
) -> Response:
    # Guest-only page
    if user is not None:
        return RedirectResponse(url="/dashboard", status_code=303)
    return render(request, "login.html")


@router.get("/dashboard", summary="The signed-in user's stories")
async def dashboard(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    stories = await story_service.list_user_stories(db, user.id)
    return render(request, "dashboard.html", {"stories": stories, "user": user})
