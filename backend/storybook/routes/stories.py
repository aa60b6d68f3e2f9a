"""
Storybook Backend - Story Route Handlers
==========================================

What:  Every /stories endpoint: forms, listings, detail, update, delete,
       like toggle, comments.
How:   Handlers read the request (path, form, JSON), call a service, and
       answer with a template, a 303 redirect, or (likes only) JSON.
       Errors are raised as application exceptions and turned into error
       views or JSON by the global handlers in main.py.

Route Inventory:
    GET    /stories/add                  (auth)  add form
    POST   /stories                      (auth)  create → /dashboard
    GET    /stories                              public listing
    GET    /stories/user/{user_id}       (auth)  one author's public stories
    GET    /stories/edit/{story_id}      (auth)  edit form (owner only)
    PUT    /stories/likes/{story_id}     (auth)  toggle like → {"likes": n}
    POST   /stories/comments/{story_id}  (auth)  add comment → story page
    DELETE /stories/delete/{story_id}    (auth)  delete (owner only) → /dashboard
    GET    /stories/{story_id}                   detail
    PUT    /stories/{story_id}           (auth)  update (owner only) → /dashboard

Route order matters: the fixed prefixes (add, user, edit, likes, comments,
delete) are declared before the bare /{story_id} routes.

Redirects use 303 See Other so the browser follows a PUT/DELETE/POST form
submission with a GET.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from storybook.auth import CurrentUser, get_current_user_optional, require_user
from storybook.database import get_db_session
from storybook.schemas.story import (
    CommentForm,
    ErrorResponse,
    LikeRequest,
    LikeResponse,
    StoryForm,
    parse_form,
)
from storybook.services.comment_service import comment_service
from storybook.services.story_service import story_service
from storybook.views import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["Stories"])


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


@router.get("/add", summary="Show the add story form")
async def show_add_form(
    request: Request,
    user: CurrentUser = Depends(require_user),
) -> Response:
    return render(request, "stories/add.html", {"user": user})


@router.post("", summary="Create a story from the add form")
async def create_story(
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    form = parse_form(StoryForm, await request.form())
    await story_service.create_story(db, user, form)
    return _see_other("/dashboard")


@router.get("", summary="List public stories, newest first")
async def list_stories(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    stories = await story_service.list_public_stories(db)
    return render(request, "stories/index.html", {"stories": stories, "user": user})


@router.get("/user/{user_id}", summary="List one user's public stories")
async def list_user_stories(
    user_id: str,
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    stories = await story_service.list_user_public_stories(db, user_id)
    return render(request, "stories/index.html", {"stories": stories, "user": user})


@router.get("/edit/{story_id}", summary="Show the edit form for an owned story")
async def show_edit_form(
    story_id: str,
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Absent story → 404 view; someone else's story → redirect to /stories
    (raised as PermissionDeniedError and redirected by its handler).
    """
    story = await story_service.get_story_for_edit(db, story_id, user)
    return render(request, "stories/edit.html", {"story": story, "user": user})


@router.put(
    "/likes/{story_id}",
    response_model=LikeResponse,
    responses={
        200: {"description": "Updated like count", "model": LikeResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "Story not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Like (action=INC) or unlike a story",
)
async def toggle_like(
    story_id: str,
    payload: Optional[LikeRequest] = None,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    increment = payload is not None and payload.is_increment
    count = await story_service.toggle_like(db, story_id, user, increment=increment)
    return LikeResponse(likes=count)


@router.post("/comments/{story_id}", summary="Add a comment to a story")
async def add_comment(
    story_id: str,
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    form = parse_form(CommentForm, await request.form())
    comment = await comment_service.create_comment(db, story_id, user, form)
    return _see_other(f"/stories/{comment.story_id}")


@router.delete("/delete/{story_id}", summary="Delete an owned story")
async def delete_story(
    story_id: str,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await story_service.delete_story(db, story_id, user)
    return _see_other("/dashboard")


@router.get("/{story_id}", summary="Show a single story with its comments")
async def show_story(
    story_id: str,
    request: Request,
    user: Optional[CurrentUser] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    story = await story_service.get_story(db, story_id)
    comments = await comment_service.list_comments(db, story_id)
    return render(
        request,
        "stories/show.html",
        {"story": story, "comments": comments, "user": user},
    )


@router.put("/{story_id}", summary="Update an owned story")
async def update_story(
    story_id: str,
    request: Request,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    # Validated inside the service, after the ownership check
    await story_service.update_story(db, story_id, user, await request.form())
    return _see_other("/dashboard")
