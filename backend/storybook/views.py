"""
Storybook Backend - HTML View Rendering
=========================================

What:  The Jinja2 template environment and a render() shortcut.
How:   Starlette's Jinja2Templates loads storybook/templates/; the text
       helpers are registered once so every template can call them.
Who:   Route handlers and the HTML branch of the exception handlers.

View inventory:
    login.html           guest landing page
    dashboard.html       the signed-in user's stories
    stories/index.html   public / per-user listing
    stories/show.html    single story with comments
    stories/add.html     new story form
    stories/edit.html    edit form (owner only)
    error/400.html, error/404.html, error/500.html
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from storybook import helpers
from storybook.config import settings

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

templates.env.globals.update(
    capitalize=helpers.capitalize,
    format_date=helpers.format_date,
    truncate=helpers.truncate,
    strip_tags=helpers.strip_tags,
    edit_icon=helpers.edit_icon,
    select=helpers.select,
    login_url=settings.login_url,
)
templates.env.filters.update(
    capitalize=helpers.capitalize,
    format_date=helpers.format_date,
    excerpt=helpers.truncate,
    strip_tags=helpers.strip_tags,
)


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> Response:
    """Render `name` with `context`; `user` defaults to None for guests."""
    ctx: Dict[str, Any] = {"user": None}
    if context:
        ctx.update(context)
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
