"""
Storybook Backend - Template Helpers
======================================

What:  Small text-formatting functions the HTML templates call.
Who:   Registered as Jinja2 globals and filters in storybook.views.

Helpers returning markup (edit_icon, select) return markupsafe.Markup so
Jinja's autoescaping leaves them alone; every value they interpolate is
escaped first.
"""

import re
from datetime import datetime
from typing import Any, Optional

from markupsafe import Markup, escape

from storybook.config import settings

_TAG_RE = re.compile(r"<(?:.|\n)*?>")


def capitalize(text: Optional[str]) -> str:
    """Upper-case the first character and leave the rest untouched."""
    if not text:
        return ""
    return text[0].upper() + text[1:]


def format_date(value: Optional[datetime], fmt: Optional[str] = None) -> str:
    """strftime with the configured DATE_FORMAT; empty string for None."""
    if value is None:
        return ""
    return value.strftime(fmt or settings.date_format)


def truncate(text: Optional[str], length: Optional[int] = None) -> str:
    """
    Shorten `text` to at most `length` characters plus "...".

    The cut happens at the last space inside the limit so words stay whole;
    a single over-long word is cut at the limit instead.
    """
    if not text:
        return ""
    limit = settings.story_excerpt_length if length is None else length
    if limit <= 0 or len(text) <= limit:
        return text
    cut = text[:limit]
    last_space = cut.rfind(" ")
    if last_space > 0:
        cut = cut[:last_space]
    return cut + "..."


def strip_tags(text: Optional[str]) -> str:
    """Remove HTML tags (and non-breaking space entities) for plain excerpts."""
    if not text:
        return ""
    return _TAG_RE.sub("", text).replace("&nbsp;", " ")


def edit_icon(
    story_user_id: Any,
    current_user: Any,
    story_id: Any,
    floating: bool = True,
) -> Markup:
    """
    Edit link for the story's owner; empty markup for everyone else.

    `current_user` may be a CurrentUser, a plain user id, or None (guest).
    """
    if current_user is None:
        return Markup("")
    viewer_id = getattr(current_user, "id", current_user)
    if str(story_user_id) != str(viewer_id):
        return Markup("")

    href = f"/stories/edit/{escape(str(story_id))}"
    if floating:
        return Markup(
            f'<a href="{href}" class="btn-floating halfway-fab blue">'
            '<i class="fas fa-edit fa-small"></i></a>'
        )
    return Markup(f'<a href="{href}"><i class="fas fa-edit"></i></a>')


def select(selected: Optional[str], options: str) -> Markup:
    """Mark the <option> whose value equals `selected` as selected."""
    html = str(options)
    if selected is None:
        return Markup(html)
    pattern = re.compile(r' value="' + re.escape(str(selected)) + r'"')
    return Markup(pattern.sub(lambda m: m.group(0) + ' selected="selected"', html, count=1))
