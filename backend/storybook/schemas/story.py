"""
Storybook Backend - Pydantic Form and Response Schemas
========================================================

What:  The explicit allowlist of fields a client may submit, and the JSON
       shapes the API returns.
Why:   Story creation no longer persists "whatever fields are in the body".
       Only title, body and status reach the database; anything else (an
       injected user_id, the `_method` override field) is dropped.
"""

from typing import Any, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field, field_validator

from storybook.exceptions import ValidationError
from storybook.models.story import STORY_STATUSES

FormModel = TypeVar("FormModel", bound=BaseModel)


# ══════════════════════════════════════════════════════════════════════════
# Form Models - What browsers submit
# ══════════════════════════════════════════════════════════════════════════


class StoryForm(BaseModel):
    """
    What:  Fields accepted by the add and edit story forms.
    Who:   POST /stories and PUT /stories/{id}.
    """
    title: str = Field(min_length=1, max_length=255, description="Story title")
    body: str = Field(min_length=1, description="Story text (may contain HTML from the editor)")
    status: str = Field(default="public", description="Visibility: public or private")

    model_config = {"extra": "ignore", "str_strip_whitespace": True}

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        """Ensures status is one of the known visibility values."""
        value = v.lower()
        if value not in STORY_STATUSES:
            raise ValueError(f"Invalid status '{v}'. Must be one of: {', '.join(STORY_STATUSES)}")
        return value


class CommentForm(BaseModel):
    """Fields accepted by the comment form on the story page."""
    body: str = Field(min_length=1, max_length=5000, description="Comment text")

    model_config = {"extra": "ignore", "str_strip_whitespace": True}


class LikeRequest(BaseModel):
    """
    What:  JSON body of PUT /stories/likes/{id}.
    How:   action == "INC" adds the caller's like; any other value removes it.
    """
    action: str = Field(default="", description="'INC' to like, anything else to unlike")

    @property
    def is_increment(self) -> bool:
        return self.action == "INC"


def parse_form(model: Type[FormModel], data: Mapping[str, Any]) -> FormModel:
    """
    Validate submitted form data against `model`.

    Pydantic's errors are converted into the application's ValidationError so
    the global handler renders the 400 view instead of FastAPI's 422 JSON.
    """
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "Invalid form data")
        if field:
            message = f"{field}: {message}"
        raise ValidationError(
            message=message,
            field=field,
            context={"error_count": e.error_count()},
        )


# ══════════════════════════════════════════════════════════════════════════
# Response Models - What JSON callers receive
# ══════════════════════════════════════════════════════════════════════════


class LikeResponse(BaseModel):
    """Returned by the like toggle; the page updates its counter from it."""
    likes: int = Field(ge=0, description="Number of users who like the story")


class ErrorResponse(BaseModel):
    """
    Standardized JSON error body, used when the caller asked for JSON.

    Example:
        {
            "error": "not_found",
            "message": "story with ID '...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
