"""Authentication: the gateway-asserted identity and its FastAPI dependencies."""

from storybook.auth.dependencies import (
    get_current_user_optional,
    identity_from_headers,
    require_user,
)
from storybook.auth.models import CurrentUser

__all__ = [
    "CurrentUser",
    "get_current_user_optional",
    "identity_from_headers",
    "require_user",
]
