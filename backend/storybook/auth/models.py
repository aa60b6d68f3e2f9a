"""
Storybook Backend - Authentication Models
===========================================

What:  The identity the gateway asserted for the current request.
Why:   Handlers receive it as an explicit argument instead of reading
       per-request global state.
"""

from typing import Optional

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """
    Authenticated user built from the gateway's identity headers.

    Only `id` is mandatory; email is needed to like a story.
    """
    id: str
    email: Optional[str] = None
    display_name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        return self.display_name or self.first_name or self.id
