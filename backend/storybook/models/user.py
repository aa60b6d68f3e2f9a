"""
Storybook Backend - User SQLAlchemy Model
===========================================

What:  Local copy of an identity asserted by the authentication gateway.
Why:   Stories and comments reference their author, and the listing and
       detail views show the author's name and avatar without a call to the
       identity provider.
When:  Provisioned on first sight by UserService.ensure_user().
"""

from datetime import datetime, timezone

from sqlalchemy import String, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column

from storybook.database import Base


class User(Base):
    """A signed-in person. `id` is the identity provider's subject id."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Subject id issued by the identity provider",
    )

    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Avatar URL; the templates fall back to initials when it is missing
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', display_name='{self.display_name}')>"
