"""
Storybook Backend - Comment SQLAlchemy Model
==============================================

What:  A reply attached to exactly one story.
Comments are created only; they go away when their story is deleted.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, String, Text, TIMESTAMP, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storybook.database import Base
from storybook.models.user import User


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    story_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning story (parent reference)",
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_comments_story_id", "story_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, story_id={self.story_id})>"
