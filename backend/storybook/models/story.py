"""
Storybook Backend - Story and StoryLike SQLAlchemy Models
===========================================================

What:  ORM models for the `stories` table and its `story_likes` set.
How:   Likes are rows keyed by (story_id, user_email). The like count is the
       size of that set, computed at read time, so `count == len(users)`
       holds by construction and a toggle is a single INSERT or DELETE.

Table Design Rationale:
    - UUID primary key: ids appear in URLs; non-sequential ids can't be walked
    - status CHECK constraint: only 'public' and 'private' are meaningful
    - created_at DESC index: every listing sorts newest first
    - user_id index: per-user listings and the dashboard filter on it
    - ON DELETE CASCADE on likes (and comments): deleting a story leaves
      nothing behind
"""

import uuid
from datetime import datetime, timezone
from typing import List, Set

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    TIMESTAMP,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storybook.database import Base
from storybook.models.user import User

STORY_STATUSES = ("public", "private")


class Story(Base):
    """
    A user-authored post.

    Lifecycle:
        1. Created from the add form (status defaults to 'public')
        2. Edited by its owner; liked and unliked by any signed-in user
        3. Deleted by its owner, together with its comments and likes
    """

    __tablename__ = "stories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="public",
        server_default=text("'public'"),
        comment="Visibility: public, private",
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Owner is always shown next to the story, so load it with the story
    user: Mapped[User] = relationship(lazy="selectin")

    like_rows: Mapped[List["StoryLike"]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('public', 'private')", name="ck_stories_status"
        ),
        Index("idx_stories_created_at", created_at.desc()),
        Index("idx_stories_user_id", "user_id"),
    )

    @property
    def like_users(self) -> Set[str]:
        return {like.user_email for like in self.like_rows}

    @property
    def like_count(self) -> int:
        return len(self.like_rows)

    @property
    def likes(self) -> dict:
        """The `{count, users}` shape the templates and JSON callers use."""
        return {"count": self.like_count, "users": sorted(self.like_users)}

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def __repr__(self) -> str:
        return (
            f"<Story(id={self.id}, status='{self.status}', "
            f"user_id='{self.user_id}')>"
        )


class StoryLike(Base):
    """One user's like on one story. The composite key makes a like unique."""

    __tablename__ = "story_likes"

    story_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_email: Mapped[str] = mapped_column(String(320), primary_key=True)

    # Server default only: rows are inserted with INSERT ... SELECT
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<StoryLike(story_id={self.story_id}, user_email='{self.user_email}')>"
