"""
Storybook Backend - Story Service (Business Logic)
====================================================

What:  Every story operation the routes need: create, list, fetch, update,
       delete, and the like toggle.
How:   Each method receives the request's session and the explicit
       CurrentUser. Missing rows become NotFoundError, ownership mismatches
       become PermissionDeniedError, and anything the database throws is
       logged and wrapped in DatabaseError.

Ownership:
    Edit, update and delete all go through _get_owned_story(), so a
    non-owner can never reach a mutation. The refusal is raised before any
    write, which leaves the persisted story unchanged.

Likes:
    A toggle is one statement against `story_likes`, whose primary key is
    (story_id, user_email):
        INC   → INSERT ... ON CONFLICT DO NOTHING
        other → DELETE ... WHERE story_id = :story AND user_email = :email
    A concurrent duplicate INC (a double click) inserts nothing rather than
    failing on the key. The returned count is read back with COUNT(*) in
    the same transaction.
"""

import logging
import uuid
from typing import Any, List, Mapping, Union

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storybook.auth.models import CurrentUser
from storybook.database import insert_ignoring_duplicates
from storybook.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    StorybookError,
    ValidationError,
)
from storybook.models.comment import Comment
from storybook.models.story import Story, StoryLike
from storybook.schemas.story import StoryForm, parse_form

logger = logging.getLogger(__name__)


def parse_story_id(story_id: str) -> uuid.UUID:
    """
    Convert a path segment into a story UUID.

    A malformed id can't match any row, so it is reported as not found
    rather than as a server failure.
    """
    try:
        return uuid.UUID(str(story_id))
    except ValueError:
        raise NotFoundError(resource="story", resource_id=str(story_id))


def _newest_first(query):
    # id breaks created_at ties so the order is total
    return query.order_by(desc(Story.created_at), desc(Story.id))


class StoryService:
    """
    Business logic layer for story operations.

    Responsibilities:
        - create_story(): persist an allowlisted form for the current user
        - list_public_stories() / list_user_public_stories() / list_user_stories()
        - get_story(): single story with owner and likes
        - get_story_for_edit() / update_story() / delete_story(): owner-only
        - toggle_like(): atomic like/unlike, returns the new count
    """

    # ── Create ────────────────────────────────────────────────────────────

    async def create_story(
        self, db: AsyncSession, user: CurrentUser, form: StoryForm
    ) -> Story:
        """
        Insert a story owned by `user`.

        The owner always comes from the request identity; StoryForm has no
        user field, so a submitted one is ignored.
        """
        try:
            story = Story(
                title=form.title,
                body=form.body,
                status=form.status,
                user_id=user.id,
                like_rows=[],
            )
            db.add(story)
            await db.flush()
            logger.info("Story %s created by %s (status=%s)", story.id, user.id, story.status)
            return story

        except Exception as e:
            logger.error("Database error creating story for %s: %s", user.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save your story. Please try again.",
                context={"operation": "create_story", "error_type": type(e).__name__},
            )

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_public_stories(self, db: AsyncSession) -> List[Story]:
        """All public stories, owner joined, newest first."""
        return await self._list(
            db,
            _newest_first(select(Story).where(Story.status == "public")),
            operation="list_public_stories",
        )

    async def list_user_public_stories(self, db: AsyncSession, user_id: str) -> List[Story]:
        """Public stories of one author, newest first."""
        return await self._list(
            db,
            _newest_first(
                select(Story).where(Story.user_id == user_id, Story.status == "public")
            ),
            operation="list_user_public_stories",
        )

    async def list_user_stories(self, db: AsyncSession, user_id: str) -> List[Story]:
        """Every story of one author regardless of status (the dashboard)."""
        return await self._list(
            db,
            _newest_first(select(Story).where(Story.user_id == user_id)),
            operation="list_user_stories",
        )

    async def _list(self, db: AsyncSession, query, operation: str) -> List[Story]:
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error("Database error in %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve stories. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            )

    # ── Single story ──────────────────────────────────────────────────────

    async def get_story(self, db: AsyncSession, story_id: str) -> Story:
        """
        Fetch one story with its owner and likes loaded.

        Raises:
            NotFoundError: no story with that id (or a malformed id)
            DatabaseError: query execution failed
        """
        sid = parse_story_id(story_id)
        try:
            # populate_existing: like rows may have changed through Core statements
            result = await db.execute(
                select(Story)
                .where(Story.id == sid)
                .execution_options(populate_existing=True)
            )
            story = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching story %s: %s", story_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the story. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )

        if story is None:
            raise NotFoundError(resource="story", resource_id=str(story_id))
        return story

    async def _get_owned_story(
        self, db: AsyncSession, story_id: str, user: CurrentUser
    ) -> Story:
        story = await self.get_story(db, story_id)
        if not story.is_owned_by(user.id):
            logger.warning(
                "User %s refused access to story %s owned by %s",
                user.id, story.id, story.user_id,
            )
            raise PermissionDeniedError(
                resource="story", resource_id=str(story.id), user_id=user.id
            )
        return story

    async def get_story_for_edit(
        self, db: AsyncSession, story_id: str, user: CurrentUser
    ) -> Story:
        """The story if `user` owns it; PermissionDeniedError otherwise."""
        return await self._get_owned_story(db, story_id, user)

    # ── Mutations ─────────────────────────────────────────────────────────

    async def update_story(
        self,
        db: AsyncSession,
        story_id: str,
        user: CurrentUser,
        data: Union[StoryForm, Mapping[str, Any]],
    ) -> Story:
        """
        Apply submitted fields to a story the user owns.

        Ownership is checked before `data` is validated, so a non-owner is
        refused the same way whatever they submit. Returns the post-update
        story.

        Raises:
            NotFoundError, PermissionDeniedError, ValidationError, DatabaseError
        """
        story = await self._get_owned_story(db, story_id, user)
        form = data if isinstance(data, StoryForm) else parse_form(StoryForm, data)
        try:
            story.title = form.title
            story.body = form.body
            story.status = form.status
            await db.flush()
            logger.info("Story %s updated by %s", story.id, user.id)
            return story

        except Exception as e:
            logger.error("Database error updating story %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the story. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )

    async def delete_story(self, db: AsyncSession, story_id: str, user: CurrentUser) -> None:
        """
        Delete a story the user owns, together with its comments and likes.

        Raises:
            NotFoundError: no such story
            PermissionDeniedError: user is not the owner (nothing is deleted)
            DatabaseError: delete failed
        """
        story = await self._get_owned_story(db, story_id, user)
        try:
            await db.execute(delete(Comment).where(Comment.story_id == story.id))
            await db.execute(delete(StoryLike).where(StoryLike.story_id == story.id))
            await db.execute(delete(Story).where(Story.id == story.id))
            db.expunge(story)
            logger.info("Story %s deleted by %s", story.id, user.id)

        except Exception as e:
            logger.error("Database error deleting story %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the story. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )

    async def toggle_like(
        self, db: AsyncSession, story_id: str, user: CurrentUser, increment: bool
    ) -> int:
        """
        Add (increment=True) or remove the user's like; return the new count.

        Adding twice and removing a like that isn't there are both no-ops, so
        the count always equals the number of distinct users who like the
        story.

        Raises:
            ValidationError: the identity carries no email address
            NotFoundError: no such story
            DatabaseError: the statement failed
        """
        if not user.email:
            raise ValidationError(
                message="Your account has no email address, so it can't like stories.",
                field="email",
            )

        sid = parse_story_id(story_id)
        try:
            exists_result = await db.execute(select(Story.id).where(Story.id == sid))
            if exists_result.scalar_one_or_none() is None:
                raise NotFoundError(resource="story", resource_id=str(story_id))

            if increment:
                await db.execute(
                    insert_ignoring_duplicates(
                        db.bind.dialect.name, StoryLike, ["story_id", "user_email"]
                    ).values(story_id=sid, user_email=user.email)
                )
            else:
                await db.execute(
                    delete(StoryLike).where(
                        StoryLike.story_id == sid,
                        StoryLike.user_email == user.email,
                    )
                )

            count_result = await db.execute(
                select(func.count()).select_from(StoryLike).where(StoryLike.story_id == sid)
            )
            count = count_result.scalar() or 0
            logger.info(
                "Story %s %s by %s (likes=%d)",
                sid, "liked" if increment else "unliked", user.id, count,
            )
            return count

        except StorybookError:
            raise
        except Exception as e:
            logger.error("Database error toggling like on %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update likes. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )


story_service = StoryService()
