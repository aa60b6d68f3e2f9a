"""
Storybook Backend - Comment Service
=====================================

What:  Creating comments on a story and listing a story's comments.
How:   A comment is only accepted for a story that exists; the parent
       reference and the author come from the path and the request identity,
       never from the form.
"""

import logging
from typing import List

from sqlalchemy import asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from storybook.auth.models import CurrentUser
from storybook.exceptions import DatabaseError, NotFoundError, StorybookError
from storybook.models.comment import Comment
from storybook.models.story import Story
from storybook.schemas.story import CommentForm
from storybook.services.story_service import parse_story_id

logger = logging.getLogger(__name__)


class CommentService:

    async def create_comment(
        self,
        db: AsyncSession,
        story_id: str,
        user: CurrentUser,
        form: CommentForm,
    ) -> Comment:
        """
        Attach a comment by `user` to the story `story_id`.

        Raises:
            NotFoundError: the story does not exist
            DatabaseError: insert failed
        """
        sid = parse_story_id(story_id)
        try:
            result = await db.execute(select(Story.id).where(Story.id == sid))
            if result.scalar_one_or_none() is None:
                raise NotFoundError(resource="story", resource_id=str(story_id))

            comment = Comment(story_id=sid, user_id=user.id, body=form.body)
            db.add(comment)
            await db.flush()
            logger.info("Comment %s added to story %s by %s", comment.id, sid, user.id)
            return comment

        except StorybookError:
            raise
        except Exception as e:
            logger.error("Database error adding comment to %s: %s", story_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save your comment. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )

    async def list_comments(self, db: AsyncSession, story_id: str) -> List[Comment]:
        """Comments of one story with their authors, oldest first."""
        sid = parse_story_id(story_id)
        try:
            result = await db.execute(
                select(Comment)
                .where(Comment.story_id == sid)
                .order_by(asc(Comment.created_at), asc(Comment.id))
            )
            return list(result.scalars().all())

        except Exception as e:
            logger.error("Database error listing comments for %s: %s", story_id, str(e))
            raise DatabaseError(
                message="Could not retrieve comments. Please try again.",
                context={"story_id": str(story_id), "error_type": type(e).__name__},
            )


comment_service = CommentService()
