"""
Storybook Backend - User Service
==================================

What:  Keeps the local `users` table in step with the gateway's identities.
When:  On every authenticated request, via the auth dependency.
How:   Insert on first sight (ON CONFLICT DO NOTHING, then re-read);
       afterwards only write when the gateway reports a changed profile
       field, so most requests cost a single primary-key lookup.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storybook.database import insert_ignoring_duplicates
from storybook.exceptions import DatabaseError
from storybook.models.user import User

if TYPE_CHECKING:
    from storybook.auth.models import CurrentUser

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("display_name", "first_name", "last_name", "image", "email")


class UserService:
    """Provisioning and lookup of local user records."""

    async def ensure_user(self, db: AsyncSession, identity: "CurrentUser") -> User:
        """
        Return the User row for `identity`, creating or refreshing it.

        Raises:
            DatabaseError: lookup or insert failed
        """
        try:
            lookup = select(User).where(User.id == identity.id)
            user = (await db.execute(lookup)).scalar_one_or_none()

            if user is None:
                # A parallel first request may insert the same id; ours then no-ops
                inserted = await db.execute(
                    insert_ignoring_duplicates(db.bind.dialect.name, User, ["id"]).values(
                        id=identity.id,
                        display_name=identity.display_name or identity.id,
                        first_name=identity.first_name,
                        last_name=identity.last_name,
                        image=identity.image,
                        email=identity.email,
                    )
                )
                user = (await db.execute(lookup)).scalar_one()
                if inserted.rowcount:
                    logger.info("Provisioned user %s", identity.id)
                    return user

            changed = False
            for field in _PROFILE_FIELDS:
                incoming = getattr(identity, field)
                if incoming and getattr(user, field) != incoming:
                    setattr(user, field, incoming)
                    changed = True
            if changed:
                await db.flush()
                logger.debug("Refreshed profile for user %s", identity.id)
            return user

        except Exception as e:
            logger.error("Database error provisioning user %s: %s", identity.id, str(e))
            raise DatabaseError(
                message="Could not load your account. Please try again.",
                context={"user_id": identity.id, "error_type": type(e).__name__},
            )


user_service = UserService()
