"""
Storybook Backend - Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   One engine per process; one session per request that commits when the
       handler succeeds and rolls back when it raises.

Pooling:
    PostgreSQL: QueuePool sized from settings, pre-ping, hourly recycle.
    SQLite:     NullPool. A fresh connection per checkout keeps aiosqlite
                connections from being shared across event loops (pytest
                runs one loop per test).
"""

from typing import Any, AsyncGenerator, Dict, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from storybook.config import settings


def _engine_options() -> Dict[str, Any]:
    if settings.is_sqlite:
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    **_engine_options(),
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: templates read ORM attributes after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/stories")
        async def list_stories(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes every pooled connection; called from the lifespan on shutdown."""
    await engine.dispose()


# ── Conflict-free Inserts ─────────────────────────────────────────────────
# Both supported backends accept INSERT ... ON CONFLICT DO NOTHING
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_ignoring_duplicates(
    dialect_name: str, model: Any, key_columns: Sequence[str]
):
    """
    INSERT for `model` that skips the row when `key_columns` already exist.

    Two requests racing to create the same row (a double-clicked like, two
    first requests from a new user) both succeed; the loser inserts nothing
    instead of failing on the unique key.

    Usage:
        stmt = insert_ignoring_duplicates(
            db.bind.dialect.name, StoryLike, ["story_id", "user_email"]
        ).values(story_id=sid, user_email=email)
    """
    factory = _DIALECT_INSERTS.get(dialect_name)
    if factory is None:
        raise ValueError(f"Unsupported database dialect: {dialect_name}")
    return factory(model).on_conflict_do_nothing(index_elements=list(key_columns))
