"""
Storybook Backend - Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the test suite.
How:   Tests run against a throwaway SQLite file through aiosqlite. The
       schema is dropped and recreated for every test, so each test starts
       from an empty database.

Fixture Hierarchy:
    Function-scoped:
    ├── database:        fresh schema (drop_all + create_all)
    ├── db_session:      an AsyncSession on that schema
    ├── seed:            helpers that insert and COMMIT users/stories/comments
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── test_client:     guest httpx AsyncClient (no identity headers)
    ├── alice_client / bob_client: clients carrying gateway identity headers
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any storybook import creates the engine
_TEST_DIR = tempfile.mkdtemp(prefix="storybook_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/storybook_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOGIN_PATH"] = "/"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storybook.auth.models import CurrentUser
from storybook.database import Base, async_session_factory, engine
from storybook.models.comment import Comment
from storybook.models.story import Story, StoryLike
from storybook.models.user import User

ALICE_HEADERS = {
    "X-Auth-User-Id": "alice",
    "X-Auth-User-Email": "alice@example.com",
    "X-Auth-User-Name": "Alice Liddell",
    "X-Auth-User-First-Name": "Alice",
}
BOB_HEADERS = {
    "X-Auth-User-Id": "bob",
    "X-Auth-User-Email": "bob@example.com",
    "X-Auth-User-Name": "Bob Builder",
}

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class Seeder:
    """Inserts rows in their own committed transaction, like another request would."""

    async def user(self, user_id: str, email: Optional[str] = None, name: str = "") -> User:
        async with async_session_factory() as session:
            user = User(id=user_id, display_name=name or user_id, email=email)
            session.add(user)
            await session.commit()
            return user

    async def story(
        self,
        user_id: str,
        title: str = "A story",
        body: str = "Once upon a time",
        status: str = "public",
        minutes: int = 0,
    ) -> Story:
        """`minutes` offsets created_at from BASE_TIME so ordering is explicit."""
        async with async_session_factory() as session:
            story = Story(
                user_id=user_id,
                title=title,
                body=body,
                status=status,
                created_at=BASE_TIME + timedelta(minutes=minutes),
                like_rows=[],
            )
            session.add(story)
            await session.commit()
            return story

    async def comment(self, story_id, user_id: str, body: str = "Nice story") -> Comment:
        async with async_session_factory() as session:
            comment = Comment(story_id=story_id, user_id=user_id, body=body)
            session.add(comment)
            await session.commit()
            return comment

    async def like(self, story_id, email: str) -> None:
        async with async_session_factory() as session:
            session.add(StoryLike(story_id=story_id, user_email=email))
            await session.commit()


@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(database):
    seeder = Seeder()
    await seeder.user("alice", email="alice@example.com", name="Alice Liddell")
    await seeder.user("bob", email="bob@example.com", name="Bob Builder")
    return seeder


@pytest.fixture
def alice() -> CurrentUser:
    return CurrentUser(id="alice", email="alice@example.com", display_name="Alice Liddell")


@pytest.fixture
def bob() -> CurrentUser:
    return CurrentUser(id="bob", email="bob@example.com", display_name="Bob Builder")


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for tests that only check error translation.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def _client(headers: Optional[dict] = None) -> AsyncClient:
    from storybook.main import app
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test", headers=headers or {})


@pytest_asyncio.fixture
async def test_client(database):
    async with _client() as client:
        yield client


@pytest_asyncio.fixture
async def alice_client(database):
    async with _client(ALICE_HEADERS) as client:
        yield client


@pytest_asyncio.fixture
async def bob_client(database):
    async with _client(BOB_HEADERS) as client:
        yield client
