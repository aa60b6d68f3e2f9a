"""
Storybook Backend - Route Integration Tests
=============================================

What:  End-to-end HTTP tests through the full app (middleware, auth
       dependencies, services, templates) against the test database.

What we test:
    ✅ Listings: public only, newest first, per-user filtering
    ✅ Guests are redirected to the sign-in page from protected routes
    ✅ Create, update (via ?_method=PUT) and delete (via ?_method=DELETE)
    ✅ Non-owners are redirected to /stories and nothing changes
    ✅ Missing and malformed ids render the 404 view
    ✅ Like toggle JSON contract and error bodies
    ✅ Comments land on the right story
    ✅ Database failures render the 500 view without internals
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from storybook.exceptions import DatabaseError
from storybook.models.comment import Comment
from storybook.models.story import Story
from storybook.models.user import User


class TestListings:

    @pytest.mark.asyncio
    async def test_public_listing_hides_private_stories(self, test_client, seed):
        await seed.story("alice", title="Sunny morning", status="public")
        await seed.story("alice", title="My diary", status="private")

        response = await test_client.get("/stories")

        assert response.status_code == 200
        assert "Sunny morning" in response.text
        assert "My diary" not in response.text

    @pytest.mark.asyncio
    async def test_public_listing_newest_first(self, test_client, seed):
        await seed.story("alice", title="Older tale", minutes=0)
        await seed.story("bob", title="Newer tale", minutes=10)

        response = await test_client.get("/stories")

        assert response.text.index("Newer tale") < response.text.index("Older tale")

    @pytest.mark.asyncio
    async def test_empty_listing(self, test_client, database):
        response = await test_client.get("/stories")

        assert response.status_code == 200
        assert "No stories to display" in response.text

    @pytest.mark.asyncio
    async def test_listing_excerpt_strips_markup(self, test_client, seed):
        await seed.story("alice", body="<p>Hello&nbsp;<b>world</b></p>")

        response = await test_client.get("/stories")

        assert "Hello world" in response.text
        assert "<b>world</b>" not in response.text

    @pytest.mark.asyncio
    async def test_edit_icon_only_for_owner(self, alice_client, bob_client, seed):
        story = await seed.story("alice")

        as_owner = await alice_client.get("/stories")
        as_other = await bob_client.get("/stories")

        assert f"/stories/edit/{story.id}" in as_owner.text
        assert f"/stories/edit/{story.id}" not in as_other.text

    @pytest.mark.asyncio
    async def test_user_listing_requires_sign_in(self, test_client, seed):
        response = await test_client.get("/stories/user/alice")

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    @pytest.mark.asyncio
    async def test_user_listing_filters_author(self, bob_client, seed):
        await seed.story("alice", title="Alice public")
        await seed.story("alice", title="Alice private", status="private")
        await seed.story("bob", title="Bob public")

        response = await bob_client.get("/stories/user/alice")

        assert response.status_code == 200
        assert "Alice public" in response.text
        assert "Alice private" not in response.text
        assert "Bob public" not in response.text


class TestPages:

    @pytest.mark.asyncio
    async def test_landing_for_guest(self, test_client, database):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert "Sign in" in response.text

    @pytest.mark.asyncio
    async def test_landing_redirects_signed_in_user(self, alice_client, database):
        response = await alice_client.get("/")

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    @pytest.mark.asyncio
    async def test_dashboard_shows_private_stories(self, alice_client, seed):
        await seed.story("alice", title="Only for me", status="private")
        await seed.story("bob", title="Not mine")

        response = await alice_client.get("/dashboard")

        assert response.status_code == 200
        assert "Welcome Alice Liddell" in response.text
        assert "Only for me" in response.text
        assert "Not mine" not in response.text

    @pytest.mark.asyncio
    async def test_first_request_provisions_user(self, test_client, db_session, database):
        headers = {"X-Auth-User-Id": "carol", "X-Auth-User-Email": "carol@example.com"}

        response = await test_client.get("/dashboard", headers=headers)

        assert response.status_code == 200
        user = await db_session.get(User, "carol")
        assert user is not None
        assert user.email == "carol@example.com"


class TestShowStory:

    @pytest.mark.asyncio
    async def test_show_story(self, test_client, seed):
        story = await seed.story("alice", title="a walk in the park", body="Birds sang")

        response = await test_client.get(f"/stories/{story.id}")

        assert response.status_code == 200
        assert "A walk in the park" in response.text
        assert "Birds sang" in response.text
        assert "More From Alice Liddell" in response.text

    @pytest.mark.asyncio
    async def test_story_body_is_escaped(self, test_client, seed):
        story = await seed.story("alice", body="<script>alert(1)</script>")

        response = await test_client.get(f"/stories/{story.id}")

        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;script&gt;" in response.text

    @pytest.mark.asyncio
    async def test_missing_story_renders_404(self, test_client, database):
        response = await test_client.get(f"/stories/{uuid.uuid4()}")

        assert response.status_code == 404
        assert "Uh Oh!" in response.text

    @pytest.mark.asyncio
    async def test_malformed_id_renders_404(self, test_client, database):
        response = await test_client.get("/stories/not-a-real-id")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_story_json_error(self, test_client, database):
        response = await test_client.get(
            f"/stories/{uuid.uuid4()}", headers={"Accept": "application/json"}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["request_id"]


class TestCreateStory:

    @pytest.mark.asyncio
    async def test_add_form_requires_sign_in(self, test_client, database):
        response = await test_client.get("/stories/add")

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    @pytest.mark.asyncio
    async def test_create_redirects_to_dashboard(self, alice_client, db_session, seed):
        response = await alice_client.post(
            "/stories",
            data={"title": "Fresh story", "body": "Some words", "status": "private"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

        result = await db_session.execute(select(Story).where(Story.title == "Fresh story"))
        story = result.scalar_one()
        assert story.user_id == "alice"
        assert story.status == "private"

    @pytest.mark.asyncio
    async def test_create_ignores_submitted_owner(self, alice_client, db_session, seed):
        await alice_client.post(
            "/stories",
            data={"title": "Mine", "body": "Words", "status": "public", "user_id": "bob"},
        )

        result = await db_session.execute(select(Story).where(Story.title == "Mine"))
        assert result.scalar_one().user_id == "alice"

    @pytest.mark.asyncio
    async def test_create_with_missing_title(self, alice_client, seed):
        response = await alice_client.post("/stories", data={"body": "No title here"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_by_guest_redirects(self, test_client, db_session, database):
        response = await test_client.post("/stories", data={"title": "x", "body": "y"})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        count = await db_session.scalar(select(func.count()).select_from(Story))
        assert count == 0


class TestUpdateStory:

    @pytest.mark.asyncio
    async def test_edit_form_for_owner(self, alice_client, seed):
        story = await seed.story("alice", title="Editable", status="private")

        response = await alice_client.get(f"/stories/edit/{story.id}")

        assert response.status_code == 200
        assert "Editable" in response.text
        assert 'value="private" selected="selected"' in response.text

    @pytest.mark.asyncio
    async def test_edit_form_for_non_owner_redirects(self, bob_client, seed):
        story = await seed.story("alice")

        response = await bob_client.get(f"/stories/edit/{story.id}")

        assert response.status_code == 303
        assert response.headers["location"] == "/stories"

    @pytest.mark.asyncio
    async def test_edit_form_for_missing_story(self, alice_client, seed):
        response = await alice_client.get(f"/stories/edit/{uuid.uuid4()}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_owner_update_via_method_override(self, alice_client, db_session, seed):
        story = await seed.story("alice", title="Draft")

        response = await alice_client.post(
            f"/stories/{story.id}?_method=PUT",
            data={"title": "Final", "body": "Polished", "status": "public"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        persisted = await db_session.get(Story, story.id)
        assert persisted.title == "Final"
        assert persisted.body == "Polished"

    @pytest.mark.asyncio
    async def test_update_via_override_header(self, alice_client, db_session, seed):
        story = await seed.story("alice", title="Draft")

        response = await alice_client.post(
            f"/stories/{story.id}",
            data={"title": "Header edit", "body": "b", "status": "public"},
            headers={"X-HTTP-Method-Override": "PUT"},
        )

        assert response.status_code == 303
        persisted = await db_session.get(Story, story.id)
        assert persisted.title == "Header edit"

    @pytest.mark.asyncio
    async def test_non_owner_update_changes_nothing(self, bob_client, db_session, seed):
        story = await seed.story("alice", title="Untouched", body="Original")

        response = await bob_client.post(
            f"/stories/{story.id}?_method=PUT",
            data={"title": "Defaced", "body": "Gotcha", "status": "public"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/stories"
        persisted = await db_session.get(Story, story.id)
        assert persisted.title == "Untouched"
        assert persisted.body == "Original"

    @pytest.mark.asyncio
    async def test_non_owner_with_invalid_form_still_redirected(self, bob_client, seed):
        story = await seed.story("alice")

        response = await bob_client.post(f"/stories/{story.id}?_method=PUT", data={})

        assert response.status_code == 303
        assert response.headers["location"] == "/stories"


class TestDeleteStory:

    @pytest.mark.asyncio
    async def test_owner_delete_removes_story_and_comments(
        self, alice_client, db_session, seed
    ):
        story = await seed.story("alice")
        await seed.comment(story.id, "bob", body="First!")
        await seed.like(story.id, "bob@example.com")

        response = await alice_client.post(f"/stories/delete/{story.id}?_method=DELETE")

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

        follow_up = await alice_client.get(f"/stories/{story.id}")
        assert follow_up.status_code == 404
        remaining = await db_session.scalar(
            select(func.count()).select_from(Comment).where(Comment.story_id == story.id)
        )
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_non_owner_delete_changes_nothing(self, bob_client, test_client, seed):
        story = await seed.story("alice", title="Still here")

        response = await bob_client.delete(f"/stories/delete/{story.id}")

        assert response.status_code == 303
        assert response.headers["location"] == "/stories"
        follow_up = await test_client.get(f"/stories/{story.id}")
        assert follow_up.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_missing_story(self, alice_client, seed):
        response = await alice_client.delete(f"/stories/delete/{uuid.uuid4()}")

        assert response.status_code == 404


class TestLikes:

    @pytest.mark.asyncio
    async def test_like_unlike_cycle(self, alice_client, seed):
        story = await seed.story("bob")
        url = f"/stories/likes/{story.id}"

        first = await alice_client.put(url, json={"action": "INC"})
        repeat = await alice_client.put(url, json={"action": "INC"})
        undo = await alice_client.put(url, json={"action": "DEC"})

        assert first.status_code == 200
        assert first.json() == {"likes": 1}
        assert repeat.json() == {"likes": 1}
        assert undo.json() == {"likes": 0}

    @pytest.mark.asyncio
    async def test_likes_from_two_users(self, alice_client, bob_client, test_client, seed):
        story = await seed.story("alice")
        url = f"/stories/likes/{story.id}"

        await alice_client.put(url, json={"action": "INC"})
        response = await bob_client.put(url, json={"action": "INC"})

        assert response.json() == {"likes": 2}
        page = await test_client.get(f"/stories/{story.id}")
        assert '<span id="like-count">2</span>' in page.text

    @pytest.mark.asyncio
    async def test_like_by_guest(self, test_client, seed):
        story = await seed.story("alice")

        response = await test_client.put(
            f"/stories/likes/{story.id}", json={"action": "INC"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    @pytest.mark.asyncio
    async def test_like_missing_story(self, alice_client, seed):
        response = await alice_client.put(
            f"/stories/likes/{uuid.uuid4()}", json={"action": "INC"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_like_errors_are_json_without_json_headers(self, alice_client, test_client, seed):
        url = f"/stories/likes/{uuid.uuid4()}"

        missing = await alice_client.put(url)
        guest = await test_client.put(url)

        assert missing.status_code == 404
        assert missing.headers["content-type"].startswith("application/json")
        assert missing.json()["error"] == "not_found"
        assert guest.status_code == 401
        assert guest.json()["error"] == "authentication_required"

    @pytest.mark.asyncio
    async def test_like_already_recorded_is_not_an_error(self, alice_client, seed):
        story = await seed.story("bob")
        # Another request got there first
        await seed.like(story.id, "alice@example.com")

        response = await alice_client.put(
            f"/stories/likes/{story.id}", json={"action": "INC"}
        )

        assert response.status_code == 200
        assert response.json() == {"likes": 1}


class TestComments:

    @pytest.mark.asyncio
    async def test_comment_redirects_to_story(self, bob_client, seed):
        story = await seed.story("alice")

        response = await bob_client.post(
            f"/stories/comments/{story.id}", data={"body": "Lovely"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/stories/{story.id}"

    @pytest.mark.asyncio
    async def test_comment_shows_on_its_story_only(self, bob_client, test_client, seed):
        target = await seed.story("alice", title="Target")
        other = await seed.story("alice", title="Other")

        await bob_client.post(f"/stories/comments/{target.id}", data={"body": "Great read"})

        target_page = await test_client.get(f"/stories/{target.id}")
        other_page = await test_client.get(f"/stories/{other.id}")
        assert "Great read" in target_page.text
        assert "Bob Builder" in target_page.text
        assert "Great read" not in other_page.text

    @pytest.mark.asyncio
    async def test_comment_on_missing_story(self, bob_client, seed):
        response = await bob_client.post(
            f"/stories/comments/{uuid.uuid4()}", data={"body": "Anyone?"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, bob_client, seed):
        story = await seed.story("alice")

        response = await bob_client.post(f"/stories/comments/{story.id}", data={"body": "  "})

        assert response.status_code == 400


class TestFailuresAndPlumbing:

    @pytest.mark.asyncio
    async def test_database_failure_renders_500(self, test_client, database):
        failure = DatabaseError(
            message="Failed to list stories", context={"error_type": "OperationalError"}
        )
        with patch(
            "storybook.routes.stories.story_service.list_public_stories",
            new=AsyncMock(side_effect=failure),
        ):
            response = await test_client.get("/stories")

        assert response.status_code == 500
        assert "OperationalError" not in response.text

    @pytest.mark.asyncio
    async def test_error_page_keeps_signed_in_nav(self, alice_client, seed):
        response = await alice_client.get(f"/stories/{uuid.uuid4()}")

        assert response.status_code == 404
        assert 'href="/dashboard"' in response.text
        assert "Sign in" not in response.text

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client, database):
        response = await test_client.get("/stories", headers={"X-Request-ID": "abc12345"})

        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client, database):
        response = await test_client.get("/stories")

        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_health(self, test_client, database):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
