"""Tests for catalog queries, bookmarks and admin statistics."""

import uuid

import pytest
from sqlalchemy import delete, update

from stackatlas.engines.catalog.bookmark_service import BookmarkService
from stackatlas.engines.catalog.catalog_service import CatalogService, escape_like, filter_options
from stackatlas.engines.catalog.stats_service import StatsService
from stackatlas.kernel.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from stackatlas.kernel.identity.identity_service import IdentityService
from stackatlas.kernel.models.stack import StackStatus, StartupStack
from stackatlas.orchestration.review_workflow import ReviewWorkflow


def stack_data(name: str, industry: str = "Fintech", scale: str = "Unicorn", description: str = None) -> dict:
    return {
        "name": name,
        "industry": industry,
        "scale": scale,
        "location": "Remote",
        "description": description or f"{name} builds developer tools for modern teams.",
        "tech_stack": {"backend": ["Go"]},
    }


class TestCatalogService:

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, db_session, test_user):
        with pytest.raises(AuthorizationError):
            await CatalogService(db_session).create_stack(stack_data("Acme"), creator=test_user)

    @pytest.mark.asyncio
    async def test_create_validates_logo(self, db_session, test_admin):
        data = stack_data("Acme")
        data["scale"] = "Huge"
        with pytest.raises(ValidationError) as exc_info:
            await CatalogService(db_session).create_stack(data, creator=test_admin, logo_url="not a url")

        assert set(exc_info.value.fields) == {"scale", "logo_url"}

    @pytest.mark.asyncio
    async def test_list_only_approved_newest_first(self, db_session, test_admin):
        catalog = CatalogService(db_session)
        await catalog.create_stack(stack_data("Older"), creator=test_admin)
        await catalog.create_stack(stack_data("Newer"), creator=test_admin)
        await catalog.create_stack(stack_data("Hidden"), creator=test_admin, status=StackStatus.PENDING)
        await db_session.commit()

        rows, total = await catalog.list_stacks()

        assert total == 2
        assert [row.stack.name for row in rows] == ["Newer", "Older"]
        assert rows[0].contributor_username == "admin"

    @pytest.mark.asyncio
    async def test_filters_and_search(self, db_session, test_admin):
        catalog = CatalogService(db_session)
        await catalog.create_stack(
            stack_data("Stripe", description="Online payment processing platform."), creator=test_admin
        )
        await catalog.create_stack(stack_data("Notion", industry="SaaS", scale="Series C+"), creator=test_admin)
        await db_session.commit()

        rows, _ = await catalog.list_stacks(industry="SaaS")
        assert [row.stack.name for row in rows] == ["Notion"]

        rows, total = await catalog.list_stacks(industry="all", scale="all")
        assert total == 2

        rows, _ = await catalog.list_stacks(search="PAYMENT")
        assert [row.stack.name for row in rows] == ["Stripe"]

        rows, _ = await catalog.list_stacks(search="notion")
        assert [row.stack.name for row in rows] == ["Notion"]

        rows, total = await catalog.list_stacks(search="%")
        assert total == 0

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, test_admin):
        catalog = CatalogService(db_session)
        for i in range(5):
            await catalog.create_stack(stack_data(f"Co {i}"), creator=test_admin)
        await db_session.commit()

        rows, total = await catalog.list_stacks(page=2, limit=2)

        assert total == 5
        assert [row.stack.name for row in rows] == ["Co 2", "Co 1"]

    @pytest.mark.asyncio
    async def test_non_approved_visible_to_admin_only(self, db_session, test_admin, test_user):
        catalog = CatalogService(db_session)
        hidden = await catalog.create_stack(stack_data("Hidden"), creator=test_admin, status=StackStatus.REJECTED)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await catalog.get_stack(hidden.id)
        with pytest.raises(NotFoundError):
            await catalog.get_stack(hidden.id, viewer=test_user)
        row = await catalog.get_stack(hidden.id, viewer=test_admin)
        assert row.stack.id == hidden.id

    @pytest.mark.asyncio
    async def test_unknown_stack(self, db_session):
        with pytest.raises(NotFoundError):
            await CatalogService(db_session).get_stack(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_promoting_twice_conflicts(self, db_session, test_user, test_admin, valid_submission):
        workflow = ReviewWorkflow(db_session)
        receipt = await workflow.submit(valid_submission, test_user)
        contribution = await workflow.get_contribution(receipt.id)
        catalog = CatalogService(db_session)
        await catalog.promote(contribution, reviewer_id=test_admin.id)

        with pytest.raises(ConflictError):
            await catalog.promote(contribution, reviewer_id=test_admin.id)
        await db_session.rollback()

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_filter_options(self):
        options = filter_options()

        assert "AI/ML" in options["industries"]
        assert options["scales"][0] == "Seed"
        assert "infrastructure" in options["tech_categories"]


class TestBookmarkService:

    @pytest.mark.asyncio
    async def test_toggle_is_its_own_inverse(self, db_session, test_admin, test_user):
        stack = await CatalogService(db_session).create_stack(stack_data("Acme"), creator=test_admin)
        await db_session.commit()
        bookmarks = BookmarkService(db_session)

        assert await bookmarks.toggle(test_user, stack.id) is True
        assert await bookmarks.is_bookmarked(test_user.id, stack.id) is True
        assert await bookmarks.toggle(test_user, stack.id) is False
        assert await bookmarks.is_bookmarked(test_user.id, stack.id) is False

    @pytest.mark.asyncio
    async def test_missing_stack(self, db_session, test_user):
        with pytest.raises(NotFoundError):
            await BookmarkService(db_session).toggle(test_user, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_and_ids(self, db_session, test_admin, test_user, other_user):
        catalog = CatalogService(db_session)
        first = await catalog.create_stack(stack_data("First"), creator=test_admin)
        second = await catalog.create_stack(stack_data("Second"), creator=test_admin)
        await db_session.commit()
        bookmarks = BookmarkService(db_session)
        await bookmarks.toggle(test_user, first.id)
        await bookmarks.toggle(test_user, second.id)
        await bookmarks.toggle(other_user, first.id)
        await db_session.commit()

        rows = await bookmarks.list_bookmarks(test_user)
        assert [row.stack.name for row in rows] == ["Second", "First"]

        ids = await IdentityService(db_session).get_bookmark_ids(other_user.id)
        assert ids == [first.id]

    @pytest.mark.asyncio
    async def test_deleted_stack_drops_out(self, db_session, test_admin, test_user):
        stack = await CatalogService(db_session).create_stack(stack_data("Gone"), creator=test_admin)
        await db_session.commit()
        bookmarks = BookmarkService(db_session)
        await bookmarks.toggle(test_user, stack.id)
        await db_session.commit()

        await db_session.execute(delete(StartupStack).where(StartupStack.id == stack.id))
        await db_session.commit()

        assert await bookmarks.list_bookmarks(test_user) == []

    @pytest.mark.asyncio
    async def test_unapproved_stack_bookmarkable_by_admin_only(self, db_session, test_admin, test_user):
        hidden = await CatalogService(db_session).create_stack(
            stack_data("Hidden"), creator=test_admin, status=StackStatus.PENDING
        )
        await db_session.commit()
        bookmarks = BookmarkService(db_session)

        with pytest.raises(NotFoundError):
            await bookmarks.toggle(test_user, hidden.id)
        assert await bookmarks.toggle(test_admin, hidden.id) is True
        await db_session.commit()

        assert [row.stack.id for row in await bookmarks.list_bookmarks(test_admin)] == [hidden.id]

    @pytest.mark.asyncio
    async def test_hidden_stack_leaves_listing_but_can_be_unbookmarked(self, db_session, test_admin, test_user):
        stack = await CatalogService(db_session).create_stack(stack_data("Pulled"), creator=test_admin)
        await db_session.commit()
        bookmarks = BookmarkService(db_session)
        await bookmarks.toggle(test_user, stack.id)
        await db_session.commit()

        await db_session.execute(
            update(StartupStack).where(StartupStack.id == stack.id).values(status=StackStatus.REJECTED.value)
        )
        await db_session.commit()

        assert await bookmarks.list_bookmarks(test_user) == []
        assert await bookmarks.toggle(test_user, stack.id) is False
        assert await bookmarks.is_bookmarked(test_user.id, stack.id) is False


class TestStatsService:

    @pytest.mark.asyncio
    async def test_counts_and_distributions(self, db_session, test_admin, test_user, valid_submission):
        catalog = CatalogService(db_session)
        await catalog.create_stack(stack_data("A", industry="Fintech", scale="Seed"), creator=test_admin)
        await catalog.create_stack(stack_data("B", industry="Fintech", scale="Unicorn"), creator=test_admin)
        await catalog.create_stack(stack_data("C", industry="SaaS", scale="Public"), creator=test_admin)
        await catalog.create_stack(
            stack_data("D", industry="Gaming"), creator=test_admin, status=StackStatus.PENDING
        )
        workflow = ReviewWorkflow(db_session)
        await workflow.submit(valid_submission, test_user)
        await workflow.submit(valid_submission, test_user)
        await db_session.commit()

        stats = await StatsService(db_session).get_stats()

        assert stats.total_stacks == 3
        assert stats.pending_contributions == 2
        assert stats.total_users == 2
        assert [(b.value, b.count) for b in stats.industry_stats] == [("Fintech", 2), ("SaaS", 1)]
        # ties ordered by value
        assert [(b.value, b.count) for b in stats.scale_stats] == [("Public", 1), ("Seed", 1), ("Unicorn", 1)]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, db_session):
        stats = await StatsService(db_session).get_stats()

        assert stats.total_stacks == 0
        assert stats.industry_stats == []
