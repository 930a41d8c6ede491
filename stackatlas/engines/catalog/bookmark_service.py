"""
Bookmark service - toggles membership of a stack in a user's bookmark set.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, delete, insert, and_
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.engines.catalog.catalog_service import CatalogService, StackRow
from stackatlas.kernel.errors import NotFoundError
from stackatlas.kernel.events.event_store import EventStore
from stackatlas.kernel.models.event_log import EventType
from stackatlas.kernel.models.stack import StackStatus, StartupStack
from stackatlas.kernel.models.user import User, user_bookmarks
from stackatlas.logging_config import get_logger

logger = get_logger(__name__)


class BookmarkService:
    """Bookmark toggling and listing for one session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog = CatalogService(session)
        self.event_store = EventStore(session)

    async def is_bookmarked(self, user_id: uuid.UUID, stack_id: uuid.UUID) -> bool:
        query = select(user_bookmarks.c.stack_id).where(
            and_(
                user_bookmarks.c.user_id == user_id,
                user_bookmarks.c.stack_id == stack_id,
            )
        )
        return (await self.session.execute(query)).first() is not None

    async def toggle(
        self,
        user: User,
        stack_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Add the stack to the user's bookmarks, or remove it if present.

        A bookmark on a stack the user can no longer see may still be removed.

        Returns:
            True if the stack is bookmarked after the call

        Raises:
            NotFoundError: If the stack does not exist or is not visible to the user
        """
        already = await self.is_bookmarked(user.id, stack_id)
        if not already and not await self.catalog.stack_visible(stack_id, viewer=user):
            raise NotFoundError("Stack not found")

        if already:
            await self.session.execute(
                delete(user_bookmarks).where(
                    and_(
                        user_bookmarks.c.user_id == user.id,
                        user_bookmarks.c.stack_id == stack_id,
                    )
                )
            )
            bookmarked = False
            event_type = EventType.BOOKMARK_REMOVED
        else:
            await self.session.execute(
                insert(user_bookmarks).values(user_id=user.id, stack_id=stack_id)
            )
            bookmarked = True
            event_type = EventType.BOOKMARK_ADDED

        await self.event_store.log(
            event_type=event_type,
            entity_type="stack",
            entity_id=stack_id,
            user_id=user.id,
            ip_address=ip_address,
        )
        logger.debug("Bookmark toggled", extra={"stack_id": str(stack_id), "bookmarked": bookmarked})
        return bookmarked

    async def list_bookmarks(self, user: User) -> List[StackRow]:
        """
        The user's bookmarked stacks, most recently bookmarked first.

        The inner join drops references to stacks that no longer exist;
        non-admins only see approved stacks.
        """
        contributor = User.__table__.alias("contributor")
        query = (
            select(StartupStack, contributor.c.username)
            .join(user_bookmarks, user_bookmarks.c.stack_id == StartupStack.id)
            .outerjoin(contributor, StartupStack.contributed_by == contributor.c.id)
            .where(user_bookmarks.c.user_id == user.id)
            .order_by(user_bookmarks.c.created_at.desc(), StartupStack.name)
        )
        if not user.is_admin:
            query = query.where(StartupStack.status == StackStatus.APPROVED.value)
        result = await self.session.execute(query)
        return [StackRow(stack, username) for stack, username in result.all()]
