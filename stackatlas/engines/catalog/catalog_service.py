"""
Catalog service - the published stack store.

Reads are public (approved entries only). Writes are limited to admin
creation and promotion of an approved contribution; existing entries are
never mutated here.
"""

import copy
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.engines.validation.contribution_validator import (
    ContributionValidator,
    is_valid_website,
)
from stackatlas.kernel.errors import (
    AuthorizationError,
    ConflictError,
    FieldViolation,
    NotFoundError,
    ValidationError,
)
from stackatlas.kernel.events.event_store import EventStore
from stackatlas.kernel.models.base import utcnow
from stackatlas.kernel.models.contribution import Contribution
from stackatlas.kernel.models.event_log import EventType
from stackatlas.kernel.models.stack import (
    DESCRIPTIVE_FIELDS,
    TECH_CATEGORIES,
    Industry,
    Scale,
    StackStatus,
    StartupStack,
)
from stackatlas.kernel.models.user import User
from stackatlas.logging_config import get_logger

logger = get_logger(__name__)

ALL = "all"


@dataclass
class StackRow:
    """A stack together with its contributor's username (if any)."""

    stack: StartupStack
    contributor_username: Optional[str] = None


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so search terms match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filter_options() -> Dict[str, List[str]]:
    """Values the browse filters and the submission form offer."""
    return {
        "industries": [i.value for i in Industry],
        "scales": [s.value for s in Scale],
        "tech_categories": list(TECH_CATEGORIES),
    }


class CatalogService:
    """Queries and writes against the published catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    def _with_contributor(self):
        return (
            select(StartupStack, User.username)
            .outerjoin(User, StartupStack.contributed_by == User.id)
        )

    async def list_stacks(
        self,
        industry: Optional[str] = None,
        scale: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[List[StackRow], int]:
        """
        Approved stacks, newest first.

        ``industry``/``scale`` of None or "all" do not filter. ``search`` is a
        case-insensitive substring match on name or description.

        Returns:
            Tuple of (rows on this page, total matching rows)
        """
        conditions = [StartupStack.status == StackStatus.APPROVED.value]
        if industry and industry != ALL:
            conditions.append(StartupStack.industry == industry)
        if scale and scale != ALL:
            conditions.append(StartupStack.scale == scale)
        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            conditions.append(or_(
                StartupStack.name.ilike(pattern, escape="\\"),
                StartupStack.description.ilike(pattern, escape="\\"),
            ))

        count_query = select(func.count(StartupStack.id)).where(*conditions)
        total = (await self.session.execute(count_query)).scalar() or 0

        query = (
            self._with_contributor()
            .where(*conditions)
            .order_by(StartupStack.created_at.desc(), StartupStack.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        rows = [StackRow(stack, username) for stack, username in result.all()]
        return rows, total

    async def get_stack(self, stack_id: uuid.UUID, viewer: Optional[User] = None) -> StackRow:
        """
        Single stack by id. Entries that are not approved are only visible to admins.

        Raises:
            NotFoundError: If no visible stack has this id
        """
        result = await self.session.execute(
            self._with_contributor().where(StartupStack.id == stack_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Stack not found")

        stack, username = row
        if stack.status != StackStatus.APPROVED.value and not (viewer and viewer.is_admin):
            raise NotFoundError("Stack not found")
        return StackRow(stack, username)

    async def stack_visible(self, stack_id: uuid.UUID, viewer: Optional[User] = None) -> bool:
        """Whether the stack exists and ``viewer`` may see it."""
        query = select(StartupStack.id).where(StartupStack.id == stack_id)
        if not (viewer and viewer.is_admin):
            query = query.where(StartupStack.status == StackStatus.APPROVED.value)
        result = await self.session.execute(query)
        return result.scalar_one_or_none() is not None

    async def create_stack(
        self,
        data: Mapping[str, Any],
        creator: User,
        logo_url: Optional[str] = None,
        status: StackStatus = StackStatus.APPROVED,
        ip_address: Optional[str] = None,
    ) -> StartupStack:
        """
        Create a catalog entry directly (admin seed data).

        Raises:
            AuthorizationError: If the creator is not an admin
            ValidationError: If any field constraint fails
        """
        if not creator.is_admin:
            raise AuthorizationError()

        try:
            fields = ContributionValidator().validate(data)
        except ValidationError as exc:
            violations = list(exc.violations)
        else:
            violations = []

        if logo_url is not None and not isinstance(logo_url, str):
            violations.append(FieldViolation("logo_url", "Must be a string", "type_error"))
            logo_url = None
        logo_url = (logo_url or "").strip() or None
        if logo_url is not None and not is_valid_website(logo_url):
            violations.append(FieldViolation("logo_url", "Logo must be a valid URL"))
        if violations:
            raise ValidationError(violations, message="Validation failed")

        now = utcnow()
        stack = StartupStack(
            **fields.as_columns(),
            logo_url=logo_url,
            status=status,
            contributed_by=creator.id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(stack)
        await self.session.flush()

        await self.event_store.log(
            event_type=EventType.STACK_CREATED,
            entity_type="stack",
            entity_id=stack.id,
            user_id=creator.id,
            payload={"name": stack.name, "status": StackStatus(status).value},
            ip_address=ip_address,
        )
        logger.info("Stack created", extra={"stack_id": str(stack.id)})
        return stack

    async def promote(self, contribution: Contribution, reviewer_id: uuid.UUID) -> StartupStack:
        """
        Copy a contribution into a new approved stack and flush it.

        Fields are copied as stored; they were validated at submission.

        Raises:
            ConflictError: If a stack was already promoted from this contribution
        """
        now = utcnow()
        values = {name: copy.deepcopy(getattr(contribution, name)) for name in DESCRIPTIVE_FIELDS}
        stack = StartupStack(
            **values,
            status=StackStatus.APPROVED,
            contributed_by=contribution.contributed_by,
            promoted_from_id=contribution.id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(stack)
        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError("Contribution has already been promoted")

        await self.event_store.log(
            event_type=EventType.STACK_PROMOTED,
            entity_type="stack",
            entity_id=stack.id,
            user_id=reviewer_id,
            payload={"contribution_id": contribution.id, "name": stack.name},
        )
        return stack

    async def find_promoted(self, contribution_id: uuid.UUID) -> Optional[StartupStack]:
        """The stack promoted from a contribution, if one exists."""
        result = await self.session.execute(
            select(StartupStack).where(StartupStack.promoted_from_id == contribution_id)
        )
        return result.scalar_one_or_none()
