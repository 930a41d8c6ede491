"""
Contribution review workflow.

    pending --approve--> approved   (promotes a new catalog stack)
    pending --reject---> rejected

Both decisions are terminal. The status change is a compare-and-swap
UPDATE guarded on ``status = 'pending'``; the promoted stack is flushed
before it, inside the same transaction, so a losing concurrent reviewer
gets ConflictError and its stack is rolled back with it.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from stackatlas.engines.catalog.catalog_service import CatalogService
from stackatlas.engines.validation.contribution_validator import ContributionValidator
from stackatlas.kernel.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FieldViolation,
    InvalidActionError,
    NotFoundError,
    ValidationError,
)
from stackatlas.kernel.events.event_store import EventStore
from stackatlas.kernel.models.base import enum_value, utcnow
from stackatlas.kernel.models.contribution import Contribution, ContributionStatus
from stackatlas.kernel.models.event_log import EventType
from stackatlas.kernel.models.user import User, UserRole
from stackatlas.logging_config import get_logger, log_context

logger = get_logger(__name__)


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# Valid transitions: (from_status, to_status) -> roles that may trigger
_TRANSITIONS: Dict[Tuple[str, str], Set[UserRole]] = {
    (ContributionStatus.PENDING.value, ContributionStatus.APPROVED.value): {UserRole.ADMIN},
    (ContributionStatus.PENDING.value, ContributionStatus.REJECTED.value): {UserRole.ADMIN},
}

_ACTION_TARGETS = {
    ReviewAction.APPROVE: ContributionStatus.APPROVED,
    ReviewAction.REJECT: ContributionStatus.REJECTED,
}

STATUS_FILTERS = ("pending", "approved", "rejected", "all")


def valid_transitions(from_status: str) -> List[str]:
    """Statuses reachable from ``from_status`` (empty for terminal statuses)."""
    return sorted({to for (frm, to) in _TRANSITIONS if frm == from_status})


def can_transition(actor_role: str, from_status: str, to_status: str) -> bool:
    """Check if an actor with ``actor_role`` may move a contribution between statuses."""
    allowed = _TRANSITIONS.get((from_status, to_status), set())
    return actor_role in {role.value for role in allowed}


def parse_action(action: Any) -> ReviewAction:
    """
    Raises:
        InvalidActionError: If ``action`` is neither "approve" nor "reject"
    """
    try:
        return ReviewAction(action)
    except ValueError:
        raise InvalidActionError("Invalid action. Expected 'approve' or 'reject'")


@dataclass
class SubmissionReceipt:
    """What the submitter gets back; never the caller identity."""

    id: uuid.UUID
    status: str
    submitted_at: datetime


@dataclass
class ReviewOutcome:
    contribution_id: uuid.UUID
    status: str
    message: str
    stack_id: Optional[uuid.UUID] = None


@dataclass
class ContributionRow:
    """A contribution with the usernames of its submitter and reviewer."""

    contribution: Contribution
    contributor_username: Optional[str] = None
    reviewer_username: Optional[str] = None


class ReviewWorkflow:
    """Submission, listing and review of contributions."""

    def __init__(self, session: AsyncSession, validator: Optional[ContributionValidator] = None):
        self.session = session
        self.validator = validator or ContributionValidator()
        self.catalog = CatalogService(session)
        self.event_store = EventStore(session)

    async def submit(
        self,
        data: Mapping[str, Any],
        submitter: Optional[User],
        ip_address: Optional[str] = None,
    ) -> SubmissionReceipt:
        """
        Record a new pending contribution.

        Raises:
            AuthenticationError: If there is no caller identity
            ValidationError: Listing every violated field constraint
        """
        if submitter is None:
            raise AuthenticationError()

        fields = self.validator.validate(data)

        contribution = Contribution(
            **fields.as_columns(),
            contributed_by=submitter.id,
            submitted_at=utcnow(),
            status=ContributionStatus.PENDING,
        )
        self.session.add(contribution)
        await self.session.flush()

        await self.event_store.log(
            event_type=EventType.CONTRIBUTION_SUBMITTED,
            entity_type="contribution",
            entity_id=contribution.id,
            user_id=submitter.id,
            payload={"name": contribution.name, "industry": contribution.industry},
            ip_address=ip_address,
        )
        logger.info(
            "Contribution submitted",
            extra={"contribution_id": str(contribution.id)},
        )

        return SubmissionReceipt(
            id=contribution.id,
            status=ContributionStatus.PENDING.value,
            submitted_at=contribution.submitted_at,
        )

    async def get_contribution(self, contribution_id: uuid.UUID) -> Contribution:
        """
        Raises:
            NotFoundError: If the contribution does not exist
        """
        result = await self.session.execute(
            select(Contribution).where(Contribution.id == contribution_id)
        )
        contribution = result.scalar_one_or_none()
        if contribution is None:
            raise NotFoundError("Contribution not found")
        return contribution

    async def get_contribution_row(self, contribution_id: uuid.UUID, viewer: User) -> ContributionRow:
        """Admin view of one contribution with usernames resolved."""
        if not viewer.is_admin:
            raise AuthorizationError()
        rows = await self._rows(Contribution.id == contribution_id)
        if not rows:
            raise NotFoundError("Contribution not found")
        return rows[0]

    async def list_contributions(
        self,
        viewer: User,
        status: str = "pending",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[ContributionRow], int]:
        """
        Contributions for the moderation queue, newest submission first.

        Raises:
            AuthorizationError: If the viewer is not an admin
            ValidationError: If ``status`` is not a known filter
        """
        if not viewer.is_admin:
            raise AuthorizationError()
        if status not in STATUS_FILTERS:
            raise ValidationError([FieldViolation(
                "status",
                f"Status must be one of: {', '.join(STATUS_FILTERS)}",
            )])

        condition = None if status == "all" else Contribution.status == status

        count_query = select(func.count(Contribution.id))
        if condition is not None:
            count_query = count_query.where(condition)
        total = (await self.session.execute(count_query)).scalar() or 0

        rows = await self._rows(condition, offset=(page - 1) * limit, limit=limit)
        return rows, total

    async def _rows(self, condition=None, offset: int = 0, limit: Optional[int] = None) -> List[ContributionRow]:
        contributor = aliased(User)
        reviewer = aliased(User)
        query = (
            select(Contribution, contributor.username, reviewer.username)
            .outerjoin(contributor, Contribution.contributed_by == contributor.id)
            .outerjoin(reviewer, Contribution.reviewed_by == reviewer.id)
            .order_by(Contribution.submitted_at.desc(), Contribution.id)
            .offset(offset)
        )
        if condition is not None:
            query = query.where(condition)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [ContributionRow(c, submitter, rev) for c, submitter, rev in result.all()]

    async def review(
        self,
        contribution_id: uuid.UUID,
        action: Any,
        reviewer: User,
        notes: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ReviewOutcome:
        """
        Approve or reject a pending contribution.

        Raises:
            AuthorizationError: If the reviewer is not an admin
            NotFoundError: If the contribution does not exist
            InvalidActionError: If ``action`` is not approve/reject
            ConflictError: If the contribution is no longer pending
        """
        with log_context(contribution_id=contribution_id, reviewer_id=reviewer.id):
            return await self._review(contribution_id, action, reviewer, notes, ip_address)

    async def _review(
        self,
        contribution_id: uuid.UUID,
        action: Any,
        reviewer: User,
        notes: Optional[str],
        ip_address: Optional[str],
    ) -> ReviewOutcome:
        if not reviewer.is_admin:
            raise AuthorizationError()

        contribution = await self.get_contribution(contribution_id)
        decision = parse_action(action)
        target = _ACTION_TARGETS[decision]

        from_status = enum_value(contribution.status)
        if not can_transition(enum_value(reviewer.role), from_status, target.value):
            raise ConflictError(f"Contribution has already been {from_status}")

        stack = None
        if decision is ReviewAction.APPROVE:
            # Stack first: a crash before the status write must not leave an
            # approved contribution without its stack.
            stack = await self.catalog.promote(contribution, reviewer_id=reviewer.id)

        notes = (notes or "").strip() or None
        result = await self.session.execute(
            update(Contribution)
            .where(
                and_(
                    Contribution.id == contribution_id,
                    Contribution.status == ContributionStatus.PENDING.value,
                )
            )
            .values(
                status=target.value,
                reviewed_by=reviewer.id,
                reviewed_at=utcnow(),
                admin_notes=notes,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Concurrent review lost the status race")
            raise ConflictError("Contribution was reviewed by someone else")

        await self.session.refresh(contribution)

        event_type = (
            EventType.CONTRIBUTION_APPROVED
            if decision is ReviewAction.APPROVE
            else EventType.CONTRIBUTION_REJECTED
        )
        await self.event_store.log(
            event_type=event_type,
            entity_type="contribution",
            entity_id=contribution.id,
            user_id=reviewer.id,
            payload={
                "from_status": from_status,
                "to_status": target.value,
                "stack_id": stack.id if stack else None,
                "notes": notes,
            },
            ip_address=ip_address,
        )
        logger.info(
            "Contribution reviewed",
            extra={
                "decision": target.value,
                "stack_id": str(stack.id) if stack else None,
            },
        )

        if stack is not None:
            return ReviewOutcome(
                contribution_id=contribution.id,
                status=target.value,
                message="Contribution approved and stack created",
                stack_id=stack.id,
            )
        return ReviewOutcome(
            contribution_id=contribution.id,
            status=target.value,
            message="Contribution rejected",
        )

    async def history(self, contribution_id: uuid.UUID, viewer: User):
        """Audit events for a contribution, newest first."""
        if not viewer.is_admin:
            raise AuthorizationError()
        await self.get_contribution(contribution_id)
        return await self.event_store.get_entity_history("contribution", contribution_id)
