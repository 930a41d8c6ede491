"""
Consistency checks between contributions and the catalog.

A promoted stack always references its source contribution through
``promoted_from_id``. The checker looks for the three ways the two tables
can disagree:

* a pending contribution that already has a promoted stack (repaired by
  marking it approved, since the stack is already public)
* an approved contribution with no stack (reported only)
* a stack whose source contribution was rejected (reported only)
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.kernel.events.event_store import EventStore
from stackatlas.kernel.models.base import utcnow
from stackatlas.kernel.models.contribution import Contribution, ContributionStatus
from stackatlas.kernel.models.event_log import EventType
from stackatlas.kernel.models.stack import StartupStack
from stackatlas.logging_config import get_logger

logger = get_logger(__name__)

REPAIR_NOTE = "Marked approved by consistency check: stack was already published"


@dataclass
class ConsistencyReport:
    repaired_pending: List[uuid.UUID] = field(default_factory=list)
    approved_without_stack: List[uuid.UUID] = field(default_factory=list)
    stacks_from_rejected: List[uuid.UUID] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.repaired_pending or self.approved_without_stack or self.stacks_from_rejected)


class ConsistencyChecker:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def run(self, repair: bool = True, actor_id: Optional[uuid.UUID] = None) -> ConsistencyReport:
        report = ConsistencyReport()

        pending_promoted = await self.session.execute(
            select(Contribution.id, StartupStack.id)
            .join(StartupStack, StartupStack.promoted_from_id == Contribution.id)
            .where(Contribution.status == ContributionStatus.PENDING.value)
        )
        for contribution_id, stack_id in pending_promoted.all():
            if repair:
                await self._mark_approved(contribution_id, stack_id, actor_id)
            report.repaired_pending.append(contribution_id)

        orphaned = await self.session.execute(
            select(Contribution.id)
            .outerjoin(StartupStack, StartupStack.promoted_from_id == Contribution.id)
            .where(
                and_(
                    Contribution.status == ContributionStatus.APPROVED.value,
                    StartupStack.id.is_(None),
                )
            )
        )
        report.approved_without_stack = list(orphaned.scalars().all())

        from_rejected = await self.session.execute(
            select(StartupStack.id)
            .join(Contribution, StartupStack.promoted_from_id == Contribution.id)
            .where(Contribution.status == ContributionStatus.REJECTED.value)
        )
        report.stacks_from_rejected = list(from_rejected.scalars().all())

        if report.is_clean:
            logger.info("Consistency check clean")
        else:
            logger.warning(
                "Consistency check found problems",
                extra={
                    "repaired_pending": len(report.repaired_pending),
                    "approved_without_stack": len(report.approved_without_stack),
                    "stacks_from_rejected": len(report.stacks_from_rejected),
                },
            )
        return report

    async def _mark_approved(
        self,
        contribution_id: uuid.UUID,
        stack_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> None:
        # Without an actor, credit the admin whose approval wrote the stack.
        reviewer_id = actor_id or await self._promoted_by(stack_id)
        result = await self.session.execute(
            update(Contribution)
            .where(
                and_(
                    Contribution.id == contribution_id,
                    Contribution.status == ContributionStatus.PENDING.value,
                )
            )
            .values(
                status=ContributionStatus.APPROVED.value,
                reviewed_by=reviewer_id,
                reviewed_at=utcnow(),
                admin_notes=REPAIR_NOTE,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return
        await self.event_store.log(
            event_type=EventType.CONSISTENCY_REPAIRED,
            entity_type="contribution",
            entity_id=contribution_id,
            user_id=actor_id,
            payload={
                "stack_id": stack_id,
                "from_status": "pending",
                "to_status": "approved",
                "reviewed_by": reviewer_id,
            },
        )

    async def _promoted_by(self, stack_id: uuid.UUID) -> Optional[uuid.UUID]:
        events = await self.event_store.get_entity_history(
            "stack", stack_id, event_types=[EventType.STACK_PROMOTED], limit=1
        )
        return events[0].user_id if events else None
