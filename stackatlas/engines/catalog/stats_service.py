"""
Administrative statistics, recomputed on every call.
"""

from dataclasses import dataclass, field
from typing import List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.kernel.models.contribution import Contribution, ContributionStatus
from stackatlas.kernel.models.stack import StackStatus, StartupStack
from stackatlas.kernel.models.user import User


@dataclass
class Bucket:
    """One value of a frequency distribution."""

    value: str
    count: int


@dataclass
class CatalogStats:
    total_stacks: int
    pending_contributions: int
    total_users: int
    industry_stats: List[Bucket] = field(default_factory=list)
    scale_stats: List[Bucket] = field(default_factory=list)


class StatsService:
    """Point-in-time counts over the catalog, submissions and users."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, query) -> int:
        return (await self.session.execute(query)).scalar() or 0

    async def _distribution(self, column) -> List[Bucket]:
        """Approved stacks grouped by ``column``, largest group first."""
        count = func.count(StartupStack.id).label("count")
        query = (
            select(column, count)
            .where(StartupStack.status == StackStatus.APPROVED.value)
            .group_by(column)
            .order_by(count.desc(), column)
        )
        result = await self.session.execute(query)
        return [Bucket(value=value, count=n) for value, n in result.all()]

    async def get_stats(self) -> CatalogStats:
        return CatalogStats(
            total_stacks=await self._count(
                select(func.count(StartupStack.id))
                .where(StartupStack.status == StackStatus.APPROVED.value)
            ),
            pending_contributions=await self._count(
                select(func.count(Contribution.id))
                .where(Contribution.status == ContributionStatus.PENDING.value)
            ),
            total_users=await self._count(select(func.count(User.id))),
            industry_stats=await self._distribution(StartupStack.industry),
            scale_stats=await self._distribution(StartupStack.scale),
        )
