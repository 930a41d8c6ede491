"""
Contribution model - a user-submitted stack awaiting moderation.

Contribution.status only ever moves out of ``pending``; both decisions are
terminal. Review metadata is written in the same UPDATE that leaves pending.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stackatlas.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from stackatlas.kernel.models.stack import StackFieldsMixin


class ContributionStatus(str, Enum):
    """Moderation state of a contribution."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ContributionStatus.PENDING


class Contribution(Base, StackFieldsMixin, TimestampMixin):
    """User-submitted candidate catalog entry."""

    __tablename__ = "contributions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    contributed_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    status: Mapped[ContributionStatus] = mapped_column(
        String(20),
        default=ContributionStatus.PENDING,
        nullable=False,
    )

    # Review metadata (absent while pending)
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        Index("ix_contributions_status_submitted", "status", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<Contribution {self.name} {self.status}>"
