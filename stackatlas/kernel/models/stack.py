"""
Catalog entry (stack) model and the descriptive fields it shares with
contributions.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import ForeignKey, Index, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stackatlas.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from stackatlas.kernel.models.user import User


class Industry(str, Enum):
    """Industries a stack can be filed under."""
    FINTECH = "Fintech"
    EDTECH = "EdTech"
    HEALTHTECH = "HealthTech"
    ECOMMERCE = "E-commerce"
    SAAS = "SaaS"
    AI_ML = "AI/ML"
    GAMING = "Gaming"
    SOCIAL_MEDIA = "Social Media"
    OTHER = "Other"


class Scale(str, Enum):
    """Company stage."""
    SEED = "Seed"
    SERIES_A = "Series A"
    SERIES_B = "Series B"
    SERIES_C_PLUS = "Series C+"
    UNICORN = "Unicorn"
    PUBLIC = "Public"


class StackStatus(str, Enum):
    """Publication status of a catalog entry."""
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


TECH_CATEGORIES = ("frontend", "backend", "database", "infrastructure", "mobile", "other")

# Copied verbatim from a contribution when it is promoted
DESCRIPTIVE_FIELDS = (
    "name",
    "industry",
    "scale",
    "location",
    "description",
    "founded",
    "employees",
    "funding",
    "website",
    "tech_stack",
)

NAME_MAX_LENGTH = 100
LOCATION_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 500
FOUNDED_MIN_YEAR = 1900


def empty_tech_stack() -> Dict[str, List[str]]:
    """A tech stack mapping with every category present and empty."""
    return {category: [] for category in TECH_CATEGORIES}


class StackFieldsMixin:
    """Descriptive columns shared by StartupStack and Contribution."""

    name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH),
        nullable=False,
    )
    industry: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    scale: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    location: Mapped[str] = mapped_column(
        String(LOCATION_MAX_LENGTH),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    founded: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    employees: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    funding: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    website: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    # category -> ordered list of technology names
    tech_stack: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=empty_tech_stack,
    )


class StartupStack(Base, StackFieldsMixin, TimestampMixin):
    """
    Published catalog entry.

    Created directly by an admin or by promoting an approved contribution.
    A promoted entry is an independent record: promoted_from_id is
    provenance for consistency checks only, never followed for mutation.
    """

    __tablename__ = "startup_stacks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    logo_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    status: Mapped[StackStatus] = mapped_column(
        String(20),
        default=StackStatus.APPROVED,
        nullable=False,
    )
    contributed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    promoted_from_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        unique=True,
    )

    contributor: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[contributed_by],
        lazy="raise",
    )

    __table_args__ = (
        Index("ix_startup_stacks_status_created", "status", "created_at"),
        Index("ix_startup_stacks_status_industry", "status", "industry"),
    )

    def __repr__(self) -> str:
        return f"<StartupStack {self.name} {self.status}>"
