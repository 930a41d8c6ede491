"""
Kernel Data Models

SQLAlchemy models for users, the published catalog, contributions awaiting
moderation, and the audit log.
"""

from stackatlas.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from stackatlas.kernel.models.user import User, UserRole, RefreshToken, user_bookmarks
from stackatlas.kernel.models.stack import (
    StartupStack,
    StackStatus,
    Industry,
    Scale,
    TECH_CATEGORIES,
    DESCRIPTIVE_FIELDS,
    empty_tech_stack,
)
from stackatlas.kernel.models.contribution import Contribution, ContributionStatus
from stackatlas.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # User
    "User",
    "UserRole",
    "RefreshToken",
    "user_bookmarks",
    # Catalog
    "StartupStack",
    "StackStatus",
    "Industry",
    "Scale",
    "TECH_CATEGORIES",
    "DESCRIPTIVE_FIELDS",
    "empty_tech_stack",
    # Moderation
    "Contribution",
    "ContributionStatus",
    # Event Log
    "EventLog",
    "EventType",
]
