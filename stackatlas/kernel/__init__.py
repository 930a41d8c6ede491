"""
Kernel Layer

Foundational pieces every feature builds on:
- Data models (users, catalog, contributions, audit log)
- Identity (password hashing, JWT, accounts)
- Append-only event store
- Domain error taxonomy
"""

from stackatlas.kernel.models import (
    User,
    UserRole,
    StartupStack,
    StackStatus,
    Contribution,
    ContributionStatus,
    EventLog,
    EventType,
)

__all__ = [
    "User",
    "UserRole",
    "StartupStack",
    "StackStatus",
    "Contribution",
    "ContributionStatus",
    "EventLog",
    "EventType",
]
