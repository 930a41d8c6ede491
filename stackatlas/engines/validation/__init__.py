"""
Validation Engine - field checks for user-submitted stacks.
"""

from stackatlas.engines.validation.contribution_validator import (
    ContributionValidator,
    StackFields,
    clean_tech_stack,
    is_valid_website,
)

__all__ = [
    "ContributionValidator",
    "StackFields",
    "clean_tech_stack",
    "is_valid_website",
]
