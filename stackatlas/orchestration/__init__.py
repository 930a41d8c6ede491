"""Orchestration layer - contribution review workflow and consistency checks."""

from stackatlas.orchestration.review_workflow import (
    ReviewAction,
    ReviewWorkflow,
    ReviewOutcome,
    SubmissionReceipt,
    ContributionRow,
    can_transition,
    valid_transitions,
)
from stackatlas.orchestration.consistency import ConsistencyChecker, ConsistencyReport

__all__ = [
    "ReviewAction",
    "ReviewWorkflow",
    "ReviewOutcome",
    "SubmissionReceipt",
    "ContributionRow",
    "can_transition",
    "valid_transitions",
    "ConsistencyChecker",
    "ConsistencyReport",
]
