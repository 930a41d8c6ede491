"""
Contribution and moderation schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stackatlas.kernel.models.base import enum_value
from stackatlas.schemas.stack import StackFieldsIn


class ContributionCreate(StackFieldsIn):
    """Stack submitted for review."""


class SubmissionResponse(BaseModel):
    """Returned to the submitter; carries no caller identity."""

    id: uuid.UUID
    status: str
    submitted_at: datetime


class ContributionResponse(BaseModel):
    """Moderation view of a contribution."""

    id: uuid.UUID
    name: str
    industry: str
    scale: str
    location: str
    description: str
    founded: Optional[int] = None
    employees: Optional[str] = None
    funding: Optional[str] = None
    website: Optional[str] = None
    tech_stack: Dict[str, List[str]]
    status: str
    contributed_by: uuid.UUID
    contributor_username: Optional[str] = None
    submitted_at: datetime
    reviewed_by: Optional[uuid.UUID] = None
    reviewer_username: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, v):
        return enum_value(v)


class ReviewRequest(BaseModel):
    """``action`` is checked by the workflow so unknown values map to invalid_action."""

    action: str
    notes: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(BaseModel):
    message: str
    status: str
    stack_id: Optional[uuid.UUID] = None


class EventResponse(BaseModel):
    id: uuid.UUID
    event_type: str
    user_id: Optional[uuid.UUID] = None
    payload: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("event_type", mode="before")
    @classmethod
    def event_type_value(cls, v):
        return enum_value(v)


class BucketResponse(BaseModel):
    """Serialized as ``{"_id": value, "count": n}``."""

    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(..., serialization_alias="_id")
    count: int


class StatsResponse(BaseModel):
    total_stacks: int
    pending_contributions: int
    total_users: int
    industry_stats: List[BucketResponse]
    scale_stats: List[BucketResponse]


class ConsistencyReportResponse(BaseModel):
    repaired_pending: List[uuid.UUID]
    approved_without_stack: List[uuid.UUID]
    stacks_from_rejected: List[uuid.UUID]
    is_clean: bool
