"""
Catalog stack schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from stackatlas.kernel.models.base import enum_value


class StackFieldsIn(BaseModel):
    """
    Descriptive fields as received.

    Type and field rules both live in ContributionValidator, so a value of
    the wrong JSON type is reported alongside every other violation.
    """

    name: Any = None
    industry: Any = None
    scale: Any = None
    location: Any = None
    description: Any = None
    founded: Any = None
    employees: Any = None
    funding: Any = None
    website: Any = None
    tech_stack: Any = None

    def to_fields(self) -> dict:
        return self.model_dump(exclude_none=False)


class StackCreate(StackFieldsIn):
    """Admin creation of a catalog entry."""

    logo_url: Any = None


class StackResponse(BaseModel):
    """Catalog entry."""

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
    logo_url: Optional[str] = None
    tech_stack: Dict[str, List[str]]
    status: str
    contributed_by: Optional[uuid.UUID] = None
    contributor_username: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("status", mode="before")
    @classmethod
    def status_value(cls, v):
        return enum_value(v)


class FilterOptions(BaseModel):
    industries: List[str]
    scales: List[str]
    tech_categories: List[str]


class BookmarkToggleRequest(BaseModel):
    stack_id: uuid.UUID


class BookmarkToggleResponse(BaseModel):
    message: str
    bookmarked: bool

