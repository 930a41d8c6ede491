"""
Moderation and administration endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Request

from stackatlas.api.deps import AdminUser, DbSession, get_client_ip, json_body, read_json_body
from stackatlas.config import get_settings
from stackatlas.engines.catalog.stats_service import StatsService
from stackatlas.orchestration.consistency import ConsistencyChecker
from stackatlas.orchestration.review_workflow import ContributionRow, ReviewWorkflow
from stackatlas.schemas.common import PaginatedResponse
from stackatlas.schemas.contribution import (
    BucketResponse,
    ConsistencyReportResponse,
    ContributionResponse,
    EventResponse,
    ReviewRequest,
    ReviewResponse,
    StatsResponse,
)

router = APIRouter()


def contribution_response(row: ContributionRow) -> ContributionResponse:
    response = ContributionResponse.model_validate(row.contribution)
    response.contributor_username = row.contributor_username
    response.reviewer_username = row.reviewer_username
    return response


@router.get("/contributions", response_model=PaginatedResponse[ContributionResponse])
async def list_contributions(
    admin: AdminUser,
    db: DbSession,
    status: str = Query("pending", description="pending, approved, rejected or all"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=get_settings().max_page_size),
):
    """Moderation queue, newest submission first."""
    page_size = limit or get_settings().contributions_page_size
    rows, total = await ReviewWorkflow(db).list_contributions(
        admin,
        status=status,
        page=page,
        limit=page_size,
    )
    return PaginatedResponse.create(
        items=[contribution_response(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/contributions/{contribution_id}", response_model=ContributionResponse)
async def get_contribution(contribution_id: uuid.UUID, admin: AdminUser, db: DbSession):
    row = await ReviewWorkflow(db).get_contribution_row(contribution_id, admin)
    return contribution_response(row)


@router.get("/contributions/{contribution_id}/events", response_model=List[EventResponse])
async def get_contribution_events(contribution_id: uuid.UUID, admin: AdminUser, db: DbSession):
    """Audit history of a contribution, newest first."""
    events = await ReviewWorkflow(db).history(contribution_id, admin)
    return [EventResponse.model_validate(event) for event in events]


@router.post(
    "/contributions/{contribution_id}/review",
    response_model=ReviewResponse,
    openapi_extra=json_body(ReviewRequest),
)
async def review_contribution(
    request: Request,
    contribution_id: uuid.UUID,
    admin: AdminUser,
    db: DbSession,
):
    """
    Approve or reject a pending contribution.

    Approval copies the contribution into a new catalog stack. The body is
    read only after the caller is known to be an admin.
    """
    data = await read_json_body(request, ReviewRequest)
    outcome = await ReviewWorkflow(db).review(
        contribution_id,
        data.action,
        reviewer=admin,
        notes=data.notes,
        ip_address=get_client_ip(request),
    )
    return ReviewResponse(
        message=outcome.message,
        status=outcome.status,
        stack_id=outcome.stack_id,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(admin: AdminUser, db: DbSession):
    stats = await StatsService(db).get_stats()
    return StatsResponse(
        total_stacks=stats.total_stacks,
        pending_contributions=stats.pending_contributions,
        total_users=stats.total_users,
        industry_stats=[BucketResponse(value=b.value, count=b.count) for b in stats.industry_stats],
        scale_stats=[BucketResponse(value=b.value, count=b.count) for b in stats.scale_stats],
    )


@router.post("/consistency-check", response_model=ConsistencyReportResponse)
async def run_consistency_check(admin: AdminUser, db: DbSession):
    """Repair pending contributions that were already promoted; report the rest."""
    report = await ConsistencyChecker(db).run(repair=True, actor_id=admin.id)
    return ConsistencyReportResponse(
        repaired_pending=report.repaired_pending,
        approved_without_stack=report.approved_without_stack,
        stacks_from_rejected=report.stacks_from_rejected,
        is_clean=report.is_clean,
    )
