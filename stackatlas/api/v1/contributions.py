"""
Contribution submission endpoint.
"""

from fastapi import APIRouter, Request, status

from stackatlas.api.deps import CurrentUser, DbSession, get_client_ip
from stackatlas.orchestration.review_workflow import ReviewWorkflow
from stackatlas.schemas.contribution import ContributionCreate, SubmissionResponse

router = APIRouter()


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_contribution(
    request: Request,
    data: ContributionCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Submit a stack for review. It stays out of the catalog until approved."""
    receipt = await ReviewWorkflow(db).submit(
        data.to_fields(),
        submitter=user,
        ip_address=get_client_ip(request),
    )
    return SubmissionResponse(
        id=receipt.id,
        status=receipt.status,
        submitted_at=receipt.submitted_at,
    )
