"""
Catalog browsing endpoints.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from stackatlas.api.deps import AdminUser, DbSession, OptionalUser, get_client_ip, json_body, read_json_body
from stackatlas.config import get_settings
from stackatlas.engines.catalog.catalog_service import CatalogService, StackRow, filter_options
from stackatlas.schemas.common import PaginatedResponse
from stackatlas.schemas.stack import FilterOptions, StackCreate, StackResponse

router = APIRouter()


def stack_response(row: StackRow) -> StackResponse:
    response = StackResponse.model_validate(row.stack)
    response.contributor_username = row.contributor_username
    return response


@router.get("", response_model=PaginatedResponse[StackResponse])
async def list_stacks(
    db: DbSession,
    industry: Optional[str] = Query(None, description="Industry filter, or 'all'"),
    scale: Optional[str] = Query(None, description="Scale filter, or 'all'"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=get_settings().max_page_size),
):
    """Approved stacks, newest first."""
    page_size = limit or get_settings().stacks_page_size
    rows, total = await CatalogService(db).list_stacks(
        industry=industry,
        scale=scale,
        search=search,
        page=page,
        limit=page_size,
    )
    return PaginatedResponse.create(
        items=[stack_response(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/options", response_model=FilterOptions)
async def get_filter_options():
    """Industries, scales and tech categories."""
    return FilterOptions(**filter_options())


@router.get("/{stack_id}", response_model=StackResponse)
async def get_stack(stack_id: uuid.UUID, db: DbSession, user: OptionalUser):
    row = await CatalogService(db).get_stack(stack_id, viewer=user)
    return stack_response(row)


@router.post(
    "",
    response_model=StackResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=json_body(StackCreate),
)
async def create_stack(
    request: Request,
    admin: AdminUser,
    db: DbSession,
):
    """Create a catalog entry directly (admin only)."""
    data = await read_json_body(request, StackCreate)
    fields = data.to_fields()
    logo_url = fields.pop("logo_url", None)
    stack = await CatalogService(db).create_stack(
        fields,
        creator=admin,
        logo_url=logo_url,
        ip_address=get_client_ip(request),
    )
    return stack_response(StackRow(stack, admin.username))
