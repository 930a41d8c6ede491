"""
Bookmark endpoints.
"""

from typing import List

from fastapi import APIRouter, Request

from stackatlas.api.deps import CurrentUser, DbSession, get_client_ip
from stackatlas.api.v1.stacks import stack_response
from stackatlas.engines.catalog.bookmark_service import BookmarkService
from stackatlas.schemas.stack import BookmarkToggleRequest, BookmarkToggleResponse, StackResponse

router = APIRouter()


@router.get("", response_model=List[StackResponse])
async def list_bookmarks(user: CurrentUser, db: DbSession):
    """The caller's bookmarked stacks, most recently bookmarked first."""
    rows = await BookmarkService(db).list_bookmarks(user)
    return [stack_response(row) for row in rows]


@router.post("", response_model=BookmarkToggleResponse)
async def toggle_bookmark(
    request: Request,
    data: BookmarkToggleRequest,
    user: CurrentUser,
    db: DbSession,
):
    """Add the stack to the caller's bookmarks, or remove it if already there."""
    bookmarked = await BookmarkService(db).toggle(
        user,
        data.stack_id,
        ip_address=get_client_ip(request),
    )
    message = "Stack bookmarked" if bookmarked else "Bookmark removed"
    return BookmarkToggleResponse(message=message, bookmarked=bookmarked)
