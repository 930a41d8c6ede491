"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

from typing import Annotated, Any, Dict, Optional, Type, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.database import get_db
from stackatlas.kernel.errors import AuthenticationError, AuthorizationError
from stackatlas.kernel.identity.identity_service import IdentityService
from stackatlas.kernel.models.user import User
from stackatlas.logging_config import add_log_context


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]

ModelT = TypeVar("ModelT", bound=BaseModel)


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    if not credentials:
        return None
    try:
        return await IdentityService(db).resolve_token(credentials.credentials)
    except AuthenticationError:
        return None


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """
    Get current authenticated user.

    The user row is reloaded on every request; its stored role, not the
    token claim, is what authorization checks see.
    """
    token = credentials.credentials if credentials else None
    user = await IdentityService(db).resolve_token(token)
    add_log_context(user_id=user.id)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    return request.headers.get("User-Agent")


async def require_admin(user: CurrentUser) -> User:
    """Require the current user to be an admin."""
    if not user.is_admin:
        raise AuthorizationError()
    return user


AdminUser = Annotated[User, Depends(require_admin)]


def json_body(model: Type[ModelT]) -> Dict[str, Any]:
    """OpenAPI request body for a handler that reads its JSON via ``read_json_body``."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


async def read_json_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Parse the request body into ``model`` inside the handler.

    Declaring the body as a parameter makes FastAPI decode it before any
    dependency runs, so handlers that must authorize first read it here.

    Raises:
        RequestValidationError: If the body is not valid JSON for ``model``
    """
    raw = await request.body()
    try:
        return model.model_validate_json(raw or b"{}")
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False), body=raw)
