"""
Authentication endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Request, status

from stackatlas.api.deps import DbSession, CurrentUser, get_client_ip, get_user_agent
from stackatlas.kernel.errors import AuthenticationError
from stackatlas.kernel.identity.identity_service import IdentityService
from stackatlas.schemas.auth import (
    UserCreate,
    UserLogin,
    UserResponse,
    ProfileResponse,
    TokenResponse,
    RefreshTokenRequest,
    LogoutRequest,
)
from stackatlas.schemas.common import SuccessResponse

router = APIRouter()


def _token_response(user, token_pair) -> TokenResponse:
    return TokenResponse(
        access_token=token_pair.access_token,
        refresh_token=token_pair.refresh_token,
        token_type=token_pair.token_type,
        expires_in=token_pair.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    data: UserCreate,
    db: DbSession,
):
    """
    Register a new user account with the ``user`` role.

    Returns access and refresh tokens on successful registration.
    """
    identity_service = IdentityService(db)
    ip_address = get_client_ip(request)

    await identity_service.register_user(
        username=data.username,
        email=data.email,
        password=data.password,
        ip_address=ip_address,
    )

    result = await identity_service.authenticate(
        email=data.email,
        password=data.password,
        ip_address=ip_address,
        user_agent=get_user_agent(request),
    )
    if not result:
        raise RuntimeError("Failed to authenticate after registration")

    return _token_response(*result)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    data: UserLogin,
    db: DbSession,
):
    """Authenticate user and return tokens."""
    result = await IdentityService(db).authenticate(
        email=data.email,
        password=data.password,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    if not result:
        raise AuthenticationError("Invalid email or password")

    return _token_response(*result)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db: DbSession,
):
    """
    Refresh access token using refresh token.

    The presented refresh token is revoked and a new pair is issued.
    """
    result = await IdentityService(db).refresh_tokens(data.refresh_token)
    if not result:
        raise AuthenticationError("Invalid or expired refresh token")

    return _token_response(*result)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    user: CurrentUser,
    db: DbSession,
    data: Optional[LogoutRequest] = None,
):
    """
    Log out by revoking refresh token(s).

    If refresh_token is provided, only that token is revoked.
    Otherwise, all of the user's refresh tokens are revoked.
    """
    revoked = await IdentityService(db).logout(
        user_id=user.id,
        refresh_token=data.refresh_token if data else None,
        ip_address=get_client_ip(request),
    )
    return SuccessResponse(message="Logged out successfully", data={"revoked": revoked})


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_profile(user: CurrentUser, db: DbSession):
    """Get current user's profile and bookmarked stack ids."""
    bookmark_ids = await IdentityService(db).get_bookmark_ids(user.id)
    profile = ProfileResponse.model_validate(user)
    profile.bookmark_ids = bookmark_ids
    return profile
