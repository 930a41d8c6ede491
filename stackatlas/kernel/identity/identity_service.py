"""
Identity service for account and token operations.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.kernel.errors import AuthenticationError, ConflictError
from stackatlas.kernel.models.base import enum_value
from stackatlas.kernel.models.user import User, UserRole, RefreshToken, user_bookmarks
from stackatlas.kernel.models.event_log import EventType
from stackatlas.kernel.events.event_store import EventStore
from stackatlas.kernel.identity.password import hash_password, verify_password
from stackatlas.kernel.identity.jwt import JWTManager, TokenPair
from stackatlas.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user identity operations.

    Handles registration, password login, refresh-token rotation and
    resolving a bearer token to a live user row.
    """

    def __init__(self, session: AsyncSession, jwt_manager: Optional[JWTManager] = None):
        self.session = session
        self.jwt_manager = jwt_manager or JWTManager()
        self.event_store = EventStore(session)

    async def register_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Register a new user.

        The public API never passes ``role``; only operator scripts create admins.

        Raises:
            ConflictError: If the email or username is already taken
        """
        email = email.lower().strip()
        username = username.strip()

        query = select(User).where(or_(User.email == email, User.username == username))
        result = await self.session.execute(query)
        if result.scalars().first() is not None:
            raise ConflictError("User with this email or username already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        self.session.add(user)
        await self.session.flush()

        await self.event_store.log(
            event_type=EventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"username": user.username, "role": enum_value(user.role)},
            ip_address=ip_address,
        )
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[tuple[User, TokenPair]]:
        """
        Check credentials and issue a token pair.

        Returns:
            Tuple of (User, TokenPair) if successful, None otherwise
        """
        user = await self.get_user_by_email(email)
        if not user or not user.is_active:
            return None

        if not verify_password(password, user.password_hash):
            return None

        token_pair = await self._issue_tokens(user)

        await self.event_store.log(
            event_type=EventType.USER_LOGGED_IN,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"method": "password"},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return user, token_pair

    async def refresh_tokens(self, refresh_token: str) -> Optional[tuple[User, TokenPair]]:
        """
        Exchange a refresh token for a new pair, revoking the old one.

        Returns:
            Tuple of (User, new TokenPair) if successful, None otherwise
        """
        payload = self.jwt_manager.verify_refresh_token(refresh_token)
        if not payload:
            return None

        query = select(RefreshToken).where(
            and_(
                RefreshToken.token_hash == JWTManager.hash_token(refresh_token),
                RefreshToken.revoked.is_(False),
            )
        )
        result = await self.session.execute(query)
        token_record = result.scalar_one_or_none()
        if not token_record:
            return None

        user = await self.get_user_by_id(uuid.UUID(payload.sub))
        if not user or not user.is_active:
            return None

        token_record.revoked = True
        return user, await self._issue_tokens(user)

    async def logout(
        self,
        user_id: uuid.UUID,
        refresh_token: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        """
        Revoke one refresh token, or all of the user's tokens when none is given.

        Returns:
            Number of tokens revoked
        """
        conditions = [RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False)]
        if refresh_token:
            conditions.append(RefreshToken.token_hash == JWTManager.hash_token(refresh_token))

        result = await self.session.execute(select(RefreshToken).where(and_(*conditions)))
        tokens = result.scalars().all()
        for token in tokens:
            token.revoked = True

        await self.event_store.log(
            event_type=EventType.USER_LOGGED_OUT,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            payload={"revoke_all": refresh_token is None, "revoked": len(tokens)},
            ip_address=ip_address,
        )
        return len(tokens)

    async def resolve_token(self, token: Optional[str]) -> User:
        """
        Resolve a bearer token to an active user.

        Raises:
            AuthenticationError: If the token is missing, invalid, expired,
                or names a user that no longer exists or is disabled
        """
        if not token:
            raise AuthenticationError("Authorization token missing or malformed")

        payload = self.jwt_manager.verify_access_token(token)
        if not payload:
            raise AuthenticationError("Invalid or expired token")

        try:
            user_id = uuid.UUID(payload.sub)
        except ValueError:
            raise AuthenticationError("Invalid or expired token")

        user = await self.get_user_by_id(user_id)
        if not user:
            raise AuthenticationError("User not found for provided token")
        if not user.is_active:
            raise AuthenticationError("User account is disabled")
        return user

    async def set_role(self, user: User, role: UserRole) -> User:
        """Change a user's role (operator scripts only)."""
        user.role = role
        await self.session.flush()
        logger.info("User role changed", extra={"user_id": str(user.id), "role": role.value})
        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        result = await self.session.execute(select(User).where(User.email == email.lower().strip()))
        return result.scalar_one_or_none()

    async def get_bookmark_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """IDs in the user's bookmark set."""
        query = select(user_bookmarks.c.stack_id).where(user_bookmarks.c.user_id == user_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_pair, refresh_exp = self.jwt_manager.create_token_pair(
            user_id=user.id,
            role=enum_value(user.role),
        )
        self.session.add(RefreshToken(
            user_id=user.id,
            token_hash=JWTManager.hash_token(token_pair.refresh_token),
            expires_at=refresh_exp,
        ))
        return token_pair
