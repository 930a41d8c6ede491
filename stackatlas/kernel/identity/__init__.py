"""
Identity Core - Authentication and user management.
"""

from stackatlas.kernel.identity.password import PasswordHasher, verify_password, hash_password
from stackatlas.kernel.identity.jwt import (
    JWTManager,
    TokenPair,
    AccessTokenPayload,
    verify_access_token,
)
from stackatlas.kernel.identity.identity_service import IdentityService

__all__ = [
    "PasswordHasher",
    "verify_password",
    "hash_password",
    "JWTManager",
    "TokenPair",
    "AccessTokenPayload",
    "verify_access_token",
    "IdentityService",
]
