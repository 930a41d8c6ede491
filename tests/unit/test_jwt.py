"""Unit tests for JWT creation and verification."""

import uuid
from datetime import timedelta

from stackatlas.kernel.identity.jwt import JWTManager


class TestJWTManager:

    def test_access_token_round_trip(self, jwt_manager: JWTManager):
        user_id = uuid.uuid4()
        token, _, jti = jwt_manager.create_access_token(user_id, "user")

        payload = jwt_manager.verify_access_token(token)

        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.role == "user"
        assert payload.jti == jti

    def test_expired_token_is_rejected(self, jwt_manager: JWTManager):
        token, _, _ = jwt_manager.create_access_token(
            uuid.uuid4(), "user", expires_delta=timedelta(seconds=-5)
        )
        assert jwt_manager.verify_access_token(token) is None

    def test_token_signed_with_other_key_is_rejected(self, jwt_manager: JWTManager):
        other = JWTManager(secret_key="another-secret-key-that-is-long-enough")
        token, _, _ = other.create_access_token(uuid.uuid4(), "admin")

        assert jwt_manager.verify_access_token(token) is None

    def test_refresh_token_is_not_an_access_token(self, jwt_manager: JWTManager):
        refresh, _, _ = jwt_manager.create_refresh_token(uuid.uuid4())

        assert jwt_manager.verify_access_token(refresh) is None
        assert jwt_manager.verify_refresh_token(refresh) is not None

    def test_token_pair(self, jwt_manager: JWTManager):
        pair, refresh_exp = jwt_manager.create_token_pair(uuid.uuid4(), "user")

        assert pair.token_type == "bearer"
        assert pair.expires_in > 0
        assert pair.access_token != pair.refresh_token
        assert refresh_exp is not None

    def test_hash_token_is_stable(self):
        assert JWTManager.hash_token("abc") == JWTManager.hash_token("abc")
        assert JWTManager.hash_token("abc") != JWTManager.hash_token("abd")
