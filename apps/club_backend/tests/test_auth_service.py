"""
Unit tests for authentication service.
Tests password hashing and JWT tokens.
"""
from datetime import timedelta

from club_backend.services import auth_service


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password(self):
        """Same password hashes differently (salt) but both verify."""
        password = "test_password_123"
        hash1 = auth_service.hash_password(password)
        hash2 = auth_service.hash_password(password)

        assert hash1 != hash2
        assert auth_service.verify_password(password, hash1)
        assert auth_service.verify_password(password, hash2)

    def test_verify_password_incorrect(self):
        password_hash = auth_service.hash_password("test_password_123")
        assert auth_service.verify_password("wrong_password", password_hash) is False

    def test_verify_password_empty(self):
        password_hash = auth_service.hash_password("test_password_123")
        assert auth_service.verify_password("", password_hash) is False

    def test_verify_password_malformed_hash(self):
        assert auth_service.verify_password("secret", "not-a-bcrypt-hash") is False


class TestJWT:
    """Tests for access token creation and verification."""

    def test_round_trip_keeps_claims(self):
        token = auth_service.create_access_token({"user_id": 42, "role": "coach"})
        payload = auth_service.verify_token(token)

        assert payload["user_id"] == 42
        assert payload["role"] == "coach"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        token = auth_service.create_access_token(
            {"user_id": 1}, expires_delta=timedelta(seconds=-10)
        )
        assert auth_service.verify_token(token) is None

    def test_garbage_token_rejected(self):
        assert auth_service.verify_token("not.a.token") is None

    def test_token_expires_in(self):
        assert auth_service.token_expires_in() == auth_service.ACCESS_TOKEN_EXPIRE_MINUTES * 60
