"""
Unit tests for authentication service.
Tests password hashing, JWT tokens and email validation.
"""
import pytest
from datetime import timedelta
from recruiting.services import auth_service


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_is_salted(self):
        hash1 = auth_service.hash_password("test_password_123")
        hash2 = auth_service.hash_password("test_password_123")

        assert hash1 != hash2
        assert auth_service.verify_password("test_password_123", hash1)
        assert auth_service.verify_password("test_password_123", hash2)

    def test_verify_password_incorrect(self):
        password_hash = auth_service.hash_password("test_password_123")
        assert auth_service.verify_password("wrong_password", password_hash) is False

    def test_verify_password_empty_or_malformed(self):
        password_hash = auth_service.hash_password("test_password_123")
        assert auth_service.verify_password("", password_hash) is False
        assert auth_service.verify_password("test_password_123", "") is False
        assert auth_service.verify_password("test_password_123", "not-a-bcrypt-hash") is False


class TestJWTTokens:
    """Tests for JWT token creation and verification."""

    def test_verify_token_valid(self):
        token = auth_service.create_access_token({"user_id": 1, "role": "coach"})
        decoded = auth_service.verify_token(token)

        assert decoded["user_id"] == 1
        assert decoded["role"] == "coach"
        assert "exp" in decoded

    def test_verify_token_invalid(self):
        assert auth_service.verify_token("invalid_token_string") is None

    def test_verify_token_expired(self):
        token = auth_service.create_access_token({"user_id": 1}, expires_delta=timedelta(seconds=-1))
        assert auth_service.verify_token(token) is None


class TestEmailValidation:
    """Tests for email validation and normalization."""

    @pytest.mark.parametrize("email", ["coach@example.com", "a.b+c@school.edu"])
    def test_valid_emails(self, email):
        assert auth_service.validate_email(email) is True

    @pytest.mark.parametrize("email", ["", "no-at-sign", "two@@example.com", "spaces in@example.com", "x@y"])
    def test_invalid_emails(self, email):
        assert auth_service.validate_email(email) is False

    def test_normalize_email(self):
        assert auth_service.normalize_email("  Coach@Example.COM ") == "coach@example.com"
        with pytest.raises(ValueError, match="valid email"):
            auth_service.normalize_email("nope")
