"""Unit tests for JWT issuing, decoding and password hashing."""

import time
from unittest.mock import MagicMock, patch

import pytest
from jose import jwt

from src.api.middleware.auth import AuthError, AuthErrorCode, create_access_token, decode_jwt
from src.services.auth_service import hash_password, verify_password


# Test JWT secret for unit tests
TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests"


def create_test_token(
    sub: str = "42",
    email: str | None = "test@example.com",
    role: str | None = "customer",
    exp_offset: int = 3600,
    secret: str = TEST_JWT_SECRET,
    algorithm: str = "HS256",
) -> str:
    """Create a test JWT token.

    Args:
        sub: Subject (user ID).
        email: User email.
        role: User role.
        exp_offset: Seconds from now for expiration (negative for expired).
        secret: JWT secret for signing.
        algorithm: Signing algorithm.

    Returns:
        str: Encoded JWT token.
    """
    now = int(time.time())
    payload = {
        "sub": sub,
        "email": email,
        "role": role,
        "exp": now + exp_offset,
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def settings_with_secret(secret: str = TEST_JWT_SECRET) -> MagicMock:
    settings = MagicMock()
    settings.jwt_secret = secret
    settings.jwt_expiry_minutes = 60
    return settings


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_with_valid_token(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt successfully decodes a valid token."""
        mock_settings.return_value = settings_with_secret()

        payload = decode_jwt(create_test_token())

        assert payload.sub == "42"
        assert payload.email == "test@example.com"
        assert payload.role == "customer"

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_with_expired_token(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt raises AuthError for expired token."""
        mock_settings.return_value = settings_with_secret()

        # Create token that expired 1 hour ago
        token = create_test_token(exp_offset=-3600)

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token)

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED
        assert "expired" in exc_info.value.message.lower()

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_with_invalid_signature(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt raises AuthError for invalid signature."""
        mock_settings.return_value = settings_with_secret()

        token = create_test_token(secret="wrong-secret")

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token)

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_with_malformed_token(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt raises AuthError for malformed token."""
        mock_settings.return_value = settings_with_secret()

        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-valid-jwt-token")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_missing_sub_claim(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt raises AuthError when sub claim is missing."""
        mock_settings.return_value = settings_with_secret()

        now = int(time.time())
        token = jwt.encode(
            {"email": "test@example.com", "exp": now + 3600, "iat": now},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token)

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN
        assert "sub" in exc_info.value.message.lower()

    @patch("src.api.middleware.auth.get_settings")
    def test_unconfigured_secret(self, mock_settings: MagicMock) -> None:
        """Test decode_jwt refuses to verify without a signing secret."""
        mock_settings.return_value = settings_with_secret("")

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token())

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    @patch("src.api.middleware.auth.get_settings")
    def test_decode_jwt_converts_to_user_context(self, mock_settings: MagicMock) -> None:
        """Test that token payload can be converted to UserContext."""
        mock_settings.return_value = settings_with_secret()

        user_context = decode_jwt(create_test_token(role="admin")).to_user_context()

        assert user_context.user_id == 42
        assert user_context.email == "test@example.com"
        assert user_context.is_admin


class TestCreateAccessToken:
    """Tests for token issuing."""

    @patch("src.api.middleware.auth.get_settings")
    def test_round_trips_through_decode(self, mock_settings: MagicMock) -> None:
        mock_settings.return_value = settings_with_secret()

        token, expires_in = create_access_token(7, "a@example.com", "admin")
        payload = decode_jwt(token)

        assert expires_in == 3600
        assert payload.sub == "7"
        assert payload.role == "admin"
        assert payload.exp - payload.iat == 3600


class TestPasswords:
    """Tests for bcrypt helpers."""

    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_salted(self) -> None:
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False
