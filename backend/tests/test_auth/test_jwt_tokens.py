"""Unit tests for JWT token creation, decoding, and validation."""

from datetime import timedelta

import pytest
from jose import JWTError

from venuebook.auth.jwt import (
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
)


class TestCreateAccessToken:
    """Test access token creation."""

    def test_contains_type_access(self):
        payload = decode_token(create_access_token({"sub": "user-123"}))
        assert payload["type"] == "access"

    def test_contains_standard_claims(self):
        payload = decode_token(create_access_token({"sub": "user-abc"}))
        assert payload["sub"] == "user-abc"
        assert "iat" in payload
        assert "exp" in payload

    def test_custom_expiry_delta(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(hours=1))
        assert decode_token(token)["sub"] == "user-123"


class TestCreateRefreshToken:
    def test_contains_type_refresh(self):
        payload = decode_token(create_refresh_token({"sub": "user-123"}))
        assert payload["type"] == "refresh"
        assert payload["sub"] == "user-123"


class TestDecodeToken:
    """Test token decoding and validation."""

    def test_decode_expired_token_raises(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_token(token)

    def test_decode_invalid_token_raises(self):
        with pytest.raises(JWTError):
            decode_token("not.a.valid.token")

    def test_decode_empty_string_raises(self):
        with pytest.raises(JWTError):
            decode_token("")


class TestCreateTokenPair:
    def test_returns_both_tokens(self):
        pair = create_token_pair("user-123", "customer")
        assert set(pair) == {"access_token", "refresh_token", "token_type"}
        assert pair["token_type"] == "bearer"

    def test_access_token_carries_role(self):
        pair = create_token_pair("user-123", "staff")
        payload = decode_token(pair["access_token"])
        assert payload["type"] == "access"
        assert payload["sub"] == "user-123"
        assert payload["role"] == "staff"

    def test_refresh_token_has_no_role(self):
        payload = decode_token(create_token_pair("user-123", "staff")["refresh_token"])
        assert payload["type"] == "refresh"
        assert "role" not in payload
