# =============================================================================
# tests/test_auth.py - Access Token Verification Tests
# =============================================================================
# decode_access_token against HS256 secrets and JWKS-signed headers.
# =============================================================================

import base64
import json
from uuid import uuid4

import pytest

from app.auth import dependencies
from app.auth.dependencies import TokenError, decode_access_token
from app.config import settings
from tests.conftest import make_token


def unsigned_token(header: dict) -> str:
    """A token with the given header and a junk signature."""
    def part(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    payload = {"sub": str(uuid4()), "aud": "authenticated", "exp": 4102444800}
    return f"{part(header)}.{part(payload)}.c2lnbmF0dXJl"


class TestLegacySecret:
    """HS256 tokens only verify against a configured secret."""

    def test_valid_token(self):
        user_id = str(uuid4())

        user = decode_access_token(make_token(user_id, email="ada@example.com"))

        assert str(user.id) == user_id
        assert user.email == "ada@example.com"

    def test_no_secret_configured_refuses_hs256(self, monkeypatch):
        # Arrange: a project on asymmetric keys only
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", None)
        token = make_token(str(uuid4()), secret="dev-jwt-secret-change-in-production")

        # Act / Assert
        with pytest.raises(TokenError):
            decode_access_token(token)

    def test_wrong_secret(self):
        token = make_token(str(uuid4()), secret="someone-elses-secret-0123456789abcdef")
        with pytest.raises(TokenError):
            decode_access_token(token)

    def test_garbage(self):
        with pytest.raises(TokenError):
            decode_access_token("not-a-token")


class TestSigningKeys:
    """Asymmetric tokens need a matching JWKS key."""

    def test_unknown_kid(self, monkeypatch):
        monkeypatch.setattr(dependencies, "_fetch_jwks", lambda: {"keys": []})

        with pytest.raises(TokenError):
            decode_access_token(unsigned_token({"alg": "ES256", "kid": "rotated-away", "typ": "JWT"}))

    def test_unsupported_algorithm(self, monkeypatch):
        monkeypatch.setattr(dependencies, "_fetch_jwks", lambda: {"keys": [{"kid": "k1", "kty": "EC"}]})

        with pytest.raises(TokenError):
            decode_access_token(unsigned_token({"alg": "HS512", "kid": "k1", "typ": "JWT"}))
