# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens for HTTP routes and the WebSocket endpoint.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour
ASYMMETRIC_ALGORITHMS = {"ES256", "RS256"}


class TokenError(Exception):
    """Raised when an access token can't be trusted."""


def _get_jwks_url() -> str:
    """JWKS endpoint of the Supabase project (https://<ref>.supabase.co)."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys are better than none
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _legacy_secret() -> str:
    """The HS256 secret, or TokenError when the project doesn't use one."""
    if not settings.SUPABASE_JWT_SECRET:
        raise TokenError("HS256 tokens are not accepted: no JWT secret configured")
    return settings.SUPABASE_JWT_SECRET


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        TokenError: If no trusted key matches the token header
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise TokenError("Invalid token: malformed header")

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        return _legacy_secret(), "HS256"

    if alg in ASYMMETRIC_ALGORITHMS and kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}")
    raise TokenError("Invalid token: unknown signing key")


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and return the user it belongs to.

    Raises:
        TokenError: If the token is expired, forged or malformed
    """
    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
        claims = TokenPayload(**payload)
    except ExpiredSignatureError:
        raise TokenError("Token has expired")
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}")
    except ValidationError:
        raise TokenError("Invalid token: missing claims")

    try:
        user_uuid = UUID(claims.sub)
    except ValueError:
        raise TokenError("Invalid token: malformed user ID")

    return AuthUser(id=user_uuid, email=claims.email)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate the user from the Authorization header.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    try:
        user = decode_access_token(credentials.credentials)
    except TokenError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[AuthUser]:
    """
    Optionally get the current user from JWT token.

    Returns None if no token (or an invalid one) is provided.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None
