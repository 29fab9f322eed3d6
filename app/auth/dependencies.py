# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens.
#
# Supports both:
# - ES256/RS256 (Supabase JWT signing keys) via the project's JWKS
# - HS256 (legacy SUPABASE_JWT_SECRET)
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import threading
import time
from typing import Any
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import CompanyAccessError
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

security = HTTPBearer()

JWKS_CACHE_TTL = 3600
TOKEN_AUDIENCE = "authenticated"


class JWKSCache:
    """
    Signing keys fetched from Supabase, refreshed hourly.

    A failed refresh keeps serving the previous keys.
    """

    def __init__(self, ttl: float = JWKS_CACHE_TTL):
        self.ttl = ttl
        self._keys: list[dict[str, Any]] = []
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"

    def get_key(self, kid: str) -> dict[str, Any] | None:
        with self._lock:
            if not self._keys or time.time() - self._fetched_at >= self.ttl:
                self._refresh()
            for key in self._keys:
                if key.get("kid") == kid:
                    return key
        return None

    def _refresh(self) -> None:
        try:
            response = httpx.get(self.url, timeout=10)
            response.raise_for_status()
            self._keys = response.json().get("keys", [])
            self._fetched_at = time.time()
            logger.debug(f"Fetched {len(self._keys)} signing keys from {self.url}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch JWKS: {e}")


_jwks_cache = JWKSCache()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_signing_key(token: str) -> tuple[Any, str]:
    """
    Pick the verification key for a token from its header.

    Returns:
        Tuple of (key, algorithm); unknown kids fall back to the HS256 secret
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = header.get("alg", "HS256")
    kid = header.get("kid")

    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if kid:
        key = _jwks_cache.get_key(kid)
        if key is not None:
            return key, alg

    logger.warning(f"No signing key for alg={alg}, kid={kid}; falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def decode_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and build the AuthUser.

    Raises:
        HTTPException: 401 if the token is invalid, expired or has no subject
    """
    signing_key, algorithm = get_signing_key(token)

    try:
        payload = jwt.decode(token, signing_key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise _unauthorized("Invalid token: malformed user ID")

    return AuthUser(id=user_uuid, email=payload.get("email"), role=payload.get("role"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """Authenticated user from the Bearer token (401 otherwise)."""
    user = decode_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user



def ensure_company_member(company_id: str | None, user: AuthUser) -> None:
    """
    Reject requests that act on a company the user doesn't belong to.

    No-op when no company is given.

    Raises:
        CompanyAccessError: 403 if the user isn't a member
    """
    if not company_id:
        return
    if not SupabaseClient.is_company_member(company_id, str(user.id)):
        logger.warning(f"User {user.id} denied access to company {company_id}")
        raise CompanyAccessError(company_id)
