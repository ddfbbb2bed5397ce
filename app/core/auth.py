"""
ApplyForm API - Authentication & Dependencies
Verifies identity-provider access tokens against the issuer's JWKS
"""

import asyncio
from typing import Optional, Dict, Any, List
from functools import lru_cache
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from jose import jwt, JWTError, ExpiredSignatureError
import httpx
import logging

from app.core.config import settings
from app.core.exceptions import UnauthorizedError, UpstreamError
from app.core.store import MemberStore, get_store
from app.schemas.members import Member
from app.services.identity_service import IdentityBinder

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Current authenticated caller."""
    id: str  # stable subject id from the identity provider
    email: Optional[str] = None

    # Raw token, kept for logging correlation only
    access_token: str


class CredentialVerifier:
    """
    Verifies access tokens issued by the configured identity provider.

    The JWKS is fetched lazily on first use and cached for the life of the
    process. Concurrent first uses share one fetch through an asyncio.Lock.
    A token signed with an unknown ``kid`` triggers one refresh, which covers
    key rotation.
    """

    def __init__(
        self,
        issuer: str,
        jwks_url: str,
        audience: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        timeout: float = 10.0
    ):
        self.issuer = issuer
        self.jwks_url = jwks_url
        self.audience = audience
        self.algorithms = algorithms or ["RS256"]
        self.timeout = timeout
        self._jwks: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def _fetch_jwks(self) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.error(f"JWKS fetch failed from {self.jwks_url}: {e}")
            raise UpstreamError("Identity provider unavailable", service="auth")

    async def get_jwks(self, force_refresh: bool = False) -> Dict[str, Any]:
        seen = self._jwks
        if seen is not None and not force_refresh:
            return seen
        async with self._lock:
            # Another caller may have (re)loaded the keys while we waited
            if self._jwks is None or (force_refresh and self._jwks is seen):
                self._jwks = await self._fetch_jwks()
                logger.info(f"JWKS loaded ({len(self._jwks.get('keys', []))} keys)")
            return self._jwks

    async def verify(self, token: str) -> Dict[str, Any]:
        """
        Validate a token and return its claims.

        Raises:
            UnauthorizedError: token malformed, expired, or not issued to us
            UpstreamError: the JWKS could not be fetched
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise UnauthorizedError("Invalid token format")

        jwks = await self.get_jwks()
        kid = header.get("kid")
        if kid and not any(k.get("kid") == kid for k in jwks.get("keys", [])):
            jwks = await self.get_jwks(force_refresh=True)

        try:
            claims = jwt.decode(
                token,
                jwks,
                algorithms=self.algorithms,
                issuer=self.issuer,
                audience=self.audience,
                options={"verify_aud": self.audience is not None}
            )
        except ExpiredSignatureError:
            raise UnauthorizedError("Token expired")
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise UnauthorizedError("Invalid or expired token")

        if not claims.get("sub"):
            logger.warning("Token payload missing 'sub' claim")
            raise UnauthorizedError("Invalid token")
        return claims


@lru_cache()
def get_verifier() -> CredentialVerifier:
    """Process-wide verifier (one JWKS cache per process)."""
    return CredentialVerifier(
        issuer=settings.AUTH_ISSUER_URL,
        jwks_url=settings.jwks_url,
        audience=settings.AUTH_AUDIENCE or None,
        algorithms=settings.AUTH_ALGORITHMS,
        timeout=settings.AUTH_HTTP_TIMEOUT
    )


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


# ==================== FastAPI Dependencies ====================

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: CredentialVerifier = Depends(get_verifier)
) -> CurrentUser:
    """
    Dependency to get the authenticated caller.

    Usage:
        @router.post("/teams/join")
        async def join(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError("Missing authentication token")

    claims = await verifier.verify(token)
    return CurrentUser(id=claims["sub"], email=claims.get("email"), access_token=token)


async def get_privileged_member(
    user: CurrentUser = Depends(get_current_user),
    store: MemberStore = Depends(get_store)
) -> Member:
    """Dependency that requires the caller's own member row to be privileged."""
    return await IdentityBinder(store).require_privileged(user.id)
