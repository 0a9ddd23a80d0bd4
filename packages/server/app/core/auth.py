"""
Caller identity for Account Hub.

Supports:
- Gateway-asserted identity headers (x-external-user-id and friends)
- Bearer tokens from the identity provider (Authorization header or the
  legacy session cookie), verified against the provider's JWKS

The identity is built once per request by these dependencies and passed
explicitly to handlers; nothing is stored in ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from app.core.config import get_settings
from app.core.errors import InvalidToken, ValidationFailed
from app.core.tokens import TokenClaimsReader, jwks_key_resolver

log = structlog.get_logger()

EXTERNAL_USER_ID_HEADER = "x-external-user-id"
USER_ID_HEADER = "x-user-id"
USER_EMAIL_HEADER = "x-user-email"
USER_ROLE_HEADER = "x-user-role"
ORG_ID_HEADER = "x-org-id"

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, as asserted by the upstream gateway."""

    external_user_id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    organization_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Header-based identity
# ---------------------------------------------------------------------------

async def require_external_user_id(
    external_user_id: Optional[str] = Header(None, alias=EXTERNAL_USER_ID_HEADER),
) -> str:
    """The external user id header, which must be present and non-blank."""
    if external_user_id is None or not external_user_id.strip():
        log.error("auth.header_missing", header=EXTERNAL_USER_ID_HEADER)
        raise ValidationFailed(
            f"{EXTERNAL_USER_ID_HEADER} header is required",
            error="Missing required header",
        )
    return external_user_id.strip()


async def get_caller_identity(
    external_user_id: str = Depends(require_external_user_id),
    user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    email: Optional[str] = Header(None, alias=USER_EMAIL_HEADER),
    role: Optional[str] = Header(None, alias=USER_ROLE_HEADER),
    organization_id: Optional[str] = Header(None, alias=ORG_ID_HEADER),
) -> CallerIdentity:
    """Collect the identity headers into one explicit object."""
    identity = CallerIdentity(
        external_user_id=external_user_id,
        user_id=user_id,
        email=email,
        role=role,
        organization_id=organization_id,
    )
    structlog.contextvars.bind_contextvars(
        external_user_id=identity.external_user_id,
        caller_user_id=identity.user_id,
        caller_email=identity.email,
        caller_role=identity.role,
        caller_org_id=identity.organization_id,
    )
    return identity


# ---------------------------------------------------------------------------
# Bearer tokens
# ---------------------------------------------------------------------------

async def get_bearer_token(request: Request) -> str:
    """Bearer token from the Authorization header, else the legacy session cookie."""
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token

    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token

    raise InvalidToken("Authentication required")


@lru_cache
def get_token_reader() -> TokenClaimsReader:
    """FastAPI dependency: token reader configured from settings."""
    settings = get_settings()
    if not settings.verify_token_signature:
        log.warning("auth.signature_verification_disabled")
        return TokenClaimsReader(algorithms=settings.token_algorithms)
    if not settings.jwks_url:
        raise RuntimeError("ACCOUNTHUB_JWKS_URL must be set when token verification is enabled")
    return TokenClaimsReader(
        jwks_key_resolver(settings.jwks_url),
        algorithms=settings.token_algorithms,
        audience=settings.token_audience,
        issuer=settings.token_issuer,
    )
