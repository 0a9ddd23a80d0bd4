"""
Bearer token claims.

``decode_payload`` checks the token's shape and reads its payload segment.
``TokenClaimsReader`` adds signature verification against the identity
provider's published keys whenever it is given a key resolver; only a reader
built without one (local development) trusts the payload as-is.
"""

from __future__ import annotations

import base64
import json
import uuid
from typing import Any, Callable, Optional, Sequence

import jwt
import structlog

from app.core.errors import InvalidToken

log = structlog.get_logger()

KeyResolver = Callable[[str], Any]

SUBJECT_CLAIMS = ("sub", "user_id")
ORG_HINT_CLAIMS = ("organization_id", "org_id")


def decode_payload(token: str) -> dict:
    """Return the payload segment of a three-segment token as a dict."""
    parts = token.split(".") if token else []
    if len(parts) != 3:
        raise InvalidToken("Token must have exactly three segments")

    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except ValueError as exc:
        raise InvalidToken("Token payload is not valid base64url-encoded JSON") from exc

    if not isinstance(claims, dict):
        raise InvalidToken("Token payload is not a JSON object")
    return claims


def subject_from_claims(claims: dict) -> str:
    for name in SUBJECT_CLAIMS:
        value = claims.get(name)
        if isinstance(value, str) and value:
            return value
    raise InvalidToken("Token has no subject claim")


def org_hint_from_claims(claims: dict) -> Optional[uuid.UUID]:
    """First organization claim present, or None. Malformed values count as absent."""
    for name in ORG_HINT_CLAIMS:
        value = claims.get(name)
        if value is None:
            continue
        try:
            return uuid.UUID(str(value))
        except ValueError:
            log.debug("token.org_hint_ignored", claim=name, value=str(value))
            return None
    return None


def jwks_key_resolver(jwks_url: str) -> KeyResolver:
    """Resolve signing keys from a JWKS endpoint (keys are cached by PyJWT)."""
    client = jwt.PyJWKClient(jwks_url, cache_keys=True)

    def resolve(token: str) -> Any:
        return client.get_signing_key_from_jwt(token).key

    return resolve


class TokenClaimsReader:
    """Reads caller identity out of a bearer token."""

    def __init__(
        self,
        key_resolver: Optional[KeyResolver] = None,
        *,
        algorithms: Sequence[str] = ("RS256",),
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        self._key_resolver = key_resolver
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer

    @property
    def verifies_signature(self) -> bool:
        return self._key_resolver is not None

    def claims(self, token: str) -> dict:
        unverified = decode_payload(token)
        if self._key_resolver is None:
            return unverified

        try:
            key = self._key_resolver(token)
            return jwt.decode(
                token,
                key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken(f"Token verification failed: {exc}") from exc

    def extract_subject(self, token: str) -> str:
        return subject_from_claims(self.claims(token))

    def extract_org_hint(self, token: str) -> Optional[uuid.UUID]:
        return org_hint_from_claims(self.claims(token))
