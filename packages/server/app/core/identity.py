"""
Identity provider client: fetches the canonical profile for an external user id.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.errors import IdentityLookupFailed

log = structlog.get_logger()


class ExternalProfile(BaseModel):
    """User profile as the identity provider reports it."""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: bool = False
    profile_picture_url: Optional[str] = None
    last_sign_in_at: Optional[str] = None

    model_config = {"extra": "ignore"}


class IdentityResolver:
    """
    Thin client over the identity provider's user-management API.

    Lookups are neither retried nor cached; every failure surfaces as
    ``IdentityLookupFailed``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers={"Authorization": f"Bearer {self._api_key}"},
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_profile(self, external_user_id: str) -> ExternalProfile:
        if self._client is None:
            await self.open()

        path = f"/user_management/users/{quote(external_user_id, safe='')}"
        try:
            resp = await self._client.get(path)
            resp.raise_for_status()
            profile = ExternalProfile.model_validate(resp.json())
        except httpx.HTTPStatusError as exc:
            log.warning(
                "identity.lookup_failed",
                external_user_id=external_user_id,
                status=exc.response.status_code,
            )
            raise IdentityLookupFailed(
                f"Identity provider returned {exc.response.status_code} "
                f"for user {external_user_id}"
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("identity.unreachable", external_user_id=external_user_id, error=str(exc))
            raise IdentityLookupFailed(f"Identity provider unreachable: {exc}") from exc
        except ValueError as exc:  # undecodable body or a profile missing required fields
            log.warning("identity.bad_payload", external_user_id=external_user_id)
            raise IdentityLookupFailed(
                f"Identity provider returned an invalid profile for user {external_user_id}"
            ) from exc

        log.debug("identity.profile_fetched", external_user_id=external_user_id)
        return profile


@lru_cache
def get_identity_resolver() -> IdentityResolver:
    """FastAPI dependency: the process-wide identity provider client."""
    settings = get_settings()
    return IdentityResolver(
        settings.identity_base_url,
        settings.identity_api_key,
        timeout=settings.identity_timeout_seconds,
    )
