"""
Bearer-token authentication endpoints.

- Sync the caller identified by an identity-provider access token
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.auth import get_bearer_token, get_token_reader
from app.core.database import get_session
from app.core.identity import IdentityResolver, get_identity_resolver
from app.core.tokens import TokenClaimsReader, org_hint_from_claims, subject_from_claims
from app.services import users as user_service
from accounthub_shared.schemas.common import ApiResponse
from accounthub_shared.schemas.users import UserAccountResponse

log = structlog.get_logger()
router = APIRouter()


@router.get("/sync", response_model=ApiResponse[UserAccountResponse])
async def sync_from_token(
    organizationId: Optional[uuid.UUID] = Query(None),
    token: str = Depends(get_bearer_token),
    reader: TokenClaimsReader = Depends(get_token_reader),
    identity: IdentityResolver = Depends(get_identity_resolver),
    session: AsyncSession = Depends(get_session),
):
    """
    Sync the caller identified by a bearer token.

    The organization hint comes from the ``organizationId`` query parameter,
    falling back to the token's own organization claim.
    """
    # Signing-key lookup may hit the JWKS endpoint with a blocking client.
    claims = await run_in_threadpool(reader.claims, token)
    external_user_id = subject_from_claims(claims)
    org_hint = organizationId if organizationId is not None else org_hint_from_claims(claims)

    log.info(
        "auth.token_sync",
        external_user_id=external_user_id,
        org_hint=str(org_hint) if org_hint else None,
        verified=reader.verifies_signature,
    )
    view = await user_service.sync_user_account(
        external_user_id, org_hint, identity=identity, session=session
    )
    return ApiResponse[UserAccountResponse].success(view)
