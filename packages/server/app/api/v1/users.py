"""
User API endpoints.

GET    /api/v1/users/sync                 - Reconcile the caller with the identity provider
GET    /api/v1/users/me                   - Caller's full profile
GET    /api/v1/users/context              - Lightweight context for authorization checks
GET    /api/v1/users/org/{orgId}          - Every member of an organization
GET    /api/v1/users/{userId}             - Full profile by local id
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CallerIdentity, get_caller_identity
from app.core.database import get_session
from app.core.identity import IdentityResolver, get_identity_resolver
from app.services import users as user_service
from accounthub_shared.schemas.common import ApiResponse
from accounthub_shared.schemas.users import UserAccountResponse, UserContextResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/sync", response_model=ApiResponse[UserAccountResponse])
async def sync_user(
    caller: CallerIdentity = Depends(get_caller_identity),
    identity: IdentityResolver = Depends(get_identity_resolver),
    session: AsyncSession = Depends(get_session),
):
    """Handle signup and login by syncing the identity provider's user into the local store."""
    view = await user_service.sync_user_account(
        caller.external_user_id, None, identity=identity, session=session
    )
    return ApiResponse[UserAccountResponse].success(view)


@router.get("/me", response_model=ApiResponse[UserAccountResponse])
async def get_me(
    caller: CallerIdentity = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Get the caller's profile including organization information."""
    view = await user_service.get_user_info(caller.external_user_id, session)
    return ApiResponse[UserAccountResponse].success(view)


@router.get(
    "/context",
    response_model=UserContextResponse,
    responses={404: {"description": "No account for this external user id"}},
)
async def get_user_context(
    externalUserId: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """Lightweight user context. Answers a bare 404 for unknown users."""
    context = await user_service.get_user_context(externalUserId, session)
    if context is None:
        log.warning("user.context_not_found", external_user_id=externalUserId)
        return Response(status_code=404)
    return context


@router.get("/org/{orgId}", response_model=ApiResponse[list[UserAccountResponse]])
async def list_org_members(
    orgId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    """List every member of an organization with their role in it."""
    members = await user_service.list_org_members(orgId, session)
    return ApiResponse[list[UserAccountResponse]].success(members)


@router.get("/{userId}", response_model=ApiResponse[UserAccountResponse])
async def get_user(
    userId: int,
    session: AsyncSession = Depends(get_session),
):
    """Get a user's profile by local id."""
    view = await user_service.get_user_by_id(userId, session)
    return ApiResponse[UserAccountResponse].success(view)
