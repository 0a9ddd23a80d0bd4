"""
Organization API endpoints.

POST   /api/v1/organizations              - Create an org and attach the caller as ADMIN
GET    /api/v1/organizations              - List all orgs
GET    /api/v1/organizations/{orgId}      - Get org details
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CallerIdentity, get_caller_identity
from app.core.database import get_session
from app.services import organizations as org_service
from app.services.views import build_organization_view
from accounthub_shared.schemas.common import ApiResponse
from accounthub_shared.schemas.organizations import OrgResponse

log = structlog.get_logger()

router = APIRouter()


@router.post("", response_model=ApiResponse[OrgResponse])
async def create_org(
    organizationName: str = Query(..., min_length=1, max_length=255),
    caller: CallerIdentity = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Create an organization. The caller becomes its administrator."""
    org = await org_service.create_org_and_attach(
        caller.external_user_id, organizationName, session
    )
    log.info("org.create_succeeded", org_id=str(org.id), name=org.name)
    return ApiResponse[OrgResponse].success(build_organization_view(org))


@router.get("", response_model=ApiResponse[list[OrgResponse]])
async def list_orgs(session: AsyncSession = Depends(get_session)):
    """List every organization."""
    orgs = await org_service.list_orgs(session)
    return ApiResponse[list[OrgResponse]].success(
        [build_organization_view(org) for org in orgs]
    )


@router.get("/{orgId}", response_model=ApiResponse[OrgResponse])
async def get_org(
    orgId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    """Get organization details."""
    org = await org_service.get_org(orgId, session)
    return ApiResponse[OrgResponse].success(build_organization_view(org))
