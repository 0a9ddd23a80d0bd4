"""
Organization service: create-and-attach onboarding plus read-only lookups.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import (
    AccountConflict,
    AccountNotFound,
    AlreadyAttached,
    OrganizationNotFound,
    ValidationFailed,
)
from app.models.organization import Organization
from app.models.user_organization import UserOrganization
from app.services.users import find_account, has_membership
from accounthub_shared.schemas.common import OrgStatus, Plan, Role

log = structlog.get_logger()

MAX_ORG_NAME_LENGTH = 255


async def create_org_and_attach(
    external_user_id: str,
    organization_name: str,
    session: AsyncSession,
) -> Organization:
    """
    Create an organization and make the account its ADMIN.

    One-shot per account: fails if the account already belongs to any
    organization. The organization, the membership and the onboarding flag are
    written in the caller's transaction, so either all of them land or none do.
    """
    name = (organization_name or "").strip()
    if not name:
        raise ValidationFailed("organizationName must not be blank")
    if len(name) > MAX_ORG_NAME_LENGTH:
        raise ValidationFailed(
            f"organizationName must be at most {MAX_ORG_NAME_LENGTH} characters"
        )

    # Row lock serialises concurrent attaches for the same account.
    account = await find_account(external_user_id, session, for_update=True)
    if account is None:
        raise AccountNotFound(
            f"User account not found for external user ID: {external_user_id}"
        )

    if await has_membership(account.id, session):
        raise AlreadyAttached(
            f"User already has an organization attached. User ID: {account.id}"
        )

    org = Organization(
        name=name,
        plan=Plan.FREE.value,
        status=OrgStatus.ACTIVE.value,
    )
    session.add(org)
    session.add(
        UserOrganization(
            user_id=account.id,
            organization_id=org.id,
            role=Role.ADMIN.value,
        )
    )
    account.onboarding_completed = True
    session.add(account)

    try:
        await session.flush()
    except IntegrityError as exc:
        raise AccountConflict(
            f"Concurrent organization attach for external user {external_user_id}, retry the request"
        ) from exc

    log.info(
        "org.created",
        org_id=str(org.id),
        external_user_id=external_user_id,
        user_id=account.id,
        role=Role.ADMIN.value,
    )
    return org


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Get an org by id; raises OrganizationNotFound if absent."""
    org = await session.get(Organization, org_id)
    if org is None:
        raise OrganizationNotFound(f"Organization not found for ID: {org_id}")
    return org


async def list_orgs(session: AsyncSession) -> list[Organization]:
    result = await session.execute(
        select(Organization).order_by(Organization.created_at, Organization.id)
    )
    return list(result.scalars().all())
