"""
Outward-facing views assembled from account, organization, and membership rows.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from app.models.organization import Organization
from app.models.user_account import UserAccount
from app.models.user_organization import UserOrganization
from accounthub_shared.schemas.common import Role
from accounthub_shared.schemas.organizations import OrgResponse
from accounthub_shared.schemas.users import UserAccountResponse, UserContextResponse


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are UTC; some backends hand them back without a tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def build_organization_view(org: Organization) -> OrgResponse:
    return OrgResponse(
        organization_id=org.id,
        name=org.name,
        plan=org.plan,
        status=org.status,
        created_at=_as_utc(org.created_at),
        updated_at=_as_utc(org.updated_at),
    )


def build_user_view(
    account: UserAccount,
    org: Optional[Organization],
    role: Optional[str],
) -> UserAccountResponse:
    """Full profile view. ``role`` is the account's role in ``org``, if any."""
    return UserAccountResponse(
        id=account.id,
        external_user_id=account.external_user_id,
        organization=build_organization_view(org) if org is not None else None,
        email=account.email,
        first_name=account.first_name,
        last_name=account.last_name,
        email_verified=account.email_verified,
        role=Role(role) if role else None,
        onboarding_completed=account.onboarding_completed,
        profile_picture_url=account.profile_picture_url,
        last_sign_in_at=_as_utc(account.last_sign_in_at),
        created_at=_as_utc(account.created_at),
        updated_at=_as_utc(account.updated_at),
    )


def build_context_view(
    account: UserAccount,
    membership: Optional[UserOrganization],
) -> UserContextResponse:
    return UserContextResponse(
        user_id=str(account.id),
        external_user_id=account.external_user_id,
        email=account.email,
        role=Role(membership.role) if membership is not None else None,
        organization_id=membership.organization_id if membership is not None else None,
    )
