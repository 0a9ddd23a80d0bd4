"""
User account service: reconciliation with the identity provider and profile lookups.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AccountConflict, AccountNotFound, OrganizationNotFound
from app.core.identity import ExternalProfile
from app.models.organization import Organization
from app.models.user_account import UserAccount
from app.models.user_organization import UserOrganization
from app.services.views import build_context_view, build_user_view
from accounthub_shared.schemas.common import Role
from accounthub_shared.schemas.users import UserAccountResponse, UserContextResponse

log = structlog.get_logger()

_OFFSET_WITH_COLON = re.compile(r"([+-]\d{2}):(\d{2})$")
_OFFSET_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


class ProfileSource(Protocol):
    async def fetch_profile(self, external_user_id: str) -> ExternalProfile: ...


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def find_account(
    external_user_id: str, session: AsyncSession, *, for_update: bool = False
) -> Optional[UserAccount]:
    stmt = select(UserAccount).where(UserAccount.external_user_id == external_user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def has_membership(user_id: int, session: AsyncSession) -> bool:
    result = await session.execute(
        select(UserOrganization.organization_id)
        .where(UserOrganization.user_id == user_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def resolve_primary_membership(
    user_id: int, session: AsyncSession
) -> Optional[tuple[UserOrganization, Organization]]:
    """The account's oldest membership together with its organization."""
    result = await session.execute(
        select(UserOrganization, Organization)
        .join(Organization, Organization.id == UserOrganization.organization_id)
        .where(UserOrganization.user_id == user_id)
        .order_by(UserOrganization.created_at, UserOrganization.organization_id)
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    membership, org = row
    return membership, org


async def _assemble_user_view(
    account: UserAccount, session: AsyncSession
) -> UserAccountResponse:
    primary = await resolve_primary_membership(account.id, session)
    if primary is None:
        return build_user_view(account, None, None)
    membership, org = primary
    return build_user_view(account, org, membership.role)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def parse_sign_in_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; raises ValueError when it cannot be read.

    Aware values are normalised to UTC, naive ones are taken to be UTC.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        parsed = datetime.strptime(_OFFSET_WITH_COLON.sub(r"\1\2", value), _OFFSET_FORMAT)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _apply_profile(account: UserAccount, profile: ExternalProfile) -> None:
    account.email = profile.email
    account.first_name = profile.first_name
    account.last_name = profile.last_name
    account.email_verified = profile.email_verified
    account.profile_picture_url = profile.profile_picture_url


def _update_last_sign_in(account: UserAccount, raw: Optional[str]) -> None:
    if not raw:
        return
    try:
        account.last_sign_in_at = parse_sign_in_timestamp(raw)
    except ValueError:
        log.warning(
            "account.last_sign_in_unparseable",
            external_user_id=account.external_user_id,
            value=raw,
        )


async def _attach_from_hint(
    account: UserAccount, org_hint: uuid.UUID, session: AsyncSession
) -> bool:
    """Add a MEMBER membership if the hinted organization exists."""
    org = await session.get(Organization, org_hint)
    if org is None:
        log.warning(
            "account.org_hint_not_found",
            external_user_id=account.external_user_id,
            org_id=str(org_hint),
        )
        return False

    session.add(
        UserOrganization(
            user_id=account.id,
            organization_id=org.id,
            role=Role.MEMBER.value,
        )
    )
    log.info(
        "account.org_attached",
        external_user_id=account.external_user_id,
        org_id=str(org.id),
        role=Role.MEMBER.value,
    )
    return True


async def _flush(session: AsyncSession, external_user_id: str) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        log.warning("account.write_conflict", external_user_id=external_user_id)
        raise AccountConflict(
            f"Concurrent update for external user {external_user_id}, retry the request"
        ) from exc


async def sync_user_account(
    external_user_id: str,
    org_hint: Optional[uuid.UUID],
    *,
    identity: ProfileSource,
    session: AsyncSession,
) -> UserAccountResponse:
    """
    Reconcile the identity provider's profile into the local account.

    Creates the account on first sight and refreshes its profile fields on
    every later call. ``org_hint`` attaches a MEMBER membership only when the
    account has no membership yet and the organization exists; otherwise it is
    ignored.
    """
    profile = await identity.fetch_profile(external_user_id)
    # A hint may attach a membership; lock the row like create_org_and_attach does.
    account = await find_account(
        external_user_id, session, for_update=org_hint is not None
    )

    if account is not None:
        log.info("account.updating", external_user_id=external_user_id, user_id=account.id)
        _apply_profile(account, profile)
        if org_hint is not None and not await has_membership(account.id, session):
            await _attach_from_hint(account, org_hint, session)
    else:
        log.info("account.creating", external_user_id=external_user_id)
        account = UserAccount(external_user_id=external_user_id, email=profile.email)
        _apply_profile(account, profile)
        session.add(account)
        await _flush(session, external_user_id)
        if org_hint is not None:
            await _attach_from_hint(account, org_hint, session)

    _update_last_sign_in(account, profile.last_sign_in_at)
    session.add(account)
    await _flush(session, external_user_id)

    log.info("account.synced", external_user_id=external_user_id, user_id=account.id)
    return await _assemble_user_view(account, session)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

async def get_user_info(external_user_id: str, session: AsyncSession) -> UserAccountResponse:
    account = await find_account(external_user_id, session)
    if account is None:
        raise AccountNotFound(f"No user account found for external user ID: {external_user_id}")
    return await _assemble_user_view(account, session)


async def get_user_by_id(user_id: int, session: AsyncSession) -> UserAccountResponse:
    account = await session.get(UserAccount, user_id)
    if account is None:
        raise AccountNotFound(f"No user account found for user ID: {user_id}")
    return await _assemble_user_view(account, session)


async def get_user_context(
    external_user_id: str, session: AsyncSession
) -> Optional[UserContextResponse]:
    """Lightweight context for authorization checks, or None for unknown users."""
    account = await find_account(external_user_id, session)
    if account is None:
        return None
    primary = await resolve_primary_membership(account.id, session)
    return build_context_view(account, primary[0] if primary else None)


async def list_org_members(
    org_id: uuid.UUID, session: AsyncSession
) -> list[UserAccountResponse]:
    """Every member of the organization, each with their role in it."""
    org = await session.get(Organization, org_id)
    if org is None:
        raise OrganizationNotFound(f"No organization found for orgId: {org_id}")

    result = await session.execute(
        select(UserAccount, UserOrganization.role)
        .join(UserOrganization, UserOrganization.user_id == UserAccount.id)
        .where(UserOrganization.organization_id == org_id)
        .order_by(UserAccount.id)
    )
    return [build_user_view(account, org, role) for account, role in result.all()]
