"""
Shared fixtures: in-memory SQLite database, a fake identity provider, and an
HTTP client wired to both.
"""

from __future__ import annotations

import base64
import json
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.auth import get_token_reader
from app.core.database import get_session
from app.core.errors import IdentityLookupFailed
from app.core.identity import ExternalProfile, get_identity_resolver
from app.core.tokens import TokenClaimsReader
from app.main import app
from app.models.organization import Organization


class FakeIdentityResolver:
    """In-memory identity provider."""

    def __init__(self) -> None:
        self.profiles: dict[str, ExternalProfile] = {}
        self.calls: list[str] = []

    def add(self, external_user_id: str, **overrides) -> ExternalProfile:
        fields = {
            "id": external_user_id,
            "email": f"{external_user_id}@example.com",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email_verified": True,
            "profile_picture_url": f"https://img.example.com/{external_user_id}.png",
            "last_sign_in_at": "2024-05-01T10:00:00.123456+02:00",
        }
        fields.update(overrides)
        profile = ExternalProfile(**fields)
        self.profiles[external_user_id] = profile
        return profile

    async def fetch_profile(self, external_user_id: str) -> ExternalProfile:
        self.calls.append(external_user_id)
        profile = self.profiles.get(external_user_id)
        if profile is None:
            raise IdentityLookupFailed(
                f"Identity provider returned 404 for user {external_user_id}"
            )
        return profile


def make_token(payload: dict, header: Optional[dict] = None, signature: str = "sig") -> str:
    """Build an unsigned three-segment token with the given payload."""

    def segment(data: dict) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return f"{segment(header or {'alg': 'none', 'typ': 'JWT'})}.{segment(payload)}.{signature}"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


async def create_org(session: AsyncSession, name: str = "Acme") -> Organization:
    org = Organization(name=name)
    session.add(org)
    await session.flush()
    return org


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def identity():
    return FakeIdentityResolver()


@pytest.fixture
def token_reader():
    """Reader without a key resolver: payloads are read without verification."""
    return TokenClaimsReader()


@pytest.fixture
async def client(session_factory, identity, token_reader):
    async def _get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_identity_resolver] = lambda: identity
    app.dependency_overrides[get_token_reader] = lambda: token_reader
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
