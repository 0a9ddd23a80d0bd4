"""User account schemas: full profile view and lightweight context view."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .common import Role
from .organizations import OrgResponse


class UserAccountResponse(BaseModel):
    """Full profile view, with the primary organization and the caller's role in it."""
    id: int
    external_user_id: str
    organization: Optional[OrgResponse] = None
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: bool = False
    role: Optional[Role] = None
    onboarding_completed: bool = False
    profile_picture_url: Optional[str] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserContextResponse(BaseModel):
    """Lightweight view used by other services for authorization checks."""
    user_id: str
    external_user_id: str
    email: str
    role: Optional[Role] = None
    organization_id: Optional[uuid.UUID] = None
