"""Local user account, bound to exactly one identity-provider user."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin


class UserAccount(TimestampMixin, SQLModel, table=True):
    __tablename__ = "user_accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    external_user_id: str = Field(
        nullable=False, unique=True, index=True, sa_type=sa.String(255)
    )
    email: str = Field(nullable=False, index=True, sa_type=sa.String(255))
    first_name: Optional[str] = Field(default=None, sa_type=sa.String(255))
    last_name: Optional[str] = Field(default=None, sa_type=sa.String(255))
    email_verified: bool = Field(default=False, nullable=False)
    onboarding_completed: bool = Field(default=False, nullable=False)
    profile_picture_url: Optional[str] = Field(default=None, sa_type=sa.String(512))
    last_sign_in_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
