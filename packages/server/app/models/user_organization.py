"""User-Organization membership (join table)."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from accounthub_shared.schemas.common import Role

from .base import CreatedAtMixin


class UserOrganization(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "user_organizations"

    user_id: int = Field(foreign_key="user_accounts.id", primary_key=True)
    organization_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True, index=True)
    role: str = Field(default=Role.MEMBER.value, nullable=False, sa_type=sa.String(30))
