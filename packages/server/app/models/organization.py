"""Organization model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from accounthub_shared.schemas.common import OrgStatus, Plan

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: Optional[str] = Field(default=None, sa_type=sa.String(255))
    plan: str = Field(default=Plan.FREE.value, nullable=False, index=True, sa_type=sa.String(50))
    status: str = Field(default=OrgStatus.ACTIVE.value, nullable=False, index=True, sa_type=sa.String(30))
