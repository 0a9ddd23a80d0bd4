"""
Organization-related Pydantic schemas shared between the server and its clients.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .common import OrgStatus, Plan


class OrgResponse(BaseModel):
    organization_id: uuid.UUID
    name: Optional[str] = None
    plan: Optional[Plan] = None
    status: Optional[OrgStatus] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
