"""Organization, membership and invitation I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from takt.core.models.domain.enums import FunctionalRole

from .common import CamelModel


class SwitchOrganization(CamelModel):
    organization_id: str = Field(min_length=1)


class MembershipRead(CamelModel):
    """One organization the caller belongs to."""

    organization_id: str
    organization_name: str
    organization_slug: str
    status: str
    role: FunctionalRole
    joined_at: datetime
    is_current: bool = False


class SwitchResult(CamelModel):
    message: str
    organization_id: str
    organization_name: str
    organization_slug: str
    role: FunctionalRole
    platform_admin_access: bool = False


class InvitationCreate(CamelModel):
    email: EmailStr
    role: FunctionalRole = FunctionalRole.VIEWER


class InvitationRead(CamelModel):
    id: str
    organization_id: str
    email: str
    role: FunctionalRole
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: datetime


class InvitationPreview(CamelModel):
    """What an invitee sees before accepting."""

    email: str
    role: FunctionalRole
    organization_name: str
    expires_at: datetime
