"""
Organization (tenant) entity models.

An organization is the unit of data isolation. Each tenant-scoped row in
the database carries an ``organization_id`` pointing at one of these.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from takt.core.models.domain.enums import (
    FunctionalRole,
    OrganizationStatus,
    SubscriptionStatus,
    SubscriptionTier,
)

from ..base import Base, new_id, utc_now_naive


class Organization(Base, table=True):
    """Tenant record, including subscription and suspension state.

    Table: organizations
    """

    __tablename__ = "organizations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=255)
    slug: str = Field(max_length=100, unique=True, index=True)
    country: str = Field(default="SA", max_length=2)
    is_active: bool = Field(default=True)

    # Access control
    status: str = Field(default=OrganizationStatus.ACTIVE.value, max_length=32, index=True)
    suspended_at: Optional[datetime] = Field(default=None)
    suspended_reason: Optional[str] = Field(default=None, max_length=500)
    suspended_by: Optional[str] = Field(default=None, max_length=64)

    # Subscription
    subscription_tier: str = Field(default=SubscriptionTier.STARTER.value, max_length=32)
    subscription_status: str = Field(default=SubscriptionStatus.TRIALING.value, max_length=32)
    trial_ends_at: Optional[datetime] = Field(default=None)
    price_override: Optional[float] = Field(default=None)
    seat_limit: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)

    @property
    def is_suspended(self) -> bool:
        return self.status == OrganizationStatus.SUSPENDED.value

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, slug={self.slug}, status={self.status})"


class OrganizationDomain(Base, table=True):
    """Email domain that routes self-registering users to an organization.

    Table: organization_domains
    """

    __tablename__ = "organization_domains"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    domain: str = Field(max_length=255, unique=True, index=True)
    is_primary: bool = Field(default=False)
    is_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now_naive)


class OrganizationSettings(Base, table=True):
    """Per-organization feature switches.

    Table: organization_settings
    """

    __tablename__ = "organization_settings"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", unique=True, index=True)
    demand_category_enabled: bool = Field(default=False)
    demand_category_required: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)


class OrganizationMembership(Base, table=True):
    """Links a user to an organization with a functional role.

    Table: organization_memberships
    """

    __tablename__ = "organization_memberships"
    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_membership_org_user"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: str = Field(default=FunctionalRole.VIEWER.value, max_length=32)
    joined_at: datetime = Field(default_factory=utc_now_naive)


class Invitation(Base, table=True):
    """Pending invitation for an email address to join an organization.

    An invitation is pending while ``accepted_at`` is unset and ``expires_at``
    lies in the future.

    Table: invitations
    """

    __tablename__ = "invitations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(default=FunctionalRole.VIEWER.value, max_length=32)
    token: str = Field(max_length=128, unique=True, index=True)
    invited_by_id: Optional[str] = Field(default=None, foreign_key="users.id")
    expires_at: datetime
    accepted_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now_naive)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now_naive()) >= self.expires_at

    def is_pending(self, now: Optional[datetime] = None) -> bool:
        return self.accepted_at is None and not self.is_expired(now)
