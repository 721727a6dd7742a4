"""
Platform administration I/O models.

Everything under ``/api/v1/superadmin`` reads and writes these shapes. Lists
come back as ``{<items>, ..., pagination}`` inside the data envelope.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from takt.core.models.domain.enums import PlatformAdminRole, SubscriptionTier

from .common import CamelModel, Pagination

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
DOMAIN_PATTERN = re.compile(r"^[a-z0-9]+([\-.][a-z0-9]+)*\.[a-z]{2,}$")


# =====================================================================
# Requests
# =====================================================================


class CreateOrganizationRequest(CamelModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    domain: str = Field(min_length=1, description="Email domain whose users join this organization")
    country: Optional[str] = Field(default=None, max_length=2)
    subscription_tier: SubscriptionTier = SubscriptionTier.STARTER

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        if not SLUG_PATTERN.match(value):
            raise ValueError("Slug must be lowercase alphanumeric with hyphens")
        return value

    @field_validator("domain")
    @classmethod
    def check_domain(cls, value: str) -> str:
        if not DOMAIN_PATTERN.match(value):
            raise ValueError("Invalid domain format")
        return value


class UpdateOrganizationRequest(CamelModel):
    action: Literal["suspend", "unsuspend", "change_plan", "update_pricing"]
    reason: Optional[str] = None
    suspended_reason: Optional[str] = None
    subscription_tier: Optional[SubscriptionTier] = None
    price_override: Optional[int] = None
    seat_limit: Optional[int] = None


class UpdateUserRequest(CamelModel):
    action: Literal["disable", "enable"]
    reason: Optional[str] = None


class DeleteUserRequest(CamelModel):
    reason: Optional[str] = None


class GrantPlatformAdminRequest(CamelModel):
    user_id: str = Field(min_length=1)
    role: PlatformAdminRole = PlatformAdminRole.ADMIN


class RevokePlatformAdminRequest(CamelModel):
    reason: Optional[str] = None


# =====================================================================
# Responses
# =====================================================================


class OrganizationRead(CamelModel):
    id: str
    name: str
    slug: str
    country: str
    is_active: bool
    status: str
    suspended_at: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    suspended_by: Optional[str] = None
    subscription_tier: str
    subscription_status: str
    trial_ends_at: Optional[datetime] = None
    price_override: Optional[float] = None
    seat_limit: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class OrganizationSummary(OrganizationRead):
    member_count: int = 0
    demand_forecast_count: int = 0
    supply_commitment_count: int = 0
    last_activity_at: Optional[datetime] = None


class OrganizationList(CamelModel):
    organizations: List[OrganizationSummary]
    pagination: Pagination


class DomainRead(CamelModel):
    id: str
    domain: str
    is_primary: bool
    is_verified: bool
    created_at: datetime


class OrganizationSettingsRead(CamelModel):
    demand_category_enabled: bool
    demand_category_required: bool


class MemberRead(CamelModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    last_activity_at: Optional[datetime] = None
    joined_at: datetime


class OrganizationCounts(CamelModel):
    demand_forecasts: int = 0
    supply_commitments: int = 0
    parties: int = 0
    locations: int = 0
    truck_types: int = 0


class ActivityEventRead(CamelModel):
    id: str
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    actor_user_id: Optional[str] = None
    actor_email: Optional[str] = None
    event_type: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="event_metadata")
    ip_address: Optional[str] = None
    created_at: datetime


class OrganizationDetail(CamelModel):
    organization: OrganizationRead
    settings: Optional[OrganizationSettingsRead] = None
    domains: List[DomainRead] = Field(default_factory=list)
    members: List[MemberRead] = Field(default_factory=list)
    counts: OrganizationCounts
    recent_activity: List[ActivityEventRead] = Field(default_factory=list)


class CreatedOrganization(CamelModel):
    organization: OrganizationRead
    domain: DomainRead
    message: str


class UserMembershipRead(CamelModel):
    id: str
    name: str
    slug: str
    status: str
    role: str
    joined_at: datetime


class UserRead(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_active: bool
    email_verified: bool
    last_activity_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime


class UserSummary(UserRead):
    last_login: Optional[datetime] = None
    organizations: List[UserMembershipRead] = Field(default_factory=list)
    session_count: int = 0
    demand_forecast_count: int = 0
    supply_commitment_count: int = 0


class UserList(CamelModel):
    users: List[UserSummary]
    pagination: Pagination


class SessionRead(CamelModel):
    id: str
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    expires_at: datetime
    last_active_at: datetime
    created_at: datetime


class UserDetail(CamelModel):
    user: UserSummary
    sessions: List[SessionRead] = Field(default_factory=list)
    audit_log_count: int = 0
    is_platform_admin: bool = False
    recent_activity: List[ActivityEventRead] = Field(default_factory=list)


class CountBucket(CamelModel):
    key: Optional[str] = None
    count: int


class DailyCount(CamelModel):
    date: str
    count: int


class ActiveOrganization(CamelModel):
    organization_id: str
    name: str
    count: int


class StatsOverview(CamelModel):
    total_orgs: int
    active_orgs: int
    suspended_orgs: int
    total_users: int
    active_users: int
    total_demand: int
    total_supply: int
    total_activity: int


class StatsPeriod(CamelModel):
    days: int
    start_date: datetime
    end_date: datetime


class PlatformStats(CamelModel):
    overview: StatsOverview
    recent_orgs: List[OrganizationSummary]
    recent_users: List[UserSummary]
    tier_distribution: List[CountBucket]
    status_distribution: List[CountBucket]
    growth_trend: List[DailyCount]
    activity_trend: List[DailyCount]
    most_active_orgs: List[ActiveOrganization]
    period: StatsPeriod


class ActivityFeed(CamelModel):
    events: List[ActivityEventRead]
    event_type_stats: List[CountBucket]
    pagination: Pagination


class AdminAuditLogRead(CamelModel):
    id: str
    admin_user_id: str
    admin_email: str
    action_type: str
    target_type: str
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AdminStat(CamelModel):
    admin_user_id: str
    admin_email: str
    count: int


class AdminAuditFeed(CamelModel):
    logs: List[AdminAuditLogRead]
    action_type_stats: List[CountBucket]
    admin_stats: List[AdminStat]
    pagination: Pagination


class PlatformAdminRead(CamelModel):
    id: str
    user_id: str
    role: str
    granted_by: Optional[str] = None
    granted_at: datetime
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
