"""
Platform administration endpoints.

Cross-organization management for platform admins. Every route depends on
``PlatformAdminDep``; every mutation stages an ``AdminAuditLog`` row that is
committed together with the change it describes.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Annotated, List, Optional

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import func, or_
from sqlmodel import select

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import (
    ActivityEvent,
    AdminAuditLog,
    AuditLog,
    DemandForecast,
    Location,
    Organization,
    OrganizationDomain,
    OrganizationMembership,
    Party,
    PlatformAdmin,
    SupplyCommitment,
    TruckType,
    User,
    UserSession,
)
from takt.core.database.repositories import OrganizationRepository, SessionRepository, UserRepository
from takt.core.errors import Conflict, NotFound, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import OrganizationStatus, SubscriptionStatus
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData, Pagination
from takt.core.models.io.superadmin import (
    ActivityFeed,
    AdminAuditFeed,
    AdminAuditLogRead,
    AdminStat,
    CreatedOrganization,
    CreateOrganizationRequest,
    DeleteUserRequest,
    DomainRead,
    GrantPlatformAdminRequest,
    MemberRead,
    OrganizationCounts,
    OrganizationDetail,
    OrganizationList,
    OrganizationRead,
    OrganizationSettingsRead,
    PlatformAdminRead,
    PlatformStats,
    RevokePlatformAdminRequest,
    SessionRead,
    StatsOverview,
    StatsPeriod,
    UpdateOrganizationRequest,
    UpdateUserRequest,
    UserDetail,
    UserList,
)
from takt.core.platform_admin import (
    create_admin_audit_log,
    get_platform_admin,
    grant_platform_admin,
    revoke_platform_admin,
)
from takt.server.services.deps import PlatformAdminDep, SessionDep, SettingsDep
from takt.server.services.organizations import provision_organization
from takt.server.services.superadmin import (
    activity_reads,
    authored_planning_rows,
    count_rows,
    daily_counts,
    distribution,
    most_active_organizations,
    organization_summaries,
    purge_user_records,
    time_window,
    user_summaries,
)

logger = get_logger(__name__)

router = APIRouter(tags=["superadmin"])

FORBIDDEN_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Platform admin access required"},
}

PageParam = Annotated[int, Query(ge=1)]


# =====================================================================
# Dashboard
# =====================================================================


@router.get(
    "/stats",
    response_model=ApiResponse[PlatformStats],
    summary="Platform Statistics",
    description="Overview counts, recent signups, distributions and daily trends over the last **days** days.",
    responses=FORBIDDEN_RESPONSES,
)
async def platform_stats(
    _: PlatformAdminDep,
    session: SessionDep,
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> ApiResponse[PlatformStats]:
    end = utc_now_naive()
    start = end - timedelta(days=days)

    overview = StatsOverview(
        total_orgs=await count_rows(session, Organization),
        active_orgs=await count_rows(session, Organization, Organization.status == OrganizationStatus.ACTIVE.value),
        suspended_orgs=await count_rows(
            session, Organization, Organization.status == OrganizationStatus.SUSPENDED.value
        ),
        total_users=await count_rows(session, User),
        active_users=await count_rows(session, User, User.is_active == True),  # noqa: E712
        total_demand=await count_rows(session, DemandForecast),
        total_supply=await count_rows(session, SupplyCommitment),
        total_activity=await count_rows(session, ActivityEvent, ActivityEvent.created_at >= start),
    )

    recent_orgs = await session.execute(
        select(Organization).where(Organization.created_at >= start).order_by(Organization.created_at.desc()).limit(10)
    )
    recent_users = await session.execute(
        select(User).where(User.created_at >= start).order_by(User.created_at.desc()).limit(10)
    )

    stats = PlatformStats(
        overview=overview,
        recent_orgs=await organization_summaries(session, recent_orgs.scalars().all()),
        recent_users=await user_summaries(session, recent_users.scalars().all()),
        tier_distribution=await distribution(session, Organization.subscription_tier),
        status_distribution=await distribution(session, Organization.subscription_status),
        growth_trend=await daily_counts(session, Organization.created_at, start),
        activity_trend=await daily_counts(session, ActivityEvent.created_at, start),
        most_active_orgs=await most_active_organizations(session, start),
        period=StatsPeriod(days=days, start_date=start, end_date=end),
    )
    return ApiResponse(data=stats)


# =====================================================================
# Organizations
# =====================================================================


@router.get(
    "/organizations",
    response_model=ApiResponse[OrganizationList],
    summary="List Organizations",
    description="Search by name or slug; filter by access status, tier and subscription status. Newest first.",
    responses=FORBIDDEN_RESPONSES,
)
async def list_organizations(
    _: PlatformAdminDep,
    session: SessionDep,
    page: PageParam = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=200)] = 20,
    search: Annotated[Optional[str], Query()] = None,
    org_status: Annotated[Optional[str], Query(alias="status")] = None,
    tier: Annotated[Optional[str], Query()] = None,
    subscription_status: Annotated[Optional[str], Query(alias="subscriptionStatus")] = None,
) -> ApiResponse[OrganizationList]:
    criteria = []
    if search:
        pattern = f"%{search}%"
        criteria.append(or_(Organization.name.ilike(pattern), Organization.slug.ilike(pattern)))
    if org_status:
        criteria.append(Organization.status == org_status)
    if tier:
        criteria.append(Organization.subscription_tier == tier)
    if subscription_status:
        criteria.append(Organization.subscription_status == subscription_status)

    total = await count_rows(session, Organization, *criteria)
    stmt = select(Organization).order_by(Organization.created_at.desc()).limit(page_size).offset((page - 1) * page_size)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    orgs = (await session.execute(stmt)).scalars().all()

    return ApiResponse(
        data=OrganizationList(
            organizations=await organization_summaries(session, orgs),
            pagination=Pagination.build(page, page_size, total),
        )
    )


@router.post(
    "/organizations",
    response_model=ApiResponse[CreatedOrganization],
    status_code=status.HTTP_201_CREATED,
    summary="Create Organization",
    description="Create an organization with default settings and a verified primary email domain.",
    responses={
        **FORBIDDEN_RESPONSES,
        400: {"model": ErrorResponse, "description": "Invalid input, slug taken or domain taken"},
    },
)
async def create_organization(
    data: CreateOrganizationRequest, request: Request, access: PlatformAdminDep, session: SessionDep
) -> ApiResponse[CreatedOrganization]:
    repo = OrganizationRepository(session)
    if await repo.get_by_slug(data.slug) is not None:
        raise ValidationFailed("An organization with this slug already exists", code="SLUG_EXISTS")
    if await repo.domain_exists(data.domain):
        raise ValidationFailed("This email domain is already registered to another organization", code="DOMAIN_EXISTS")

    org, org_domain = await provision_organization(
        session,
        name=data.name,
        slug=data.slug,
        domain=data.domain,
        country=data.country,
        subscription_tier=data.subscription_tier.value,
        subscription_status=SubscriptionStatus.ACTIVE.value,
    )
    create_admin_audit_log(
        session,
        admin_user=access.user,
        action_type="organization.create",
        target_type="organization",
        target_id=org.id,
        target_name=data.name,
        after_state={
            "name": data.name,
            "slug": data.slug,
            "domain": data.domain,
            "country": org.country,
            "subscriptionTier": data.subscription_tier.value,
        },
        reason="Organization created by platform admin",
        request=request,
    )
    await session.commit()
    logger.info(f"Organization {org.slug} created by platform admin {access.user.email}")

    return ApiResponse(
        data=CreatedOrganization(
            organization=OrganizationRead.model_validate(org),
            domain=DomainRead.model_validate(org_domain),
            message=f'Organization "{data.name}" created successfully with domain @{data.domain}',
        )
    )


@router.get(
    "/organizations/{org_id}",
    response_model=ApiResponse[OrganizationDetail],
    summary="Organization Detail",
    description="Settings, domains, members, record counts and the 50 most recent activity events.",
    responses={**FORBIDDEN_RESPONSES, 404: {"model": ErrorResponse, "description": "Organization not found"}},
)
async def get_organization(org_id: str, _: PlatformAdminDep, session: SessionDep) -> ApiResponse[OrganizationDetail]:
    repo = OrganizationRepository(session)
    org = await repo.get_by_id(org_id)
    if org is None:
        raise NotFound("Organization not found")

    org_settings = await repo.get_settings(org_id)
    domains = await session.execute(
        select(OrganizationDomain).where(OrganizationDomain.organization_id == org_id).order_by(OrganizationDomain.created_at)
    )
    members = await session.execute(
        select(OrganizationMembership, User)
        .join(User, User.id == OrganizationMembership.user_id)
        .where(OrganizationMembership.organization_id == org_id)
        .order_by(OrganizationMembership.joined_at)
    )
    activity = await session.execute(
        select(ActivityEvent)
        .where(ActivityEvent.organization_id == org_id)
        .order_by(ActivityEvent.created_at.desc())
        .limit(50)
    )

    detail = OrganizationDetail(
        organization=OrganizationRead.model_validate(org),
        settings=OrganizationSettingsRead.model_validate(org_settings) if org_settings else None,
        domains=[DomainRead.model_validate(d) for d in domains.scalars().all()],
        members=[
            MemberRead(
                user_id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                role=membership.role,
                is_active=user.is_active,
                last_activity_at=user.last_activity_at,
                joined_at=membership.joined_at,
            )
            for membership, user in members.all()
        ],
        counts=OrganizationCounts(
            demand_forecasts=await count_rows(session, DemandForecast, DemandForecast.organization_id == org_id),
            supply_commitments=await count_rows(session, SupplyCommitment, SupplyCommitment.organization_id == org_id),
            parties=await count_rows(session, Party, Party.organization_id == org_id),
            locations=await count_rows(session, Location, Location.organization_id == org_id),
            truck_types=await count_rows(session, TruckType, TruckType.organization_id == org_id),
        ),
        recent_activity=await activity_reads(session, activity.scalars().all()),
    )
    return ApiResponse(data=detail)


@router.patch(
    "/organizations/{org_id}",
    response_model=ApiResponse[OrganizationRead],
    summary="Update Organization",
    description="Apply one action: `suspend`, `unsuspend`, `change_plan` or `update_pricing`.",
    responses={
        **FORBIDDEN_RESPONSES,
        400: {"model": ErrorResponse, "description": "Action not applicable in the current state"},
        404: {"model": ErrorResponse, "description": "Organization not found"},
    },
)
async def update_organization(
    org_id: str,
    data: UpdateOrganizationRequest,
    request: Request,
    access: PlatformAdminDep,
    session: SessionDep,
) -> ApiResponse[OrganizationRead]:
    """
    Change an organization's access or billing state.

    Suspending locks every member out (see ``SuspensionMiddleware``) until
    the organization is unsuspended.
    """
    org = await session.get(Organization, org_id)
    if org is None:
        raise NotFound("Organization not found")

    before = {
        "status": org.status,
        "subscriptionTier": org.subscription_tier,
        "priceOverride": org.price_override,
        "seatLimit": org.seat_limit,
    }
    now = utc_now_naive()

    if data.action == "suspend":
        if org.is_suspended:
            raise ValidationFailed("Organization is already suspended", code="ALREADY_SUSPENDED")
        org.status = OrganizationStatus.SUSPENDED.value
        org.suspended_at = now
        org.suspended_reason = data.suspended_reason or "Suspended by platform admin"
        org.suspended_by = access.user.id
        after = {
            "status": org.status,
            "suspendedAt": now.isoformat(),
            "suspendedReason": org.suspended_reason,
        }
    elif data.action == "unsuspend":
        if not org.is_suspended:
            raise ValidationFailed("Organization is not suspended", code="NOT_SUSPENDED")
        org.status = OrganizationStatus.ACTIVE.value
        org.suspended_at = None
        org.suspended_reason = None
        org.suspended_by = None
        after = {"status": org.status}
    elif data.action == "change_plan":
        if data.subscription_tier is None:
            raise ValidationFailed("subscriptionTier is required", code="MISSING_TIER")
        org.subscription_tier = data.subscription_tier.value
        after = {"subscriptionTier": org.subscription_tier}
    else:
        org.price_override = data.price_override
        org.seat_limit = data.seat_limit
        after = {"priceOverride": data.price_override, "seatLimit": data.seat_limit}

    org.updated_at = now
    session.add(org)
    create_admin_audit_log(
        session,
        admin_user=access.user,
        action_type=f"org.{data.action}",
        target_type="organization",
        target_id=org.id,
        target_name=org.name,
        before_state=before,
        after_state=after,
        reason=data.reason,
        request=request,
    )
    await session.commit()
    logger.info(f"Organization {org.id} {data.action} by platform admin {access.user.email}")
    return ApiResponse(data=OrganizationRead.model_validate(org))


# =====================================================================
# Users
# =====================================================================


@router.get(
    "/users",
    response_model=ApiResponse[UserList],
    summary="List Users",
    description="Search by email or name; filter by organization, membership role and active flag. Newest first.",
    responses=FORBIDDEN_RESPONSES,
)
async def list_users(
    _: PlatformAdminDep,
    session: SessionDep,
    page: PageParam = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=200)] = 20,
    search: Annotated[Optional[str], Query()] = None,
    org_id: Annotated[Optional[str], Query(alias="orgId")] = None,
    role: Annotated[Optional[str], Query()] = None,
    is_active: Annotated[Optional[bool], Query(alias="isActive")] = None,
) -> ApiResponse[UserList]:
    criteria = []
    if search:
        pattern = f"%{search}%"
        criteria.append(or_(User.email.ilike(pattern), User.first_name.ilike(pattern), User.last_name.ilike(pattern)))
    if is_active is not None:
        criteria.append(User.is_active == is_active)
    if org_id or role:
        memberships = select(OrganizationMembership.user_id)
        if org_id:
            memberships = memberships.where(OrganizationMembership.organization_id == org_id)
        if role:
            memberships = memberships.where(OrganizationMembership.role == role)
        criteria.append(User.id.in_(memberships))

    total = await count_rows(session, User, *criteria)
    stmt = select(User).order_by(User.created_at.desc()).limit(page_size).offset((page - 1) * page_size)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    users = (await session.execute(stmt)).scalars().all()

    return ApiResponse(
        data=UserList(users=await user_summaries(session, users), pagination=Pagination.build(page, page_size, total))
    )


@router.get(
    "/users/{user_id}",
    response_model=ApiResponse[UserDetail],
    summary="User Detail",
    responses={**FORBIDDEN_RESPONSES, 404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_user(
    user_id: str, _: PlatformAdminDep, session: SessionDep, app_settings: SettingsDep
) -> ApiResponse[UserDetail]:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    sessions = await session.execute(
        select(UserSession).where(UserSession.user_id == user_id).order_by(UserSession.last_active_at.desc()).limit(10)
    )
    activity = await session.execute(
        select(ActivityEvent)
        .where(ActivityEvent.actor_user_id == user_id)
        .order_by(ActivityEvent.created_at.desc())
        .limit(50)
    )
    summary = (await user_summaries(session, [user]))[0]
    detail = UserDetail(
        user=summary,
        sessions=[SessionRead.model_validate(s) for s in sessions.scalars().all()],
        audit_log_count=await count_rows(session, AuditLog, AuditLog.user_id == user_id),
        is_platform_admin=await get_platform_admin(session, user, app_settings.platform_superadmins) is not None,
        recent_activity=await activity_reads(session, activity.scalars().all()),
    )
    return ApiResponse(data=detail)


@router.patch(
    "/users/{user_id}",
    response_model=ApiResponse[MessageData],
    summary="Update User",
    description="`disable` deactivates the account and signs it out everywhere; `enable` reactivates it.",
    responses={
        **FORBIDDEN_RESPONSES,
        400: {"model": ErrorResponse, "description": "Already in the requested state"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def update_user(
    user_id: str, data: UpdateUserRequest, request: Request, access: PlatformAdminDep, session: SessionDep
) -> ApiResponse[MessageData]:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    was_active = user.is_active
    if data.action == "disable":
        if not user.is_active:
            raise ValidationFailed("User is already disabled", code="ALREADY_DISABLED")
        user.is_active = False
        await SessionRepository(session).delete_for_user(user.id, commit=False)
    else:
        if user.is_active:
            raise ValidationFailed("User is already enabled", code="ALREADY_ENABLED")
        user.is_active = True

    user.updated_at = utc_now_naive()
    session.add(user)
    create_admin_audit_log(
        session,
        admin_user=access.user,
        action_type=f"user.{data.action}",
        target_type="user",
        target_id=user.id,
        target_name=user.email,
        before_state={"isActive": was_active},
        after_state={"isActive": user.is_active},
        reason=data.reason,
        request=request,
    )
    await session.commit()
    logger.info(f"User {user.email} {data.action}d by platform admin {access.user.email}")
    return ApiResponse(data=MessageData(message=f"User {data.action}d"))


@router.delete(
    "/users/{user_id}",
    response_model=ApiResponse[MessageData],
    summary="Delete User",
    description=(
        "Permanently delete a user with their sessions, credentials, memberships and event history. "
        "Users who authored demand or supply records cannot be deleted; disable them instead."
    ),
    responses={
        **FORBIDDEN_RESPONSES,
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "User owns planning data"},
    },
)
async def delete_user(
    user_id: str,
    request: Request,
    access: PlatformAdminDep,
    session: SessionDep,
    data: Optional[DeleteUserRequest] = None,
) -> ApiResponse[MessageData]:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    if await authored_planning_rows(session, user_id):
        raise Conflict(
            "This user created demand or supply records; disable the account instead",
            code="HAS_PLANNING_DATA",
        )

    snapshot = {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "isActive": user.is_active,
    }
    await purge_user_records(session, user_id)

    create_admin_audit_log(
        session,
        admin_user=access.user,
        action_type="user.delete",
        target_type="user",
        target_id=user_id,
        target_name=user.email,
        before_state={"user": snapshot},
        reason=data.reason if data else None,
        request=request,
    )
    await session.delete(user)
    await session.commit()
    logger.warning(f"User {snapshot['email']} deleted by platform admin {access.user.email}")
    return ApiResponse(data=MessageData(message="User deleted successfully"))


# =====================================================================
# Activity & admin audit
# =====================================================================


@router.get(
    "/activity",
    response_model=ApiResponse[ActivityFeed],
    summary="Platform Activity Feed",
    description="Activity events across every organization, newest first, with the ten most frequent event types.",
    responses=FORBIDDEN_RESPONSES,
)
async def activity_feed(
    _: PlatformAdminDep,
    session: SessionDep,
    page: PageParam = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=200)] = 50,
    org_id: Annotated[Optional[str], Query(alias="orgId")] = None,
    user_id: Annotated[Optional[str], Query(alias="userId")] = None,
    event_type: Annotated[Optional[str], Query(alias="eventType")] = None,
    start_date: Annotated[Optional[datetime], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[datetime], Query(alias="endDate")] = None,
) -> ApiResponse[ActivityFeed]:
    criteria = []
    if org_id:
        criteria.append(ActivityEvent.organization_id == org_id)
    if user_id:
        criteria.append(ActivityEvent.actor_user_id == user_id)
    if event_type:
        criteria.append(ActivityEvent.event_type == event_type)
    time_window(criteria, ActivityEvent.created_at, start_date, end_date)

    total = await count_rows(session, ActivityEvent, *criteria)
    stmt = select(ActivityEvent).order_by(ActivityEvent.created_at.desc()).limit(page_size).offset((page - 1) * page_size)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    events = (await session.execute(stmt)).scalars().all()

    return ApiResponse(
        data=ActivityFeed(
            events=await activity_reads(session, events),
            event_type_stats=await distribution(session, ActivityEvent.event_type, limit=10),
            pagination=Pagination.build(page, page_size, total),
        )
    )


@router.get(
    "/audit",
    response_model=ApiResponse[AdminAuditFeed],
    summary="Admin Audit Log",
    description="Platform admin actions, newest first, with action-type and per-admin distributions.",
    responses=FORBIDDEN_RESPONSES,
)
async def admin_audit_feed(
    _: PlatformAdminDep,
    session: SessionDep,
    page: PageParam = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=200)] = 50,
    admin_user_id: Annotated[Optional[str], Query(alias="adminUserId")] = None,
    action_type: Annotated[Optional[str], Query(alias="actionType")] = None,
    target_type: Annotated[Optional[str], Query(alias="targetType")] = None,
    target_id: Annotated[Optional[str], Query(alias="targetId")] = None,
    start_date: Annotated[Optional[datetime], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[datetime], Query(alias="endDate")] = None,
) -> ApiResponse[AdminAuditFeed]:
    criteria = []
    if admin_user_id:
        criteria.append(AdminAuditLog.admin_user_id == admin_user_id)
    if action_type:
        criteria.append(AdminAuditLog.action_type == action_type)
    if target_type:
        criteria.append(AdminAuditLog.target_type == target_type)
    if target_id:
        criteria.append(AdminAuditLog.target_id == target_id)
    time_window(criteria, AdminAuditLog.created_at, start_date, end_date)

    total = await count_rows(session, AdminAuditLog, *criteria)
    stmt = select(AdminAuditLog).order_by(AdminAuditLog.created_at.desc()).limit(page_size).offset((page - 1) * page_size)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    logs = (await session.execute(stmt)).scalars().all()

    per_admin = func.count(AdminAuditLog.id)
    admin_rows = await session.execute(
        select(AdminAuditLog.admin_user_id, AdminAuditLog.admin_email, per_admin)
        .group_by(AdminAuditLog.admin_user_id, AdminAuditLog.admin_email)
        .order_by(per_admin.desc())
        .limit(10)
    )

    return ApiResponse(
        data=AdminAuditFeed(
            logs=[AdminAuditLogRead.model_validate(entry) for entry in logs],
            action_type_stats=await distribution(session, AdminAuditLog.action_type, limit=10),
            admin_stats=[
                AdminStat(admin_user_id=admin_id, admin_email=email, count=n) for admin_id, email, n in admin_rows.all()
            ],
            pagination=Pagination.build(page, page_size, total),
        )
    )


# =====================================================================
# Platform admins
# =====================================================================


@router.get(
    "/platform-admins",
    response_model=ApiResponse[List[PlatformAdminRead]],
    summary="List Platform Admins",
    description="Active platform-admin grants. Allowlisted emails without a grant row are not listed.",
    responses=FORBIDDEN_RESPONSES,
)
async def list_platform_admins(_: PlatformAdminDep, session: SessionDep) -> ApiResponse[List[PlatformAdminRead]]:
    result = await session.execute(
        select(PlatformAdmin).where(PlatformAdmin.revoked_at.is_(None)).order_by(PlatformAdmin.granted_at)
    )
    return ApiResponse(data=[PlatformAdminRead.model_validate(a) for a in result.scalars().all()])


@router.post(
    "/platform-admins",
    response_model=ApiResponse[PlatformAdminRead],
    summary="Grant Platform Admin",
    description="Grant platform-admin rights to a user, re-activating a revoked grant if one exists.",
    responses={**FORBIDDEN_RESPONSES, 404: {"model": ErrorResponse, "description": "User not found"}},
)
async def grant_admin(
    data: GrantPlatformAdminRequest, request: Request, access: PlatformAdminDep, session: SessionDep
) -> ApiResponse[PlatformAdminRead]:
    user = await UserRepository(session).get_by_id(data.user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    admin = await grant_platform_admin(session, user=user, granted_by=access.user, role=data.role.value, request=request)
    return ApiResponse(data=PlatformAdminRead.model_validate(admin))


@router.delete(
    "/platform-admins/{user_id}",
    response_model=ApiResponse[PlatformAdminRead],
    summary="Revoke Platform Admin",
    description="Revoke a user's platform-admin grant. Allowlist access cannot be revoked here.",
    responses={
        **FORBIDDEN_RESPONSES,
        404: {"model": ErrorResponse, "description": "User not found or holds no active grant"},
    },
)
async def revoke_admin(
    user_id: str,
    request: Request,
    access: PlatformAdminDep,
    session: SessionDep,
    data: Optional[RevokePlatformAdminRequest] = None,
) -> ApiResponse[PlatformAdminRead]:
    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    admin = await revoke_platform_admin(
        session, user=user, revoked_by=access.user, reason=data.reason if data else None, request=request
    )
    if admin is None:
        raise NotFound("User is not a platform admin", code="NOT_PLATFORM_ADMIN")
    return ApiResponse(data=PlatformAdminRead.model_validate(admin))
