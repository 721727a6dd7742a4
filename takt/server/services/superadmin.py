"""
Platform administration read models.

Cross-organization aggregates for the superadmin console: per-organization
and per-user summaries, activity rendering and dashboard statistics. These
queries are deliberately unscoped; only routes guarded by
``PlatformAdminDep`` may call them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Sequence

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.entities import (
    ActivityEvent,
    AdminAuditLog,
    AuditLog,
    DemandForecast,
    Invitation,
    OTPCode,
    Organization,
    OrganizationMembership,
    PasswordResetToken,
    PlatformAdmin,
    SupplyCommitment,
    User,
    UserSession,
)
from takt.core.models.io.superadmin import (
    ActiveOrganization,
    ActivityEventRead,
    CountBucket,
    DailyCount,
    OrganizationRead,
    OrganizationSummary,
    UserMembershipRead,
    UserRead,
    UserSummary,
)


async def count_rows(session: AsyncSession, model: Any, *criteria: Any) -> int:
    stmt = select(func.count()).select_from(model)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    return (await session.execute(stmt)).scalar_one()


async def count_by(session: AsyncSession, column: Any, ids: Sequence[str]) -> Dict[str, int]:
    """Row counts grouped by ``column`` for the given key values."""
    if not ids:
        return {}
    result = await session.execute(select(column, func.count()).where(column.in_(ids)).group_by(column))
    return {key: count for key, count in result.all()}


async def max_by(session: AsyncSession, column: Any, value: Any, ids: Sequence[str]) -> Dict[str, datetime]:
    if not ids:
        return {}
    result = await session.execute(select(column, func.max(value)).where(column.in_(ids)).group_by(column))
    return {key: latest for key, latest in result.all()}


async def organization_summaries(session: AsyncSession, orgs: Sequence[Organization]) -> List[OrganizationSummary]:
    """Attach member, demand and supply counts and last activity to each organization."""
    ids = [org.id for org in orgs]
    members = await count_by(session, OrganizationMembership.organization_id, ids)
    demand = await count_by(session, DemandForecast.organization_id, ids)
    supply = await count_by(session, SupplyCommitment.organization_id, ids)
    last_activity = await max_by(session, ActivityEvent.organization_id, ActivityEvent.created_at, ids)
    return [
        OrganizationSummary(
            **OrganizationRead.model_validate(org).model_dump(),
            member_count=members.get(org.id, 0),
            demand_forecast_count=demand.get(org.id, 0),
            supply_commitment_count=supply.get(org.id, 0),
            last_activity_at=last_activity.get(org.id),
        )
        for org in orgs
    ]


async def user_summaries(session: AsyncSession, users: Sequence[User]) -> List[UserSummary]:
    """Attach memberships, session and planning counts and last login to each user."""
    ids = [user.id for user in users]
    memberships: Dict[str, List[UserMembershipRead]] = {user_id: [] for user_id in ids}
    if ids:
        result = await session.execute(
            select(OrganizationMembership, Organization)
            .join(Organization, Organization.id == OrganizationMembership.organization_id)
            .where(OrganizationMembership.user_id.in_(ids))
            .order_by(Organization.name)
        )
        for membership, org in result.all():
            memberships[membership.user_id].append(
                UserMembershipRead(
                    id=org.id,
                    name=org.name,
                    slug=org.slug,
                    status=org.status,
                    role=membership.role,
                    joined_at=membership.joined_at,
                )
            )
    sessions = await count_by(session, UserSession.user_id, ids)
    last_login = await max_by(session, UserSession.user_id, UserSession.last_active_at, ids)
    demand = await count_by(session, DemandForecast.created_by_id, ids)
    supply = await count_by(session, SupplyCommitment.created_by_id, ids)
    return [
        UserSummary(
            **UserRead.model_validate(user).model_dump(),
            last_login=last_login.get(user.id) or user.last_login_at,
            organizations=memberships.get(user.id, []),
            session_count=sessions.get(user.id, 0),
            demand_forecast_count=demand.get(user.id, 0),
            supply_commitment_count=supply.get(user.id, 0),
        )
        for user in users
    ]


async def activity_reads(session: AsyncSession, events: Sequence[ActivityEvent]) -> List[ActivityEventRead]:
    """Render activity events with their organization names."""
    org_ids = sorted({e.organization_id for e in events if e.organization_id})
    names: Dict[str, str] = {}
    if org_ids:
        result = await session.execute(select(Organization.id, Organization.name).where(Organization.id.in_(org_ids)))
        names = {org_id: name for org_id, name in result.all()}
    return [
        ActivityEventRead.model_validate(event).model_copy(
            update={"organization_name": names.get(event.organization_id) if event.organization_id else None}
        )
        for event in events
    ]


async def distribution(session: AsyncSession, column: Any, *criteria: Any, limit: int = 0) -> List[CountBucket]:
    """``[{key, count}]`` grouped by ``column``, largest first."""
    count = func.count()
    stmt = select(column, count).group_by(column).order_by(count.desc())
    for criterion in criteria:
        stmt = stmt.where(criterion)
    if limit:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return [CountBucket(key=key, count=n) for key, n in result.all()]


async def daily_counts(session: AsyncSession, created_at: Any, since: datetime) -> List[DailyCount]:
    """Rows per calendar day of ``created_at`` since ``since``, oldest first."""
    day = func.date(created_at)
    result = await session.execute(
        select(day, func.count()).where(created_at >= since).group_by(day).order_by(day)
    )
    return [DailyCount(date=str(d), count=n) for d, n in result.all()]


async def most_active_organizations(session: AsyncSession, since: datetime, limit: int = 10) -> List[ActiveOrganization]:
    events = func.count(ActivityEvent.id)
    result = await session.execute(
        select(Organization.id, Organization.name, events)
        .join(ActivityEvent, ActivityEvent.organization_id == Organization.id)
        .where(ActivityEvent.created_at >= since)
        .group_by(Organization.id, Organization.name)
        .order_by(events.desc())
        .limit(limit)
    )
    return [ActiveOrganization(organization_id=org_id, name=name, count=n) for org_id, name, n in result.all()]


def time_window(criteria: List[Any], column: Any, start: Any, end: Any) -> List[Any]:
    """Append optional inclusive ``start``/``end`` bounds on ``column``."""
    if start is not None:
        criteria.append(column >= start)
    if end is not None:
        criteria.append(column <= end)
    return criteria


async def authored_planning_rows(session: AsyncSession, user_id: str) -> int:
    """Demand forecasts plus supply commitments created by ``user_id``."""
    return await count_rows(session, DemandForecast, DemandForecast.created_by_id == user_id) + await count_rows(
        session, SupplyCommitment, SupplyCommitment.created_by_id == user_id
    )


async def purge_user_records(session: AsyncSession, user_id: str) -> Dict[str, int]:
    """
    Delete every row that references a user, ahead of deleting the user itself.

    Invitations the user sent are kept with ``invited_by_id`` cleared. Nothing
    is committed; the caller owns the unit of work.

    Returns:
        Deleted row counts keyed by table name
    """
    removed: Dict[str, int] = {}
    for table, stmt in (
        ("activity_events", delete(ActivityEvent).where(ActivityEvent.actor_user_id == user_id)),
        (
            "admin_audit_logs",
            delete(AdminAuditLog).where((AdminAuditLog.target_type == "user") & (AdminAuditLog.target_id == user_id)),
        ),
        ("audit_logs", delete(AuditLog).where(AuditLog.user_id == user_id)),
        ("user_sessions", delete(UserSession).where(UserSession.user_id == user_id)),
        ("password_reset_tokens", delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)),
        ("otp_codes", delete(OTPCode).where(OTPCode.user_id == user_id)),
        ("organization_memberships", delete(OrganizationMembership).where(OrganizationMembership.user_id == user_id)),
        ("platform_admins", delete(PlatformAdmin).where(PlatformAdmin.user_id == user_id)),
    ):
        result = await session.execute(stmt)
        removed[table] = result.rowcount or 0
    await session.execute(update(Invitation).where(Invitation.invited_by_id == user_id).values(invited_by_id=None))
    return removed
