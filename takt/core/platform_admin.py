"""
Platform administration.

A user is a platform admin when they hold a non-revoked ``PlatformAdmin``
row, or when their email is on the ``PLATFORM_SUPERADMINS`` allowlist. The
allowlist path yields a synthetic, unsaved record so bootstrap operators
have access before any row exists.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import AdminAuditLog, PlatformAdmin, User
from takt.core.database.repositories import PlatformAdminRepository
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import PlatformAdminRole
from takt.core.monitoring import log_domain_event
from takt.core.request_context import client_ip, user_agent

logger = get_logger(__name__)

ALLOWLIST_ADMIN_ID = "allowlist"


def is_allowlisted(email: Optional[str], allowlist: Iterable[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in {entry.strip().lower() for entry in allowlist}


async def get_platform_admin(
    session: AsyncSession, user: Optional[User], allowlist: Iterable[str]
) -> Optional[PlatformAdmin]:
    """
    Resolve the caller's platform-admin grant.

    Args:
        session: Database session
        user: The authenticated user, or None
        allowlist: Lower-cased super admin emails

    Returns:
        The active grant row, a synthetic allowlist grant, or None
    """
    if user is None:
        return None

    admin = await PlatformAdminRepository(session).get_active_for_user(user.id)
    if admin is not None:
        return admin

    if is_allowlisted(user.email, allowlist):
        logger.debug(f"Platform admin access via allowlist for {user.email}")
        return PlatformAdmin(
            id=ALLOWLIST_ADMIN_ID,
            user_id=user.id,
            role=PlatformAdminRole.ADMIN.value,
            granted_by="system",
        )
    return None


async def is_platform_admin(session: AsyncSession, user: Optional[User], allowlist: Iterable[str]) -> bool:
    return await get_platform_admin(session, user, allowlist) is not None


def create_admin_audit_log(
    session: AsyncSession,
    *,
    admin_user: User,
    action_type: str,
    target_type: str,
    target_id: Optional[str] = None,
    target_name: Optional[str] = None,
    before_state: Optional[Dict[str, Any]] = None,
    after_state: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
    request: Optional[Request] = None,
) -> AdminAuditLog:
    """
    Stage an admin audit record on ``session``.

    The record is committed together with the action it describes, so an
    admin change never lands without its audit trail.
    """
    entry = AdminAuditLog(
        admin_user_id=admin_user.id,
        admin_email=admin_user.email,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        target_name=target_name,
        before_state=before_state,
        after_state=after_state,
        reason=reason,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    session.add(entry)
    log_domain_event(action_type, None, admin_user_id=admin_user.id, target_type=target_type, target_id=target_id)
    return entry


async def grant_platform_admin(
    session: AsyncSession,
    *,
    user: User,
    granted_by: User,
    role: str = PlatformAdminRole.ADMIN.value,
    request: Optional[Request] = None,
) -> PlatformAdmin:
    """Grant (or re-grant) platform admin rights to ``user``."""
    repo = PlatformAdminRepository(session)
    admin = await repo.get_for_user(user.id)
    before: Optional[Dict[str, Any]] = None
    if admin is None:
        admin = PlatformAdmin(user_id=user.id, role=role, granted_by=granted_by.id)
    else:
        before = {"role": admin.role, "revokedAt": admin.revoked_at.isoformat() if admin.revoked_at else None}
        admin.role = role
        admin.granted_by = granted_by.id
        admin.granted_at = utc_now_naive()
        admin.revoked_at = None
        admin.revoked_by = None
    session.add(admin)

    create_admin_audit_log(
        session,
        admin_user=granted_by,
        action_type="platform_admin.grant",
        target_type="user",
        target_id=user.id,
        target_name=user.email,
        before_state=before,
        after_state={"role": role},
        request=request,
    )
    await session.commit()
    await session.refresh(admin)
    logger.info(f"Platform admin granted to {user.email} by {granted_by.email}")
    return admin


async def revoke_platform_admin(
    session: AsyncSession,
    *,
    user: User,
    revoked_by: User,
    reason: Optional[str] = None,
    request: Optional[Request] = None,
) -> Optional[PlatformAdmin]:
    """Revoke an active platform admin grant. Returns None when there was nothing to revoke."""
    admin = await PlatformAdminRepository(session).get_active_for_user(user.id)
    if admin is None:
        return None
    admin.revoked_at = utc_now_naive()
    admin.revoked_by = revoked_by.id
    session.add(admin)

    create_admin_audit_log(
        session,
        admin_user=revoked_by,
        action_type="platform_admin.revoke",
        target_type="user",
        target_id=user.id,
        target_name=user.email,
        before_state={"role": admin.role},
        after_state={"revokedAt": admin.revoked_at.isoformat()},
        reason=reason,
        request=request,
    )
    await session.commit()
    await session.refresh(admin)
    logger.info(f"Platform admin revoked for {user.email} by {revoked_by.email}")
    return admin
