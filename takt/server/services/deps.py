"""
Request Dependencies.

Authentication, organization context and platform-admin guards shared by
the API routers, exposed as ``Annotated`` aliases:

- ``CurrentSessionDep``: the signed-in user (401 otherwise)
- ``OrgContextDep``: the user scoped to their current, non-suspended organization
- ``PlatformAdminDep``: a platform admin (401 without session, 403 otherwise)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.auth import resolve_session, touch_session
from takt.core.database import get_session
from takt.core.database.entities import PlatformAdmin, User, UserSession
from takt.core.database.repositories import OrganizationRepository
from takt.core.email import EmailClient, get_email_client
from takt.core.errors import Forbidden, Unauthorized
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import FunctionalRole
from takt.core.permissions import ORG_ADMIN, has_permission
from takt.core.platform_admin import get_platform_admin
from takt.core.tenancy import OrgContext, check_org_suspension
from takt.server.core.config import Settings, settings

logger = get_logger(__name__)


def get_settings() -> Settings:
    return settings


SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
EmailClientDep = Annotated[EmailClient, Depends(get_email_client)]


@dataclass
class CurrentSession:
    user_session: UserSession
    user: User


def session_token(request: Request, app_settings: Settings) -> Optional[str]:
    return request.cookies.get(app_settings.security.session_cookie_name)


async def get_optional_session(
    request: Request, session: SessionDep, app_settings: SettingsDep
) -> Optional[CurrentSession]:
    """The caller's live session, or None."""
    resolved = await resolve_session(session, session_token(request, app_settings))
    if resolved is None:
        return None
    user_session, user = resolved
    await touch_session(session, user_session)
    return CurrentSession(user_session=user_session, user=user)


OptionalSessionDep = Annotated[Optional[CurrentSession], Depends(get_optional_session)]


async def get_current_session(current: OptionalSessionDep) -> CurrentSession:
    if current is None:
        raise Unauthorized("Not authenticated")
    return current


CurrentSessionDep = Annotated[CurrentSession, Depends(get_current_session)]


async def get_org_context(current: CurrentSessionDep, session: SessionDep, app_settings: SettingsDep) -> OrgContext:
    """
    Scope the request to the user's current organization.

    Raises:
        Forbidden: No organization selected, or the user is neither a member nor a platform admin
        OrganizationSuspended: The organization is suspended
    """
    user = current.user
    if not user.current_org_id:
        raise Forbidden("No organization selected", code="NO_ORGANIZATION")

    await check_org_suspension(session, user.current_org_id)

    membership = await OrganizationRepository(session).get_membership(user.current_org_id, user.id)
    if membership is not None:
        return OrgContext(user=user, organization_id=user.current_org_id, role=membership.role)

    admin = await get_platform_admin(session, user, app_settings.platform_superadmins)
    if admin is not None:
        return OrgContext(
            user=user,
            organization_id=user.current_org_id,
            role=FunctionalRole.ADMIN.value,
            is_platform_admin=True,
        )

    logger.warning(f"User {user.id} has current org {user.current_org_id} without membership")
    raise Forbidden("You are not a member of this organization", code="NOT_MEMBER")


OrgContextDep = Annotated[OrgContext, Depends(get_org_context)]


def ensure_permission(ctx: OrgContext, permission: str, message: Optional[str] = None) -> None:
    if not has_permission(ctx.role, permission):
        raise Forbidden(message or f"Missing permission: {permission}")


async def get_org_admin_context(ctx: OrgContextDep) -> OrgContext:
    ensure_permission(ctx, ORG_ADMIN, "Organization admin access required")
    return ctx


OrgAdminContextDep = Annotated[OrgContext, Depends(get_org_admin_context)]


@dataclass
class PlatformAdminAccess:
    user: User
    admin: PlatformAdmin


async def require_platform_admin(
    current: OptionalSessionDep, session: SessionDep, app_settings: SettingsDep
) -> PlatformAdminAccess:
    if current is None:
        raise Unauthorized("Not authenticated")
    admin = await get_platform_admin(session, current.user, app_settings.platform_superadmins)
    if admin is None:
        raise Forbidden("Platform admin access required")
    return PlatformAdminAccess(user=current.user, admin=admin)


PlatformAdminDep = Annotated[PlatformAdminAccess, Depends(require_platform_admin)]
