"""
Organization membership endpoints: list the caller's organizations and switch between them.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Request

from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.repositories import OrganizationRepository
from takt.core.errors import Forbidden, NotFound, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import FunctionalRole
from takt.core.models.io import ApiResponse, ErrorResponse
from takt.core.models.io.organizations import MembershipRead, SwitchOrganization, SwitchResult
from takt.core.platform_admin import get_platform_admin
from takt.server.services.deps import CurrentSessionDep, SessionDep, SettingsDep

logger = get_logger(__name__)

router = APIRouter(tags=["organizations"])


@router.get(
    "",
    response_model=ApiResponse[List[MembershipRead]],
    summary="List My Organizations",
    description="Organizations the caller belongs to, with their role and which one is current.",
)
async def list_my_organizations(current: CurrentSessionDep, session: SessionDep) -> ApiResponse[List[MembershipRead]]:
    rows = await OrganizationRepository(session).list_memberships_for_user(current.user.id)
    data = [
        MembershipRead(
            organization_id=org.id,
            organization_name=org.name,
            organization_slug=org.slug,
            status=org.status,
            role=membership.role,
            joined_at=membership.joined_at,
            is_current=org.id == current.user.current_org_id,
        )
        for membership, org in rows
    ]
    return ApiResponse(data=data)


@router.post(
    "/switch",
    response_model=ApiResponse[SwitchResult],
    summary="Switch Organization",
    description="Make another organization the caller's current one. Platform admins may switch into any organization.",
    responses={
        400: {"model": ErrorResponse, "description": "Organization inactive or suspended"},
        403: {"model": ErrorResponse, "description": "Not a member"},
        404: {"model": ErrorResponse, "description": "Organization not found"},
    },
)
async def switch_organization(
    data: SwitchOrganization,
    request: Request,
    current: CurrentSessionDep,
    session: SessionDep,
    app_settings: SettingsDep,
) -> ApiResponse[SwitchResult]:
    """
    Switch the current organization.

    Members switch with their membership role. Platform admins without a
    membership get admin access to the organization.
    """
    user = current.user
    repo = OrganizationRepository(session)
    membership = await repo.get_membership(data.organization_id, user.id)
    admin = None
    if membership is None:
        admin = await get_platform_admin(session, user, app_settings.platform_superadmins)
        if admin is None:
            raise Forbidden("You are not a member of this organization", code="NOT_MEMBER")

    org = await repo.get_by_id(data.organization_id)
    if org is None:
        raise NotFound("Organization not found", code="ORG_NOT_FOUND")
    if not org.is_active:
        raise ValidationFailed("This organization is not active", code="ORG_INACTIVE")
    if org.is_suspended and admin is None:
        raise ValidationFailed("This organization is suspended", code="ORG_SUSPENDED")

    previous_org_id = user.current_org_id
    user.current_org_id = org.id
    user.updated_at = utc_now_naive()
    session.add(user)
    await session.commit()

    admin_access = membership is None
    role = FunctionalRole.ADMIN.value if admin_access else membership.role
    result = SwitchResult(
        message=f"Switched to {org.name}{' (Platform Admin Access)' if admin_access else ''}",
        organization_id=org.id,
        organization_name=org.name,
        organization_slug=org.slug,
        role=role,
        platform_admin_access=admin_access,
    )
    logger.info(f"User {user.id} switched organization {previous_org_id} -> {org.id}")
    await create_audit_log(
        session,
        action=AuditAction.ORGANIZATION_SWITCHED,
        user_id=user.id,
        organization_id=org.id,
        entity_type="Organization",
        entity_id=org.id,
        metadata={
            "fromOrg": previous_org_id,
            "toOrg": org.id,
            "organizationName": org.name,
            "isPlatformAdminAccess": admin_access,
        },
        request=request,
    )
    return ApiResponse(data=result)
