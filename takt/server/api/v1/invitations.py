"""
Invitation endpoints.

Organization admins invite people by email; the invitee opens
``{APP_URL}/invite/{token}``, previews the invitation and accepts it either
by registering with the token or, when already signed in, through the
accept endpoint.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List

from fastapi import APIRouter, Request, status
from sqlmodel import select

from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import Invitation, Organization, OrganizationMembership
from takt.core.database.repositories import OrganizationRepository, UserRepository
from takt.core.errors import Conflict, EmailDeliveryError, Forbidden, Gone, NotFound
from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.organizations import InvitationCreate, InvitationPreview, InvitationRead, SwitchResult
from takt.core.security import generate_invitation_token
from takt.core.tenancy import get_owned_or_404, org_scoped_where
from takt.server.services.deps import CurrentSessionDep, EmailClientDep, OrgAdminContextDep, SessionDep, SettingsDep

logger = get_logger(__name__)

router = APIRouter(tags=["invitations"])


async def _open_invitation(session, token: str) -> Invitation:
    invitation = await OrganizationRepository(session).get_invitation_by_token(token)
    if invitation is None or invitation.accepted_at is not None:
        raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")
    if invitation.is_expired():
        raise Gone("This invitation has expired", code="INVITATION_EXPIRED")
    return invitation


@router.post(
    "",
    response_model=ApiResponse[InvitationRead],
    status_code=status.HTTP_201_CREATED,
    summary="Invite Member",
    description="Invite an email address into the current organization with a role. Organization admins only.",
    responses={
        403: {"model": ErrorResponse, "description": "Not an organization admin"},
        409: {"model": ErrorResponse, "description": "Already a member, or a pending invitation exists"},
    },
)
async def create_invitation(
    data: InvitationCreate,
    request: Request,
    ctx: OrgAdminContextDep,
    session: SessionDep,
    app_settings: SettingsDep,
    email_client: EmailClientDep,
) -> ApiResponse[InvitationRead]:
    email = data.email.lower()
    repo = OrganizationRepository(session)
    existing_user = await UserRepository(session).get_by_email(email)
    if existing_user is not None and await repo.get_membership(ctx.organization_id, existing_user.id) is not None:
        raise Conflict("This user is already a member of the organization", code="ALREADY_MEMBER")
    if await repo.get_pending_invitation(ctx.organization_id, email) is not None:
        raise Conflict("A pending invitation already exists for this email", code="INVITATION_EXISTS")

    invitation = Invitation(
        organization_id=ctx.organization_id,
        email=email,
        role=data.role.value,
        token=generate_invitation_token(),
        invited_by_id=ctx.user_id,
        expires_at=utc_now_naive() + timedelta(days=app_settings.security.invitation_ttl_days),
    )
    session.add(invitation)
    await session.commit()
    result = InvitationRead.model_validate(invitation)

    org = await session.get(Organization, ctx.organization_id)
    try:
        await email_client.send_invitation(email, org.name if org else "Takt", ctx.user.full_name, invitation.token)
    except EmailDeliveryError as e:
        logger.error(f"Invitation email not sent to {email}: {e}")

    await create_audit_log(
        session,
        action=AuditAction.MEMBER_INVITED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="Invitation",
        entity_id=invitation.id,
        metadata={"email": email, "role": invitation.role},
        request=request,
    )
    return ApiResponse(data=result)


@router.get(
    "",
    response_model=ApiResponse[List[InvitationRead]],
    summary="List Pending Invitations",
    responses={403: {"model": ErrorResponse, "description": "Not an organization admin"}},
)
async def list_invitations(ctx: OrgAdminContextDep, session: SessionDep) -> ApiResponse[List[InvitationRead]]:
    stmt = org_scoped_where(
        ctx,
        Invitation,
        Invitation.accepted_at.is_(None),
        Invitation.expires_at > utc_now_naive(),
    ).order_by(Invitation.created_at.desc())
    result = await session.execute(stmt)
    return ApiResponse(data=[InvitationRead.model_validate(i) for i in result.scalars().all()])


@router.delete(
    "/{invitation_id}",
    response_model=ApiResponse[MessageData],
    summary="Revoke Invitation",
    responses={
        403: {"model": ErrorResponse, "description": "Not an organization admin, or foreign invitation"},
        404: {"model": ErrorResponse, "description": "Invitation not found"},
    },
)
async def revoke_invitation(
    invitation_id: str, request: Request, ctx: OrgAdminContextDep, session: SessionDep
) -> ApiResponse[MessageData]:
    invitation = await get_owned_or_404(session, ctx, Invitation, invitation_id)
    email = invitation.email
    await session.delete(invitation)
    await session.commit()
    await create_audit_log(
        session,
        action=AuditAction.INVITATION_REVOKED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="Invitation",
        entity_id=invitation_id,
        metadata={"email": email},
        request=request,
    )
    return ApiResponse(data=MessageData(message="Invitation revoked"))


@router.get(
    "/token/{token}",
    response_model=ApiResponse[InvitationPreview],
    summary="Preview Invitation",
    description="Show who is invited into which organization. No sign-in required.",
    responses={
        404: {"model": ErrorResponse, "description": "Invitation not found or already accepted"},
        410: {"model": ErrorResponse, "description": "Invitation expired"},
    },
)
async def preview_invitation(token: str, session: SessionDep) -> ApiResponse[InvitationPreview]:
    invitation = await _open_invitation(session, token)
    org = await session.get(Organization, invitation.organization_id)
    if org is None:
        raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")
    return ApiResponse(
        data=InvitationPreview(
            email=invitation.email,
            role=invitation.role,
            organization_name=org.name,
            expires_at=invitation.expires_at,
        )
    )


@router.post(
    "/token/{token}/accept",
    response_model=ApiResponse[SwitchResult],
    summary="Accept Invitation",
    description="Join the inviting organization as the signed-in user and make it the current organization.",
    responses={
        403: {"model": ErrorResponse, "description": "Invitation addressed to another email"},
        404: {"model": ErrorResponse, "description": "Invitation not found"},
        410: {"model": ErrorResponse, "description": "Invitation expired"},
    },
)
async def accept_invitation(
    token: str, request: Request, current: CurrentSessionDep, session: SessionDep
) -> ApiResponse[SwitchResult]:
    user = current.user
    invitation = await _open_invitation(session, token)
    if invitation.email.lower() != user.email.lower():
        raise Forbidden("This invitation was sent to a different email address", code="EMAIL_MISMATCH")
    org = await session.get(Organization, invitation.organization_id)
    if org is None:
        raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")

    existing = await session.execute(
        select(OrganizationMembership).where(
            (OrganizationMembership.organization_id == org.id) & (OrganizationMembership.user_id == user.id)
        )
    )
    membership = existing.scalars().first()
    if membership is None:
        membership = OrganizationMembership(organization_id=org.id, user_id=user.id, role=invitation.role)
        session.add(membership)
    now = utc_now_naive()
    invitation.accepted_at = now
    user.current_org_id = org.id
    user.updated_at = now
    session.add(invitation)
    session.add(user)
    await session.commit()
    logger.info(f"User {user.id} joined organization {org.id} by invitation")

    result = SwitchResult(
        message=f"You joined {org.name}",
        organization_id=org.id,
        organization_name=org.name,
        organization_slug=org.slug,
        role=membership.role,
    )
    await create_audit_log(
        session,
        action=AuditAction.MEMBER_JOINED,
        user_id=user.id,
        organization_id=org.id,
        entity_type="Invitation",
        entity_id=invitation.id,
        metadata={"email": user.email, "role": membership.role},
        request=request,
    )
    return ApiResponse(data=result)
