"""
Account registration and the signed-in user view.

Registration resolves the organization a new user lands in:

1. An invitation token places them in the inviting organization with the invited role.
2. Otherwise a verified organization domain matching their email places them
   there, with the role they pick (the client is asked first).
3. Otherwise they create a new organization (the client is asked for its
   name first) and become its admin.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import Invitation, Organization, OrganizationMembership, User
from takt.core.database.repositories import OrganizationRepository, UserRepository
from takt.core.errors import Conflict, Forbidden, Gone, NotFound, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import FunctionalRole
from takt.core.models.io.auth import RegisterRequest, SessionUser
from takt.core.platform_admin import is_platform_admin
from takt.core.security import hash_password

from .organizations import email_domain, is_public_domain, provision_organization, suggested_org_name, unique_slug

logger = get_logger(__name__)


async def _resolve_invited_org(
    session: AsyncSession, token: str, email: str
) -> Tuple[Organization, str, Invitation]:
    repo = OrganizationRepository(session)
    invitation = await repo.get_invitation_by_token(token)
    if invitation is None or invitation.accepted_at is not None:
        raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")
    if invitation.is_expired():
        raise Gone("This invitation has expired", code="INVITATION_EXPIRED")
    if invitation.email.lower() != email:
        raise Forbidden("This invitation was sent to a different email address", code="EMAIL_MISMATCH")
    org = await repo.get_by_id(invitation.organization_id)
    if org is None:
        raise NotFound("Organization not found", code="ORG_NOT_FOUND")
    return org, invitation.role, invitation


async def register_user(session: AsyncSession, data: RegisterRequest) -> Tuple[User, Organization]:
    """
    Create an unverified user and their membership.

    Raises:
        Conflict: Email or mobile number already registered
        ValidationFailed: ``NEEDS_ROLE_SELECTION`` / ``NEEDS_ORG_CREATION`` when the client must ask the user first
    """
    email = data.email.strip().lower()
    users = UserRepository(session)
    if await users.get_by_email(email) is not None:
        raise Conflict("An account with this email already exists", code="EMAIL_EXISTS")
    if data.mobile_number and await users.get_by_mobile(data.mobile_number) is not None:
        raise Conflict("This mobile number is already registered", code="MOBILE_EXISTS")

    invitation = None
    if data.invitation_token:
        org, role, invitation = await _resolve_invited_org(session, data.invitation_token, email)
    else:
        domain = email_domain(email)
        org = None if is_public_domain(domain) else await OrganizationRepository(session).get_by_verified_domain(domain)
        if org is not None:
            if data.role is None:
                raise ValidationFailed(
                    "Please select your role",
                    code="NEEDS_ROLE_SELECTION",
                    details={"needsRoleSelection": True, "organizationName": org.name},
                )
            if data.role == FunctionalRole.ADMIN:
                raise ValidationFailed("The admin role must be granted by an organization admin")
            role = data.role.value
        else:
            if not data.organization_name:
                raise ValidationFailed(
                    "Please name your organization",
                    code="NEEDS_ORG_CREATION",
                    details={"needsOrgCreation": True, "suggestedOrgName": suggested_org_name(domain)},
                )
            org, _ = await provision_organization(
                session,
                name=data.organization_name.strip(),
                slug=await unique_slug(session, data.organization_name),
                domain=None if is_public_domain(domain) else domain,
            )
            role = FunctionalRole.ADMIN.value
            logger.info(f"Organization '{org.name}' created during registration of {email}")

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        mobile_number=data.mobile_number,
        current_org_id=org.id,
    )
    session.add(user)
    await session.flush()
    session.add(OrganizationMembership(organization_id=org.id, user_id=user.id, role=role))
    if invitation is not None:
        invitation.accepted_at = utc_now_naive()
        session.add(invitation)
    await session.commit()
    logger.info(f"User {user.id} registered into organization {org.id} as {role}")
    return user, org


async def build_session_user(session: AsyncSession, user: User, allowlist: Iterable[str]) -> SessionUser:
    """Describe ``user`` together with their current organization and role."""
    organization_name: Optional[str] = None
    role: Optional[str] = None
    if user.current_org_id:
        repo = OrganizationRepository(session)
        org = await repo.get_by_id(user.current_org_id)
        membership = await repo.get_membership(user.current_org_id, user.id)
        organization_name = org.name if org else None
        role = membership.role if membership else None

    return SessionUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar_url=user.avatar_url,
        email_verified=user.email_verified,
        current_org_id=user.current_org_id,
        organization_name=organization_name,
        role=role,
        is_platform_admin=await is_platform_admin(session, user, allowlist),
        last_login_at=user.last_login_at,
    )
