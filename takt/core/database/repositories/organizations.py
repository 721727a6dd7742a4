"""
Organization repository.

Lookups for tenants, their email domains, settings and memberships.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now_naive
from ..entities.organizations import (
    Invitation,
    Organization,
    OrganizationDomain,
    OrganizationMembership,
    OrganizationSettings,
)
from .base import AsyncBaseRepository


class OrganizationRepository(AsyncBaseRepository[Organization]):
    """Repository for organizations and their satellite tables."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Organization)

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        result = await self.session.execute(select(Organization).where(Organization.slug == slug))
        return result.scalars().first()

    async def get_by_verified_domain(self, domain: str) -> Optional[Organization]:
        """Resolve the organization owning a verified email domain."""
        stmt = (
            select(Organization)
            .join(OrganizationDomain, OrganizationDomain.organization_id == Organization.id)
            .where(OrganizationDomain.domain == domain.lower())
            .where(OrganizationDomain.is_verified == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def domain_exists(self, domain: str) -> bool:
        stmt = select(OrganizationDomain.id).where(OrganizationDomain.domain == domain.lower())
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def get_settings(self, organization_id: str) -> Optional[OrganizationSettings]:
        stmt = select(OrganizationSettings).where(OrganizationSettings.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_membership(self, organization_id: str, user_id: str) -> Optional[OrganizationMembership]:
        stmt = select(OrganizationMembership).where(
            (OrganizationMembership.organization_id == organization_id) & (OrganizationMembership.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_memberships_for_user(self, user_id: str) -> List[Tuple[OrganizationMembership, Organization]]:
        """List a user's memberships together with their organizations, ordered by organization name."""
        stmt = (
            select(OrganizationMembership, Organization)
            .join(Organization, Organization.id == OrganizationMembership.organization_id)
            .where(OrganizationMembership.user_id == user_id)
            .order_by(Organization.name)
        )
        result = await self.session.execute(stmt)
        return [(membership, org) for membership, org in result.all()]

    async def get_invitation_by_token(self, token: str) -> Optional[Invitation]:
        result = await self.session.execute(select(Invitation).where(Invitation.token == token))
        return result.scalars().first()

    async def get_pending_invitation(self, organization_id: str, email: str) -> Optional[Invitation]:
        """The unaccepted, unexpired invitation for ``email`` into an organization, if any."""
        stmt = select(Invitation).where(
            (Invitation.organization_id == organization_id)
            & (func.lower(Invitation.email) == email.strip().lower())
            & (Invitation.accepted_at.is_(None))
            & (Invitation.expires_at > utc_now_naive())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
