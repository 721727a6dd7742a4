"""
Organization provisioning.

Creating a tenant always creates its settings row and, when an email
domain is given, the organization's primary domain, in the caller's
transaction.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import Organization, OrganizationDomain, OrganizationSettings
from takt.core.database.repositories import OrganizationRepository
from takt.core.models.domain.enums import OrganizationStatus, SubscriptionStatus, SubscriptionTier

# Shared mailbox providers never identify an organization.
PUBLIC_EMAIL_DOMAINS = frozenset(
    {
        "gmail.com",
        "googlemail.com",
        "outlook.com",
        "hotmail.com",
        "live.com",
        "yahoo.com",
        "icloud.com",
        "me.com",
        "aol.com",
        "proton.me",
        "protonmail.com",
    }
)


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].strip().lower()


def is_public_domain(domain: str) -> bool:
    return domain in PUBLIC_EMAIL_DOMAINS


def suggested_org_name(domain: str) -> str:
    """``acme-logistics.com`` -> ``Acme Logistics``."""
    label = domain.split(".")[0]
    return " ".join(part.capitalize() for part in re.split(r"[-_]", label) if part)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "org"


async def unique_slug(session: AsyncSession, name: str) -> str:
    repo = OrganizationRepository(session)
    base = slugify(name)
    slug, n = base, 1
    while await repo.get_by_slug(slug) is not None:
        n += 1
        slug = f"{base}-{n}"
    return slug


async def provision_organization(
    session: AsyncSession,
    *,
    name: str,
    slug: str,
    domain: Optional[str] = None,
    country: Optional[str] = None,
    subscription_tier: str = SubscriptionTier.STARTER.value,
    subscription_status: str = SubscriptionStatus.TRIALING.value,
) -> Tuple[Organization, Optional[OrganizationDomain]]:
    """
    Stage a new organization with its settings and optional verified primary domain.

    Rows are flushed but not committed; the caller commits together with its own changes.
    """
    org = Organization(
        name=name,
        slug=slug,
        country=country or "SA",
        subscription_tier=subscription_tier,
        subscription_status=subscription_status,
        status=OrganizationStatus.ACTIVE.value,
        is_active=True,
    )
    session.add(org)
    await session.flush()
    session.add(OrganizationSettings(organization_id=org.id))

    org_domain = None
    if domain:
        org_domain = OrganizationDomain(organization_id=org.id, domain=domain.lower(), is_primary=True, is_verified=True)
        session.add(org_domain)
    return org, org_domain
