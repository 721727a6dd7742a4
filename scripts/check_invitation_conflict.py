"""Explain why an invitation to an email address is being rejected.

Reports the existing account (and its memberships) and every unaccepted
invitation for the address, flagging the expired ones.

Usage:
    python -m scripts.check_invitation_conflict someone@example.com
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import Invitation, Organization, User
from takt.core.database.repositories import OrganizationRepository, UserRepository

from .common import build_parser, open_session, short_token


@dataclass
class InvitationConflict:
    email: str
    user: Optional[User] = None
    organizations: List[str] = field(default_factory=list)
    invitations: List[Invitation] = field(default_factory=list)
    organization_names: Dict[str, str] = field(default_factory=dict)


async def unaccepted_invitations(session: AsyncSession, email: str) -> List[Invitation]:
    result = await session.execute(
        select(Invitation)
        .where((func.lower(Invitation.email) == email.strip().lower()) & (Invitation.accepted_at.is_(None)))
        .order_by(Invitation.created_at.desc())
    )
    return list(result.scalars().all())


async def check_conflict(session: AsyncSession, email: str) -> InvitationConflict:
    report = InvitationConflict(email=email)
    report.user = await UserRepository(session).get_by_email(email)
    if report.user is not None:
        memberships = await OrganizationRepository(session).list_memberships_for_user(report.user.id)
        report.organizations = [f"{org.name} ({membership.role})" for membership, org in memberships]

    report.invitations = await unaccepted_invitations(session, email)
    org_ids = sorted({inv.organization_id for inv in report.invitations})
    if org_ids:
        result = await session.execute(select(Organization.id, Organization.name).where(Organization.id.in_(org_ids)))
        report.organization_names = {org_id: name for org_id, name in result.all()}
    return report


async def run(database_url: Optional[str], email: str) -> None:
    async with open_session(database_url) as session:
        report = await check_conflict(session, email)

    if report.user is None:
        print(f"No account exists for {email}")
    else:
        print(f"Account exists: {report.user.full_name} ({report.user.id})")
        for name in report.organizations:
            print(f"  - {name}")

    if not report.invitations:
        print("No unaccepted invitations")
        return

    now = utc_now_naive()
    print(f"{len(report.invitations)} unaccepted invitation(s):")
    for inv in report.invitations:
        org_name = report.organization_names.get(inv.organization_id, "Unknown")
        expired = " EXPIRED" if inv.is_expired(now) else ""
        print(
            f"  {org_name}: role={inv.role} created={inv.created_at.isoformat()} "
            f"expires={inv.expires_at.isoformat()} token={short_token(inv.token)}{expired}"
        )
    print(f"Remove them with: python -m scripts.delete_invitation {email} --apply")


def main() -> None:
    parser = build_parser(__doc__)
    parser.add_argument("email", help="Invited email address")
    args = parser.parse_args()
    asyncio.run(run(args.database_url, args.email))


if __name__ == "__main__":
    main()
