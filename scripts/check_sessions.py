"""Audit live login sessions for organization-scoping problems.

For every unexpired session, checks that the owner has a current
organization and that it is one of their memberships. A mismatch means the
owner would query another tenant's data.

Usage:
    python -m scripts.check_sessions
    python -m scripts.check_sessions --email someone@example.com
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import OrganizationMembership, User, UserSession

from .common import RULE, build_parser, open_session, short_token

NO_CURRENT_ORG = "no_current_org"
NOT_A_MEMBER = "not_a_member"


@dataclass
class SessionFinding:
    session: UserSession
    user: User
    membership_org_ids: Set[str] = field(default_factory=set)

    @property
    def issue(self) -> Optional[str]:
        if not self.user.current_org_id:
            return NO_CURRENT_ORG
        if self.user.current_org_id not in self.membership_org_ids:
            return NOT_A_MEMBER
        return None


async def active_session_findings(session: AsyncSession, email: Optional[str] = None) -> List[SessionFinding]:
    stmt = (
        select(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.expires_at > utc_now_naive())
        .order_by(UserSession.created_at.desc())
    )
    if email:
        stmt = stmt.where(func.lower(User.email) == email.strip().lower())
    rows = (await session.execute(stmt)).all()

    user_ids = sorted({user.id for _, user in rows})
    memberships: Dict[str, Set[str]] = {user_id: set() for user_id in user_ids}
    if user_ids:
        result = await session.execute(
            select(OrganizationMembership.user_id, OrganizationMembership.organization_id).where(
                OrganizationMembership.user_id.in_(user_ids)
            )
        )
        for user_id, org_id in result.all():
            memberships[user_id].add(org_id)

    return [
        SessionFinding(session=user_session, user=user, membership_org_ids=memberships.get(user.id, set()))
        for user_session, user in rows
    ]


async def run(database_url: Optional[str], email: Optional[str]) -> int:
    async with open_session(database_url) as session:
        findings = await active_session_findings(session, email)

    print(f"{len(findings)} active session(s)")
    print(RULE)
    for finding in findings:
        s, user = finding.session, finding.user
        print(f"{user.email} session={s.id} token={short_token(s.token)}")
        print(f"  created={s.created_at.isoformat()} expires={s.expires_at.isoformat()} last={s.last_active_at.isoformat()}")
        print(f"  agent={s.user_agent or 'N/A'} ip={s.ip_address or 'N/A'}")
        print(f"  current org={user.current_org_id} memberships={sorted(finding.membership_org_ids)}")
        if finding.issue == NO_CURRENT_ORG:
            print("  WARNING: user has no current organization")
        elif finding.issue == NOT_A_MEMBER:
            print("  CRITICAL: current organization is not one of the user's memberships")

    problems = [f for f in findings if f.issue]
    print(RULE)
    print(f"{len(problems)} session(s) with scoping problems")
    return 1 if problems else 0


def main() -> None:
    parser = build_parser(__doc__)
    parser.add_argument("--email", default=None, help="Only check sessions of this user")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url, args.email)))


if __name__ == "__main__":
    main()
