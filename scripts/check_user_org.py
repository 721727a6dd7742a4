"""Show a user's organization memberships and validate their current organization.

Usage:
    python -m scripts.check_user_org someone@example.com
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import Organization, OrganizationMembership, User
from takt.core.database.repositories import OrganizationRepository, UserRepository

from .common import build_parser, open_session


@dataclass
class UserOrgReport:
    user: User
    memberships: List[Tuple[OrganizationMembership, Organization]] = field(default_factory=list)
    current_org: Optional[Organization] = None

    @property
    def problems(self) -> List[str]:
        """Inconsistencies that would break organization scoping for this user."""
        user = self.user
        if not user.current_org_id:
            return ["no current organization is set"]
        if self.current_org is None:
            return [f"current organization {user.current_org_id} does not exist"]
        if all(org.id != user.current_org_id for _, org in self.memberships):
            return [f"current organization {user.current_org_id} is not one of the user's memberships"]
        return []


async def check_user_org(session: AsyncSession, email: str) -> Optional[UserOrgReport]:
    user = await UserRepository(session).get_by_email(email)
    if user is None:
        return None
    memberships = await OrganizationRepository(session).list_memberships_for_user(user.id)
    report = UserOrgReport(user=user, memberships=memberships)
    if user.current_org_id:
        report.current_org = await session.get(Organization, user.current_org_id)
    return report


async def run(database_url: Optional[str], email: str) -> int:
    async with open_session(database_url) as session:
        report = await check_user_org(session, email)

    if report is None:
        print(f"User not found: {email}")
        return 1

    user = report.user
    print(f"User: {user.full_name} ({user.email}) id={user.id}")
    print(f"Current org: {user.current_org_id}")
    print("Memberships:")
    for membership, org in report.memberships:
        marker = "*" if org.id == user.current_org_id else " "
        print(f"  {marker} {org.name} ({org.id}) role={membership.role} status={org.status}")

    for problem in report.problems:
        print(f"WARNING: {problem}")
    if not report.problems:
        print(f"Current org is valid: {report.current_org.name}")
    return 1 if report.problems else 0


def main() -> None:
    parser = build_parser(__doc__)
    parser.add_argument("email", help="Email of the user to check")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url, args.email)))


if __name__ == "__main__":
    main()
