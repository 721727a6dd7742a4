"""Explain whether a user is recognized as a platform admin, and why.

Usage:
    python -m scripts.check_platform_admin ops@teamtakt.app
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import PlatformAdmin, User
from takt.core.database.repositories import PlatformAdminRepository, UserRepository
from takt.core.platform_admin import is_allowlisted
from takt.server.core.config import settings

from .common import RULE, build_parser, open_session


@dataclass
class PlatformAdminReport:
    email: str
    user: Optional[User] = None
    grant: Optional[PlatformAdmin] = None
    allowlisted: bool = False

    @property
    def is_platform_admin(self) -> bool:
        return self.user is not None and (self.grant is not None or self.allowlisted)


async def check_platform_admin(session: AsyncSession, email: str, allowlist: Sequence[str]) -> PlatformAdminReport:
    report = PlatformAdminReport(email=email, allowlisted=is_allowlisted(email, allowlist))
    report.user = await UserRepository(session).get_by_email(email)
    if report.user is not None:
        report.grant = await PlatformAdminRepository(session).get_active_for_user(report.user.id)
    return report


def print_report(report: PlatformAdminReport) -> None:
    print(f"Platform admin status for {report.email}")
    print(RULE)
    if report.user is None:
        print("User not found. They need to register first.")
        return

    user = report.user
    print(f"User: {user.full_name} ({user.id}), active={user.is_active}, current org={user.current_org_id}")
    if report.grant is not None:
        print(f"PlatformAdmin row: role={report.grant.role}, granted {report.grant.granted_at.isoformat()}")
    else:
        print("PlatformAdmin row: none active")
    print(f"Allowlist: {'listed' if report.allowlisted else 'not listed'}")
    print(RULE)
    if report.is_platform_admin:
        print("Recognized as platform admin.")
    else:
        print("NOT recognized as platform admin. Add the email to PLATFORM_SUPERADMINS and run")
        print("  python -m scripts.bootstrap_superadmin --apply")


async def run(database_url: Optional[str], email: str) -> int:
    async with open_session(database_url) as session:
        report = await check_platform_admin(session, email, settings.platform_superadmins)
    print_report(report)
    return 0 if report.is_platform_admin else 1


def main() -> None:
    parser = build_parser(__doc__)
    parser.add_argument("email", help="Email of the user to check")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url, args.email)))


if __name__ == "__main__":
    main()
