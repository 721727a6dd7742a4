"""Create PlatformAdmin rows for every email on the PLATFORM_SUPERADMINS allowlist.

Revoked grants for allowlisted users are restored. Users who have not
registered yet are reported and skipped.

Usage:
    python -m scripts.bootstrap_superadmin --apply

Default: dry-run (writes nothing).
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import PlatformAdmin
from takt.core.database.repositories import PlatformAdminRepository, UserRepository
from takt.core.models.domain.enums import PlatformAdminRole
from takt.server.core.config import settings

from .common import build_parser, mode_label, open_session

MISSING_USER = "missing_user"
CREATED = "created"
RESTORED = "restored"
ALREADY_ACTIVE = "already_active"


@dataclass(frozen=True)
class BootstrapOutcome:
    email: str
    status: str
    user_id: str = ""


async def bootstrap(session: AsyncSession, emails: Sequence[str], *, apply: bool) -> List[BootstrapOutcome]:
    users = UserRepository(session)
    admins = PlatformAdminRepository(session)
    outcomes: List[BootstrapOutcome] = []

    for email in emails:
        user = await users.get_by_email(email)
        if user is None:
            outcomes.append(BootstrapOutcome(email=email, status=MISSING_USER))
            continue

        admin = await admins.get_for_user(user.id)
        if admin is None:
            status = CREATED
            if apply:
                session.add(PlatformAdmin(user_id=user.id, role=PlatformAdminRole.SUPER_ADMIN.value))
        elif admin.revoked_at is not None:
            status = RESTORED
            if apply:
                admin.revoked_at = None
                admin.revoked_by = None
                session.add(admin)
        else:
            status = ALREADY_ACTIVE
        outcomes.append(BootstrapOutcome(email=email, status=status, user_id=user.id))

    if apply:
        await session.commit()
    return outcomes


async def run(database_url: Optional[str], apply: bool) -> int:
    emails = settings.platform_superadmins
    if not emails:
        print("PLATFORM_SUPERADMINS is not set. Example: PLATFORM_SUPERADMINS=ops@teamtakt.app")
        return 1

    print(f"Allowlisted emails: {', '.join(emails)}")
    async with open_session(database_url) as session:
        outcomes = await bootstrap(session, emails, apply=apply)

    for outcome in outcomes:
        if outcome.status == MISSING_USER:
            print(f"  {outcome.email}: no account yet, they need to register first")
        else:
            print(f"  {outcome.email} ({outcome.user_id}): {outcome.status}")
    print(f"[{mode_label(apply)}] processed={len(outcomes)}")
    return 0


def main() -> None:
    parser = build_parser(__doc__, apply=True)
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url, args.apply)))


if __name__ == "__main__":
    main()
