"""Delete the unaccepted invitations for an email address.

Usage:
    python -m scripts.delete_invitation someone@example.com --apply
    python -m scripts.delete_invitation someone@example.com --org-id <id> --apply

Default: dry-run (writes nothing).
"""

from __future__ import annotations

import asyncio
from typing import Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import Invitation

from .check_invitation_conflict import unaccepted_invitations
from .common import build_parser, mode_label, open_session


async def delete_invitations(
    session: AsyncSession, email: str, *, organization_id: Optional[str] = None, apply: bool
) -> int:
    """Return the number of matching invitations, deleting them when ``apply`` is set."""
    matches = [
        inv
        for inv in await unaccepted_invitations(session, email)
        if organization_id is None or inv.organization_id == organization_id
    ]
    if not apply or not matches:
        return len(matches)

    criteria = (func.lower(Invitation.email) == email.strip().lower()) & (Invitation.accepted_at.is_(None))
    if organization_id is not None:
        criteria = criteria & (Invitation.organization_id == organization_id)
    result = await session.execute(delete(Invitation).where(criteria))
    await session.commit()
    return result.rowcount or 0


async def run(database_url: Optional[str], email: str, organization_id: Optional[str], apply: bool) -> None:
    async with open_session(database_url) as session:
        count = await delete_invitations(session, email, organization_id=organization_id, apply=apply)
    verb = "deleted" if apply else "would delete"
    print(f"[{mode_label(apply)}] {verb} {count} invitation(s) for {email}")


def main() -> None:
    parser = build_parser(__doc__, apply=True)
    parser.add_argument("email", help="Invited email address")
    parser.add_argument("--org-id", default=None, help="Only delete invitations to this organization")
    args = parser.parse_args()
    asyncio.run(run(args.database_url, args.email, args.org_id, args.apply))


if __name__ == "__main__":
    main()
