"""List the most recently registered users.

Usage:
    python -m scripts.list_users --limit 20
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.entities import User

from .common import build_parser, open_session


async def recent_users(session: AsyncSession, limit: int = 10) -> List[User]:
    result = await session.execute(select(User).order_by(User.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def run(database_url: Optional[str], limit: int) -> None:
    async with open_session(database_url) as session:
        users = await recent_users(session, limit)

    print(f"{'email':<40} {'verified':<9} {'active':<7} created")
    for user in users:
        print(f"{user.email:<40} {str(user.email_verified):<9} {str(user.is_active):<7} {user.created_at.isoformat()}")
    print(f"{len(users)} user(s)")


def main() -> None:
    parser = build_parser(__doc__)
    parser.add_argument("--limit", type=int, default=10, help="Number of users to show (default 10)")
    args = parser.parse_args()
    asyncio.run(run(args.database_url, args.limit))


if __name__ == "__main__":
    main()
