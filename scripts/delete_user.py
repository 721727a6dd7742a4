"""Delete a user together with their sessions, credentials, memberships and events.

Users who created demand forecasts or supply commitments are refused unless
``--force`` is given, in which case those planning rows are deleted too.

Usage:
    python -m scripts.delete_user someone@example.com --apply

Default: dry-run (writes nothing).
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.entities import (
    AuditLog,
    DemandForecast,
    DemandForecastTruckType,
    OrganizationMembership,
    SupplyCommitment,
    User,
    UserSession,
)
from takt.core.database.repositories import UserRepository
from takt.server.services.superadmin import authored_planning_rows, count_rows, purge_user_records

from .common import build_parser, mode_label, open_session


@dataclass
class DeletionPlan:
    user: User
    counts: Dict[str, int] = field(default_factory=dict)
    planning_rows: int = 0
    deleted: bool = False


async def plan_deletion(session: AsyncSession, user: User) -> DeletionPlan:
    return DeletionPlan(
        user=user,
        counts={
            "organization_memberships": await count_rows(
                session, OrganizationMembership, OrganizationMembership.user_id == user.id
            ),
            "user_sessions": await count_rows(session, UserSession, UserSession.user_id == user.id),
            "audit_logs": await count_rows(session, AuditLog, AuditLog.user_id == user.id),
        },
        planning_rows=await authored_planning_rows(session, user.id),
    )


async def delete_planning_rows(session: AsyncSession, user_id: str) -> None:
    forecast_ids = select(DemandForecast.id).where(DemandForecast.created_by_id == user_id)
    await session.execute(
        delete(DemandForecastTruckType).where(DemandForecastTruckType.demand_forecast_id.in_(forecast_ids))
    )
    await session.execute(delete(DemandForecast).where(DemandForecast.created_by_id == user_id))
    await session.execute(delete(SupplyCommitment).where(SupplyCommitment.created_by_id == user_id))


async def delete_user(session: AsyncSession, email: str, *, force: bool = False, apply: bool) -> Optional[DeletionPlan]:
    """
    Plan, and with ``apply`` carry out, the deletion of the user owning ``email``.

    Returns:
        The plan, with ``deleted`` set when rows were removed, or None when no
        such user exists
    """
    user = await UserRepository(session).get_by_email(email)
    if user is None:
        return None

    plan = await plan_deletion(session, user)
    if not apply or (plan.planning_rows and not force):
        return plan

    if plan.planning_rows:
        await delete_planning_rows(session, user.id)
    plan.counts.update(await purge_user_records(session, user.id))
    await session.delete(user)
    await session.commit()
    plan.deleted = True
    return plan


async def run(database_url: Optional[str], email: str, force: bool, apply: bool) -> int:
    async with open_session(database_url) as session:
        plan = await delete_user(session, email, force=force, apply=apply)

    if plan is None:
        print(f"User not found: {email}")
        return 1

    print(f"User: {plan.user.full_name} ({plan.user.email}) id={plan.user.id}")
    for table, count in sorted(plan.counts.items()):
        print(f"  {table}: {count}")
    print(f"  planning rows authored: {plan.planning_rows}")

    if plan.planning_rows and not force:
        print("Refusing to delete a user who created planning data; disable the account or pass --force")
        return 1
    print(f"[{mode_label(apply)}] {'deleted' if plan.deleted else 'would delete'} {plan.user.email}")
    return 0


def main() -> None:
    parser = build_parser(__doc__, apply=True)
    parser.add_argument("email", help="Email of the user to delete")
    parser.add_argument("--force", action="store_true", help="Also delete demand and supply rows the user created")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url, args.email, args.force, args.apply)))


if __name__ == "__main__":
    main()
