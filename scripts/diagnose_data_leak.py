"""Look for ways one tenant could see another tenant's data.

Reports:
1. Every organization with its member and data counts
2. Users without memberships, and users whose current organization is not one of theirs
3. Planning rows that reference master data owned by a different organization

Usage:
    python -m scripts.diagnose_data_leak
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.entities import (
    DemandForecast,
    Location,
    Organization,
    OrganizationMembership,
    Party,
    PlanningWeek,
    SupplyCommitment,
    TruckType,
    User,
)
from takt.server.services.superadmin import count_by

from .common import RULE, build_parser, open_session


@dataclass
class OrganizationCounts:
    organization: Organization
    counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class LeakReport:
    organizations: List[OrganizationCounts] = field(default_factory=list)
    users_without_membership: List[User] = field(default_factory=list)
    current_org_mismatches: List[User] = field(default_factory=list)
    cross_org_references: Dict[str, int] = field(default_factory=dict)

    @property
    def has_leaks(self) -> bool:
        return bool(self.current_org_mismatches) or any(self.cross_org_references.values())


# (label, planning model, foreign key column, referenced model)
CROSS_ORG_CHECKS = (
    ("demand_forecasts.party_id", DemandForecast, DemandForecast.party_id, Party),
    ("demand_forecasts.pickup_location_id", DemandForecast, DemandForecast.pickup_location_id, Location),
    ("demand_forecasts.dropoff_location_id", DemandForecast, DemandForecast.dropoff_location_id, Location),
    ("demand_forecasts.planning_week_id", DemandForecast, DemandForecast.planning_week_id, PlanningWeek),
    ("supply_commitments.party_id", SupplyCommitment, SupplyCommitment.party_id, Party),
    ("supply_commitments.planning_week_id", SupplyCommitment, SupplyCommitment.planning_week_id, PlanningWeek),
    ("supply_commitments.truck_type_id", SupplyCommitment, SupplyCommitment.truck_type_id, TruckType),
)


async def cross_org_reference_count(session: AsyncSession, model: Any, fk: Any, target: Any) -> int:
    stmt = (
        select(func.count())
        .select_from(model)
        .join(target, target.id == fk)
        .where(target.organization_id != model.organization_id)
    )
    return (await session.execute(stmt)).scalar_one()


async def organization_counts(session: AsyncSession) -> List[OrganizationCounts]:
    orgs = list((await session.execute(select(Organization).order_by(Organization.created_at))).scalars().all())
    ids = [org.id for org in orgs]
    columns = {
        "members": OrganizationMembership.organization_id,
        "parties": Party.organization_id,
        "locations": Location.organization_id,
        "demand_forecasts": DemandForecast.organization_id,
        "supply_commitments": SupplyCommitment.organization_id,
    }
    counts = {name: await count_by(session, column, ids) for name, column in columns.items()}
    return [
        OrganizationCounts(organization=org, counts={name: counts[name].get(org.id, 0) for name in columns})
        for org in orgs
    ]


async def diagnose(session: AsyncSession) -> LeakReport:
    report = LeakReport(organizations=await organization_counts(session))

    users = list((await session.execute(select(User).order_by(User.email))).scalars().all())
    memberships: Dict[str, Set[str]] = {}
    result = await session.execute(select(OrganizationMembership.user_id, OrganizationMembership.organization_id))
    for user_id, org_id in result.all():
        memberships.setdefault(user_id, set()).add(org_id)

    for user in users:
        orgs = memberships.get(user.id, set())
        if not orgs:
            report.users_without_membership.append(user)
        if user.current_org_id and user.current_org_id not in orgs:
            report.current_org_mismatches.append(user)

    for label, model, fk, target in CROSS_ORG_CHECKS:
        report.cross_org_references[label] = await cross_org_reference_count(session, model, fk, target)
    return report


def print_report(report: LeakReport) -> None:
    print("ORGANIZATIONS")
    print(RULE)
    for entry in report.organizations:
        org = entry.organization
        counts = ", ".join(f"{name}={count}" for name, count in entry.counts.items())
        print(f"{org.name} ({org.slug}) id={org.id} status={org.status}")
        print(f"  {counts}")

    print()
    print("USERS")
    print(RULE)
    for user in report.users_without_membership:
        print(f"WARNING: {user.email} has no organization memberships")
    for user in report.current_org_mismatches:
        print(f"CRITICAL: {user.email} current organization {user.current_org_id} is not one of their memberships")
    if not report.users_without_membership and not report.current_org_mismatches:
        print("All users have consistent memberships")

    print()
    print("CROSS-ORGANIZATION REFERENCES")
    print(RULE)
    for label, count in report.cross_org_references.items():
        print(f"{'CRITICAL' if count else 'ok':<8} {label}: {count}")


async def run(database_url: Optional[str]) -> int:
    async with open_session(database_url) as session:
        report = await diagnose(session)
    print_report(report)
    return 1 if report.has_leaks else 0


def main() -> None:
    parser = build_parser(__doc__)
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.database_url)))


if __name__ == "__main__":
    main()
