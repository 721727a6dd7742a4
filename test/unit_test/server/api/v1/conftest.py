from dataclasses import dataclass
from datetime import date
from typing import Any, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database.entities import AuditLog, Location, Organization, Party, PlanningWeek, TruckType, User
from takt.core.models.domain.enums import PartyType

ROUTE_KEY = "Riyadh -> Jeddah"


@dataclass
class PlanningSetup:
    """Master data for one organization, enough to plan demand and supply."""

    org: Organization
    admin: User
    week: PlanningWeek
    customer: Party
    supplier: Party
    riyadh: Location
    jeddah: Location
    truck_type: TruckType

    def demand_body(self, **overrides: Any) -> Dict[str, Any]:
        body = {
            "planningWeekId": self.week.id,
            "clientId": self.customer.id,
            "pickupCityId": self.riyadh.id,
            "dropoffCityId": self.jeddah.id,
            "businessType": "REGULAR",
            "truckTypeIds": [self.truck_type.id],
            "day1Loads": 5,
            "day2Loads": 3,
        }
        body.update(overrides)
        return body

    def supply_body(self, **overrides: Any) -> Dict[str, Any]:
        body = {
            "planningWeekId": self.week.id,
            "supplierId": self.supplier.id,
            "routeKey": ROUTE_KEY,
            "truckTypeId": self.truck_type.id,
            "day1Committed": 4,
            "day2Committed": 1,
        }
        body.update(overrides)
        return body


async def seed_planning(session: AsyncSession, org: Organization, admin: User) -> PlanningSetup:
    week = PlanningWeek(
        organization_id=org.id,
        year=2026,
        week_number=42,
        week_start=date(2026, 10, 11),
        week_end=date(2026, 10, 17),
    )
    customer = Party(organization_id=org.id, name="Almarai", party_type=PartyType.CLIENT.value)
    supplier = Party(organization_id=org.id, name="Bahri Trucking", party_type=PartyType.SUPPLIER.value)
    riyadh = Location(organization_id=org.id, name="Riyadh", code="RUH")
    jeddah = Location(organization_id=org.id, name="Jeddah", code="JED")
    truck_type = TruckType(organization_id=org.id, name="Flatbed", capacity_tons=20)
    session.add_all([week, customer, supplier, riyadh, jeddah, truck_type])
    await session.commit()
    return PlanningSetup(
        org=org,
        admin=admin,
        week=week,
        customer=customer,
        supplier=supplier,
        riyadh=riyadh,
        jeddah=jeddah,
        truck_type=truck_type,
    )


@pytest_asyncio.fixture
async def planning(session: AsyncSession, make_org, make_user, login_as) -> PlanningSetup:
    """An organization with master data and a signed-in admin."""
    org = await make_org("Acme Logistics", domain="acme.com")
    admin = await make_user("admin@acme.com", org=org)
    await login_as(admin)
    return await seed_planning(session, org, admin)


@pytest_asyncio.fixture
async def foreign_planning(session: AsyncSession, make_org, make_user) -> PlanningSetup:
    """A second organization with its own master data; nobody is signed in as its admin."""
    org = await make_org("Globex Freight", domain="globex.com")
    admin = await make_user("admin@globex.com", org=org)
    return await seed_planning(session, org, admin)


@pytest.fixture
def broken_audit_log():
    """Make every organization audit insert fail with a NOT NULL violation."""

    def _without_action(**fields: Any) -> AuditLog:
        fields["action"] = None
        return AuditLog(**fields)

    with patch("takt.core.audit.AuditLog", side_effect=_without_action) as factory:
        yield factory
