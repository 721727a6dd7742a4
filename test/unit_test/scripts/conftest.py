from contextlib import asynccontextmanager
from datetime import date

import pytest

from takt.core.database.entities import DemandForecast, Location, Party, PlanningWeek, SupplyCommitment


@pytest.fixture
def use_session(monkeypatch, session):
    """Make a script's ``open_session`` hand out the test session instead of opening its own engine."""

    def _patch(module) -> None:
        @asynccontextmanager
        async def _open_session(database_url=None):
            yield session

        monkeypatch.setattr(module, "open_session", _open_session)

    return _patch


@pytest.fixture
def add_forecast(session):
    """Create a demand forecast authored by ``user`` in ``org``, with its master data."""

    async def _add(org, user, *, party_org=None) -> DemandForecast:
        owner_id = (party_org or org).id
        week = PlanningWeek(
            organization_id=org.id, year=2026, week_number=42, week_start=date(2026, 10, 11), week_end=date(2026, 10, 17)
        )
        party = Party(organization_id=owner_id, name="Almarai")
        pickup = Location(organization_id=org.id, name="Riyadh")
        dropoff = Location(organization_id=org.id, name="Jeddah")
        session.add_all([week, party, pickup, dropoff])
        await session.flush()
        forecast = DemandForecast(
            organization_id=org.id,
            planning_week_id=week.id,
            party_id=party.id,
            pickup_location_id=pickup.id,
            dropoff_location_id=dropoff.id,
            route_key="Riyadh -> Jeddah",
            day1_qty=3,
            total_qty=3,
            created_by_id=user.id,
        )
        session.add(forecast)
        session.add(
            SupplyCommitment(
                organization_id=org.id,
                planning_week_id=week.id,
                party_id=party.id,
                route_key="Riyadh -> Jeddah",
                day1_committed=2,
                total_committed=2,
                created_by_id=user.id,
            )
        )
        await session.commit()
        return forecast

    return _add
