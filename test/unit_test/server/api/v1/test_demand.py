"""Unit tests for the demand forecast endpoints."""

import pytest
from httpx import AsyncClient
from sqlmodel import select

from takt.core.database.entities import ActivityEvent, AuditLog, DemandCategory, DemandForecast, DemandForecastTruckType, Party
from takt.core.database.repositories import OrganizationRepository

pytestmark = pytest.mark.asyncio

DEMAND = "/api/v1/demand"


async def create_forecast(client: AsyncClient, planning, **overrides) -> dict:
    response = await client.post(DEMAND, json=planning.demand_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateDemand:
    async def test_create_derives_route_and_total(self, client: AsyncClient, session, planning):
        """The route key comes from the location names and the total from the daily loads."""
        data = await create_forecast(client, planning, day3Loads=2)

        assert data["routeKey"] == "Riyadh -> Jeddah"
        assert data["day1Qty"] == 5
        assert data["day3Qty"] == 2
        assert data["totalQty"] == 10
        assert data["organizationId"] == planning.org.id
        assert data["createdById"] == planning.admin.id
        assert data["party"] == {"id": planning.customer.id, "name": "Almarai"}
        assert data["pickupLocation"]["name"] == "Riyadh"
        assert data["truckTypes"] == [{"id": planning.truck_type.id, "name": "Flatbed"}]
        assert data["planningWeek"]["weekNumber"] == 42

        links = await session.execute(
            select(DemandForecastTruckType).where(DemandForecastTruckType.demand_forecast_id == data["id"])
        )
        assert len(links.scalars().all()) == 1

    async def test_weekly_loads_are_used_when_no_day_is_planned(self, client: AsyncClient, planning):
        data = await create_forecast(
            client, planning, day1Loads=None, day2Loads=None, week1Loads=20, week2Loads=15
        )

        assert data["totalQty"] == 35

    async def test_body_cannot_choose_the_organization(self, client: AsyncClient, planning, foreign_planning):
        """A client-supplied organizationId is ignored; the row lands in the caller's organization."""
        data = await create_forecast(client, planning, organizationId=foreign_planning.org.id)

        assert data["organizationId"] == planning.org.id

    async def test_duplicate_route_for_same_client(self, client: AsyncClient, planning):
        await create_forecast(client, planning)

        response = await client.post(DEMAND, json=planning.demand_body(day1Loads=1))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE"

    async def test_same_route_in_another_category_is_allowed(self, client: AsyncClient, session, planning):
        category = DemandCategory(organization_id=planning.org.id, name="Chilled")
        session.add(category)
        await session.commit()
        await create_forecast(client, planning)

        data = await create_forecast(client, planning, demandCategoryId=category.id)

        assert data["demandCategory"] == {"id": category.id, "name": "Chilled"}

    async def test_truck_type_is_required(self, client: AsyncClient, planning):
        response = await client.post(DEMAND, json=planning.demand_body(truckTypeIds=[]))

        assert response.status_code == 400
        assert "truckTypeIds" in response.json()["error"]["details"]

    async def test_negative_loads_are_rejected(self, client: AsyncClient, planning):
        response = await client.post(DEMAND, json=planning.demand_body(day1Loads=-1))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_locked_week(self, client: AsyncClient, session, planning):
        planning.week.is_locked = True
        session.add(planning.week)
        await session.commit()

        response = await client.post(DEMAND, json=planning.demand_body())

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "LOCKED"

    async def test_foreign_location_is_not_found(self, client: AsyncClient, planning, foreign_planning):
        """Master data of another organization cannot be referenced."""
        response = await client.post(DEMAND, json=planning.demand_body(pickupCityId=foreign_planning.riyadh.id))

        assert response.status_code == 404

    async def test_foreign_week_is_not_found(self, client: AsyncClient, planning, foreign_planning):
        response = await client.post(DEMAND, json=planning.demand_body(planningWeekId=foreign_planning.week.id))

        assert response.status_code == 404

    async def test_required_category(self, client: AsyncClient, session, planning):
        settings_row = await OrganizationRepository(session).get_settings(planning.org.id)
        settings_row.demand_category_enabled = True
        settings_row.demand_category_required = True
        session.add(settings_row)
        await session.commit()

        response = await client.post(DEMAND, json=planning.demand_body())

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Category is required"

    async def test_viewer_cannot_create(self, client: AsyncClient, planning, make_user, login_as):
        await login_as(await make_user("viewer@acme.com", org=planning.org, role="VIEWER"))

        response = await client.post(DEMAND, json=planning.demand_body())

        assert response.status_code == 403

    async def test_supply_planner_cannot_create(self, client: AsyncClient, planning, make_user, login_as):
        await login_as(await make_user("supply@acme.com", org=planning.org, role="SUPPLY_PLANNER"))

        response = await client.post(DEMAND, json=planning.demand_body())

        assert response.status_code == 403

    async def test_create_is_audited(self, client: AsyncClient, session, planning):
        data = await create_forecast(client, planning)

        result = await session.execute(select(AuditLog).where(AuditLog.entity_id == data["id"]))
        entry = result.scalars().one()
        assert entry.action == "demand.created"
        assert entry.organization_id == planning.org.id
        assert entry.audit_metadata["clientName"] == "Almarai"
        assert entry.audit_metadata["day1Loads"] == 5

    async def test_audit_failure_does_not_fail_create(self, client: AsyncClient, session, planning, broken_audit_log):
        response = await client.post(DEMAND, json=planning.demand_body())

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["routeKey"] == "Riyadh -> Jeddah"
        assert broken_audit_log.called
        audit = await session.execute(select(AuditLog).where(AuditLog.entity_id == data["id"]))
        assert audit.scalars().all() == []
        assert await session.get(DemandForecast, data["id"]) is not None
        events = await session.execute(select(ActivityEvent).where(ActivityEvent.entity_id == data["id"]))
        assert events.scalars().one().actor_user_id == planning.admin.id


class TestListDemand:
    async def test_list_is_paginated(self, client: AsyncClient, session, planning):
        for name in ("Savola", "Nadec"):
            party = Party(organization_id=planning.org.id, name=name)
            session.add(party)
            await session.commit()
            await create_forecast(client, planning, clientId=party.id)
        await create_forecast(client, planning)

        response = await client.get(DEMAND, params={"planningWeekId": planning.week.id, "pageSize": 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {
            "page": 1,
            "pageSize": 2,
            "totalCount": 3,
            "totalPages": 2,
            "hasNextPage": True,
            "hasPreviousPage": False,
        }

    async def test_list_never_returns_other_organizations_rows(
        self, client: AsyncClient, session, planning, foreign_planning
    ):
        """Tenant isolation: rows of another organization are invisible."""
        session.add(
            DemandForecast(
                organization_id=foreign_planning.org.id,
                planning_week_id=foreign_planning.week.id,
                party_id=foreign_planning.customer.id,
                pickup_location_id=foreign_planning.riyadh.id,
                dropoff_location_id=foreign_planning.jeddah.id,
                route_key="Riyadh -> Jeddah",
                day1_qty=9,
                total_qty=9,
                created_by_id=foreign_planning.admin.id,
            )
        )
        await session.commit()
        own = await create_forecast(client, planning)

        unfiltered = await client.get(DEMAND)
        by_foreign_week = await client.get(DEMAND, params={"planningWeekId": foreign_planning.week.id})

        assert [row["id"] for row in unfiltered.json()["data"]] == [own["id"]]
        assert by_foreign_week.json()["data"] == []
        assert by_foreign_week.json()["pagination"]["totalCount"] == 0

    async def test_filter_by_business_type(self, client: AsyncClient, session, planning):
        other = Party(organization_id=planning.org.id, name="Savola")
        session.add(other)
        await session.commit()
        await create_forecast(client, planning)
        adhoc = await create_forecast(client, planning, clientId=other.id, businessType="ADHOC")

        response = await client.get(DEMAND, params={"businessTypes": "ADHOC"})

        assert [row["id"] for row in response.json()["data"]] == [adhoc["id"]]

    async def test_planners_requires_week(self, client: AsyncClient, planning):
        response = await client.get(f"{DEMAND}/planners")

        assert response.status_code == 400

    async def test_planners_lists_authors(self, client: AsyncClient, planning):
        await create_forecast(client, planning)

        response = await client.get(f"{DEMAND}/planners", params={"planningWeekId": planning.week.id})

        assert response.json()["data"] == [{"id": planning.admin.id, "firstName": "Test", "lastName": "User"}]

    async def test_requires_session(self, client: AsyncClient):
        response = await client.get(DEMAND)

        assert response.status_code == 401


class TestSingleDemand:
    async def test_get_foreign_forecast_is_forbidden(self, client: AsyncClient, session, planning, foreign_planning):
        foreign = DemandForecast(
            organization_id=foreign_planning.org.id,
            planning_week_id=foreign_planning.week.id,
            party_id=foreign_planning.customer.id,
            pickup_location_id=foreign_planning.riyadh.id,
            dropoff_location_id=foreign_planning.jeddah.id,
            route_key="Riyadh -> Jeddah",
            created_by_id=foreign_planning.admin.id,
        )
        session.add(foreign)
        await session.commit()

        response = await client.get(f"{DEMAND}/{foreign.id}")
        delete = await client.delete(f"{DEMAND}/{foreign.id}")

        assert response.status_code == 403
        assert delete.status_code == 403
        assert await session.get(DemandForecast, foreign.id) is not None

    async def test_get_missing_forecast(self, client: AsyncClient, planning):
        response = await client.get(f"{DEMAND}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_update_keeps_omitted_loads(self, client: AsyncClient, planning):
        created = await create_forecast(client, planning)

        response = await client.patch(f"{DEMAND}/{created['id']}", json={"day2Loads": 7})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["day1Qty"] == 5
        assert data["day2Qty"] == 7
        assert data["totalQty"] == 12

    async def test_update_rejects_empty_truck_types(self, client: AsyncClient, planning):
        created = await create_forecast(client, planning)

        response = await client.patch(f"{DEMAND}/{created['id']}", json={"truckTypeIds": []})

        assert response.status_code == 400

    async def test_delete_removes_forecast_and_links(self, client: AsyncClient, session, planning):
        created = await create_forecast(client, planning)

        response = await client.delete(f"{DEMAND}/{created['id']}")

        assert response.status_code == 200
        assert await session.get(DemandForecast, created["id"]) is None
        links = await session.execute(
            select(DemandForecastTruckType).where(DemandForecastTruckType.demand_forecast_id == created["id"])
        )
        assert links.scalars().all() == []
