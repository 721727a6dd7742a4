"""Unit tests for the master data (repositories) endpoints."""

import pytest
from httpx import AsyncClient
from sqlmodel import select

from takt.core.database.entities import AuditLog, TruckType

pytestmark = pytest.mark.asyncio

REPOSITORIES = "/api/v1/repositories"


class TestTruckTypes:
    async def test_list_is_sorted_and_scoped(self, client: AsyncClient, session, planning, foreign_planning):
        session.add(TruckType(organization_id=planning.org.id, name="Curtainsider"))
        await session.commit()

        response = await client.get(f"{REPOSITORIES}/truck-types")

        assert response.status_code == 200
        assert [t["name"] for t in response.json()["data"]] == ["Curtainsider", "Flatbed"]

    async def test_active_only(self, client: AsyncClient, session, planning):
        session.add(TruckType(organization_id=planning.org.id, name="Tipper", is_active=False))
        await session.commit()

        response = await client.get(f"{REPOSITORIES}/truck-types", params={"activeOnly": "true"})

        assert [t["name"] for t in response.json()["data"]] == ["Flatbed"]

    async def test_create(self, client: AsyncClient, session, planning):
        response = await client.post(
            f"{REPOSITORIES}/truck-types", json={"name": "  Reefer ", "capacityTons": 18.5}
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Reefer"
        assert data["capacityTons"] == 18.5
        assert data["isActive"] is True

        result = await session.execute(select(AuditLog).where(AuditLog.entity_id == data["id"]))
        assert result.scalars().one().action == "truck_type.created"

    async def test_duplicate_name_ignores_case(self, client: AsyncClient, planning):
        response = await client.post(f"{REPOSITORIES}/truck-types", json={"name": "FLATBED"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE"

    async def test_same_name_in_another_organization_is_allowed(
        self, client: AsyncClient, planning, foreign_planning, login_as
    ):
        await login_as(foreign_planning.admin)

        response = await client.post(f"{REPOSITORIES}/truck-types", json={"name": "Reefer"})
        assert response.status_code == 201

        await login_as(planning.admin)
        response = await client.post(f"{REPOSITORIES}/truck-types", json={"name": "Reefer"})
        assert response.status_code == 201

    async def test_update(self, client: AsyncClient, planning):
        response = await client.patch(
            f"{REPOSITORIES}/truck-types/{planning.truck_type.id}", json={"isActive": False}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isActive"] is False
        assert data["name"] == "Flatbed"

    async def test_rename_to_existing_name(self, client: AsyncClient, session, planning):
        other = TruckType(organization_id=planning.org.id, name="Lowbed")
        session.add(other)
        await session.commit()

        response = await client.patch(f"{REPOSITORIES}/truck-types/{other.id}", json={"name": "flatbed"})

        assert response.status_code == 409

    async def test_update_foreign_truck_type_is_forbidden(self, client: AsyncClient, planning, foreign_planning):
        response = await client.patch(
            f"{REPOSITORIES}/truck-types/{foreign_planning.truck_type.id}", json={"name": "Mine"}
        )

        assert response.status_code == 403

    async def test_delete_unused(self, client: AsyncClient, session, planning):
        response = await client.delete(f"{REPOSITORIES}/truck-types/{planning.truck_type.id}")

        assert response.status_code == 200
        assert await session.get(TruckType, planning.truck_type.id) is None

    async def test_delete_in_use(self, client: AsyncClient, session, planning):
        created = await client.post("/api/v1/demand", json=planning.demand_body())
        assert created.status_code == 201

        response = await client.delete(f"{REPOSITORIES}/truck-types/{planning.truck_type.id}")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IN_USE"
        assert await session.get(TruckType, planning.truck_type.id) is not None

    async def test_viewer_cannot_create(self, client: AsyncClient, planning, make_user, login_as):
        await login_as(await make_user("viewer@acme.com", org=planning.org, role="VIEWER"))

        response = await client.post(f"{REPOSITORIES}/truck-types", json={"name": "Reefer"})

        assert response.status_code == 403

    async def test_supply_planner_can_create(self, client: AsyncClient, planning, make_user, login_as):
        await login_as(await make_user("supply@acme.com", org=planning.org, role="SUPPLY_PLANNER"))

        response = await client.post(f"{REPOSITORIES}/truck-types", json={"name": "Reefer"})

        assert response.status_code == 201


class TestParties:
    async def test_filter_by_type(self, client: AsyncClient, planning):
        response = await client.get(f"{REPOSITORIES}/parties", params={"partyType": "SUPPLIER"})

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["data"]] == ["Bahri Trucking"]

    async def test_list_all(self, client: AsyncClient, planning):
        response = await client.get(f"{REPOSITORIES}/parties")

        assert [p["name"] for p in response.json()["data"]] == ["Almarai", "Bahri Trucking"]

    async def test_create_supplier_is_audited(self, client: AsyncClient, session, planning):
        response = await client.post(
            f"{REPOSITORIES}/parties", json={"name": "Naqel", "code": "NQL", "partyType": "SUPPLIER"}
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["partyType"] == "SUPPLIER"
        result = await session.execute(select(AuditLog).where(AuditLog.entity_id == data["id"]))
        assert result.scalars().one().action == "supplier.created"

    async def test_party_defaults_to_client(self, client: AsyncClient, planning):
        response = await client.post(f"{REPOSITORIES}/parties", json={"name": "Savola"})

        assert response.json()["data"]["partyType"] == "CLIENT"

    async def test_unknown_party_type(self, client: AsyncClient, planning):
        response = await client.post(f"{REPOSITORIES}/parties", json={"name": "Savola", "partyType": "BROKER"})

        assert response.status_code == 400
        assert "partyType" in response.json()["error"]["details"]


class TestLocations:
    async def test_create_and_list(self, client: AsyncClient, planning):
        response = await client.post(
            f"{REPOSITORIES}/locations", json={"name": "Dammam", "code": "DMM", "region": "Eastern"}
        )
        assert response.status_code == 201

        listed = await client.get(f"{REPOSITORIES}/locations")

        assert [loc["name"] for loc in listed.json()["data"]] == ["Dammam", "Jeddah", "Riyadh"]
        assert listed.json()["data"][0]["region"] == "Eastern"

    async def test_name_is_required(self, client: AsyncClient, planning):
        response = await client.post(f"{REPOSITORIES}/locations", json={"name": ""})

        assert response.status_code == 400


class TestPlanningWeeks:
    async def test_create(self, client: AsyncClient, planning):
        response = await client.post(
            f"{REPOSITORIES}/planning-weeks",
            json={"year": 2026, "weekNumber": 43, "weekStart": "2026-10-18", "weekEnd": "2026-10-24"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["isLocked"] is False

    async def test_list_most_recent_first(self, client: AsyncClient, planning):
        await client.post(
            f"{REPOSITORIES}/planning-weeks",
            json={"year": 2026, "weekNumber": 43, "weekStart": "2026-10-18", "weekEnd": "2026-10-24"},
        )

        response = await client.get(f"{REPOSITORIES}/planning-weeks")

        assert [w["weekNumber"] for w in response.json()["data"]] == [43, 42]

    async def test_duplicate_week(self, client: AsyncClient, planning):
        response = await client.post(
            f"{REPOSITORIES}/planning-weeks",
            json={"year": 2026, "weekNumber": 42, "weekStart": "2026-10-11", "weekEnd": "2026-10-17"},
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE"

    async def test_end_before_start(self, client: AsyncClient, planning):
        response = await client.post(
            f"{REPOSITORIES}/planning-weeks",
            json={"year": 2026, "weekNumber": 44, "weekStart": "2026-10-31", "weekEnd": "2026-10-25"},
        )

        assert response.status_code == 400


class TestDemandCategories:
    async def test_create_and_list(self, client: AsyncClient, planning):
        response = await client.post(f"{REPOSITORIES}/demand-categories", json={"name": "Chilled", "code": "CHL"})
        assert response.status_code == 201

        listed = await client.get(f"{REPOSITORIES}/demand-categories")

        assert [c["name"] for c in listed.json()["data"]] == ["Chilled"]

    async def test_viewer_cannot_create(self, client: AsyncClient, planning, make_user, login_as):
        await login_as(await make_user("viewer@acme.com", org=planning.org, role="VIEWER"))

        response = await client.post(f"{REPOSITORIES}/demand-categories", json={"name": "Chilled"})

        assert response.status_code == 403
