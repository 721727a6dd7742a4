"""Unit tests for the organization audit trail and its feed formatting."""

import pytest
from sqlmodel import select

from takt.core.audit import (
    AuditAction,
    create_audit_log,
    format_audit_message,
    format_route,
    get_action_category,
    get_action_icon,
)
from takt.core.database.entities import AuditLog


class TestCreateAuditLog:
    async def test_writes_entry(self, session, make_org, make_user):
        org = await make_org()
        user = await make_user(org=org)

        entry = await create_audit_log(
            session,
            action=AuditAction.TRUCK_TYPE_CREATED,
            user_id=user.id,
            organization_id=org.id,
            entity_type="truck_type",
            entity_id="tt-1",
            metadata={"name": "Reefer"},
        )

        stored = (await session.execute(select(AuditLog))).scalars().one()
        assert stored.id == entry.id
        assert stored.audit_metadata == {"name": "Reefer"}

    async def test_failure_is_swallowed(self, session, make_org):
        org = await make_org()

        entry = await create_audit_log(session, action=None, user_id=None, organization_id=org.id)

        assert entry is None
        assert (await session.execute(select(AuditLog))).scalars().all() == []

    async def test_failure_leaves_request_objects_loaded(self, session, make_org, make_user):
        org = await make_org()
        user = await make_user(org=org)

        await create_audit_log(session, action=None, user_id=user.id, organization_id=org.id)

        assert "email" in user.__dict__
        assert user.email == "planner@acme.com"


@pytest.mark.parametrize(
    "route_key,expected",
    [
        ("Riyadh -> Jeddah", "Riyadh → Jeddah"),
        ("Riyadh->Jeddah", "Riyadh → Jeddah"),
        (None, ""),
        ("", ""),
    ],
)
def test_format_route(route_key, expected):
    assert format_route(route_key) == expected


@pytest.mark.parametrize(
    "action,metadata,expected",
    [
        (
            "demand.created",
            {"routeKey": "Riyadh -> Jeddah", "partyName": "Almarai", "day1Loads": 5, "day2Loads": 3},
            "created 8 loads for Almarai on Riyadh → Jeddah route",
        ),
        (
            "demand.created",
            {"routeKey": "Riyadh -> Jeddah", "clientName": "Almarai", "week1Loads": 1},
            "created 1 load for Almarai on Riyadh → Jeddah route",
        ),
        ("demand.created", {}, "created a demand forecast"),
        (
            "demand.deleted",
            {"routeKey": "Riyadh -> Jeddah", "partyName": "Almarai"},
            "deleted demand forecast for Almarai on Riyadh → Jeddah route",
        ),
        (
            "supply.committed",
            {"routeKey": "Riyadh -> Jeddah", "supplierName": "Bahri", "day1Committed": 2, "day7Committed": 2},
            "committed 4 trucks from Bahri for Riyadh → Jeddah route",
        ),
        ("supply.deleted", {}, "deleted a supply commitment"),
        ("user.logged_in", None, "logged in"),
        ("otp.verified", None, "verified OTP and completed registration"),
        (
            "user.role_changed",
            {"previousRole": "VIEWER", "newRole": "ADMIN"},
            "changed role from VIEWER to ADMIN",
        ),
        ("truck_type.created", {"name": "Reefer"}, 'created truck type "Reefer"'),
        ("city.created", {}, 'created city "Unknown"'),
        ("organization.switched", {"organizationName": "Globex"}, 'switched to organization "Globex"'),
        ("organization.member_invited", {"email": "sam@acme.com"}, "invited sam@acme.com to the organization"),
        ("planning_week.locked", None, "planning week locked"),
    ],
)
def test_format_audit_message(action, metadata, expected):
    assert format_audit_message(action, metadata) == expected


@pytest.mark.parametrize(
    "action,category,icon",
    [
        ("demand.created", "create", "📦"),
        ("supply.committed", "create", "🚛"),
        ("truck_type.updated", "update", "🚚"),
        ("organization.member_removed", "delete", "🏢"),
        ("user.logged_in", "auth", "🔐"),
        ("user.logged_out", "auth", "🚪"),
        ("otp.verified", "auth", "📝"),
        ("planning_week.locked", "other", "📝"),
    ],
)
def test_category_and_icon(action, category, icon):
    assert get_action_category(action) == category
    assert get_action_icon(action) == icon
