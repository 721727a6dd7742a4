"""Unit tests for best-effort activity logging."""

from unittest.mock import patch

from sqlmodel import select
from starlette.requests import Request

from takt.core.activity import log_activity, update_user_activity
from takt.core.database.entities import ActivityEvent


def make_request(headers: dict) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/demand",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.9", 5000),
    }
    return Request(scope)


async def test_log_activity_records_actor_and_request(session, make_org, make_user):
    org = await make_org()
    user = await make_user(org=org)
    request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1", "User-Agent": "pytest"})

    with patch("takt.core.activity.log_domain_event") as mock_event:
        event = await log_activity(
            session,
            event_type="demand.created",
            actor=user,
            organization_id=org.id,
            entity_type="demand_forecast",
            entity_id="f-1",
            metadata={"routeKey": "Riyadh -> Jeddah"},
            request=request,
        )

    stored = (await session.execute(select(ActivityEvent))).scalars().one()
    assert stored.id == event.id
    assert stored.actor_email == user.email
    assert stored.ip_address == "203.0.113.5"
    assert stored.user_agent == "pytest"
    mock_event.assert_called_once_with(
        "demand.created", org.id, entity_type="demand_forecast", entity_id="f-1"
    )


async def test_log_activity_without_actor(session):
    event = await log_activity(session, event_type="user.login_failed", metadata={"email": "x@acme.com"})

    assert event.actor_user_id is None
    assert event.ip_address is None


async def test_log_activity_failure_is_swallowed(session, make_user):
    user = await make_user()

    with patch("takt.core.activity.log_domain_event") as mock_event:
        assert await log_activity(session, event_type=None, actor=user) is None

    mock_event.assert_not_called()
    assert (await session.execute(select(ActivityEvent))).scalars().all() == []
    assert "email" in user.__dict__


async def test_update_user_activity(session, make_user):
    user = await make_user()
    assert user.last_activity_at is None

    await update_user_activity(session, user.id)

    await session.refresh(user)
    assert user.last_activity_at is not None


async def test_update_user_activity_failure_is_swallowed(session, make_user):
    user = await make_user()

    with patch("takt.core.activity.utc_now_naive", side_effect=RuntimeError("clock unavailable")):
        await update_user_activity(session, user.id)

    await session.refresh(user)
    assert user.last_activity_at is None
