from sqlmodel import select

from scripts import delete_user as delete_user_script
from scripts.delete_user import delete_user
from takt.core.auth import create_user_session
from takt.core.database.entities import DemandForecast, OrganizationMembership, SupplyCommitment, User
from takt.server.core.config import SecurityConfig


async def test_unknown_user(session):
    assert await delete_user(session, "ghost@acme.com", apply=True) is None


async def test_dry_run_reports_counts(session, make_org, make_user):
    user = await make_user("dana@acme.com", org=await make_org())
    await create_user_session(session, user, SecurityConfig())

    plan = await delete_user(session, "dana@acme.com", apply=False)

    assert plan.deleted is False
    assert plan.counts["organization_memberships"] == 1
    assert plan.counts["user_sessions"] == 1
    assert await session.get(User, user.id) is not None


async def test_apply_deletes_user_and_memberships(session, make_org, make_user):
    user = await make_user("dana@acme.com", org=await make_org())
    user_id = user.id

    plan = await delete_user(session, "DANA@acme.com", apply=True)

    assert plan.deleted is True
    assert await session.get(User, user_id) is None
    memberships = await session.execute(select(OrganizationMembership).where(OrganizationMembership.user_id == user_id))
    assert memberships.first() is None


async def test_planning_author_is_refused(session, make_org, make_user, add_forecast):
    org = await make_org()
    user = await make_user("dana@acme.com", org=org)
    await add_forecast(org, user)

    plan = await delete_user(session, "dana@acme.com", apply=True)

    assert plan.planning_rows == 2
    assert plan.deleted is False
    assert await session.get(User, user.id) is not None


async def test_force_deletes_planning_rows(session, make_org, make_user, add_forecast):
    org = await make_org()
    user = await make_user("dana@acme.com", org=org)
    await add_forecast(org, user)

    plan = await delete_user(session, "dana@acme.com", force=True, apply=True)

    assert plan.deleted is True
    assert (await session.execute(select(DemandForecast))).first() is None
    assert (await session.execute(select(SupplyCommitment))).first() is None


async def test_run_output(capsys, use_session, make_org, make_user, add_forecast):
    org = await make_org()
    user = await make_user("dana@acme.com", org=org)
    await add_forecast(org, user)
    use_session(delete_user_script)

    assert await delete_user_script.run(None, "dana@acme.com", force=False, apply=False) == 1
    assert "Refusing to delete" in capsys.readouterr().out

    assert await delete_user_script.run(None, "ghost@acme.com", force=False, apply=False) == 1
    assert "User not found: ghost@acme.com" in capsys.readouterr().out
