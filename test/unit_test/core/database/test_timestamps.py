"""Unit tests for how entity timestamps are stored and compared."""

from datetime import timedelta

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import Organization, UserSession


async def test_default_timestamps_round_trip_as_naive_utc(session, make_org):
    before = utc_now_naive()
    org = await make_org()

    await session.refresh(org)
    stored = await session.get(Organization, org.id)

    assert stored.created_at.tzinfo is None
    assert before - timedelta(seconds=5) <= stored.created_at <= utc_now_naive()


async def test_expiry_compares_against_utc_now(session, make_user):
    user = await make_user()
    expired = UserSession(user_id=user.id, token="old", expires_at=utc_now_naive() - timedelta(minutes=1))
    live = UserSession(user_id=user.id, token="new", expires_at=utc_now_naive() + timedelta(days=1))
    session.add_all([expired, live])
    await session.commit()

    await session.refresh(expired)
    await session.refresh(live)

    assert expired.is_expired()
    assert not live.is_expired()
