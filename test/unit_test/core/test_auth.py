"""Unit tests for cookie sessions."""

from datetime import timedelta

from starlette.responses import Response

from takt.core.auth import (
    clear_session_cookie,
    create_user_session,
    destroy_session,
    resolve_session,
    set_session_cookie,
)
from takt.core.database.base import utc_now_naive
from takt.server.core.config import SecurityConfig

CONFIG = SecurityConfig(SESSION_TTL_DAYS=7)


async def test_create_and_resolve(session, make_user):
    user = await make_user()

    user_session = await create_user_session(session, user, CONFIG)

    assert user.last_login_at is not None
    assert user_session.expires_at - user_session.created_at > timedelta(days=6)
    resolved_session, resolved_user = await resolve_session(session, user_session.token)
    assert resolved_session.id == user_session.id
    assert resolved_user.id == user.id


async def test_unknown_or_missing_token(session):
    assert await resolve_session(session, None) is None
    assert await resolve_session(session, "nope") is None


async def test_expired_session(session, make_user):
    user_session = await create_user_session(session, await make_user(), CONFIG)
    user_session.expires_at = utc_now_naive() - timedelta(seconds=1)
    session.add(user_session)
    await session.commit()

    assert await resolve_session(session, user_session.token) is None


async def test_inactive_user(session, make_user):
    user = await make_user()
    user_session = await create_user_session(session, user, CONFIG)
    user.is_active = False
    session.add(user)
    await session.commit()

    assert await resolve_session(session, user_session.token) is None


async def test_destroy(session, make_user):
    user_session = await create_user_session(session, await make_user(), CONFIG)

    assert await destroy_session(session, user_session.token) is True
    assert await destroy_session(session, user_session.token) is False
    assert await resolve_session(session, user_session.token) is None


async def test_cookie_helpers(session, make_user):
    user_session = await create_user_session(session, await make_user(), CONFIG)
    response = Response()

    set_session_cookie(response, user_session, CONFIG)
    cookie = response.headers["set-cookie"]

    assert cookie.startswith(f"takt_session={user_session.token}")
    assert "HttpOnly" in cookie
    assert "Max-Age=604800" in cookie
    assert "SameSite=lax" in cookie

    cleared = Response()
    clear_session_cookie(cleared, CONFIG)
    assert 'takt_session=""' in cleared.headers["set-cookie"]
