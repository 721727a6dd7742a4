"""
Cookie sessions.

A login creates a ``UserSession`` row holding an opaque random token; the
token travels in the ``takt_session`` cookie. Resolving a token yields the
session and its user only while the session is unexpired and the user is
active.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import Response

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import User, UserSession
from takt.core.database.repositories import SessionRepository
from takt.core.logging_config import get_logger
from takt.core.request_context import client_ip, user_agent
from takt.core.security import generate_session_token
from takt.server.core.config import SecurityConfig

logger = get_logger(__name__)


async def create_user_session(
    session: AsyncSession, user: User, config: SecurityConfig, request: Optional[Request] = None
) -> UserSession:
    """Open a login session for ``user`` and stamp ``last_login_at``."""
    now = utc_now_naive()
    user_session = UserSession(
        user_id=user.id,
        token=generate_session_token(),
        user_agent=user_agent(request),
        ip_address=client_ip(request),
        expires_at=now + timedelta(days=config.session_ttl_days),
        last_active_at=now,
    )
    user.last_login_at = now
    session.add(user_session)
    session.add(user)
    await session.commit()
    logger.debug(f"Session opened for user {user.id}")
    return user_session


async def resolve_session(session: AsyncSession, token: Optional[str]) -> Optional[Tuple[UserSession, User]]:
    """
    Look up a session token.

    Returns:
        ``(session, user)`` for a live session of an active user, otherwise None
    """
    if not token:
        return None
    user_session = await SessionRepository(session).get_by_token(token)
    if user_session is None:
        return None
    if user_session.is_expired():
        logger.debug(f"Expired session presented for user {user_session.user_id}")
        return None
    user = await session.get(User, user_session.user_id)
    if user is None or not user.is_active:
        return None
    return user_session, user


async def touch_session(session: AsyncSession, user_session: UserSession) -> None:
    user_session.last_active_at = utc_now_naive()
    session.add(user_session)
    await session.commit()


async def destroy_session(session: AsyncSession, token: Optional[str]) -> bool:
    """Delete the session behind ``token``. Returns whether one existed."""
    if not token:
        return False
    user_session = await SessionRepository(session).get_by_token(token)
    if user_session is None:
        return False
    await session.delete(user_session)
    await session.commit()
    return True


def set_session_cookie(response: Response, user_session: UserSession, config: SecurityConfig) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=user_session.token,
        max_age=config.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=config.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, config: SecurityConfig) -> None:
    response.delete_cookie(key=config.session_cookie_name, path="/")
