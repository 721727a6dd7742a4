"""
User and session repositories.

Data access for user accounts and the login sessions referenced by the
session cookie.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.users import User, UserSession
from .base import AsyncBaseRepository


class UserRepository(AsyncBaseRepository[User]):
    """Repository for user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email, ignoring case."""
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_mobile(self, mobile_number: str) -> Optional[User]:
        stmt = select(User).where(User.mobile_number == mobile_number)
        result = await self.session.execute(stmt)
        return result.scalars().first()


class SessionRepository(AsyncBaseRepository[UserSession]):
    """Repository for login sessions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserSession)

    async def get_by_token(self, token: str) -> Optional[UserSession]:
        stmt = select(UserSession).where(UserSession.token == token)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def delete_for_user(self, user_id: str, commit: bool = True) -> int:
        """Delete every session a user holds.

        Args:
            user_id: Owner of the sessions
            commit: Commit immediately; pass False to join a larger unit of work

        Returns:
            Number of sessions removed
        """
        result = await self.session.execute(delete(UserSession).where(UserSession.user_id == user_id))
        if commit:
            await self.session.commit()
        return result.rowcount or 0
