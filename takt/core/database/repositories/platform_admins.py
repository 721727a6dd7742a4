"""
Platform admin repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.platform import PlatformAdmin
from .base import AsyncBaseRepository


class PlatformAdminRepository(AsyncBaseRepository[PlatformAdmin]):
    """Repository for platform admin grants."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PlatformAdmin)

    async def get_for_user(self, user_id: str) -> Optional[PlatformAdmin]:
        """Get the grant row for a user, revoked or not."""
        result = await self.session.execute(select(PlatformAdmin).where(PlatformAdmin.user_id == user_id))
        return result.scalars().first()

    async def get_active_for_user(self, user_id: str) -> Optional[PlatformAdmin]:
        stmt = select(PlatformAdmin).where(
            (PlatformAdmin.user_id == user_id) & (PlatformAdmin.revoked_at.is_(None))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
