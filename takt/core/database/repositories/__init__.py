"""Repositories for entities with non-trivial lookups."""

from .base import AsyncBaseRepository, QueryBuilder
from .organizations import OrganizationRepository
from .platform_admins import PlatformAdminRepository
from .users import SessionRepository, UserRepository

__all__ = [
    "AsyncBaseRepository",
    "OrganizationRepository",
    "PlatformAdminRepository",
    "QueryBuilder",
    "SessionRepository",
    "UserRepository",
]
