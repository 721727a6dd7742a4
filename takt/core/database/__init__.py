"""
Centralized database layer for Takt.

Structure:
- entities/: Database entity models organized by business area
- repositories/: Data access layer for the entities that need one
- session.py: Global engine and session factory management
- utils.py: Database utility functions (engine, session factory, create_all)
"""

from .base import Base, new_id, utc_now_naive
from .session import (
    async_session_maker,
    engine,
    get_session,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
    side_session,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "new_id",
    "side_session",
    "utc_now_naive",
]
