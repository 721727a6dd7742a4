"""Shared plumbing for the operator scripts."""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.database import create_engine, create_sessionmaker
from takt.server.core.config import settings

RULE = "=" * 72


@asynccontextmanager
async def open_session(database_url: Optional[str] = None) -> AsyncIterator[AsyncSession]:
    """Open a session on a private engine that is disposed on exit."""
    engine = create_engine(database_url or settings.database_url)
    try:
        async with create_sessionmaker(engine)() as session:
            yield session
    finally:
        await engine.dispose()


def build_parser(description: Optional[str], apply: bool = False, database: bool = True) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description, formatter_class=argparse.RawDescriptionHelpFormatter)
    if database:
        parser.add_argument(
            "--database-url",
            default=None,
            help="Database URL. Defaults to DATABASE_URL from the environment or .env.",
        )
    if apply:
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Write the changes. Without this flag the script only reports what it would do.",
        )
    return parser


def mode_label(apply: bool) -> str:
    return "apply" if apply else "dry-run"


def mask(value: Optional[str], visible: int = 4) -> str:
    """Hide all but the last ``visible`` characters of a secret."""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def short_token(token: str) -> str:
    return f"{token[:8]}..."
