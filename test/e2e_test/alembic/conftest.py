"""Fixtures for Alembic migration tests."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from alembic.config import Config

from takt.server.core.config import settings

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


@pytest.fixture
def database_file(tmp_path: Path) -> Path:
    return tmp_path / "takt-migrations.db"


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo the logging reconfiguration alembic/env.py applies via fileConfig()."""
    root = logging.getLogger()
    root_state = (root.level, root.handlers[:])
    logger_state = {
        name: (logger.level, logger.disabled, logger.propagate, logger.handlers[:])
        for name, logger in logging.root.manager.loggerDict.items()
        if isinstance(logger, logging.Logger)
    }
    yield
    root.setLevel(root_state[0])
    root.handlers[:] = root_state[1]
    for name, logger in logging.root.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name in logger_state:
            level, disabled, propagate, handlers = logger_state[name]
            logger.setLevel(level)
            logger.disabled = disabled
            logger.propagate = propagate
            logger.handlers[:] = handlers
        else:
            logger.disabled = False


@pytest.fixture
def alembic_config(database_file: Path, monkeypatch: pytest.MonkeyPatch, restore_logging: None) -> Config:
    """Alembic configuration pointed at a throwaway SQLite database."""
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{database_file}")
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config
