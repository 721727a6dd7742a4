"""Unit tests for the base repository.

Tests CRUD behaviour with a mocked database session.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import select

from takt.core.database.entities import TruckType
from takt.core.database.repositories import AsyncBaseRepository, QueryBuilder


class TestAsyncBaseRepository:
    """Tests for AsyncBaseRepository operations."""

    @pytest.fixture
    def mock_session(self):
        """Mock async database session."""
        session = AsyncMock()
        session.add = MagicMock()
        session.commit = AsyncMock()
        session.refresh = AsyncMock()
        session.delete = AsyncMock()
        return session

    @pytest.fixture
    def repository(self, mock_session):
        return AsyncBaseRepository(mock_session, TruckType)

    async def test_create(self, repository, mock_session):
        truck = TruckType(organization_id="org-1", name="Reefer")

        result = await repository.create(truck)

        mock_session.add.assert_called_once_with(truck)
        mock_session.commit.assert_called_once()
        mock_session.refresh.assert_called_once_with(truck)
        assert result is truck

    async def test_update_stamps_updated_at(self, repository, mock_session):
        truck = TruckType(organization_id="org-1", name="Reefer")
        before = truck.updated_at

        await repository.update(truck)

        assert truck.updated_at >= before
        mock_session.commit.assert_called_once()

    async def test_delete_missing(self, repository, mock_session):
        mock_session.get = AsyncMock(return_value=None)

        assert await repository.delete("missing") is False
        mock_session.delete.assert_not_called()

    async def test_delete_existing(self, repository, mock_session):
        truck = TruckType(organization_id="org-1", name="Reefer")
        mock_session.get = AsyncMock(return_value=truck)

        assert await repository.delete(truck.id) is True
        mock_session.delete.assert_called_once_with(truck)


class TestQueryBuilder:
    def test_filters_skip_none_and_unknown_columns(self):
        stmt = QueryBuilder.apply_filters(
            select(TruckType), TruckType, {"name": "Reefer", "is_active": None, "colour": "red"}
        )

        sql = str(stmt)
        assert "truck_types.name = :name_1" in sql
        assert "is_active =" not in sql
        assert "colour" not in sql

    def test_list_filter_becomes_in(self):
        stmt = QueryBuilder.apply_filters(select(TruckType), TruckType, {"name": ["Reefer", "Flatbed"]})

        assert "IN" in str(stmt)

    def test_pagination(self):
        stmt = QueryBuilder.apply_pagination(select(TruckType), 10, 20)

        assert stmt._limit_clause is not None
        assert stmt._offset_clause is not None


async def test_list_against_database(session, make_org):
    org = await make_org()
    session.add_all([TruckType(organization_id=org.id, name=n) for n in ("A", "B", "C")])
    await session.commit()
    repository = AsyncBaseRepository(session, TruckType)

    assert len(await repository.list()) == 3
    assert [t.name for t in await repository.list(filters={"name": "B"})] == ["B"]
    assert len(await repository.list(limit=2)) == 2
