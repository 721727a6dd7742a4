"""Unit tests for planning and user entity models."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from takt.core.database.entities import DemandForecast, SupplyCommitment, User, UserSession


class TestDemandForecast:
    """Tests for demand forecast totals."""

    def test_daily_total_wins(self):
        forecast = DemandForecast(route_key="A -> B", day1_qty=5, day3_qty=2, week1_qty=40)

        assert forecast.recompute_total() == 7
        assert forecast.total_qty == 7
        assert forecast.daily_quantities() == [5, 0, 2, 0, 0, 0, 0]

    def test_weekly_total_when_no_days(self):
        forecast = DemandForecast(route_key="A -> B", week1_qty=40, week4_qty=10)

        assert forecast.recompute_total() == 50
        assert forecast.weekly_quantities() == [40, 0, 0, 10, 0]

    def test_empty_forecast(self):
        assert DemandForecast(route_key="A -> B").recompute_total() == 0


class TestSupplyCommitment:
    @pytest.mark.parametrize(
        "days,expected",
        [
            ({"day1_committed": 3, "day7_committed": 4}, 7),
            ({}, 0),
        ],
    )
    def test_recompute_total(self, days, expected):
        commitment = SupplyCommitment(route_key="A -> B", **days)

        assert commitment.recompute_total() == expected
        assert len(commitment.daily_commitments()) == 7


class TestUser:
    def test_full_name(self):
        user = User(email="dana@acme.com", password_hash="x", first_name="Dana", last_name="Scully")

        assert user.full_name == "Dana Scully"
        assert user.is_active is True
        assert user.email_verified is False

    def test_session_expiry(self):
        now = datetime(2026, 10, 16, 12, 0)
        session = UserSession(user_id="user-1", token="tok", expires_at=now + timedelta(hours=1))

        assert not session.is_expired(now)
        assert session.is_expired(now + timedelta(hours=1))
