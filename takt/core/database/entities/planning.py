"""
Demand and supply planning entity models.

A ``DemandForecast`` states how many loads a client needs on a route per
day (or per week for monthly planning). A ``SupplyCommitment`` states how
many trucks a supplier commits to a route per day.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field

from takt.core.models.domain.enums import BusinessType

from ..base import Base, new_id, utc_now_naive

DAY_FIELDS = [f"day{i}" for i in range(1, 8)]
WEEK_FIELDS = [f"week{i}" for i in range(1, 6)]


class DemandForecast(Base, table=True):
    """Client demand on one route for one planning week.

    Table: demand_forecasts
    """

    __tablename__ = "demand_forecasts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    planning_week_id: str = Field(foreign_key="planning_weeks.id", index=True)
    party_id: str = Field(foreign_key="parties.id", index=True)
    pickup_location_id: str = Field(foreign_key="locations.id")
    dropoff_location_id: str = Field(foreign_key="locations.id")
    demand_category_id: Optional[str] = Field(default=None, foreign_key="demand_categories.id")
    business_type: str = Field(default=BusinessType.REGULAR.value, max_length=16)
    route_key: str = Field(max_length=255, index=True)

    day1_qty: int = Field(default=0)
    day2_qty: int = Field(default=0)
    day3_qty: int = Field(default=0)
    day4_qty: int = Field(default=0)
    day5_qty: int = Field(default=0)
    day6_qty: int = Field(default=0)
    day7_qty: int = Field(default=0)
    week1_qty: int = Field(default=0)
    week2_qty: int = Field(default=0)
    week3_qty: int = Field(default=0)
    week4_qty: int = Field(default=0)
    week5_qty: int = Field(default=0)
    total_qty: int = Field(default=0)

    created_by_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)

    def daily_quantities(self) -> List[int]:
        return [getattr(self, f"{day}_qty") for day in DAY_FIELDS]

    def weekly_quantities(self) -> List[int]:
        return [getattr(self, f"{week}_qty") for week in WEEK_FIELDS]

    def recompute_total(self) -> int:
        """Total is the daily sum when any day is planned, otherwise the weekly sum."""
        day_total = sum(self.daily_quantities())
        self.total_qty = day_total if day_total > 0 else sum(self.weekly_quantities())
        return self.total_qty


class DemandForecastTruckType(Base, table=True):
    """Truck types a demand forecast can be served with.

    Table: demand_forecast_truck_types
    """

    __tablename__ = "demand_forecast_truck_types"

    demand_forecast_id: str = Field(foreign_key="demand_forecasts.id", primary_key=True)
    truck_type_id: str = Field(foreign_key="truck_types.id", primary_key=True)


class SupplyCommitment(Base, table=True):
    """Supplier capacity committed to a route for one planning week.

    Table: supply_commitments
    """

    __tablename__ = "supply_commitments"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    planning_week_id: str = Field(foreign_key="planning_weeks.id", index=True)
    party_id: str = Field(foreign_key="parties.id", index=True)
    truck_type_id: Optional[str] = Field(default=None, foreign_key="truck_types.id")
    route_key: str = Field(max_length=255, index=True)

    day1_committed: int = Field(default=0)
    day2_committed: int = Field(default=0)
    day3_committed: int = Field(default=0)
    day4_committed: int = Field(default=0)
    day5_committed: int = Field(default=0)
    day6_committed: int = Field(default=0)
    day7_committed: int = Field(default=0)
    total_committed: int = Field(default=0)

    created_by_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)

    def daily_commitments(self) -> List[int]:
        return [getattr(self, f"{day}_committed") for day in DAY_FIELDS]

    def recompute_total(self) -> int:
        self.total_committed = sum(self.daily_commitments())
        return self.total_committed
