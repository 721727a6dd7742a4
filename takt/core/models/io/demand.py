"""
Demand forecast I/O models.

Requests carry loads as ``day1Loads``..``day7Loads`` (weekly planning) or
``week1Loads``..``week5Loads`` (monthly planning); stored forecasts expose
them as ``day1Qty``..``week5Qty`` together with the computed ``totalQty``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import Field

from takt.core.models.domain.enums import BusinessType

from .common import CamelModel, NamedRef

DAY_LOAD_FIELDS = [f"day{i}_loads" for i in range(1, 8)]
WEEK_LOAD_FIELDS = [f"week{i}_loads" for i in range(1, 6)]


class _Loads(CamelModel):
    day1_loads: Optional[int] = Field(default=None, ge=0)
    day2_loads: Optional[int] = Field(default=None, ge=0)
    day3_loads: Optional[int] = Field(default=None, ge=0)
    day4_loads: Optional[int] = Field(default=None, ge=0)
    day5_loads: Optional[int] = Field(default=None, ge=0)
    day6_loads: Optional[int] = Field(default=None, ge=0)
    day7_loads: Optional[int] = Field(default=None, ge=0)
    week1_loads: Optional[int] = Field(default=None, ge=0)
    week2_loads: Optional[int] = Field(default=None, ge=0)
    week3_loads: Optional[int] = Field(default=None, ge=0)
    week4_loads: Optional[int] = Field(default=None, ge=0)
    week5_loads: Optional[int] = Field(default=None, ge=0)

    def quantity_columns(self, only_set: bool = False) -> Dict[str, int]:
        """
        Map request loads onto forecast columns (``day1_loads`` -> ``day1_qty``).

        Args:
            only_set: Only include loads present in the request (for partial updates)
        """
        columns = {}
        for name in DAY_LOAD_FIELDS + WEEK_LOAD_FIELDS:
            value = getattr(self, name)
            if only_set and name not in self.model_fields_set:
                continue
            columns[name.replace("_loads", "_qty")] = value or 0
        return columns


class DemandForecastCreate(_Loads):
    """Schema for creating a demand forecast."""

    planning_week_id: str = Field(min_length=1, description="Planning week the forecast belongs to")
    client_id: str = Field(min_length=1, description="Client party id")
    pickup_city_id: str = Field(min_length=1, description="Pickup location id")
    dropoff_city_id: str = Field(min_length=1, description="Dropoff location id")
    demand_category_id: Optional[str] = None
    business_type: BusinessType = BusinessType.REGULAR
    truck_type_ids: List[str] = Field(min_length=1, description="At least one truck type is required")


class DemandForecastUpdate(_Loads):
    """Schema for updating a demand forecast; omitted loads keep their stored value."""

    demand_category_id: Optional[str] = None
    business_type: Optional[BusinessType] = None
    truck_type_ids: Optional[List[str]] = None


class LocationRef(NamedRef):
    code: Optional[str] = None
    region: Optional[str] = None


class PlanningWeekRef(CamelModel):
    id: str
    year: int
    week_number: int
    week_start: date
    week_end: date


class PlannerRead(CamelModel):
    """A user who created forecasts or commitments."""

    id: str
    first_name: str
    last_name: str


class DemandForecastRead(CamelModel):
    """Demand forecast with its related records resolved."""

    id: str
    organization_id: str
    planning_week_id: str
    party_id: str
    pickup_location_id: str
    dropoff_location_id: str
    demand_category_id: Optional[str] = None
    business_type: str
    route_key: str
    day1_qty: int = 0
    day2_qty: int = 0
    day3_qty: int = 0
    day4_qty: int = 0
    day5_qty: int = 0
    day6_qty: int = 0
    day7_qty: int = 0
    week1_qty: int = 0
    week2_qty: int = 0
    week3_qty: int = 0
    week4_qty: int = 0
    week5_qty: int = 0
    total_qty: int = 0
    created_by_id: str
    created_at: datetime
    updated_at: datetime

    party: Optional[NamedRef] = None
    pickup_location: Optional[LocationRef] = None
    dropoff_location: Optional[LocationRef] = None
    demand_category: Optional[NamedRef] = None
    truck_types: List[NamedRef] = Field(default_factory=list)
    planning_week: Optional[PlanningWeekRef] = None
    created_by: Optional[PlannerRead] = None
