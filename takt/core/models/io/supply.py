"""Supply commitment and dispatch I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .common import CamelModel, NamedRef
from .demand import PlannerRead

COMMITTED_FIELDS = [f"day{i}_committed" for i in range(1, 8)]


class SupplyCommitmentCreate(CamelModel):
    """Schema for committing supplier trucks to a route."""

    planning_week_id: str = Field(min_length=1)
    supplier_id: str = Field(min_length=1, description="Supplier party id")
    route_key: str = Field(min_length=1, description="Route as used by the week's demand, e.g. 'Riyadh -> Jeddah'")
    truck_type_id: Optional[str] = None
    day1_committed: int = Field(default=0, ge=0)
    day2_committed: int = Field(default=0, ge=0)
    day3_committed: int = Field(default=0, ge=0)
    day4_committed: int = Field(default=0, ge=0)
    day5_committed: int = Field(default=0, ge=0)
    day6_committed: int = Field(default=0, ge=0)
    day7_committed: int = Field(default=0, ge=0)


class SupplyCommitmentUpdate(CamelModel):
    truck_type_id: Optional[str] = None
    day1_committed: Optional[int] = Field(default=None, ge=0)
    day2_committed: Optional[int] = Field(default=None, ge=0)
    day3_committed: Optional[int] = Field(default=None, ge=0)
    day4_committed: Optional[int] = Field(default=None, ge=0)
    day5_committed: Optional[int] = Field(default=None, ge=0)
    day6_committed: Optional[int] = Field(default=None, ge=0)
    day7_committed: Optional[int] = Field(default=None, ge=0)


class SupplyCommitmentRead(CamelModel):
    id: str
    organization_id: str
    planning_week_id: str
    party_id: str
    truck_type_id: Optional[str] = None
    route_key: str
    day1_committed: int = 0
    day2_committed: int = 0
    day3_committed: int = 0
    day4_committed: int = 0
    day5_committed: int = 0
    day6_committed: int = 0
    day7_committed: int = 0
    total_committed: int = 0
    created_by_id: str
    created_at: datetime
    updated_at: datetime

    party: Optional[NamedRef] = None
    truck_type: Optional[NamedRef] = None
    created_by: Optional[PlannerRead] = None


class DayPlan(CamelModel):
    """Per-day quantities of one week plus their total."""

    day1: int = 0
    day2: int = 0
    day3: int = 0
    day4: int = 0
    day5: int = 0
    day6: int = 0
    day7: int = 0
    total: int = 0

    def add(self, daily: List[int], total: int) -> None:
        for i, value in enumerate(daily, start=1):
            setattr(self, f"day{i}", getattr(self, f"day{i}") + value)
        self.total += total


class SupplierRoutePlan(CamelModel):
    route_key: str
    plan: DayPlan


class DispatchSupplier(CamelModel):
    supplier_id: str
    supplier_name: str
    routes: List[SupplierRoutePlan] = Field(default_factory=list)
    totals: DayPlan = Field(default_factory=DayPlan)


class RouteSupplierPlan(CamelModel):
    supplier_id: str
    supplier_name: str
    plan: DayPlan


class CustomerRoute(CamelModel):
    route_key: str
    demand: DayPlan
    suppliers: List[RouteSupplierPlan] = Field(default_factory=list)


class DispatchCustomer(CamelModel):
    customer_id: str
    customer_name: str
    routes: List[CustomerRoute] = Field(default_factory=list)
    totals: DayPlan = Field(default_factory=DayPlan)


class DispatchView(CamelModel):
    suppliers: List[DispatchSupplier]
    customers: List[DispatchCustomer]
    grand_totals: DayPlan
