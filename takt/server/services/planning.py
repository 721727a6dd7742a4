"""
Demand and supply query helpers.

Filters shared by the demand list and intelligence endpoints, org-scoped
batch resolution of related records, planner lookups and the dispatch view.
Every query here goes through ``org_scoped_where`` so it only ever sees the
caller's organization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from takt.core.database.entities import (
    DemandCategory,
    DemandForecast,
    DemandForecastTruckType,
    Location,
    Party,
    PlanningWeek,
    SupplyCommitment,
    TruckType,
    User,
)
from takt.core.errors import NotFound, ValidationFailed
from takt.core.models.io import NamedRef
from takt.core.models.io.demand import DemandForecastRead, LocationRef, PlannerRead, PlanningWeekRef
from takt.core.models.io.supply import (
    CustomerRoute,
    DayPlan,
    DispatchCustomer,
    DispatchSupplier,
    DispatchView,
    RouteSupplierPlan,
    SupplierRoutePlan,
    SupplyCommitmentRead,
)
from takt.core.tenancy import OrgContext, org_scope_clause, org_scoped_where


def make_route_key(pickup_name: str, dropoff_name: str) -> str:
    """Route key shared by demand and supply: ``"Riyadh -> Jeddah"``."""
    return f"{pickup_name.strip()} -> {dropoff_name.strip()}"


@dataclass
class DemandFilters:
    """Optional narrowing of a demand query. Empty lists mean "no filter"."""

    planning_week_id: Optional[str] = None
    client_id: Optional[str] = None
    route_key: Optional[str] = None
    planner_ids: List[str] = field(default_factory=list)
    client_ids: List[str] = field(default_factory=list)
    category_ids: List[str] = field(default_factory=list)
    truck_type_ids: List[str] = field(default_factory=list)
    business_types: List[str] = field(default_factory=list)
    route_keys: List[str] = field(default_factory=list)

    def criteria(self) -> List[Any]:
        clauses: List[Any] = []
        if self.planning_week_id:
            clauses.append(DemandForecast.planning_week_id == self.planning_week_id)
        if self.client_id:
            clauses.append(DemandForecast.party_id == self.client_id)
        if self.route_key:
            clauses.append(DemandForecast.route_key == self.route_key)
        if self.planner_ids:
            clauses.append(DemandForecast.created_by_id.in_(self.planner_ids))
        if self.client_ids:
            clauses.append(DemandForecast.party_id.in_(self.client_ids))
        if self.category_ids:
            clauses.append(DemandForecast.demand_category_id.in_(self.category_ids))
        if self.business_types:
            clauses.append(DemandForecast.business_type.in_(self.business_types))
        if self.route_keys:
            clauses.append(DemandForecast.route_key.in_(self.route_keys))
        if self.truck_type_ids:
            served_by = select(DemandForecastTruckType.demand_forecast_id).where(
                DemandForecastTruckType.truck_type_id.in_(self.truck_type_ids)
            )
            clauses.append(DemandForecast.id.in_(served_by))
        return clauses


async def count_demand(session: AsyncSession, ctx: OrgContext, filters: DemandFilters) -> int:
    stmt = select(func.count()).select_from(DemandForecast).where(org_scope_clause(ctx, DemandForecast))
    for criterion in filters.criteria():
        stmt = stmt.where(criterion)
    result = await session.execute(stmt)
    return result.scalar_one()


async def find_demand(
    session: AsyncSession,
    ctx: OrgContext,
    filters: DemandFilters,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[DemandForecast]:
    """Org-scoped forecasts matching ``filters``, ordered by party then route."""
    stmt = org_scoped_where(ctx, DemandForecast, *filters.criteria()).order_by(
        DemandForecast.party_id, DemandForecast.route_key
    )
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_commitments(
    session: AsyncSession,
    ctx: OrgContext,
    planning_week_id: Optional[str] = None,
    route_keys: Sequence[str] = (),
    supplier_id: Optional[str] = None,
) -> List[SupplyCommitment]:
    criteria = []
    if planning_week_id:
        criteria.append(SupplyCommitment.planning_week_id == planning_week_id)
    if route_keys:
        criteria.append(SupplyCommitment.route_key.in_(list(route_keys)))
    if supplier_id:
        criteria.append(SupplyCommitment.party_id == supplier_id)
    stmt = org_scoped_where(ctx, SupplyCommitment, *criteria).order_by(
        SupplyCommitment.party_id, SupplyCommitment.route_key
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def scoped_by_ids(
    session: AsyncSession, ctx: OrgContext, model: Type[SQLModel], ids: Iterable[Optional[str]]
) -> Dict[str, Any]:
    """Batch-load org-scoped rows of ``model`` by id into an ``{id: row}`` map."""
    wanted = sorted({i for i in ids if i})
    if not wanted:
        return {}
    result = await session.execute(org_scoped_where(ctx, model, getattr(model, "id").in_(wanted)))
    return {row.id: row for row in result.scalars().all()}


async def users_by_ids(session: AsyncSession, ids: Iterable[str]) -> Dict[str, User]:
    wanted = sorted(set(ids))
    if not wanted:
        return {}
    result = await session.execute(select(User).where(User.id.in_(wanted)))
    return {user.id: user for user in result.scalars().all()}


async def truck_types_by_forecast(
    session: AsyncSession, ctx: OrgContext, forecast_ids: Sequence[str]
) -> Dict[str, List[TruckType]]:
    if not forecast_ids:
        return {}
    stmt = (
        select(DemandForecastTruckType.demand_forecast_id, TruckType)
        .join(TruckType, TruckType.id == DemandForecastTruckType.truck_type_id)
        .where(DemandForecastTruckType.demand_forecast_id.in_(list(forecast_ids)))
        .where(org_scope_clause(ctx, TruckType))
        .order_by(TruckType.name)
    )
    result = await session.execute(stmt)
    grouped: Dict[str, List[TruckType]] = {}
    for forecast_id, truck_type in result.all():
        grouped.setdefault(forecast_id, []).append(truck_type)
    return grouped


def _named(row: Optional[Any]) -> Optional[NamedRef]:
    return NamedRef(id=row.id, name=row.name) if row is not None else None


def _planner(user: Optional[User]) -> Optional[PlannerRead]:
    return PlannerRead.model_validate(user) if user is not None else None


async def resolve_demand_reads(
    session: AsyncSession, ctx: OrgContext, forecasts: Sequence[DemandForecast]
) -> List[DemandForecastRead]:
    """Attach party, locations, category, truck types, week and creator to each forecast."""
    if not forecasts:
        return []
    parties = await scoped_by_ids(session, ctx, Party, (f.party_id for f in forecasts))
    locations = await scoped_by_ids(
        session, ctx, Location, [f.pickup_location_id for f in forecasts] + [f.dropoff_location_id for f in forecasts]
    )
    categories = await scoped_by_ids(session, ctx, DemandCategory, (f.demand_category_id for f in forecasts))
    weeks = await scoped_by_ids(session, ctx, PlanningWeek, (f.planning_week_id for f in forecasts))
    creators = await users_by_ids(session, (f.created_by_id for f in forecasts))
    truck_types = await truck_types_by_forecast(session, ctx, [f.id for f in forecasts])

    reads = []
    for forecast in forecasts:
        read = DemandForecastRead.model_validate(forecast)
        pickup = locations.get(forecast.pickup_location_id)
        dropoff = locations.get(forecast.dropoff_location_id)
        week = weeks.get(forecast.planning_week_id)
        read.party = _named(parties.get(forecast.party_id))
        read.pickup_location = LocationRef.model_validate(pickup) if pickup else None
        read.dropoff_location = LocationRef.model_validate(dropoff) if dropoff else None
        read.demand_category = _named(categories.get(forecast.demand_category_id))
        read.truck_types = [NamedRef(id=t.id, name=t.name) for t in truck_types.get(forecast.id, [])]
        read.planning_week = PlanningWeekRef.model_validate(week) if week else None
        read.created_by = _planner(creators.get(forecast.created_by_id))
        reads.append(read)
    return reads


async def resolve_commitment_reads(
    session: AsyncSession, ctx: OrgContext, commitments: Sequence[SupplyCommitment]
) -> List[SupplyCommitmentRead]:
    if not commitments:
        return []
    parties = await scoped_by_ids(session, ctx, Party, (c.party_id for c in commitments))
    truck_types = await scoped_by_ids(session, ctx, TruckType, (c.truck_type_id for c in commitments))
    creators = await users_by_ids(session, (c.created_by_id for c in commitments))

    reads = []
    for commitment in commitments:
        read = SupplyCommitmentRead.model_validate(commitment)
        read.party = _named(parties.get(commitment.party_id))
        read.truck_type = _named(truck_types.get(commitment.truck_type_id))
        read.created_by = _planner(creators.get(commitment.created_by_id))
        reads.append(read)
    return reads


async def list_planners(
    session: AsyncSession, ctx: OrgContext, model: Type[SQLModel], planning_week_id: Optional[str]
) -> List[PlannerRead]:
    """Distinct creators of ``model`` rows in a planning week, sorted by full name."""
    if not planning_week_id:
        raise ValidationFailed("planningWeekId is required")
    stmt = (
        select(getattr(model, "created_by_id"))
        .where(org_scope_clause(ctx, model))
        .where(getattr(model, "planning_week_id") == planning_week_id)
        .distinct()
    )
    result = await session.execute(stmt)
    users = await users_by_ids(session, result.scalars().all())
    ordered = sorted(users.values(), key=lambda u: (u.first_name.lower(), u.last_name.lower()))
    return [PlannerRead.model_validate(user) for user in ordered]


async def get_open_week(session: AsyncSession, ctx: OrgContext, planning_week_id: str) -> PlanningWeek:
    """
    Load a planning week of the caller's organization that still accepts edits.

    Raises:
        NotFound: The week does not exist in the organization
        ValidationFailed: ``LOCKED`` when the week is locked
    """
    result = await session.execute(org_scoped_where(ctx, PlanningWeek, PlanningWeek.id == planning_week_id))
    week = result.scalars().first()
    if week is None:
        raise NotFound("Planning week not found")
    if week.is_locked:
        raise ValidationFailed("This planning week is locked and cannot be edited", code="LOCKED")
    return week


def build_dispatch_view(
    forecasts: Sequence[DemandForecast],
    commitments: Sequence[SupplyCommitment],
    party_names: Dict[str, str],
) -> DispatchView:
    """
    Group a week's commitments by supplier and its demand by customer.

    Commitments for the same route and supplier (several truck types) are
    summed. Each customer route lists every supplier committed to that route.
    Suppliers and customers are sorted by name.
    """
    suppliers: Dict[str, DispatchSupplier] = {}
    for commitment in commitments:
        supplier = suppliers.get(commitment.party_id)
        if supplier is None:
            supplier = DispatchSupplier(
                supplier_id=commitment.party_id,
                supplier_name=party_names.get(commitment.party_id, "Unknown"),
            )
            suppliers[commitment.party_id] = supplier
        route = next((r for r in supplier.routes if r.route_key == commitment.route_key), None)
        if route is None:
            route = SupplierRoutePlan(route_key=commitment.route_key, plan=DayPlan())
            supplier.routes.append(route)
        daily = commitment.daily_commitments()
        route.plan.add(daily, commitment.total_committed)
        supplier.totals.add(daily, commitment.total_committed)

    grand_totals = DayPlan()
    for supplier in suppliers.values():
        grand_totals.add(
            [getattr(supplier.totals, f"day{i}") for i in range(1, 8)],
            supplier.totals.total,
        )

    customers: Dict[str, DispatchCustomer] = {}
    for forecast in forecasts:
        customer = customers.get(forecast.party_id)
        if customer is None:
            customer = DispatchCustomer(
                customer_id=forecast.party_id,
                customer_name=party_names.get(forecast.party_id, "Unknown"),
            )
            customers[forecast.party_id] = customer
        daily = forecast.daily_quantities()
        route = next((r for r in customer.routes if r.route_key == forecast.route_key), None)
        if route is None:
            route = CustomerRoute(route_key=forecast.route_key, demand=DayPlan())
            serving: Dict[str, RouteSupplierPlan] = {}
            for commitment in commitments:
                if commitment.route_key != forecast.route_key:
                    continue
                plan = serving.get(commitment.party_id)
                if plan is None:
                    plan = RouteSupplierPlan(
                        supplier_id=commitment.party_id,
                        supplier_name=party_names.get(commitment.party_id, "Unknown"),
                        plan=DayPlan(),
                    )
                    serving[commitment.party_id] = plan
                plan.plan.add(commitment.daily_commitments(), commitment.total_committed)
            route.suppliers = list(serving.values())
            customer.routes.append(route)
        route.demand.add(daily, forecast.total_qty)
        customer.totals.add(daily, forecast.total_qty)

    return DispatchView(
        suppliers=sorted(suppliers.values(), key=lambda s: s.supplier_name.lower()),
        customers=sorted(customers.values(), key=lambda c: c.customer_name.lower()),
        grand_totals=grand_totals,
    )
