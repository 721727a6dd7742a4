"""
Master data endpoints.

Truck types (full CRUD) and the parties, locations, planning weeks and
demand categories that forecasts and commitments refer to. Every record
belongs to the caller's organization; writes need ``repositories:write``.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.activity import log_activity
from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import (
    DemandCategory,
    DemandForecastTruckType,
    Location,
    Party,
    PlanningWeek,
    SupplyCommitment,
    TruckType,
)
from takt.core.errors import Conflict
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import PartyType
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.repositories import (
    DemandCategoryCreate,
    DemandCategoryRead,
    LocationCreate,
    LocationRead,
    PartyCreate,
    PartyRead,
    PlanningWeekCreate,
    PlanningWeekRead,
    TruckTypeCreate,
    TruckTypeRead,
    TruckTypeUpdate,
)
from takt.core.permissions import REPOSITORIES_WRITE
from takt.core.tenancy import OrgContext, get_owned_or_404, org_scoped_data, org_scoped_where
from takt.server.services.deps import OrgContextDep, SessionDep, ensure_permission

logger = get_logger(__name__)

router = APIRouter(tags=["repositories"])

WRITE_DENIED = "Not authorized to manage repositories"


async def _record_created(
    session: AsyncSession,
    ctx: OrgContext,
    request: Request,
    *,
    action: str,
    entity_type: str,
    entity_id: str,
    name: str,
) -> None:
    await create_audit_log(
        session,
        action=action,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata={"name": name},
        request=request,
    )
    await log_activity(
        session,
        event_type=action,
        actor=ctx.user,
        organization_id=ctx.organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata={"name": name},
        request=request,
    )


async def _truck_type_name_taken(
    session: AsyncSession, ctx: OrgContext, name: str, exclude_id: Optional[str] = None
) -> bool:
    stmt = org_scoped_where(ctx, TruckType, func.lower(TruckType.name) == name.strip().lower())
    if exclude_id:
        stmt = stmt.where(TruckType.id != exclude_id)
    result = await session.execute(stmt)
    return result.scalars().first() is not None


# =====================================================================
# Truck types
# =====================================================================


@router.get(
    "/truck-types",
    response_model=ApiResponse[List[TruckTypeRead]],
    summary="List Truck Types",
    description="List the organization's truck types by name, optionally only active ones.",
)
async def list_truck_types(
    ctx: OrgContextDep,
    session: SessionDep,
    active_only: Annotated[bool, Query(alias="activeOnly")] = False,
) -> ApiResponse[List[TruckTypeRead]]:
    stmt = org_scoped_where(ctx, TruckType)
    if active_only:
        stmt = stmt.where(TruckType.is_active == True)  # noqa: E712
    result = await session.execute(stmt.order_by(TruckType.name))
    return ApiResponse(data=[TruckTypeRead.model_validate(t) for t in result.scalars().all()])


@router.post(
    "/truck-types",
    response_model=ApiResponse[TruckTypeRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Truck Type",
    responses={
        403: {"model": ErrorResponse, "description": "Missing repositories:write permission"},
        409: {"model": ErrorResponse, "description": "A truck type with this name already exists"},
    },
)
async def create_truck_type(
    data: TruckTypeCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[TruckTypeRead]:
    """Create a truck type. Names are unique within the organization, ignoring case."""
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    if await _truck_type_name_taken(session, ctx, data.name):
        raise Conflict("A truck type with this name already exists", code="DUPLICATE")

    truck_type = TruckType(**org_scoped_data(ctx, {**data.model_dump(), "name": data.name.strip()}))
    session.add(truck_type)
    await session.commit()
    result = TruckTypeRead.model_validate(truck_type)
    await _record_created(
        session,
        ctx,
        request,
        action=AuditAction.TRUCK_TYPE_CREATED,
        entity_type="TruckType",
        entity_id=truck_type.id,
        name=truck_type.name,
    )
    return ApiResponse(data=result)


@router.patch(
    "/truck-types/{truck_type_id}",
    response_model=ApiResponse[TruckTypeRead],
    summary="Update Truck Type",
    responses={
        403: {"model": ErrorResponse, "description": "Missing permission or foreign truck type"},
        404: {"model": ErrorResponse, "description": "Truck type not found"},
        409: {"model": ErrorResponse, "description": "Name already used"},
    },
)
async def update_truck_type(
    truck_type_id: str, data: TruckTypeUpdate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[TruckTypeRead]:
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    truck_type = await get_owned_or_404(session, ctx, TruckType, truck_type_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        if await _truck_type_name_taken(session, ctx, changes["name"], exclude_id=truck_type.id):
            raise Conflict("A truck type with this name already exists", code="DUPLICATE")

    for key, value in changes.items():
        if value is not None or key == "description":
            setattr(truck_type, key, value)
    truck_type.updated_at = utc_now_naive()
    session.add(truck_type)
    await session.commit()
    result = TruckTypeRead.model_validate(truck_type)

    await create_audit_log(
        session,
        action=AuditAction.TRUCK_TYPE_UPDATED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="TruckType",
        entity_id=truck_type.id,
        metadata={"name": truck_type.name},
        request=request,
    )
    return ApiResponse(data=result)


@router.delete(
    "/truck-types/{truck_type_id}",
    response_model=ApiResponse[MessageData],
    summary="Delete Truck Type",
    responses={
        403: {"model": ErrorResponse, "description": "Missing permission or foreign truck type"},
        404: {"model": ErrorResponse, "description": "Truck type not found"},
        409: {"model": ErrorResponse, "description": "Truck type is used by forecasts or commitments"},
    },
)
async def delete_truck_type(
    truck_type_id: str, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[MessageData]:
    """Delete an unused truck type. Types referenced by planning data can only be deactivated."""
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    truck_type = await get_owned_or_404(session, ctx, TruckType, truck_type_id)

    in_demand = await session.execute(
        select(DemandForecastTruckType).where(DemandForecastTruckType.truck_type_id == truck_type.id).limit(1)
    )
    in_supply = await session.execute(
        org_scoped_where(ctx, SupplyCommitment, truck_type_id=truck_type.id).limit(1)
    )
    if in_demand.first() is not None or in_supply.first() is not None:
        raise Conflict("Truck type is in use; deactivate it instead", code="IN_USE")

    name = truck_type.name
    await session.delete(truck_type)
    await session.commit()
    await create_audit_log(
        session,
        action=AuditAction.TRUCK_TYPE_DELETED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="TruckType",
        entity_id=truck_type_id,
        metadata={"name": name},
        request=request,
    )
    return ApiResponse(data=MessageData(message="Truck type deleted"))


# =====================================================================
# Parties
# =====================================================================


@router.get(
    "/parties",
    response_model=ApiResponse[List[PartyRead]],
    summary="List Parties",
    description="List clients and suppliers, optionally of one type.",
)
async def list_parties(
    ctx: OrgContextDep,
    session: SessionDep,
    party_type: Annotated[Optional[PartyType], Query(alias="partyType")] = None,
) -> ApiResponse[List[PartyRead]]:
    stmt = org_scoped_where(ctx, Party, party_type=party_type.value if party_type else None)
    result = await session.execute(stmt.order_by(Party.name))
    return ApiResponse(data=[PartyRead.model_validate(p) for p in result.scalars().all()])


@router.post(
    "/parties",
    response_model=ApiResponse[PartyRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Party",
    responses={403: {"model": ErrorResponse, "description": "Missing repositories:write permission"}},
)
async def create_party(data: PartyCreate, request: Request, ctx: OrgContextDep, session: SessionDep) -> ApiResponse[PartyRead]:
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    party = Party(
        **org_scoped_data(ctx, {"name": data.name.strip(), "code": data.code, "party_type": data.party_type.value})
    )
    session.add(party)
    await session.commit()
    result = PartyRead.model_validate(party)
    action = AuditAction.SUPPLIER_CREATED if data.party_type == PartyType.SUPPLIER else AuditAction.CLIENT_CREATED
    await _record_created(session, ctx, request, action=action, entity_type="Party", entity_id=party.id, name=party.name)
    return ApiResponse(data=result)


# =====================================================================
# Locations
# =====================================================================


@router.get("/locations", response_model=ApiResponse[List[LocationRead]], summary="List Locations")
async def list_locations(ctx: OrgContextDep, session: SessionDep) -> ApiResponse[List[LocationRead]]:
    result = await session.execute(org_scoped_where(ctx, Location).order_by(Location.name))
    return ApiResponse(data=[LocationRead.model_validate(loc) for loc in result.scalars().all()])


@router.post(
    "/locations",
    response_model=ApiResponse[LocationRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Location",
    responses={403: {"model": ErrorResponse, "description": "Missing repositories:write permission"}},
)
async def create_location(
    data: LocationCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[LocationRead]:
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    location = Location(**org_scoped_data(ctx, {**data.model_dump(), "name": data.name.strip()}))
    session.add(location)
    await session.commit()
    result = LocationRead.model_validate(location)
    await _record_created(
        session,
        ctx,
        request,
        action=AuditAction.CITY_CREATED,
        entity_type="Location",
        entity_id=location.id,
        name=location.name,
    )
    return ApiResponse(data=result)


# =====================================================================
# Planning weeks
# =====================================================================


@router.get("/planning-weeks", response_model=ApiResponse[List[PlanningWeekRead]], summary="List Planning Weeks")
async def list_planning_weeks(ctx: OrgContextDep, session: SessionDep) -> ApiResponse[List[PlanningWeekRead]]:
    """Planning weeks, most recent first."""
    stmt = org_scoped_where(ctx, PlanningWeek).order_by(PlanningWeek.week_start.desc())
    result = await session.execute(stmt)
    return ApiResponse(data=[PlanningWeekRead.model_validate(w) for w in result.scalars().all()])


@router.post(
    "/planning-weeks",
    response_model=ApiResponse[PlanningWeekRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Planning Week",
    responses={
        403: {"model": ErrorResponse, "description": "Missing repositories:write permission"},
        409: {"model": ErrorResponse, "description": "The week already exists"},
    },
)
async def create_planning_week(
    data: PlanningWeekCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[PlanningWeekRead]:
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    existing = await session.execute(
        org_scoped_where(ctx, PlanningWeek, year=data.year, week_number=data.week_number)
    )
    if existing.scalars().first() is not None:
        raise Conflict(f"Week {data.week_number} of {data.year} already exists", code="DUPLICATE")

    week = PlanningWeek(**org_scoped_data(ctx, data.model_dump()))
    session.add(week)
    await session.commit()
    result = PlanningWeekRead.model_validate(week)
    await _record_created(
        session,
        ctx,
        request,
        action=AuditAction.PLANNING_WEEK_CREATED,
        entity_type="PlanningWeek",
        entity_id=week.id,
        name=f"{week.year}-W{week.week_number:02d}",
    )
    return ApiResponse(data=result)


# =====================================================================
# Demand categories
# =====================================================================


@router.get("/demand-categories", response_model=ApiResponse[List[DemandCategoryRead]], summary="List Demand Categories")
async def list_demand_categories(ctx: OrgContextDep, session: SessionDep) -> ApiResponse[List[DemandCategoryRead]]:
    result = await session.execute(org_scoped_where(ctx, DemandCategory).order_by(DemandCategory.name))
    return ApiResponse(data=[DemandCategoryRead.model_validate(c) for c in result.scalars().all()])


@router.post(
    "/demand-categories",
    response_model=ApiResponse[DemandCategoryRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Demand Category",
    responses={403: {"model": ErrorResponse, "description": "Missing repositories:write permission"}},
)
async def create_demand_category(
    data: DemandCategoryCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[DemandCategoryRead]:
    ensure_permission(ctx, REPOSITORIES_WRITE, WRITE_DENIED)
    category = DemandCategory(**org_scoped_data(ctx, {**data.model_dump(), "name": data.name.strip()}))
    session.add(category)
    await session.commit()
    result = DemandCategoryRead.model_validate(category)
    await _record_created(
        session,
        ctx,
        request,
        action=AuditAction.DEMAND_CATEGORY_CREATED,
        entity_type="DemandCategory",
        entity_id=category.id,
        name=category.name,
    )
    return ApiResponse(data=result)
