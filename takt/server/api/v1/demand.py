"""
Demand forecast endpoints.

Clients' load requirements per route and planning week. Reads are open to
every member of the organization; writes need ``demand:write``.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import delete

from takt.core.activity import log_activity
from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import (
    DemandCategory,
    DemandForecast,
    DemandForecastTruckType,
    Location,
    Party,
    TruckType,
)
from takt.core.database.repositories import OrganizationRepository
from takt.core.errors import Conflict, NotFound, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData, PaginatedResponse, Pagination
from takt.core.models.io.demand import (
    DAY_LOAD_FIELDS,
    WEEK_LOAD_FIELDS,
    DemandForecastCreate,
    DemandForecastRead,
    DemandForecastUpdate,
    PlannerRead,
)
from takt.core.permissions import DEMAND_WRITE
from takt.core.tenancy import OrgContext, get_owned_or_404, org_scoped_data, org_scoped_where
from takt.server.services.deps import OrgContextDep, SessionDep, ensure_permission
from takt.server.services.planning import (
    DemandFilters,
    count_demand,
    find_demand,
    get_open_week,
    list_planners,
    make_route_key,
    resolve_demand_reads,
    scoped_by_ids,
)

logger = get_logger(__name__)

router = APIRouter(tags=["demand"])


def get_demand_filters(
    planning_week_id: Annotated[Optional[str], Query(alias="planningWeekId")] = None,
    client_id: Annotated[Optional[str], Query(alias="clientId")] = None,
    route_key: Annotated[Optional[str], Query(alias="routeKey")] = None,
    planner_ids: Annotated[List[str], Query(alias="plannerIds")] = [],
    client_ids: Annotated[List[str], Query(alias="clientIds")] = [],
    category_ids: Annotated[List[str], Query(alias="categoryIds")] = [],
    truck_type_ids: Annotated[List[str], Query(alias="truckTypeIds")] = [],
    business_types: Annotated[List[str], Query(alias="businessTypes")] = [],
    route_keys: Annotated[List[str], Query(alias="routeKeys")] = [],
) -> DemandFilters:
    """Demand filters from the query string; list filters repeat the parameter."""
    return DemandFilters(
        planning_week_id=planning_week_id,
        client_id=client_id,
        route_key=route_key,
        planner_ids=list(planner_ids),
        client_ids=list(client_ids),
        category_ids=list(category_ids),
        truck_type_ids=list(truck_type_ids),
        business_types=list(business_types),
        route_keys=list(route_keys),
    )


DemandFiltersDep = Annotated[DemandFilters, Depends(get_demand_filters)]


def _audit_metadata(forecast: DemandForecast, party_name: Optional[str], loads: dict) -> dict:
    return {
        "routeKey": forecast.route_key,
        "totalQty": forecast.total_qty,
        "partyId": forecast.party_id,
        "clientName": party_name,
        **loads,
    }


async def _validate_truck_types(session, ctx: OrgContext, truck_type_ids: List[str]) -> None:
    found = await scoped_by_ids(session, ctx, TruckType, truck_type_ids)
    if len(found) != len(set(truck_type_ids)):
        raise NotFound("Truck type not found")


@router.get(
    "",
    response_model=PaginatedResponse[DemandForecastRead],
    summary="List Demand Forecasts",
    description="List the organization's demand forecasts, filtered and paginated, ordered by client then route.",
    response_description="A page of forecasts with related records resolved.",
)
async def list_demand(
    ctx: OrgContextDep,
    session: SessionDep,
    filters: DemandFiltersDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=500)] = 50,
) -> PaginatedResponse[DemandForecastRead]:
    """
    List demand forecasts.

    - **planningWeekId**, **clientId**, **routeKey**: exact-match filters.
    - **plannerIds**, **clientIds**, **categoryIds**, **truckTypeIds**, **businessTypes**: repeatable filters.
    - **page**, **pageSize**: 1-based paging (default page size 50).
    """
    total_count = await count_demand(session, ctx, filters)
    forecasts = await find_demand(session, ctx, filters, limit=page_size, offset=(page - 1) * page_size)
    data = await resolve_demand_reads(session, ctx, forecasts)
    logger.debug(f"Listed {len(data)} of {total_count} demand forecasts for org {ctx.organization_id}")
    return PaginatedResponse(data=data, pagination=Pagination.build(page, page_size, total_count))


@router.get(
    "/planners",
    response_model=ApiResponse[List[PlannerRead]],
    summary="List Demand Planners",
    description="Users who created demand forecasts in a planning week, sorted by name.",
    responses={400: {"model": ErrorResponse, "description": "planningWeekId missing"}},
)
async def demand_planners(
    ctx: OrgContextDep,
    session: SessionDep,
    planning_week_id: Annotated[Optional[str], Query(alias="planningWeekId")] = None,
) -> ApiResponse[List[PlannerRead]]:
    return ApiResponse(data=await list_planners(session, ctx, DemandForecast, planning_week_id))


@router.post(
    "",
    response_model=ApiResponse[DemandForecastRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Demand Forecast",
    description="Record a client's loads on a route for a planning week.",
    response_description="The created forecast.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or locked week"},
        403: {"model": ErrorResponse, "description": "Missing demand:write permission"},
        404: {"model": ErrorResponse, "description": "Week, client, location, category or truck type not found"},
        409: {"model": ErrorResponse, "description": "A forecast for this route and client already exists"},
    },
)
async def create_demand(
    data: DemandForecastCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[DemandForecastRead]:
    """
    Create a demand forecast.

    The route key is derived from the pickup and dropoff location names. The
    total is the sum of the daily loads, or of the weekly loads when no day
    is planned.
    """
    ensure_permission(ctx, DEMAND_WRITE, "Not authorized to create demand forecasts")

    org_settings = await OrganizationRepository(session).get_settings(ctx.organization_id)
    if (
        org_settings is not None
        and org_settings.demand_category_enabled
        and org_settings.demand_category_required
        and not data.demand_category_id
    ):
        raise ValidationFailed("Category is required")

    await get_open_week(session, ctx, data.planning_week_id)

    locations = await scoped_by_ids(session, ctx, Location, [data.pickup_city_id, data.dropoff_city_id])
    pickup = locations.get(data.pickup_city_id)
    dropoff = locations.get(data.dropoff_city_id)
    if pickup is None or dropoff is None:
        raise NotFound("Location not found")

    party = (await scoped_by_ids(session, ctx, Party, [data.client_id])).get(data.client_id)
    if party is None:
        raise NotFound("Client not found")
    if data.demand_category_id and not await scoped_by_ids(session, ctx, DemandCategory, [data.demand_category_id]):
        raise NotFound("Demand category not found")
    await _validate_truck_types(session, ctx, data.truck_type_ids)

    category_id = data.demand_category_id or None
    same_category = (
        DemandForecast.demand_category_id == category_id
        if category_id
        else DemandForecast.demand_category_id.is_(None)
    )
    duplicate = await session.execute(
        org_scoped_where(
            ctx,
            DemandForecast,
            same_category,
            planning_week_id=data.planning_week_id,
            party_id=data.client_id,
            pickup_location_id=data.pickup_city_id,
            dropoff_location_id=data.dropoff_city_id,
        )
    )
    if duplicate.scalars().first() is not None:
        raise Conflict("A forecast for this route and party already exists", code="DUPLICATE")

    forecast = DemandForecast(
        **org_scoped_data(
            ctx,
            {
                "planning_week_id": data.planning_week_id,
                "party_id": data.client_id,
                "pickup_location_id": data.pickup_city_id,
                "dropoff_location_id": data.dropoff_city_id,
                "demand_category_id": category_id,
                "business_type": data.business_type.value,
                "route_key": make_route_key(pickup.name, dropoff.name),
                "created_by_id": ctx.user_id,
                **data.quantity_columns(),
            },
        )
    )
    forecast.recompute_total()
    session.add(forecast)
    await session.flush()
    for truck_type_id in dict.fromkeys(data.truck_type_ids):
        session.add(DemandForecastTruckType(demand_forecast_id=forecast.id, truck_type_id=truck_type_id))
    await session.commit()
    logger.info(f"Demand forecast {forecast.id} created on {forecast.route_key} in org {ctx.organization_id}")

    [result] = await resolve_demand_reads(session, ctx, [forecast])
    loads = data.model_dump(by_alias=True, include=set(DAY_LOAD_FIELDS + WEEK_LOAD_FIELDS), exclude_none=True)
    await create_audit_log(
        session,
        action=AuditAction.DEMAND_CREATED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="DemandForecast",
        entity_id=forecast.id,
        metadata=_audit_metadata(forecast, party.name, loads),
        request=request,
    )
    await log_activity(
        session,
        event_type="demand.created",
        actor=ctx.user,
        organization_id=ctx.organization_id,
        entity_type="DemandForecast",
        entity_id=forecast.id,
        metadata={"routeKey": forecast.route_key, "totalQty": forecast.total_qty},
        request=request,
    )
    return ApiResponse(data=result)


@router.get(
    "/{forecast_id}",
    response_model=ApiResponse[DemandForecastRead],
    summary="Get Demand Forecast",
    responses={
        403: {"model": ErrorResponse, "description": "Forecast belongs to another organization"},
        404: {"model": ErrorResponse, "description": "Forecast not found"},
    },
)
async def get_demand(forecast_id: str, ctx: OrgContextDep, session: SessionDep) -> ApiResponse[DemandForecastRead]:
    forecast = await get_owned_or_404(session, ctx, DemandForecast, forecast_id)
    [result] = await resolve_demand_reads(session, ctx, [forecast])
    return ApiResponse(data=result)


@router.patch(
    "/{forecast_id}",
    response_model=ApiResponse[DemandForecastRead],
    summary="Update Demand Forecast",
    description="Change loads, category, business type or truck types. Omitted loads keep their value.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or locked week"},
        403: {"model": ErrorResponse, "description": "Missing permission or foreign forecast"},
        404: {"model": ErrorResponse, "description": "Forecast not found"},
    },
)
async def update_demand(
    forecast_id: str, data: DemandForecastUpdate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[DemandForecastRead]:
    ensure_permission(ctx, DEMAND_WRITE, "Not authorized to update demand forecasts")
    forecast = await get_owned_or_404(session, ctx, DemandForecast, forecast_id)
    await get_open_week(session, ctx, forecast.planning_week_id)
    before = {"totalQty": forecast.total_qty, "businessType": forecast.business_type}

    for column, value in data.quantity_columns(only_set=True).items():
        setattr(forecast, column, value)
    if "business_type" in data.model_fields_set and data.business_type is not None:
        forecast.business_type = data.business_type.value
    if "demand_category_id" in data.model_fields_set:
        if data.demand_category_id and not await scoped_by_ids(session, ctx, DemandCategory, [data.demand_category_id]):
            raise NotFound("Demand category not found")
        forecast.demand_category_id = data.demand_category_id or None
    if data.truck_type_ids is not None:
        if not data.truck_type_ids:
            raise ValidationFailed("At least one truck type is required")
        await _validate_truck_types(session, ctx, data.truck_type_ids)
        await session.execute(
            delete(DemandForecastTruckType).where(DemandForecastTruckType.demand_forecast_id == forecast.id)
        )
        for truck_type_id in dict.fromkeys(data.truck_type_ids):
            session.add(DemandForecastTruckType(demand_forecast_id=forecast.id, truck_type_id=truck_type_id))

    forecast.recompute_total()
    forecast.updated_at = utc_now_naive()
    session.add(forecast)
    await session.commit()

    [result] = await resolve_demand_reads(session, ctx, [forecast])
    await create_audit_log(
        session,
        action=AuditAction.DEMAND_UPDATED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="DemandForecast",
        entity_id=forecast.id,
        metadata=_audit_metadata(forecast, result.party.name if result.party else None, {}),
        before_state=before,
        after_state={"totalQty": forecast.total_qty, "businessType": forecast.business_type},
        request=request,
    )
    return ApiResponse(data=result)


@router.delete(
    "/{forecast_id}",
    response_model=ApiResponse[MessageData],
    summary="Delete Demand Forecast",
    responses={
        400: {"model": ErrorResponse, "description": "Locked week"},
        403: {"model": ErrorResponse, "description": "Missing permission or foreign forecast"},
        404: {"model": ErrorResponse, "description": "Forecast not found"},
    },
)
async def delete_demand(
    forecast_id: str, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[MessageData]:
    ensure_permission(ctx, DEMAND_WRITE, "Not authorized to delete demand forecasts")
    forecast = await get_owned_or_404(session, ctx, DemandForecast, forecast_id)
    await get_open_week(session, ctx, forecast.planning_week_id)

    party = await session.get(Party, forecast.party_id)
    metadata = _audit_metadata(forecast, party.name if party else None, {})
    await session.execute(delete(DemandForecastTruckType).where(DemandForecastTruckType.demand_forecast_id == forecast.id))
    await session.delete(forecast)
    await session.commit()
    logger.info(f"Demand forecast {forecast_id} deleted in org {ctx.organization_id}")

    await create_audit_log(
        session,
        action=AuditAction.DEMAND_DELETED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="DemandForecast",
        entity_id=forecast_id,
        metadata=metadata,
        request=request,
    )
    return ApiResponse(data=MessageData(message="Demand forecast deleted"))
