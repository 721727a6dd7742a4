"""
Supply commitment endpoints.

Suppliers' trucks committed to the routes the week's demand uses, plus the
dispatch view that lines commitments up against customer demand.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Query, Request, status

from takt.core.activity import log_activity
from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import DemandForecast, Party, SupplyCommitment, TruckType
from takt.core.errors import NotFound, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.domain.enums import PartyType
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.demand import PlannerRead
from takt.core.models.io.supply import (
    COMMITTED_FIELDS,
    DispatchView,
    SupplyCommitmentCreate,
    SupplyCommitmentRead,
    SupplyCommitmentUpdate,
)
from takt.core.permissions import SUPPLY_WRITE
from takt.core.tenancy import get_owned_or_404, org_scoped_data, org_scoped_where
from takt.server.services.deps import OrgContextDep, SessionDep, ensure_permission
from takt.server.services.planning import (
    DemandFilters,
    build_dispatch_view,
    find_commitments,
    find_demand,
    get_open_week,
    list_planners,
    resolve_commitment_reads,
    scoped_by_ids,
)

logger = get_logger(__name__)

router = APIRouter(tags=["supply"])


def _require_week(planning_week_id: Optional[str]) -> str:
    if not planning_week_id:
        raise ValidationFailed("planningWeekId is required")
    return planning_week_id


def _audit_metadata(commitment: SupplyCommitment, supplier_name: Optional[str]) -> dict:
    return {
        "routeKey": commitment.route_key,
        "partyId": commitment.party_id,
        "supplierName": supplier_name,
        "totalCommitted": commitment.total_committed,
        **{f"day{i}Committed": value for i, value in enumerate(commitment.daily_commitments(), start=1)},
    }


@router.get(
    "",
    response_model=ApiResponse[List[SupplyCommitmentRead]],
    summary="List Supply Commitments",
    description="List the organization's supply commitments, optionally for one week, supplier or route.",
    response_description="Commitments with supplier, truck type and creator resolved.",
)
async def list_supply(
    ctx: OrgContextDep,
    session: SessionDep,
    planning_week_id: Annotated[Optional[str], Query(alias="planningWeekId")] = None,
    supplier_id: Annotated[Optional[str], Query(alias="supplierId")] = None,
    route_key: Annotated[Optional[str], Query(alias="routeKey")] = None,
) -> ApiResponse[List[SupplyCommitmentRead]]:
    commitments = await find_commitments(
        session, ctx, planning_week_id, [route_key] if route_key else [], supplier_id=supplier_id
    )
    return ApiResponse(data=await resolve_commitment_reads(session, ctx, commitments))


@router.get(
    "/planners",
    response_model=ApiResponse[List[PlannerRead]],
    summary="List Supply Planners",
    description="Users who created supply commitments in a planning week, sorted by name.",
    responses={400: {"model": ErrorResponse, "description": "planningWeekId missing"}},
)
async def supply_planners(
    ctx: OrgContextDep,
    session: SessionDep,
    planning_week_id: Annotated[Optional[str], Query(alias="planningWeekId")] = None,
) -> ApiResponse[List[PlannerRead]]:
    return ApiResponse(data=await list_planners(session, ctx, SupplyCommitment, planning_week_id))


@router.get(
    "/dispatch",
    response_model=ApiResponse[DispatchView],
    summary="Dispatch View",
    description="Commitments grouped by supplier and demand grouped by customer, with grand totals, for one week.",
    responses={400: {"model": ErrorResponse, "description": "planningWeekId missing"}},
)
async def dispatch(
    ctx: OrgContextDep,
    session: SessionDep,
    planning_week_id: Annotated[Optional[str], Query(alias="planningWeekId")] = None,
) -> ApiResponse[DispatchView]:
    week_id = _require_week(planning_week_id)
    commitments = await find_commitments(session, ctx, week_id)
    forecasts = await find_demand(session, ctx, DemandFilters(planning_week_id=week_id))
    parties = await scoped_by_ids(
        session, ctx, Party, [c.party_id for c in commitments] + [f.party_id for f in forecasts]
    )
    view = build_dispatch_view(forecasts, commitments, {pid: party.name for pid, party in parties.items()})
    return ApiResponse(data=view)


@router.post(
    "",
    response_model=ApiResponse[SupplyCommitmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Supply Commitment",
    description="Commit a supplier's trucks to a route the week's demand uses.",
    response_description="The created commitment.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input, unknown route or locked week"},
        403: {"model": ErrorResponse, "description": "Missing supply:write permission"},
        404: {"model": ErrorResponse, "description": "Week, supplier or truck type not found"},
    },
)
async def create_supply(
    data: SupplyCommitmentCreate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[SupplyCommitmentRead]:
    """
    Create a supply commitment.

    The supplier must be a SUPPLIER party of the organization and the route
    must already carry demand in the same week. ``totalCommitted`` is the
    sum of the daily values.
    """
    ensure_permission(ctx, SUPPLY_WRITE, "Not authorized to create supply commitments")
    await get_open_week(session, ctx, data.planning_week_id)

    supplier = (await scoped_by_ids(session, ctx, Party, [data.supplier_id])).get(data.supplier_id)
    if supplier is None or supplier.party_type != PartyType.SUPPLIER.value:
        raise NotFound("Supplier not found")
    if data.truck_type_id and not await scoped_by_ids(session, ctx, TruckType, [data.truck_type_id]):
        raise NotFound("Truck type not found")

    route_demand = await session.execute(
        org_scoped_where(
            ctx, DemandForecast, planning_week_id=data.planning_week_id, route_key=data.route_key
        ).limit(1)
    )
    if route_demand.scalars().first() is None:
        raise ValidationFailed("No demand exists for this route in the planning week", code="UNKNOWN_ROUTE")

    commitment = SupplyCommitment(
        **org_scoped_data(
            ctx,
            {
                "planning_week_id": data.planning_week_id,
                "party_id": data.supplier_id,
                "truck_type_id": data.truck_type_id,
                "route_key": data.route_key,
                "created_by_id": ctx.user_id,
                **data.model_dump(include=set(COMMITTED_FIELDS)),
            },
        )
    )
    commitment.recompute_total()
    session.add(commitment)
    await session.commit()
    logger.info(f"Supply commitment {commitment.id} created on {commitment.route_key} in org {ctx.organization_id}")

    [result] = await resolve_commitment_reads(session, ctx, [commitment])
    await create_audit_log(
        session,
        action=AuditAction.SUPPLY_COMMITTED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="SupplyCommitment",
        entity_id=commitment.id,
        metadata=_audit_metadata(commitment, supplier.name),
        request=request,
    )
    await log_activity(
        session,
        event_type="supply.committed",
        actor=ctx.user,
        organization_id=ctx.organization_id,
        entity_type="SupplyCommitment",
        entity_id=commitment.id,
        metadata={"routeKey": commitment.route_key, "totalCommitted": commitment.total_committed},
        request=request,
    )
    return ApiResponse(data=result)


@router.patch(
    "/{commitment_id}",
    response_model=ApiResponse[SupplyCommitmentRead],
    summary="Update Supply Commitment",
    description="Change daily commitments or the truck type. Omitted days keep their value.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or locked week"},
        403: {"model": ErrorResponse, "description": "Missing permission or foreign commitment"},
        404: {"model": ErrorResponse, "description": "Commitment not found"},
    },
)
async def update_supply(
    commitment_id: str, data: SupplyCommitmentUpdate, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[SupplyCommitmentRead]:
    ensure_permission(ctx, SUPPLY_WRITE, "Not authorized to update supply commitments")
    commitment = await get_owned_or_404(session, ctx, SupplyCommitment, commitment_id)
    await get_open_week(session, ctx, commitment.planning_week_id)
    before = {"totalCommitted": commitment.total_committed}

    for name in COMMITTED_FIELDS:
        value = getattr(data, name)
        if name in data.model_fields_set and value is not None:
            setattr(commitment, name, value)
    if "truck_type_id" in data.model_fields_set:
        if data.truck_type_id and not await scoped_by_ids(session, ctx, TruckType, [data.truck_type_id]):
            raise NotFound("Truck type not found")
        commitment.truck_type_id = data.truck_type_id

    commitment.recompute_total()
    commitment.updated_at = utc_now_naive()
    session.add(commitment)
    await session.commit()

    [result] = await resolve_commitment_reads(session, ctx, [commitment])
    await create_audit_log(
        session,
        action=AuditAction.SUPPLY_UPDATED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="SupplyCommitment",
        entity_id=commitment.id,
        metadata=_audit_metadata(commitment, result.party.name if result.party else None),
        before_state=before,
        after_state={"totalCommitted": commitment.total_committed},
        request=request,
    )
    return ApiResponse(data=result)


@router.delete(
    "/{commitment_id}",
    response_model=ApiResponse[MessageData],
    summary="Delete Supply Commitment",
    responses={
        400: {"model": ErrorResponse, "description": "Locked week"},
        403: {"model": ErrorResponse, "description": "Missing permission or foreign commitment"},
        404: {"model": ErrorResponse, "description": "Commitment not found"},
    },
)
async def delete_supply(
    commitment_id: str, request: Request, ctx: OrgContextDep, session: SessionDep
) -> ApiResponse[MessageData]:
    ensure_permission(ctx, SUPPLY_WRITE, "Not authorized to delete supply commitments")
    commitment = await get_owned_or_404(session, ctx, SupplyCommitment, commitment_id)
    await get_open_week(session, ctx, commitment.planning_week_id)

    supplier = await session.get(Party, commitment.party_id)
    metadata = _audit_metadata(commitment, supplier.name if supplier else None)
    await session.delete(commitment)
    await session.commit()

    await create_audit_log(
        session,
        action=AuditAction.SUPPLY_DELETED,
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        entity_type="SupplyCommitment",
        entity_id=commitment_id,
        metadata=metadata,
        request=request,
    )
    return ApiResponse(data=MessageData(message="Supply commitment deleted"))
