"""
Planning intelligence endpoint.

One call returns every chart series, the summary and the generated insights
for a planning week, computed from the organization's demand and supply.
"""

from __future__ import annotations

from fastapi import APIRouter

from takt.core.database.entities import Party
from takt.core.errors import ValidationFailed
from takt.core.intelligence import build_intelligence_report
from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse
from takt.core.models.io.intelligence import IntelligenceReport
from takt.server.services.deps import OrgContextDep, SessionDep
from takt.server.services.planning import find_commitments, find_demand, scoped_by_ids

from .demand import DemandFiltersDep

logger = get_logger(__name__)

router = APIRouter(tags=["intelligence"])


@router.get(
    "",
    response_model=ApiResponse[IntelligenceReport],
    summary="Planning Intelligence",
    description="Demand versus committed supply for one planning week: coverage, gaps, supplier mix and insights.",
    response_description="The intelligence report.",
    responses={400: {"model": ErrorResponse, "description": "planningWeekId missing"}},
)
async def intelligence(ctx: OrgContextDep, session: SessionDep, filters: DemandFiltersDep) -> ApiResponse[IntelligenceReport]:
    """
    Build the intelligence report.

    Demand honours every demand filter plus **routeKeys**. Supply is narrowed
    to the same week and, when given, the same **routeKeys**.
    """
    if not filters.planning_week_id:
        raise ValidationFailed("Planning week ID is required")

    forecasts = await find_demand(session, ctx, filters)
    commitments = await find_commitments(session, ctx, filters.planning_week_id, filters.route_keys)
    suppliers = await scoped_by_ids(session, ctx, Party, (c.party_id for c in commitments))
    report = build_intelligence_report(forecasts, commitments, {pid: party.name for pid, party in suppliers.items()})
    logger.debug(
        f"Intelligence for week {filters.planning_week_id}: {len(forecasts)} forecasts, {len(commitments)} commitments"
    )
    return ApiResponse(data=report)
