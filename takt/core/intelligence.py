"""
Supply intelligence metrics.

Pure functions over a planning week's demand forecasts and supply
commitments: coverage and gap arithmetic, supplier concentration, the
chart series of the intelligence dashboard and the rule-based insights
shown next to them. Nothing here touches the database; the API layer loads
the rows (already organization-scoped) and hands them in.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from takt.core.database.entities import DemandForecast, SupplyCommitment
from takt.core.models.domain.enums import InsightType
from takt.core.models.io.intelligence import (
    CapacityUtilization,
    CoverageByLeadTime,
    CumulativePlanVsCommit,
    DemandVsCommitted,
    GapHeatmap,
    HeatmapCell,
    Insight,
    IntelligenceReport,
    IntelligenceSummary,
    LeadTimeBucket,
    RouteMetrics,
    SupplierContribution,
    SupplyMix,
    SupplyMixTrend,
    VendorContribution,
    VendorSeries,
)

DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
COVERAGE_THRESHOLD = 85
ROUTE_AT_RISK_COVERAGE = 80
TOP_GAP_ROUTES = 15
SUPPLY_MIX_SUPPLIERS = 10
VENDOR_SERIES_SUPPLIERS = 5
MAX_INSIGHTS = 6
LEAD_TIME_BUCKETS: List[Tuple[str, Tuple[int, ...]]] = [
    ("Days 1-2", (0, 1)),
    ("Days 3-5", (2, 3, 4)),
    ("Days 6-7", (5, 6)),
]


def round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def calculate_coverage(demand: int, committed: int) -> float:
    """Committed as a percentage of demand (0 when there is no demand)."""
    if demand == 0:
        return 0
    return round1(committed / demand * 100)


def calculate_gap(demand: int, committed: int) -> int:
    """Unmet demand in trucks, never negative."""
    return max(demand - committed, 0)


def calculate_gap_percent(demand: int, committed: int) -> float:
    if demand == 0:
        return 0
    return round1(calculate_gap(demand, committed) / demand * 100)


def compute_cumulative(values: Iterable[int]) -> List[int]:
    cumulative = []
    running = 0
    for value in values:
        running += value
        cumulative.append(running)
    return cumulative


def group_suppliers_by_contribution(contributions: Iterable[Tuple[str, str, int]]) -> List[SupplierContribution]:
    """
    Aggregate ``(supplier_id, supplier_name, committed)`` rows per supplier.

    Returns:
        Suppliers sorted by contribution, largest first, each with its share of
        the total as a percentage rounded to one decimal
    """
    by_supplier: "OrderedDict[str, List]" = OrderedDict()
    for supplier_id, supplier_name, committed in contributions:
        if supplier_id in by_supplier:
            by_supplier[supplier_id][1] += committed
        else:
            by_supplier[supplier_id] = [supplier_name, committed]

    total = sum(amount for _, amount in by_supplier.values())
    suppliers = [
        SupplierContribution(
            supplier_id=supplier_id,
            supplier_name=name,
            contribution=amount,
            percentage=round1(amount / total * 100) if total > 0 else 0,
        )
        for supplier_id, (name, amount) in by_supplier.items()
    ]
    return sorted(suppliers, key=lambda s: s.contribution, reverse=True)


def calculate_concentration_index(suppliers: Sequence[SupplierContribution]) -> int:
    """Herfindahl-Hirschman index of supplier shares (0-10000, higher is more concentrated)."""
    return round(sum(s.percentage**2 for s in suppliers))


def generate_insights(
    demand_vs_committed: DemandVsCommitted,
    top_gap_contributors: Sequence[RouteMetrics],
    supply_mix: SupplyMix,
    summary: IntelligenceSummary,
    cumulative: CumulativePlanVsCommit,
) -> List[Insight]:
    """Derive at most six dashboard insights from the report series."""
    insights: List[Insight] = []

    if demand_vs_committed.days:
        worst_day, worst_coverage, worst_gap = "", 100.0, 0
        for day, demand, committed, gap in zip(
            demand_vs_committed.days,
            demand_vs_committed.demand,
            demand_vs_committed.committed,
            demand_vs_committed.gap,
        ):
            coverage = committed / demand * 100 if demand > 0 else 100.0
            if coverage < worst_coverage:
                worst_day, worst_coverage, worst_gap = day, coverage, gap
        if worst_coverage < COVERAGE_THRESHOLD:
            insights.append(
                Insight(
                    type=InsightType.WARNING,
                    title=f"Low Coverage on {worst_day}",
                    description=(
                        f"{worst_day} has the lowest coverage at {worst_coverage:.1f}% "
                        f"(gap: {worst_gap} trucks). Consider increasing commitments."
                    ),
                )
            )

    if top_gap_contributors:
        top = top_gap_contributors[0]
        if top.gap > 0 and summary.total_gap > 0:
            share = top.gap / summary.total_gap * 100
            insights.append(
                Insight(
                    type=InsightType.INFO,
                    title="Top Gap Route",
                    description=(
                        f"{top.route} accounts for {share:.0f}% of total gap "
                        f"({top.gap} trucks needed, {top.coverage:.1f}% covered)."
                    ),
                )
            )

    suppliers = supply_mix.suppliers
    if suppliers:
        top_share = suppliers[0].percentage
        if top_share > 50:
            insights.append(
                Insight(
                    type=InsightType.WARNING,
                    title="High Supplier Concentration",
                    description=(
                        f"Top supplier ({suppliers[0].supplier_name}) provides {top_share:.0f}% of capacity. "
                        "Consider diversifying for resilience."
                    ),
                )
            )
        top3_share = sum(s.percentage for s in suppliers[:3])
        if top3_share > 80 and len(suppliers) > 3:
            insights.append(
                Insight(
                    type=InsightType.INFO,
                    title="Limited Supplier Diversity",
                    description=(
                        f"Top 3 suppliers control {top3_share:.0f}% of capacity. "
                        "Building relationships with additional suppliers could reduce risk."
                    ),
                )
            )

    at_risk = summary.routes_at_risk
    if at_risk > 0:
        insights.append(
            Insight(
                type=InsightType.CRITICAL if at_risk > 5 else InsightType.WARNING,
                title="Routes Below Coverage Target",
                description=(
                    f"{at_risk} route{'s have' if at_risk > 1 else ' has'} coverage below 80%. "
                    "Review top gap contributors for prioritization."
                ),
            )
        )

    if summary.avg_coverage >= 95:
        insights.append(
            Insight(
                type=InsightType.SUCCESS,
                title="Excellent Coverage",
                description=(
                    f"Average coverage is {summary.avg_coverage:.1f}%, meeting target goals across most routes."
                ),
            )
        )
    elif summary.avg_coverage < 80:
        insights.append(
            Insight(
                type=InsightType.CRITICAL,
                title="Coverage Below Target",
                description=(
                    f"Average coverage is only {summary.avg_coverage:.1f}%. "
                    "Urgent action needed to secure additional capacity."
                ),
            )
        )

    if len(cumulative.days) > 2:
        first_gap = cumulative.cumulative_demand[0] - cumulative.cumulative_committed[0]
        last_gap = cumulative.cumulative_demand[-1] - cumulative.cumulative_committed[-1]
        if last_gap > first_gap * 1.2:
            insights.append(
                Insight(
                    type=InsightType.WARNING,
                    title="Falling Behind on Commitments",
                    description=(
                        "Cumulative gap is widening through the week. Focus on securing commitments for later days."
                    ),
                )
            )
        elif last_gap < first_gap * 0.8 and first_gap > 0:
            insights.append(
                Insight(
                    type=InsightType.SUCCESS,
                    title="Catching Up on Coverage",
                    description=(
                        "Cumulative gap is narrowing through the week, indicating improving coverage in later days."
                    ),
                )
            )

    return insights[:MAX_INSIGHTS]


def _add_into(totals: List[int], values: Sequence[int]) -> None:
    for i, value in enumerate(values):
        totals[i] += value


def build_intelligence_report(
    forecasts: Sequence[DemandForecast],
    commitments: Sequence[SupplyCommitment],
    supplier_names: Mapping[str, str],
) -> IntelligenceReport:
    """
    Assemble every chart series, the summary and the insights for one week.

    Args:
        forecasts: Demand forecasts of the week, already filtered
        commitments: Supply commitments of the week, already filtered
        supplier_names: Supplier party id to display name

    Returns:
        The complete intelligence report
    """
    days = list(DAY_LABELS)

    demand_by_day = [0] * 7
    demand_total = 0
    demand_by_route: Dict[str, List[int]] = OrderedDict()
    demand_route_total: Dict[str, int] = {}
    for forecast in forecasts:
        daily = forecast.daily_quantities()
        _add_into(demand_by_day, daily)
        demand_total += forecast.total_qty
        _add_into(demand_by_route.setdefault(forecast.route_key, [0] * 7), daily)
        demand_route_total[forecast.route_key] = demand_route_total.get(forecast.route_key, 0) + forecast.total_qty

    committed_by_day = [0] * 7
    committed_total = 0
    committed_by_route: Dict[str, List[int]] = {}
    committed_route_total: Dict[str, int] = {}
    by_supplier: Dict[str, List[int]] = {}
    for commitment in commitments:
        daily = commitment.daily_commitments()
        _add_into(committed_by_day, daily)
        committed_total += commitment.total_committed
        _add_into(committed_by_route.setdefault(commitment.route_key, [0] * 7), daily)
        committed_route_total[commitment.route_key] = (
            committed_route_total.get(commitment.route_key, 0) + commitment.total_committed
        )
        _add_into(by_supplier.setdefault(commitment.party_id, [0] * 7), daily)

    demand_vs_committed = DemandVsCommitted(
        days=days,
        demand=demand_by_day,
        committed=committed_by_day,
        gap=[calculate_gap(d, c) for d, c in zip(demand_by_day, committed_by_day)],
    )

    capacity_utilization = CapacityUtilization(
        days=days,
        utilization=[calculate_coverage(d, c) for d, c in zip(demand_by_day, committed_by_day)],
        threshold=COVERAGE_THRESHOLD,
    )

    routes = list(demand_by_route.keys())
    cells = []
    for route in routes:
        route_committed = committed_by_route.get(route, [0] * 7)
        for day, demand, committed in zip(days, demand_by_route[route], route_committed):
            gap = calculate_gap(demand, committed)
            cells.append(
                HeatmapCell(route=route, day=day, gap=gap, gap_percent=round1(gap / demand * 100) if demand > 0 else 0)
            )
    gap_heatmap = GapHeatmap(routes=routes, days=days, data=cells)

    route_metrics = []
    for route in routes:
        demand = demand_route_total[route]
        committed = committed_route_total.get(route, 0)
        route_metrics.append(
            RouteMetrics(
                route=route,
                demand=demand,
                committed=committed,
                gap=calculate_gap(demand, committed),
                coverage=calculate_coverage(demand, committed),
            )
        )
    top_gap_contributors = sorted(route_metrics, key=lambda r: r.gap, reverse=True)[:TOP_GAP_ROUTES]

    cumulative = CumulativePlanVsCommit(
        days=days,
        cumulative_demand=compute_cumulative(demand_by_day),
        cumulative_committed=compute_cumulative(committed_by_day),
    )

    suppliers = group_suppliers_by_contribution(
        (c.party_id, supplier_names.get(c.party_id, "Unknown"), c.total_committed) for c in commitments
    )
    top_share_by_day = []
    for i in range(7):
        day_total = committed_by_day[i]
        if day_total == 0:
            top_share_by_day.append(0)
            continue
        top_share = max((series[i] / day_total * 100 for series in by_supplier.values()), default=0)
        top_share_by_day.append(round1(top_share))
    supply_mix = SupplyMix(
        suppliers=suppliers[:SUPPLY_MIX_SUPPLIERS],
        trend=SupplyMixTrend(days=days, top_supplier_share=top_share_by_day),
    )

    top_suppliers = suppliers[:VENDOR_SERIES_SUPPLIERS]
    series = [
        VendorSeries(name=s.supplier_name, data=list(by_supplier.get(s.supplier_id, [0] * 7))) for s in top_suppliers
    ]
    if len(suppliers) > VENDOR_SERIES_SUPPLIERS:
        others = list(committed_by_day)
        for s in top_suppliers:
            for i, value in enumerate(by_supplier.get(s.supplier_id, [0] * 7)):
                others[i] -= value
        series.append(VendorSeries(name="Others", data=others))
    vendor_contribution = VendorContribution(days=days, demand=demand_by_day, suppliers=series)

    buckets = []
    for label, indexes in LEAD_TIME_BUCKETS:
        demand = sum(demand_by_day[i] for i in indexes)
        committed = sum(committed_by_day[i] for i in indexes)
        buckets.append(
            LeadTimeBucket(label=label, demand=demand, committed=committed, coverage=calculate_coverage(demand, committed))
        )

    avg_coverage = sum(calculate_coverage(d, c) for d, c in zip(demand_by_day, committed_by_day)) / 7
    summary = IntelligenceSummary(
        total_demand=demand_total,
        total_committed=committed_total,
        total_gap=calculate_gap(demand_total, committed_total),
        gap_percent=100 - calculate_coverage(demand_total, committed_total),
        avg_coverage=avg_coverage,
        routes_at_risk=sum(1 for r in top_gap_contributors if r.coverage < ROUTE_AT_RISK_COVERAGE),
    )

    insights = generate_insights(demand_vs_committed, top_gap_contributors, supply_mix, summary, cumulative)

    return IntelligenceReport(
        demand_vs_committed=demand_vs_committed,
        capacity_utilization=capacity_utilization,
        gap_heatmap=gap_heatmap,
        top_gap_contributors=top_gap_contributors,
        cumulative_plan_vs_commit=cumulative,
        supply_mix=supply_mix,
        vendor_contribution=vendor_contribution,
        coverage_by_lead_time=CoverageByLeadTime(buckets=buckets),
        insights=insights,
        summary=summary,
    )
