"""Response models of the supply intelligence report."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from takt.core.models.domain.enums import InsightType

from .common import CamelModel


class Insight(CamelModel):
    type: InsightType
    title: str
    description: str


class SupplierContribution(CamelModel):
    supplier_id: str
    supplier_name: str
    contribution: int
    percentage: float


class RouteMetrics(CamelModel):
    route: str
    demand: int
    committed: int
    gap: int
    coverage: float


class DemandVsCommitted(CamelModel):
    days: List[str]
    demand: List[int]
    committed: List[int]
    gap: List[int]


class CapacityUtilization(CamelModel):
    days: List[str]
    utilization: List[float]
    threshold: int


class HeatmapCell(CamelModel):
    route: str
    day: str
    gap: int
    gap_percent: float


class GapHeatmap(CamelModel):
    routes: List[str]
    days: List[str]
    data: List[HeatmapCell]


class CumulativePlanVsCommit(CamelModel):
    days: List[str]
    cumulative_demand: List[int]
    cumulative_committed: List[int]


class SupplyMixTrend(CamelModel):
    days: List[str]
    top_supplier_share: List[float]


class SupplyMix(CamelModel):
    suppliers: List[SupplierContribution]
    trend: Optional[SupplyMixTrend] = None


class VendorSeries(CamelModel):
    name: str
    data: List[int]


class VendorContribution(CamelModel):
    days: List[str]
    demand: List[int]
    suppliers: List[VendorSeries]


class LeadTimeBucket(CamelModel):
    label: str
    demand: int
    committed: int
    coverage: float


class CoverageByLeadTime(CamelModel):
    buckets: List[LeadTimeBucket]


class IntelligenceSummary(CamelModel):
    total_demand: int
    total_committed: int
    total_gap: int
    gap_percent: float
    avg_coverage: float
    routes_at_risk: int


class IntelligenceReport(CamelModel):
    demand_vs_committed: DemandVsCommitted
    capacity_utilization: CapacityUtilization
    gap_heatmap: GapHeatmap
    top_gap_contributors: List[RouteMetrics]
    cumulative_plan_vs_commit: CumulativePlanVsCommit
    supply_mix: SupplyMix
    vendor_contribution: VendorContribution
    coverage_by_lead_time: CoverageByLeadTime
    insights: List[Insight] = Field(default_factory=list)
    summary: IntelligenceSummary
