"""
Capacity Models

Pydantic models for zone capacity, deficits and hiring analysis.
"""

from pydantic import Field

from capacity_forecast.models.common import BaseModel, BasePattern
from capacity_forecast.models.enums import DemandScenario, GapStatus, ServiceSegment


class ZoneDemandMetric(BaseModel):
    """Demand and staffing snapshot of one zone."""

    zone_id: str
    active_capacity_units: float = Field(ge=0)
    average_daily_service_volume: float = Field(ge=0)


class SegmentCapacity(BaseModel):
    """Demand vs capacity of one service segment."""

    segment: ServiceSegment
    # Daily services attributed to the segment
    demand: float = Field(ge=0)
    # Effective units allocated to the segment
    allocated_units: float = Field(ge=0)
    # Daily services the allocated units can cover
    capacity_services: float = Field(ge=0)
    deficit: float = Field(ge=0)
    # Additional units needed to close the deficit
    hires_needed: int = Field(default=0, ge=0)


class DeficitAnalysis(BaseModel):
    """Segmented shortfall of one zone."""

    deficit_local: float = Field(ge=0)
    deficit_longhaul: float = Field(ge=0)
    deficit_express: float = Field(ge=0)
    deficit_total: float = Field(ge=0)
    effective_capacity: float = Field(ge=0)
    segments: list[SegmentCapacity] = Field(default_factory=list)


class ZoneCapacityReport(BaseModel):
    """Deficit, urgency and recommendations for one zone."""

    zone_id: str
    deficit_analysis: DeficitAnalysis
    urgency_score: int = Field(ge=0, le=10)
    is_at_risk: bool
    recommendations: list[str] = Field(default_factory=list)


class HiringImpact(BaseModel):
    """Effect of adding units to a zone."""

    zone_id: str
    additional_units: int = Field(ge=0)
    current: DeficitAnalysis
    projected: DeficitAnalysis
    deficit_reduction: float
    # Share of the current deficit closed, 0-100
    improvement_percent: float


class SegmentDistribution(BaseModel):
    """Units assigned to one segment and the demand they cover."""

    segment: ServiceSegment
    units: int = Field(ge=0)
    demand: float = Field(ge=0)
    coverage_percent: float = Field(ge=0, le=100)


class StaffDistribution(BaseModel):
    """Proportional split of a zone's units across segments."""

    zone_id: str
    total_units: int = Field(ge=0)
    distribution: list[SegmentDistribution]


class CapacityGap(BaseModel):
    """Monthly capacity compared against a demand forecast."""

    scenario: DemandScenario
    forecast_services: float
    adjusted_demand: float
    monthly_capacity: float
    gap: float
    gap_percent: float
    status: GapStatus
    recommended_hires: int = Field(default=0, ge=0)


class CapacityDeficitReport(BasePattern):
    """Output of the capacity deficit pattern."""

    pattern: str = "capacity_deficit"
    zones: list[ZoneCapacityReport] = Field(default_factory=list)
    # Zone ids sorted by descending urgency
    priority_zones: list[str] = Field(default_factory=list)
    total_deficit: float = 0.0
