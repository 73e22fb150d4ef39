"""
Capacity primitives.
=============================================================================

Converts zone demand into segmented capacity deficits, urgency scores and
hiring recommendations.

Demand is split across segments with fixed shares (60% local, 30% longhaul,
10% express by default). The shares are a modeling assumption, not a measured
distribution; override them through CapacityConfig when real data exists.

Dependencies:
  - None (standard Python)
"""

import logging
import math

from capacity_forecast.exceptions import ValidationError
from capacity_forecast.models import (
    CapacityConfig,
    CapacityGap,
    DeficitAnalysis,
    DemandScenario,
    GapStatus,
    HiringImpact,
    SegmentCapacity,
    SegmentConfig,
    SegmentDistribution,
    ServiceSegment,
    StaffDistribution,
    ZoneDemandMetric,
)
from capacity_forecast.primitives.numeric import clamp, safe_divide

logger = logging.getLogger(__name__)

SCENARIO_DEMAND_FACTORS: dict[DemandScenario, float] = {
    DemandScenario.OPTIMISTIC: 0.9,
    DemandScenario.REALISTIC: 1.0,
    DemandScenario.PESSIMISTIC: 1.1,
}


def calculate_effective_capacity(units: float, rejection_ratio: float, efficiency: float) -> float:
    """
    Nominal units discounted by the rejection ratio and the operational efficiency.

    Family: capacity
    Version: 1.0

    Args:
        units: Active capacity units
        rejection_ratio: Share of assignments rejected, in [0, 1)
        efficiency: Operational efficiency factor, in (0, 1]

    Returns:
        units * (1 - rejection_ratio) * efficiency

    Raises:
        ValidationError: If any input is out of range
    """
    invalid = {}
    if units < 0:
        invalid["units"] = units
    if not 0 <= rejection_ratio < 1:
        invalid["rejection_ratio"] = rejection_ratio
    if not 0 < efficiency <= 1:
        invalid["efficiency"] = efficiency
    if invalid:
        raise ValidationError("Invalid effective capacity inputs", invalid)

    return units * (1 - rejection_ratio) * efficiency


def calculate_services_per_unit(segment: SegmentConfig, available_hours: float) -> float:
    """
    Daily services one effective unit completes in a segment.

    Family: capacity
    Version: 1.0
    """
    return (available_hours / segment.duration_hours) * segment.availability


def _segment_capacity(
    segment: SegmentConfig, demand_total: float, effective_units: float, config: CapacityConfig
) -> SegmentCapacity:
    demand = demand_total * segment.demand_share
    allocated = effective_units * segment.demand_share
    services_per_unit = calculate_services_per_unit(segment, config.available_hours)
    capacity_services = allocated * services_per_unit
    deficit = max(0.0, demand - capacity_services)

    # A new unit contributes its effective capacity fully to the segment it is hired for
    per_hire = (1 - config.rejection_ratio) * config.segment_efficiency * services_per_unit
    hires = math.ceil(deficit / per_hire) if deficit > 0 else 0

    return SegmentCapacity(
        segment=segment.segment,
        demand=demand,
        allocated_units=allocated,
        capacity_services=capacity_services,
        deficit=deficit,
        hires_needed=hires,
    )


def calculate_deficit_analysis(metric: ZoneDemandMetric, config: CapacityConfig | None = None) -> DeficitAnalysis:
    """
    Segmented shortfall between zone demand and effective capacity.

    Effective capacity is shared across segments with the same shares used to split demand, and
    converted to daily services via available_hours / duration * availability. Deficits are
    floored at zero.

    Family: capacity
    Version: 1.0

    Args:
        metric: Zone demand metric
        config: Capacity configuration; defaults to the engine settings

    Returns:
        DeficitAnalysis where deficit_total is the sum of the segment deficits
    """
    config = config or CapacityConfig.from_settings()
    effective = calculate_effective_capacity(
        metric.active_capacity_units, config.rejection_ratio, config.segment_efficiency
    )

    segments = {
        ServiceSegment(seg.segment): _segment_capacity(seg, metric.average_daily_service_volume, effective, config)
        for seg in config.segments
    }

    deficit_local = segments[ServiceSegment.LOCAL].deficit if ServiceSegment.LOCAL in segments else 0.0
    deficit_longhaul = segments[ServiceSegment.LONGHAUL].deficit if ServiceSegment.LONGHAUL in segments else 0.0
    deficit_express = segments[ServiceSegment.EXPRESS].deficit if ServiceSegment.EXPRESS in segments else 0.0

    return DeficitAnalysis(
        deficit_local=deficit_local,
        deficit_longhaul=deficit_longhaul,
        deficit_express=deficit_express,
        deficit_total=deficit_local + deficit_longhaul + deficit_express,
        effective_capacity=effective,
        segments=list(segments.values()),
    )


def calculate_urgency_score(
    deficit_total: float, daily_volume: float, capacity_units: float, rejection_ratio: float = 0.25
) -> int:
    """
    Score a zone's staffing urgency from 0 to 10.

    Weighted points out of 100:
      - deficit: deficit_total / daily_volume * 40, capped at 40
      - capacity: 30 below 2 units, else 30 - 3 per unit, floored at 0
      - rejection: 20 above a 0.3 ratio, else ratio * 66.67
      - demand: daily_volume / 20 * 10, capped at 10
    The total is divided by 10, rounded and clamped to [0, 10]. Without a deficit the score
    cannot exceed 6.

    Family: capacity
    Version: 1.0

    Args:
        deficit_total: Total daily service deficit
        daily_volume: Average daily service volume
        capacity_units: Active capacity units
        rejection_ratio: Share of assignments rejected

    Returns:
        Urgency score
    """
    deficit_points = min(deficit_total / daily_volume * 40, 40.0) if daily_volume > 0 else 0.0
    capacity_points = 30.0 if capacity_units < 2 else max(0.0, 30 - capacity_units * 3)
    rejection_points = 20.0 if rejection_ratio > 0.3 else min(rejection_ratio * 66.67, 20.0)
    demand_points = min(daily_volume / 20 * 10, 10.0)

    total = deficit_points + capacity_points + rejection_points + demand_points
    return int(clamp(round(total / 10), 0, 10))


def generate_capacity_recommendations(
    analysis: DeficitAnalysis, metric: ZoneDemandMetric, config: CapacityConfig | None = None
) -> list[str]:
    """
    Actionable staffing recommendations for a zone.

    Family: capacity
    Version: 1.0
    """
    config = config or CapacityConfig.from_settings()
    recommendations = []

    for seg in analysis.segments:
        if seg.hires_needed > 0:
            recommendations.append(f"Hire {seg.hires_needed} units for {ServiceSegment(seg.segment).value} services")

    if config.rejection_ratio > 0.3:
        recommendations.append("Introduce acceptance incentives to reduce the rejection ratio")

    if metric.active_capacity_units < 3:
        recommendations.append("Critical capacity: fewer than 3 active units in the zone")

    if analysis.deficit_local > 0 or analysis.deficit_longhaul > 0:
        recommendations.append("Optimize routes and redistribute staff between segments")

    if not recommendations:
        recommendations.append("Capacity sufficient: keep the current staffing level")
    return recommendations


def simulate_hiring_impact(
    metric: ZoneDemandMetric, additional_units: int, config: CapacityConfig | None = None
) -> HiringImpact:
    """
    Compare the zone's deficit now and after adding units.

    Family: capacity
    Version: 1.0

    Raises:
        ValidationError: If additional_units is negative
    """
    if additional_units < 0:
        raise ValidationError("additional_units must not be negative", {"additional_units": additional_units})

    config = config or CapacityConfig.from_settings()
    current = calculate_deficit_analysis(metric, config)
    hired = metric.model_copy(update={"active_capacity_units": metric.active_capacity_units + additional_units})
    projected = calculate_deficit_analysis(hired, config)

    reduction = current.deficit_total - projected.deficit_total
    improvement = safe_divide(reduction, current.deficit_total, default_value=0.0, as_percentage=True)
    return HiringImpact(
        zone_id=metric.zone_id,
        additional_units=additional_units,
        current=current,
        projected=projected,
        deficit_reduction=reduction,
        improvement_percent=improvement,  # type: ignore
    )


def analyze_optimal_distribution(metric: ZoneDemandMetric, config: CapacityConfig | None = None) -> StaffDistribution:
    """
    Split the zone's whole units across segments in proportion to segment demand.

    Rounding leftovers go to the local segment. Coverage is the share of segment demand the assigned
    units can serve, capped at 100.

    Family: capacity
    Version: 1.0
    """
    config = config or CapacityConfig.from_settings()
    total_units = int(metric.active_capacity_units)
    demand_total = metric.average_daily_service_volume

    if demand_total == 0:
        return StaffDistribution(
            zone_id=metric.zone_id,
            total_units=total_units,
            distribution=[
                SegmentDistribution(segment=seg.segment, units=0, demand=0.0, coverage_percent=0.0)
                for seg in config.segments
            ],
        )

    units = {ServiceSegment(seg.segment): round(total_units * seg.demand_share) for seg in config.segments}
    difference = total_units - sum(units.values())
    if ServiceSegment.LOCAL in units:
        units[ServiceSegment.LOCAL] = max(0, units[ServiceSegment.LOCAL] + difference)

    distribution = []
    for seg in config.segments:
        segment = ServiceSegment(seg.segment)
        demand = demand_total * seg.demand_share
        effective = calculate_effective_capacity(units[segment], config.rejection_ratio, config.segment_efficiency)
        served = effective * calculate_services_per_unit(seg, config.available_hours)
        coverage = safe_divide(served, demand, default_value=100.0, as_percentage=True)
        distribution.append(
            SegmentDistribution(
                segment=segment,
                units=units[segment],
                demand=demand,
                coverage_percent=min(100.0, coverage),  # type: ignore
            )
        )

    return StaffDistribution(zone_id=metric.zone_id, total_units=total_units, distribution=distribution)


def analyze_capacity_gap(
    monthly_capacity: float,
    forecast_services: float,
    scenario: DemandScenario = DemandScenario.REALISTIC,
    config: CapacityConfig | None = None,
) -> CapacityGap:
    """
    Compare monthly service capacity against a demand forecast under a scenario.

    Scenario factors scale demand (optimistic 0.9, realistic 1.0, pessimistic 1.1). A gap above
    +20% of adjusted demand is a surplus, below -10% a deficit that needs
    ceil(|gap| / config.monthly_services_per_unit) hires, anything in between is balanced.

    Family: capacity
    Version: 1.0

    Args:
        monthly_capacity: Services the current staff can deliver in a month
        forecast_services: Forecast services for the month
        scenario: Demand scenario
        config: Capacity configuration holding monthly_services_per_unit; defaults to the engine settings

    Returns:
        CapacityGap
    """
    config = config or CapacityConfig.from_settings()
    scenario = DemandScenario(scenario)
    adjusted = forecast_services * SCENARIO_DEMAND_FACTORS[scenario]
    gap = monthly_capacity - adjusted
    gap_percent = safe_divide(gap, adjusted, default_value=0.0, as_percentage=True)

    hires = 0
    if gap_percent > 20:  # type: ignore
        status = GapStatus.SURPLUS
    elif gap_percent < -10:  # type: ignore
        status = GapStatus.DEFICIT
        hires = math.ceil(abs(gap) / config.monthly_services_per_unit)
    else:
        status = GapStatus.BALANCED

    logger.debug("Capacity gap %.1f%% under %s scenario: %s", gap_percent, scenario.value, status.value)
    return CapacityGap(
        scenario=scenario,
        forecast_services=forecast_services,
        adjusted_demand=adjusted,
        monthly_capacity=monthly_capacity,
        gap=gap,
        gap_percent=round(gap_percent, 1),  # type: ignore
        status=status,
        recommended_hires=hires,
    )
