"""
Models module for the capacity_forecast package.

This module contains Pydantic models used throughout the package.
"""

from .enums import (
    ConfidenceLabel,
    DataSourceType,
    DemandScenario,
    ForecastModelName,
    GapStatus,
    RecruitmentStrategy,
    RiskLevel,
    ServiceSegment,
    Weekday,
)
from .common import BaseModel, BasePattern, Observation
from .pattern_config import CapacityConfig, DataSource, PatternConfig, SegmentConfig, SimulationConstraints
from .seasonality import DailyProjection, SeasonalProjection, SeasonalProjectionReport, WeekdayAverage, WeekdayPattern
from .forecasting import (
    BacktestCase,
    BacktestReport,
    BacktestSummary,
    ForecastCoherence,
    ForecastResult,
    ModelScore,
)
from .capacity import (
    CapacityDeficitReport,
    CapacityGap,
    DeficitAnalysis,
    HiringImpact,
    SegmentCapacity,
    SegmentDistribution,
    StaffDistribution,
    ZoneCapacityReport,
    ZoneDemandMetric,
)
from .simulation import (
    AlternativeScenario,
    BudgetAllocation,
    Channel,
    OutcomeDistribution,
    RecruitmentScenario,
    RiskMetrics,
    ScenarioSimulationReport,
    SimulationParameters,
    SimulationResult,
    StrategyComparison,
)

__all__ = [
    # Enums
    "ConfidenceLabel",
    "DataSourceType",
    "DemandScenario",
    "ForecastModelName",
    "GapStatus",
    "RecruitmentStrategy",
    "RiskLevel",
    "ServiceSegment",
    "Weekday",
    # Common models
    "BaseModel",
    "BasePattern",
    "Observation",
    # Configuration models
    "CapacityConfig",
    "DataSource",
    "PatternConfig",
    "SegmentConfig",
    "SimulationConstraints",
    # Seasonality models
    "DailyProjection",
    "SeasonalProjection",
    "SeasonalProjectionReport",
    "WeekdayAverage",
    "WeekdayPattern",
    # Forecasting models
    "BacktestCase",
    "BacktestReport",
    "BacktestSummary",
    "ForecastCoherence",
    "ForecastResult",
    "ModelScore",
    # Capacity models
    "CapacityDeficitReport",
    "CapacityGap",
    "DeficitAnalysis",
    "HiringImpact",
    "SegmentCapacity",
    "SegmentDistribution",
    "StaffDistribution",
    "ZoneCapacityReport",
    "ZoneDemandMetric",
    # Simulation models
    "AlternativeScenario",
    "BudgetAllocation",
    "Channel",
    "OutcomeDistribution",
    "RecruitmentScenario",
    "RiskMetrics",
    "ScenarioSimulationReport",
    "SimulationParameters",
    "SimulationResult",
    "StrategyComparison",
]
