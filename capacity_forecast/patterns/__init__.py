"""
Capacity Forecast Patterns

Patterns combine primitives into end-to-end analyses with structured, validated outputs.
"""

from .backtest import BacktestPattern
from .base import Pattern
from .capacity_deficit import CapacityDeficitPattern
from .scenario_simulation import ScenarioSimulationPattern
from .seasonal_projection import SeasonalProjectionPattern

__all__ = [
    "Pattern",
    "SeasonalProjectionPattern",
    "BacktestPattern",
    "CapacityDeficitPattern",
    "ScenarioSimulationPattern",
]
