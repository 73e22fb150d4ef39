"""
Capacity Forecast: demand forecasting and capacity simulation for field service operations.
"""

from capacity_forecast.api import CapacityForecast
from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import (
    CalculationError,
    CapacityForecastError,
    ConstraintInfeasibleError,
    DataError,
    DegenerateInputError,
    InsufficientDataError,
    MissingDataError,
    PatternError,
    PrimitiveError,
    UpstreamUnavailableError,
    ValidationError,
)

__version__ = "0.1.0"
__all__ = [
    "CapacityForecast",
    "EngineSettings",
    "get_settings",
    "CapacityForecastError",
    "ValidationError",
    "DataError",
    "MissingDataError",
    "InsufficientDataError",
    "DegenerateInputError",
    "CalculationError",
    "ConstraintInfeasibleError",
    "UpstreamUnavailableError",
    "PatternError",
    "PrimitiveError",
]
