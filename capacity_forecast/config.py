"""
Engine settings.

Every tunable constant used by the primitives lives here so that it can be overridden through the
environment (``CAPACITY_FORECAST_*``) or passed explicitly in tests.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Forecasting
    AVERAGE_ORDER_VALUE: float = Field(default=6500.0, gt=0)
    # One multiplier per calendar month (January first), peaking mid-year
    SEASONAL_FACTORS: list[float] = [0.85, 0.9, 0.95, 1.05, 1.15, 1.2, 1.15, 1.1, 1.0, 0.95, 0.9, 0.9]
    HOLT_LEVEL_WEIGHT: float = Field(default=0.3, gt=0, le=1)
    HOLT_TREND_WEIGHT: float = Field(default=0.1, gt=0, le=1)
    ENSEMBLE_WEIGHTS: dict[str, float] = {"seasonal_naive": 0.4, "linear_trend": 0.2, "double_exponential": 0.4}
    BACKTEST_MONTHS_TO_TEST: int = Field(default=6, ge=1)
    MIN_TRAINING_PERIODS: int = Field(default=3, ge=1)

    # Weekday pattern and month projection
    WEEKDAY_WINDOW_MONTHS: int = Field(default=3, ge=1)
    HIGH_CONFIDENCE_SAMPLES: int = Field(default=30, ge=1)
    WEEKS_PER_MONTH: float = 4.33
    MOMENTUM_THRESHOLD: float = 1.1
    MOMENTUM_FACTOR: float = 1.05
    FALLBACK_MONTHLY_VALUE: float = 7_200_000.0

    # Capacity
    REJECTION_RATIO: float = Field(default=0.25, ge=0, lt=1)
    SEGMENT_EFFICIENCY: float = Field(default=0.85, gt=0, le=1)
    AVAILABLE_HOURS: float = Field(default=16.0, gt=0)
    SEGMENT_DURATION_HOURS: dict[str, float] = {"local": 6.0, "longhaul": 14.0, "express": 4.0}
    SEGMENT_AVAILABILITY: dict[str, float] = {"local": 0.71, "longhaul": 0.5, "express": 0.8}
    # Modeling assumption, not a measured distribution
    SEGMENT_DEMAND_SHARES: dict[str, float] = {"local": 0.6, "longhaul": 0.3, "express": 0.1}
    MONTHLY_SERVICES_PER_UNIT: float = Field(default=29.0, gt=0)
    URGENCY_RISK_THRESHOLD: int = Field(default=7, ge=0, le=10)

    # Scenario simulation
    SIMULATION_ITERATIONS: int = Field(default=5000, ge=1)
    MAX_BUDGET_PER_CHANNEL_FRACTION: float = Field(default=0.4, gt=0, le=1)
    MIN_ROI_PERCENT: float = 200.0
    VALUE_PER_ACQUISITION: float = Field(default=15000.0, gt=0)
    COST_VARIABILITY: float = Field(default=0.2, ge=0, lt=1)
    CAPACITY_VARIABILITY: float = Field(default=0.2, ge=0, lt=1)
    ALLOCATION_BUCKET_FRACTION: float = Field(default=0.05, gt=0, le=1)
    MAX_ALTERNATIVE_SCENARIOS: int = Field(default=3, ge=0)
    # Share of the per-channel cap at which a channel counts as constrained
    CAP_PROXIMITY_FRACTION: float = Field(default=0.9, gt=0, le=1)

    model_config = SettingsConfigDict(env_prefix="CAPACITY_FORECAST_", env_file=".env", extra="ignore")

    @field_validator("SEASONAL_FACTORS")
    @classmethod
    def check_twelve_factors(cls, v: list[float]) -> list[float]:
        if len(v) != 12:
            raise ValueError("SEASONAL_FACTORS needs exactly 12 values, one per month")
        return v


@lru_cache
def get_settings() -> EngineSettings:
    """Get engine settings instance."""
    return EngineSettings()
