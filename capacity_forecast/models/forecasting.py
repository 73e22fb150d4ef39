"""
Forecasting Models

Pydantic models for point forecasts and walk-forward backtests.
"""

from pydantic import Field

from capacity_forecast.models.common import BaseModel, BasePattern
from capacity_forecast.models.enums import ConfidenceLabel


class ForecastResult(BaseModel):
    """One model's forecast for one period."""

    # Forecast service count for the period
    predicted_count: float = Field(ge=0)
    # Forecast monetary value for the period
    predicted_value: float = Field(ge=0)
    # Fixed per-model confidence in [0, 1]
    confidence: float = Field(ge=0, le=1)
    model_name: str


class BacktestCase(BaseModel):
    """Forecasts of every model against the realized values of one test period."""

    period_label: str
    actual_count: float
    actual_value: float
    forecasts: dict[str, ForecastResult]
    # Absolute percentage errors per model; None when the actual was zero
    count_ape: dict[str, float | None]
    value_ape: dict[str, float | None]
    # Absolute errors per model, always recorded
    count_abs_error: dict[str, float]
    value_abs_error: dict[str, float]


class ModelScore(BaseModel):
    """Aggregated errors of one model across the backtest."""

    model_name: str
    mape_count: float | None = None
    mape_value: float | None = None
    # Periods that contributed a percentage error
    scored_periods: int = 0
    accuracy: float = 0.0


class BacktestSummary(BaseModel):
    """Aggregate of a walk-forward backtest."""

    total_periods: int
    # MAPE of the best model
    mean_absolute_percentage_error_count: float | None = None
    mean_absolute_percentage_error_value: float | None = None
    best_model_name: str | None = None
    worst_period_label: str | None = None
    best_period_label: str | None = None
    # 100 - MAPE, floored at 0
    overall_accuracy: float = 0.0
    model_scores: list[ModelScore] = Field(default_factory=list)


class ForecastCoherence(BaseModel):
    """Consistency check between a count forecast and a value forecast."""

    is_coherent: bool
    implied_order_value: float | None = None
    # Relative deviation of the implied order value from the reference
    order_value_deviation: float | None = None
    # Relative deviation of the value forecast from count * reference order value
    value_deviation: float | None = None
    confidence: float = Field(ge=0, le=1)
    confidence_label: ConfidenceLabel
    issues: list[str] = Field(default_factory=list)


class BacktestReport(BasePattern):
    """Output of the forecast backtest pattern."""

    pattern: str = "forecast_backtest"
    summary: BacktestSummary | None = None
    cases: list[BacktestCase] = Field(default_factory=list)
    # Next-period forecast of the best model, trained on the full series
    next_period_label: str | None = None
    next_period_forecast: ForecastResult | None = None
    coherence: ForecastCoherence | None = None
