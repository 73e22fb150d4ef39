"""
Forecast Backtest Pattern

Walk-forward comparison of the forecasting models on a monthly series, followed by a next-period
forecast from the best model and a coherence check of that forecast.
"""

import logging
from datetime import date

import pandas as pd

from capacity_forecast.exceptions import InsufficientDataError
from capacity_forecast.models import (
    BacktestReport,
    BacktestSummary,
    ConfidenceLabel,
    DataSource,
    DataSourceType,
    PatternConfig,
)
from capacity_forecast.patterns.base import Pattern
from capacity_forecast.primitives import (
    aggregate_monthly,
    calculate_historical_order_value,
    forecast_all_models,
    next_period_start,
    run_walk_forward_backtest,
    summarize_backtest,
    validate_forecast_coherence,
)
from capacity_forecast.primitives.backtest import MONTHLY_COLUMNS

logger = logging.getLogger(__name__)


class BacktestPattern(Pattern[BacktestReport]):
    """Ranks forecast models by walk-forward accuracy and forecasts the next period."""

    name = "forecast_backtest"
    version = "1.0"
    description = "Walk-forward backtest of seasonal naive, linear trend, double exponential and ensemble models"
    required_primitives = [
        "aggregate_monthly",
        "run_walk_forward_backtest",
        "summarize_backtest",
        "forecast_all_models",
        "validate_forecast_coherence",
    ]
    output_model: type[BacktestReport] = BacktestReport

    @classmethod
    def get_default_config(cls) -> PatternConfig:
        """Get the default configuration for the backtest pattern."""
        return PatternConfig(
            pattern_name=cls.name,
            description=cls.description,
            version=cls.version,
            data_sources=[
                DataSource(source_type=DataSourceType.HISTORICAL_SERIES, is_required=True, data_key="data"),
            ],
            settings={
                "high_accuracy": 85.0,
                "medium_accuracy": 70.0,
            },
        )

    def classify_accuracy(self, summary: BacktestSummary) -> ConfidenceLabel:
        """Map the best model's accuracy to a confidence label."""
        if summary.best_model_name is None:
            return ConfidenceLabel.LOW
        if summary.overall_accuracy >= self.get_setting("high_accuracy", 85.0):
            return ConfidenceLabel.HIGH
        if summary.overall_accuracy >= self.get_setting("medium_accuracy", 70.0):
            return ConfidenceLabel.MEDIUM
        return ConfidenceLabel.LOW

    def analyze(  # type: ignore
        self,
        data: pd.DataFrame,
        months_to_test: int | None = None,
        models: list[str] | None = None,
        period_end: date | None = None,
    ) -> BacktestReport:
        """
        Execute the backtest pattern.

        Args:
            data: Monthly frame (period, service_count, monetary_value) or daily observations
                (date, service_count, monetary_value), which are aggregated by month
            months_to_test: Number of trailing periods to test
            models: Model names to compare; defaults to all
            period_end: Last day daily data covers; a trailing month not covered through its last day
                is left out. Defaults to the latest observation

        Returns:
            BacktestReport; a low-confidence fallback when there are too few periods
        """
        if "period" in data.columns:
            self.validate_data(data, MONTHLY_COLUMNS)
            monthly = data.copy()
        else:
            monthly = aggregate_monthly(data, period_end)
        monthly["period"] = pd.to_datetime(monthly["period"])
        monthly = monthly.sort_values("period").reset_index(drop=True)

        try:
            cases = run_walk_forward_backtest(monthly, months_to_test, models, self.settings)
        except InsufficientDataError as e:
            logger.warning("Backtest skipped: %s", e.message)
            return self.handle_empty_data(e)

        summary = summarize_backtest(cases)
        label = self.classify_accuracy(summary)

        output = {
            "pattern": self.name,
            "version": self.version,
            "summary": summary,
            "cases": cases,
            "confidence_label": label,
        }

        if summary.best_model_name:
            series = pd.Series(
                monthly["service_count"].astype(float).to_numpy(), index=pd.DatetimeIndex(monthly["period"])
            )
            next_start = next_period_start(series)
            forecast = forecast_all_models(series, self.settings, models=[summary.best_model_name])[
                summary.best_model_name
            ]
            reference_order_value = calculate_historical_order_value(monthly, self.settings.AVERAGE_ORDER_VALUE)
            coherence = validate_forecast_coherence(forecast, reference_order_value)
            if not coherence.is_coherent:
                output["confidence_label"] = ConfidenceLabel.LOW
            output.update(
                next_period_label=next_start.strftime("%Y-%m"),
                next_period_forecast=forecast,
                coherence=coherence,
            )
            logger.info(
                "Best model %s (accuracy %.1f) forecasts %.1f services for %s",
                summary.best_model_name,
                summary.overall_accuracy,
                forecast.predicted_count,
                output["next_period_label"],
            )
        else:
            logger.warning("No model could be scored: every tested period had a zero actual")

        return self.validate_output(output)

