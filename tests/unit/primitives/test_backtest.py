"""
Unit tests for the backtest primitives.
"""

from datetime import date, timedelta

import pandas as pd
import pytest

from capacity_forecast.exceptions import InsufficientDataError, MissingDataError, ValidationError
from capacity_forecast.models import ConfidenceLabel, ForecastResult
from capacity_forecast.primitives import (
    aggregate_monthly,
    calculate_historical_order_value,
    run_walk_forward_backtest,
    summarize_backtest,
    validate_forecast_coherence,
)


class TestAggregateMonthly:
    """Tests for the aggregate_monthly function."""

    def test_sums_per_month(self):
        """Test that daily rows are summed into calendar months."""
        # Arrange
        dates = [date(2024, 1, 30) + timedelta(days=i) for i in range(4)]  # Jan 30 - Feb 2
        df = pd.DataFrame({"date": dates, "service_count": [1, 2, 3, 4], "monetary_value": [10.0, 20.0, 30.0, 40.0]})

        # Act
        result = aggregate_monthly(df, period_end=date(2024, 2, 29))

        # Assert
        assert list(result.columns) == ["period", "service_count", "monetary_value"]
        assert list(result["period"]) == [pd.Timestamp("2024-01-01"), pd.Timestamp("2024-02-01")]
        assert list(result["service_count"]) == [3, 7]
        assert list(result["monetary_value"]) == [30.0, 70.0]

    def test_drops_incomplete_trailing_month(self):
        """Test that a month observed only partly is not returned as a period."""
        # Arrange
        dates = pd.date_range("2024-01-01", "2024-03-14", freq="D")
        df = pd.DataFrame({"date": dates, "service_count": 10, "monetary_value": 65_000.0})

        # Act
        result = aggregate_monthly(df)

        # Assert
        assert list(result["period"]) == [pd.Timestamp("2024-01-01"), pd.Timestamp("2024-02-01")]
        assert list(result["service_count"]) == [310, 290]

    def test_keeps_month_covered_through_period_end(self):
        """Test that a month with missing trailing days is kept when period_end covers it."""
        # Arrange
        df = pd.DataFrame(
            {
                "date": [date(2024, 1, 15), date(2024, 2, 15)],
                "service_count": [100, 120],
                "monetary_value": [650_000.0, 780_000.0],
            }
        )

        # Act
        result = aggregate_monthly(df, period_end=date(2024, 2, 29))

        # Assert
        assert list(result["service_count"]) == [100, 120]


class TestRunWalkForwardBacktest:
    """Tests for the run_walk_forward_backtest function."""

    def test_tests_trailing_periods(self, linear_monthly_series, settings):
        """Test that the last months_to_test periods are evaluated in order."""
        # Act
        cases = run_walk_forward_backtest(linear_monthly_series, months_to_test=6, settings=settings)

        # Assert
        assert [case.period_label for case in cases] == [
            "2023-07",
            "2023-08",
            "2023-09",
            "2023-10",
            "2023-11",
            "2023-12",
        ]
        assert set(cases[0].forecasts) == {"seasonal_naive", "linear_trend", "double_exponential", "ensemble"}

    def test_minimum_training_history(self, linear_monthly_series, settings):
        """Test that testing starts no earlier than MIN_TRAINING_PERIODS."""
        # Act
        cases = run_walk_forward_backtest(linear_monthly_series.head(5), months_to_test=6, settings=settings)

        # Assert
        assert [case.period_label for case in cases] == ["2023-04", "2023-05"]

    def test_training_excludes_test_period(self, linear_monthly_series, settings):
        """Test that each forecast uses only periods strictly before the tested one."""
        # Act
        cases = run_walk_forward_backtest(linear_monthly_series, months_to_test=6, settings=settings)

        # Assert
        for case in cases:
            assert case.forecasts["linear_trend"].predicted_count == pytest.approx(case.actual_count)
            assert case.count_ape["linear_trend"] == pytest.approx(0.0, abs=1e-9)

    def test_too_few_periods(self, linear_monthly_series, settings):
        """Test that a series without a trainable test period raises InsufficientDataError."""
        # Act & Assert
        with pytest.raises(InsufficientDataError) as exc_info:
            run_walk_forward_backtest(linear_monthly_series.head(3), settings=settings)
        assert exc_info.value.available == 3

    def test_zero_actual_has_no_percentage_error(self, linear_monthly_series, settings):
        """Test that a zero actual keeps absolute errors but skips percentage errors."""
        # Arrange
        df = linear_monthly_series.copy()
        df.loc[11, ["service_count", "monetary_value"]] = 0

        # Act
        cases = run_walk_forward_backtest(df, months_to_test=2, settings=settings)

        # Assert
        last = cases[-1]
        assert all(ape is None for ape in last.count_ape.values())
        assert all(err > 0 for err in last.count_abs_error.values())

    @pytest.mark.parametrize("months_to_test", [0, -2])
    def test_invalid_months_to_test(self, linear_monthly_series, settings, months_to_test):
        """Test that a non-positive months_to_test raises ValidationError instead of using the default."""
        # Act & Assert
        with pytest.raises(ValidationError):
            run_walk_forward_backtest(linear_monthly_series, months_to_test=months_to_test, settings=settings)

    def test_missing_columns(self, settings):
        """Test that a frame without the monthly columns raises MissingDataError."""
        # Act & Assert
        with pytest.raises(MissingDataError):
            run_walk_forward_backtest(pd.DataFrame({"period": [], "service_count": []}), settings=settings)


class TestSummarizeBacktest:
    """Tests for the summarize_backtest function."""

    def test_linear_beats_seasonal_naive_on_linear_series(self, linear_monthly_series, settings):
        """Test that the linear model has a strictly lower MAPE than seasonal naive on a perfect line."""
        # Arrange
        cases = run_walk_forward_backtest(linear_monthly_series, months_to_test=6, settings=settings)

        # Act
        summary = summarize_backtest(cases)

        # Assert
        scores = {score.model_name: score for score in summary.model_scores}
        assert scores["linear_trend"].mape_count < scores["seasonal_naive"].mape_count
        assert summary.best_model_name in ("linear_trend", "double_exponential")
        assert summary.overall_accuracy == pytest.approx(100.0, abs=1e-6)
        assert summary.total_periods == 6

    def test_idempotent(self, linear_monthly_series, settings):
        """Test that backtesting the same window twice yields identical summaries."""
        # Act
        first = summarize_backtest(run_walk_forward_backtest(linear_monthly_series, settings=settings))
        second = summarize_backtest(run_walk_forward_backtest(linear_monthly_series, settings=settings))

        # Assert
        assert first.model_dump() == second.model_dump()

    def test_best_and_worst_periods(self, linear_monthly_series, settings):
        """Test that best and worst periods are labels of tested periods."""
        # Act
        summary = summarize_backtest(run_walk_forward_backtest(linear_monthly_series, settings=settings))

        # Assert
        labels = {"2023-07", "2023-08", "2023-09", "2023-10", "2023-11", "2023-12"}
        assert summary.best_period_label in labels
        assert summary.worst_period_label in labels

    def test_no_cases(self):
        """Test that an empty case list raises InsufficientDataError."""
        # Act & Assert
        with pytest.raises(InsufficientDataError):
            summarize_backtest([])


class TestForecastCoherence:
    """Tests for the coherence helpers."""

    def test_historical_order_value(self, linear_monthly_series):
        """Test the average value per service."""
        # Act
        result = calculate_historical_order_value(linear_monthly_series, default_value=1.0)

        # Assert
        assert result == pytest.approx(6500.0)

    def test_historical_order_value_default(self):
        """Test the default when no services were recorded."""
        # Arrange
        df = pd.DataFrame({"service_count": [0, 0], "monetary_value": [0.0, 0.0]})

        # Act
        result = calculate_historical_order_value(df, default_value=6500.0)

        # Assert
        assert result == 6500.0

    def test_coherent_forecast(self):
        """Test that a forecast priced at the reference order value is coherent."""
        # Arrange
        forecast = ForecastResult(predicted_count=100, predicted_value=650_000, confidence=0.8, model_name="x")

        # Act
        result = validate_forecast_coherence(forecast, 6500.0)

        # Assert
        assert result.is_coherent is True
        assert result.confidence_label == ConfidenceLabel.HIGH
        assert result.confidence == 0.95
        assert result.issues == []

    def test_incoherent_order_value(self):
        """Test that an implied order value far from the reference is low confidence."""
        # Arrange
        forecast = ForecastResult(predicted_count=100, predicted_value=900_000, confidence=0.8, model_name="x")

        # Act
        result = validate_forecast_coherence(forecast, 6500.0)

        # Assert
        assert result.is_coherent is False
        assert result.confidence_label == ConfidenceLabel.LOW
        assert result.implied_order_value == pytest.approx(9000.0)
        assert len(result.issues) == 2

    def test_diverges_from_projection(self):
        """Test that diverging from a high-confidence projection lowers confidence to medium."""
        # Arrange
        forecast = ForecastResult(predicted_count=100, predicted_value=650_000, confidence=0.8, model_name="x")

        # Act
        result = validate_forecast_coherence(
            forecast,
            6500.0,
            month_projection_total=1_000_000,
            month_projection_label=ConfidenceLabel.HIGH,
        )

        # Assert
        assert result.is_coherent is True
        assert result.confidence_label == ConfidenceLabel.MEDIUM
