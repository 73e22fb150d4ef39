"""
Unit tests for the seasonal projection pattern.
"""

from datetime import date

import pandas as pd
import pytest

from capacity_forecast.models import ConfidenceLabel, SeasonalProjectionReport
from capacity_forecast.patterns import SeasonalProjectionPattern


@pytest.fixture
def pattern(settings):
    return SeasonalProjectionPattern(settings=settings)


class TestSeasonalProjectionPattern:
    """Tests for the SeasonalProjectionPattern class."""

    def test_projection_from_history(self, pattern, identical_daily_history):
        """Test a mid-month projection built from the history itself."""
        # Act
        result = pattern.analyze(identical_daily_history, reference_date=date(2024, 3, 11))

        # Assert
        assert isinstance(result, SeasonalProjectionReport)
        assert result.error is None
        assert result.analysis_date == date(2024, 3, 11)
        assert result.weekday_pattern.confidence == 0.85
        projection = result.projection
        assert projection.current_month_actual_value == pytest.approx(3_000_000)
        assert projection.days_remaining == 21
        assert projection.momentum_factor == 1.0
        assert projection.total_projected_value == pytest.approx(9_300_000)
        assert result.confidence_label == ConfidenceLabel.HIGH

    def test_separate_month_to_date(self, pattern, identical_daily_history, june_month_to_date):
        """Test that month-to-date observations can be passed separately."""
        # Act
        result = pattern.analyze(
            identical_daily_history, reference_date=date(2024, 4, 11), month_to_date=june_month_to_date
        )

        # Assert
        assert result.projection.current_month_actual_value == 0

    def test_no_history_falls_back(self, pattern):
        """Test the fallback projection when the window is empty."""
        # Arrange
        empty = pd.DataFrame(columns=["date", "service_count", "monetary_value"])

        # Act
        result = pattern.analyze(empty, reference_date=date(2024, 6, 11))

        # Assert
        assert result.confidence_label == ConfidenceLabel.LOW
        assert result.error["type"] == "data_error"
        assert result.weekday_pattern.is_default is True
        assert result.projection.is_fallback is True
        assert result.projection.total_projected_value == pytest.approx(7_200_000)

    def test_default_config(self):
        """Test the default configuration."""
        # Act
        config = SeasonalProjectionPattern.get_default_config()

        # Assert
        assert config.pattern_name == "seasonal_projection"
        assert config.data_sources[0].data_key == "data"
