"""
Seasonal Projection Pattern

Builds a weekday pattern from a trailing window of daily observations and uses it to project the
current month to its end.
"""

import logging
from datetime import date, timedelta

import pandas as pd

from capacity_forecast.exceptions import InsufficientDataError
from capacity_forecast.models import DataSource, DataSourceType, PatternConfig, SeasonalProjectionReport
from capacity_forecast.patterns.base import Pattern
from capacity_forecast.primitives import (
    analyze_weekday_seasonality,
    calculate_month_to_date,
    default_weekday_pattern,
    fallback_projection,
    project_month_end,
)
from capacity_forecast.primitives.seasonality import REQUIRED_COLUMNS

logger = logging.getLogger(__name__)


class SeasonalProjectionPattern(Pattern[SeasonalProjectionReport]):
    """Projects the current month's monetary value from a weekday demand pattern."""

    name = "seasonal_projection"
    version = "1.0"
    description = "Weekday pattern extraction and month-end projection with momentum correction"
    required_primitives = [
        "analyze_weekday_seasonality",
        "default_weekday_pattern",
        "project_month_end",
        "fallback_projection",
    ]
    output_model: type[SeasonalProjectionReport] = SeasonalProjectionReport

    @classmethod
    def get_default_config(cls) -> PatternConfig:
        """Get the default configuration for the seasonal projection pattern."""
        return PatternConfig(
            pattern_name=cls.name,
            description=cls.description,
            version=cls.version,
            data_sources=[
                DataSource(source_type=DataSourceType.HISTORICAL_SERIES, is_required=True, data_key="data"),
            ],
            settings={
                "window_months": None,
                "high_confidence_samples": None,
            },
        )

    def analyze(  # type: ignore
        self,
        data: pd.DataFrame,
        reference_date: date | None = None,
        month_to_date: pd.DataFrame | None = None,
    ) -> SeasonalProjectionReport:
        """
        Execute the seasonal projection pattern.

        Args:
            data: Daily observations (date, service_count, monetary_value) covering the trailing window
            reference_date: Current, in-progress date; defaults to today
            month_to_date: Observations of the current month; defaults to `data`

        Returns:
            SeasonalProjectionReport; a low-confidence fallback when the window holds no observations
        """
        reference_date = reference_date or date.today()
        self.validate_data(data, REQUIRED_COLUMNS)
        month_to_date = data if month_to_date is None else month_to_date

        window_months = self.get_setting("window_months") or self.settings.WEEKDAY_WINDOW_MONTHS
        high_confidence_samples = (
            self.get_setting("high_confidence_samples") or self.settings.HIGH_CONFIDENCE_SAMPLES
        )

        try:
            weekday_pattern = analyze_weekday_seasonality(
                data,
                reference_date=reference_date,
                window_months=window_months,
                high_confidence_samples=high_confidence_samples,
            )
        except InsufficientDataError as e:
            logger.warning("No history before %s, returning fallback projection", reference_date)
            month_start = reference_date.replace(day=1)
            actual = (
                calculate_month_to_date(month_to_date, month_start, reference_date - timedelta(days=1))
                if not month_to_date.empty
                else 0.0
            )
            return self.handle_empty_data(
                e,
                analysis_date=reference_date,
                weekday_pattern=default_weekday_pattern(),
                projection=fallback_projection(reference_date, actual, self.settings.FALLBACK_MONTHLY_VALUE),
            )

        projection = project_month_end(
            weekday_pattern,
            month_to_date,
            reference_date,
            weeks_per_month=self.settings.WEEKS_PER_MONTH,
            momentum_threshold=self.settings.MOMENTUM_THRESHOLD,
            momentum_factor=self.settings.MOMENTUM_FACTOR,
            fallback_monthly_value=self.settings.FALLBACK_MONTHLY_VALUE,
        )
        logger.info(
            "Projected %s total %.2f (%s confidence)",
            reference_date.strftime("%Y-%m"),
            projection.total_projected_value,
            projection.confidence_label,
        )

        return self.validate_output(
            {
                "pattern": self.name,
                "version": self.version,
                "analysis_date": reference_date,
                "confidence_label": projection.confidence_label,
                "weekday_pattern": weekday_pattern,
                "projection": projection,
            }
        )
