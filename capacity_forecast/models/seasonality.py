"""
Seasonality Models

Pydantic models for weekday patterns and month-end projections.
"""

from datetime import date

from pydantic import Field

from capacity_forecast.models.common import BaseModel, BasePattern
from capacity_forecast.models.enums import ConfidenceLabel, Weekday


class WeekdayAverage(BaseModel):
    """Average demand observed on one weekday."""

    weekday: Weekday
    # Mean daily service count; 0 when the bucket has no samples
    average_count: float = Field(ge=0)
    # Mean daily monetary value; 0 when the bucket has no samples
    average_value: float = Field(ge=0)
    # Number of days that fell in this bucket
    samples: int = Field(default=0, ge=0)


class WeekdayPattern(BaseModel):
    """Average (count, value) per weekday over a trailing window."""

    averages: list[WeekdayAverage]
    confidence: float = Field(ge=0, le=1)
    # Total days in the window, across all buckets
    samples_analyzed: int = Field(ge=0)
    # True when the pattern is the hardcoded fallback rather than derived from data
    is_default: bool = False

    def for_weekday(self, weekday: Weekday | str) -> WeekdayAverage:
        weekday = Weekday(weekday)
        for avg in self.averages:
            if Weekday(avg.weekday) == weekday:
                return avg
        return WeekdayAverage(weekday=weekday, average_count=0.0, average_value=0.0)

    @property
    def weekly_value(self) -> float:
        return sum(avg.average_value for avg in self.averages)


class DailyProjection(BaseModel):
    """Projected value of one remaining day of the month."""

    date: date
    weekday: Weekday
    projected_value: float
    is_weekend: bool = False


class SeasonalProjection(BaseModel):
    """Full-month projection built from month-to-date actuals and a weekday pattern."""

    reference_date: date
    # Sum of complete days already observed this month
    current_month_actual_value: float
    # Sum of the per-day breakdown
    projected_remaining_value: float
    total_projected_value: float
    per_day_breakdown: list[DailyProjection] = Field(default_factory=list)
    weekday_subtotal: float = 0.0
    weekend_subtotal: float = 0.0
    days_elapsed: int = 0
    days_remaining: int = 0
    days_in_month: int = 0
    # 1.0 unless month-to-date ran ahead of the pattern
    momentum_factor: float = 1.0
    confidence_label: ConfidenceLabel
    methodology_note: str
    is_fallback: bool = False


class SeasonalProjectionReport(BasePattern):
    """Output of the seasonal projection pattern."""

    pattern: str = "seasonal_projection"
    weekday_pattern: WeekdayPattern | None = None
    projection: SeasonalProjection | None = None
