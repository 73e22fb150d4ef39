# =============================================================================
# Seasonality Primitives
#
# This file includes primitives for weekday demand patterns:
# - Weekday averages of daily service count and value over a trailing window
# - The fallback pattern used when no history exists
#
# Family: seasonality
# Version: 1.0
#
# Dependencies:
#   - pandas as pd
# =============================================================================

import logging
from datetime import date

import pandas as pd

from capacity_forecast.exceptions import InsufficientDataError, MissingDataError
from capacity_forecast.models import Weekday, WeekdayAverage, WeekdayPattern

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.85
LOW_CONFIDENCE = 0.6

# Weekday -> (services, value) used when no history is available
_DEFAULT_WEEKDAY_DEMAND: dict[Weekday, tuple[float, float]] = {
    Weekday.MONDAY: (39, 280_000),
    Weekday.TUESDAY: (38, 275_000),
    Weekday.WEDNESDAY: (35, 250_000),
    Weekday.THURSDAY: (33, 240_000),
    Weekday.FRIDAY: (30, 220_000),
    Weekday.SATURDAY: (15, 90_000),
    Weekday.SUNDAY: (12, 75_000),
}

REQUIRED_COLUMNS = ["date", "service_count", "monetary_value"]


def validate_observation_frame(df: pd.DataFrame) -> None:
    """Check that a frame carries the observation columns."""
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise MissingDataError(f"Missing required columns: {missing}", missing)


def analyze_weekday_seasonality(
    df: pd.DataFrame,
    reference_date: date | None = None,
    window_months: int = 3,
    high_confidence_samples: int = 30,
) -> WeekdayPattern:
    """
    Average daily service count and value per weekday over a trailing window.

    The in-progress day (reference_date) and anything after it are excluded. Weekday buckets
    without samples get 0 for both averages; they mean "no data", not "no demand".

    Family: seasonality
    Version: 1.0

    Args:
        df: Frame with columns date, service_count, monetary_value (one or more rows per day)
        reference_date: Current date; defaults to today
        window_months: Length of the trailing window in months
        high_confidence_samples: Total days needed for high confidence

    Returns:
        WeekdayPattern with 7 averages, a confidence and the number of days analyzed

    Raises:
        MissingDataError: If required columns are missing
        InsufficientDataError: If the window holds no observations
    """
    validate_observation_frame(df)
    reference_date = reference_date or date.today()

    end = pd.Timestamp(reference_date)
    start = end - pd.DateOffset(months=window_months)

    dff = df.copy()
    dff["date"] = pd.to_datetime(dff["date"]).dt.normalize()
    dff = dff[(dff["date"] >= start) & (dff["date"] < end)]

    if dff.empty:
        raise InsufficientDataError(
            "No observations in the weekday analysis window", required=1, available=0
        )

    # Collapse to one row per calendar day
    daily = dff.groupby("date", as_index=False)[["service_count", "monetary_value"]].sum()
    daily["weekday"] = daily["date"].dt.dayofweek

    grouped = daily.groupby("weekday").agg(
        average_count=("service_count", "mean"),
        average_value=("monetary_value", "mean"),
        samples=("date", "count"),
    )
    grouped = grouped.reindex(range(7), fill_value=0)

    averages = [
        WeekdayAverage(
            weekday=Weekday.from_index(idx),
            average_count=float(row["average_count"]),
            average_value=float(row["average_value"]),
            samples=int(row["samples"]),
        )
        for idx, row in grouped.iterrows()
    ]

    samples_analyzed = len(daily)
    confidence = HIGH_CONFIDENCE if samples_analyzed >= high_confidence_samples else LOW_CONFIDENCE
    logger.debug("Weekday pattern built from %s days (confidence %.2f)", samples_analyzed, confidence)

    return WeekdayPattern(averages=averages, confidence=confidence, samples_analyzed=samples_analyzed)


def default_weekday_pattern() -> WeekdayPattern:
    """
    Hardcoded weekday pattern used when there is no history to learn from.

    Family: seasonality
    Version: 1.0
    """
    averages = [
        WeekdayAverage(weekday=weekday, average_count=count, average_value=value, samples=0)
        for weekday, (count, value) in _DEFAULT_WEEKDAY_DEMAND.items()
    ]
    return WeekdayPattern(averages=averages, confidence=LOW_CONFIDENCE, samples_analyzed=0, is_default=True)
