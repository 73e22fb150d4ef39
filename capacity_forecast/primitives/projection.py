# =============================================================================
# Projection Primitives
#
# This file includes primitives for month-end projections:
# - Extending month-to-date actuals with a weekday pattern
# - Momentum correction when the month runs ahead of the pattern
# - Confidence labelling and the no-history fallback
#
# Family: projection
# Version: 1.0
#
# Dependencies:
#   - pandas as pd
# =============================================================================

import calendar
import logging
from datetime import date, timedelta

import pandas as pd

from capacity_forecast.models import ConfidenceLabel, DailyProjection, SeasonalProjection, Weekday, WeekdayPattern
from capacity_forecast.primitives.seasonality import validate_observation_frame

logger = logging.getLogger(__name__)


def classify_projection_confidence(pattern_confidence: float, days_elapsed: int) -> ConfidenceLabel:
    """
    Label a projection from the pattern confidence and the days of month-to-date data.

    Family: projection
    Version: 1.0

    Args:
        pattern_confidence: WeekdayPattern confidence
        days_elapsed: Complete days observed in the current month

    Returns:
        HIGH when confidence > 0.8 with at least 8 days, LOW when confidence < 0.6 or fewer
        than 5 days, MEDIUM otherwise
    """
    if pattern_confidence > 0.8 and days_elapsed >= 8:
        return ConfidenceLabel.HIGH
    if pattern_confidence < 0.6 or days_elapsed < 5:
        return ConfidenceLabel.LOW
    return ConfidenceLabel.MEDIUM


def calculate_month_to_date(df: pd.DataFrame, month_start: date, last_complete_day: date) -> float:
    """
    Sum the monetary value of complete days in the current month.

    Family: projection
    Version: 1.0
    """
    if last_complete_day < month_start:
        return 0.0
    validate_observation_frame(df)
    dates = pd.to_datetime(df["date"]).dt.normalize()
    mask = (dates >= pd.Timestamp(month_start)) & (dates <= pd.Timestamp(last_complete_day))
    return float(df.loc[mask, "monetary_value"].sum())


def _month_frame(reference_date: date) -> tuple[date, int, int]:
    """Month start, days in month and complete days elapsed for a reference date."""
    month_start = reference_date.replace(day=1)
    days_in_month = calendar.monthrange(reference_date.year, reference_date.month)[1]
    # Data lags one day; on the 1st nothing of the current month is complete yet
    days_elapsed = reference_date.day - 1
    return month_start, days_in_month, days_elapsed


def _build_breakdown(
    month_start: date, days_elapsed: int, days_in_month: int, daily_value: dict[Weekday, float]
) -> list[DailyProjection]:
    breakdown = []
    for offset in range(days_elapsed, days_in_month):
        day = month_start + timedelta(days=offset)
        weekday = Weekday.from_index(day.weekday())
        breakdown.append(
            DailyProjection(
                date=day,
                weekday=weekday,
                projected_value=daily_value[weekday],
                is_weekend=weekday.is_weekend,
            )
        )
    return breakdown


def _assemble_projection(
    reference_date: date,
    current_month_actual: float,
    breakdown: list[DailyProjection],
    days_elapsed: int,
    days_in_month: int,
    momentum_factor: float,
    confidence_label: ConfidenceLabel,
    methodology_note: str,
    is_fallback: bool = False,
) -> SeasonalProjection:
    projected_remaining = sum(day.projected_value for day in breakdown)
    weekend_subtotal = sum(day.projected_value for day in breakdown if day.is_weekend)
    weekday_subtotal = sum(day.projected_value for day in breakdown if not day.is_weekend)
    return SeasonalProjection(
        reference_date=reference_date,
        current_month_actual_value=current_month_actual,
        projected_remaining_value=projected_remaining,
        total_projected_value=current_month_actual + projected_remaining,
        per_day_breakdown=breakdown,
        weekday_subtotal=weekday_subtotal,
        weekend_subtotal=weekend_subtotal,
        days_elapsed=days_elapsed,
        days_remaining=len(breakdown),
        days_in_month=days_in_month,
        momentum_factor=momentum_factor,
        confidence_label=confidence_label,
        methodology_note=methodology_note,
        is_fallback=is_fallback,
    )


def project_month_end(
    pattern: WeekdayPattern,
    month_to_date: pd.DataFrame,
    reference_date: date,
    weeks_per_month: float = 4.33,
    momentum_threshold: float = 1.1,
    momentum_factor: float = 1.05,
    fallback_monthly_value: float = 7_200_000.0,
) -> SeasonalProjection:
    """
    Project the full-month monetary value from month-to-date actuals and a weekday pattern.

    Yesterday is the last complete day. Every later day of the month is projected with the
    average value of its weekday. When month-to-date runs more than `momentum_threshold`
    above what the pattern implies for the elapsed days, the total is scaled by
    `momentum_factor`; the scaling is spread over the projected days so that
    total == month-to-date + sum(per-day breakdown).

    Family: projection
    Version: 1.0

    Args:
        pattern: Weekday pattern from analyze_weekday_seasonality
        month_to_date: Frame with columns date, service_count, monetary_value
        reference_date: Current (in-progress) date
        weeks_per_month: Weeks per month used to scale the weekly pattern value
        momentum_threshold: Ratio of actual to expected that triggers the correction
        momentum_factor: Multiplier applied to the total when momentum triggers
        fallback_monthly_value: Total used when the pattern has no samples

    Returns:
        SeasonalProjection
    """
    month_start, days_in_month, days_elapsed = _month_frame(reference_date)
    last_complete_day = reference_date - timedelta(days=1)
    current_month_actual = calculate_month_to_date(month_to_date, month_start, last_complete_day)

    if pattern.samples_analyzed == 0:
        logger.warning("Weekday pattern has no samples, using fallback projection for %s", reference_date)
        return fallback_projection(reference_date, current_month_actual, fallback_monthly_value)

    daily_value = {weekday: pattern.for_weekday(weekday).average_value for weekday in Weekday}
    breakdown = _build_breakdown(month_start, days_elapsed, days_in_month, daily_value)
    base_remaining = sum(day.projected_value for day in breakdown)

    # Momentum: compare month-to-date against the pattern's expectation for the elapsed days
    applied_factor = 1.0
    expected_to_date = pattern.weekly_value * weeks_per_month * (days_elapsed / days_in_month)
    if days_elapsed > 0 and base_remaining > 0 and current_month_actual > expected_to_date * momentum_threshold:
        applied_factor = momentum_factor
        target_total = momentum_factor * (current_month_actual + base_remaining)
        scale = (target_total - current_month_actual) / base_remaining
        breakdown = [
            day.model_copy(update={"projected_value": day.projected_value * scale}) for day in breakdown
        ]
        logger.info(
            "Momentum correction applied: month-to-date %.2f vs expected %.2f",
            current_month_actual,
            expected_to_date,
        )

    note = f"day {days_elapsed}/{days_in_month}, {len(breakdown)} days remaining"
    if applied_factor != 1.0:
        note += f", momentum x{applied_factor}"

    return _assemble_projection(
        reference_date=reference_date,
        current_month_actual=current_month_actual,
        breakdown=breakdown,
        days_elapsed=days_elapsed,
        days_in_month=days_in_month,
        momentum_factor=applied_factor,
        confidence_label=classify_projection_confidence(pattern.confidence, days_elapsed),
        methodology_note=note,
    )


def fallback_projection(
    reference_date: date, current_month_actual: float = 0.0, fallback_monthly_value: float = 7_200_000.0
) -> SeasonalProjection:
    """
    Projection used when there is no history: a fixed monthly total spread evenly over the
    remaining days, always labelled low confidence.

    Family: projection
    Version: 1.0
    """
    month_start, days_in_month, days_elapsed = _month_frame(reference_date)
    days_remaining = days_in_month - days_elapsed
    remaining = max(0.0, fallback_monthly_value - current_month_actual)
    per_day = remaining / days_remaining if days_remaining else 0.0

    breakdown = _build_breakdown(
        month_start, days_elapsed, days_in_month, {weekday: per_day for weekday in Weekday}
    )
    return _assemble_projection(
        reference_date=reference_date,
        current_month_actual=current_month_actual,
        breakdown=breakdown,
        days_elapsed=days_elapsed,
        days_in_month=days_in_month,
        momentum_factor=1.0,
        confidence_label=ConfidenceLabel.LOW,
        methodology_note="insufficient data: fixed monthly fallback",
        is_fallback=True,
    )
