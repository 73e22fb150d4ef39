# =============================================================================
# Backtest Primitives
#
# This file includes primitives for evaluating forecast models:
# - Monthly aggregation of daily observations
# - Walk-forward backtesting of the forecasting family
# - Aggregation into per-model and per-period accuracy
# - Coherence check between count and value forecasts
#
# Family: backtest
# Version: 1.0
#
# Dependencies:
#   - pandas as pd
#   - numpy as np
# =============================================================================

import logging
from datetime import date

import numpy as np
import pandas as pd

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import (
    DegenerateInputError,
    InsufficientDataError,
    MissingDataError,
    ValidationError,
)
from capacity_forecast.models import (
    BacktestCase,
    BacktestSummary,
    ConfidenceLabel,
    ForecastCoherence,
    ForecastResult,
    ModelScore,
)
from capacity_forecast.primitives.forecasting import forecast_all_models
from capacity_forecast.primitives.numeric import calculate_absolute_percentage_error, safe_divide
from capacity_forecast.primitives.seasonality import validate_observation_frame

logger = logging.getLogger(__name__)

MONTHLY_COLUMNS = ["period", "service_count", "monetary_value"]

_COHERENCE_CONFIDENCE = {
    ConfidenceLabel.HIGH: 0.95,
    ConfidenceLabel.MEDIUM: 0.6,
    ConfidenceLabel.LOW: 0.3,
}


def aggregate_monthly(df: pd.DataFrame, period_end: date | None = None) -> pd.DataFrame:
    """
    Aggregate daily observations into complete calendar months.

    Months without observations inside the covered range appear with zero totals. The trailing month
    is dropped unless the data covers it through its last day, so a month still in progress is never
    scored as a realized period.

    Family: backtest
    Version: 1.0

    Args:
        df: Frame with columns date, service_count, monetary_value
        period_end: Last day the data covers; defaults to the latest observation

    Returns:
        Frame with columns period (month start), service_count, monetary_value
    """
    validate_observation_frame(df)
    dff = df.copy()
    dff["date"] = pd.to_datetime(dff["date"])
    covered_through = pd.Timestamp(period_end) if period_end is not None else dff["date"].max()
    dff = dff[dff["date"] <= covered_through]

    monthly = dff.set_index("date")[["service_count", "monetary_value"]].resample("MS").sum()
    if len(monthly) and covered_through.normalize() < monthly.index[-1] + pd.offsets.MonthEnd(1):
        logger.debug("Dropping incomplete month %s", monthly.index[-1].strftime("%Y-%m"))
        monthly = monthly.iloc[:-1]
    return monthly.reset_index().rename(columns={"date": "period"})


def _absolute_percentage_error(actual: float, predicted: float, period_label: str, model_name: str) -> float | None:
    try:
        return calculate_absolute_percentage_error(actual, predicted)
    except DegenerateInputError:
        logger.debug("Zero actual in %s, %s excluded from percentage errors", period_label, model_name)
        return None


def run_walk_forward_backtest(
    monthly_df: pd.DataFrame,
    months_to_test: int | None = None,
    models: list[str] | None = None,
    settings: EngineSettings | None = None,
) -> list[BacktestCase]:
    """
    Walk-forward validation of the forecasting models.

    For every test period from max(MIN_TRAINING_PERIODS, N - months_to_test) to N - 1, each model
    is trained on all periods strictly before it and scored against the realized count and value.
    Periods with a zero actual keep their absolute errors but get no percentage error.

    Family: backtest
    Version: 1.0

    Args:
        monthly_df: Frame with columns period, service_count, monetary_value
        months_to_test: Number of trailing periods to test; defaults to BACKTEST_MONTHS_TO_TEST
        models: Model names to evaluate; defaults to all
        settings: Engine settings

    Returns:
        One BacktestCase per test period, in chronological order

    Raises:
        MissingDataError: If required columns are missing
        ValidationError: If months_to_test is below 1
        InsufficientDataError: If there is no period with enough training history
    """
    settings = settings or get_settings()
    missing = [col for col in MONTHLY_COLUMNS if col not in monthly_df.columns]
    if missing:
        raise MissingDataError(f"Missing required columns: {missing}", missing)

    if months_to_test is None:
        months_to_test = settings.BACKTEST_MONTHS_TO_TEST
    if months_to_test < 1:
        raise ValidationError("months_to_test must be at least 1", {"months_to_test": months_to_test})
    min_training = settings.MIN_TRAINING_PERIODS

    dff = monthly_df.copy()
    dff["period"] = pd.to_datetime(dff["period"])
    dff = dff.sort_values("period").reset_index(drop=True)
    n_periods = len(dff)

    start = max(min_training, n_periods - months_to_test)
    if start >= n_periods:
        raise InsufficientDataError(
            f"Backtesting needs at least {min_training + 1} periods",
            required=min_training + 1,
            available=n_periods,
        )

    counts = pd.Series(dff["service_count"].astype(float).to_numpy(), index=pd.DatetimeIndex(dff["period"]))

    cases = []
    for i in range(start, n_periods):
        period = dff.loc[i, "period"]
        period_label = period.strftime("%Y-%m")
        actual_count = float(dff.loc[i, "service_count"])
        actual_value = float(dff.loc[i, "monetary_value"])

        forecasts = forecast_all_models(counts.iloc[:i], settings, target_month=period.month, models=models)

        count_ape, value_ape, count_abs, value_abs = {}, {}, {}, {}
        for name, result in forecasts.items():
            count_abs[name] = abs(result.predicted_count - actual_count)
            value_abs[name] = abs(result.predicted_value - actual_value)
            count_ape[name] = _absolute_percentage_error(actual_count, result.predicted_count, period_label, name)
            value_ape[name] = _absolute_percentage_error(actual_value, result.predicted_value, period_label, name)

        cases.append(
            BacktestCase(
                period_label=period_label,
                actual_count=actual_count,
                actual_value=actual_value,
                forecasts=forecasts,
                count_ape=count_ape,
                value_ape=value_ape,
                count_abs_error=count_abs,
                value_abs_error=value_abs,
            )
        )

    logger.debug("Backtested %s periods from %s", len(cases), cases[0].period_label)
    return cases


def _mean_or_none(values: list[float | None]) -> float | None:
    scored = [v for v in values if v is not None]
    return float(np.mean(scored)) if scored else None


def summarize_backtest(cases: list[BacktestCase]) -> BacktestSummary:
    """
    Aggregate backtest cases into per-model scores and a summary.

    The best model has the lowest mean count APE; best and worst periods are ranked by the mean
    count APE across models. Accuracy is 100 - MAPE, floored at 0.

    Family: backtest
    Version: 1.0

    Args:
        cases: Output of run_walk_forward_backtest

    Returns:
        BacktestSummary

    Raises:
        InsufficientDataError: If there are no cases
    """
    if not cases:
        raise InsufficientDataError("No backtest periods to summarize", required=1, available=0)

    model_names = list(cases[0].forecasts)
    scores = []
    for name in model_names:
        mape_count = _mean_or_none([case.count_ape.get(name) for case in cases])
        mape_value = _mean_or_none([case.value_ape.get(name) for case in cases])
        scores.append(
            ModelScore(
                model_name=name,
                mape_count=mape_count,
                mape_value=mape_value,
                scored_periods=sum(1 for case in cases if case.count_ape.get(name) is not None),
                accuracy=max(0.0, 100.0 - mape_count) if mape_count is not None else 0.0,
            )
        )

    ranked = [score for score in scores if score.mape_count is not None]
    best = min(ranked, key=lambda s: s.mape_count) if ranked else None  # type: ignore

    period_errors = {case.period_label: _mean_or_none(list(case.count_ape.values())) for case in cases}
    scored_periods = {label: err for label, err in period_errors.items() if err is not None}

    return BacktestSummary(
        total_periods=len(cases),
        mean_absolute_percentage_error_count=best.mape_count if best else None,
        mean_absolute_percentage_error_value=best.mape_value if best else None,
        best_model_name=best.model_name if best else None,
        best_period_label=min(scored_periods, key=scored_periods.get) if scored_periods else None,  # type: ignore
        worst_period_label=max(scored_periods, key=scored_periods.get) if scored_periods else None,  # type: ignore
        overall_accuracy=best.accuracy if best else 0.0,
        model_scores=scores,
    )


def calculate_historical_order_value(monthly_df: pd.DataFrame, default_value: float) -> float:
    """
    Average value per service over a monthly frame, or default_value when no services exist.

    Family: backtest
    Version: 1.0
    """
    total_count = float(monthly_df["service_count"].sum())
    total_value = float(monthly_df["monetary_value"].sum())
    result = safe_divide(total_value, total_count, default_value=default_value)
    return float(result)  # type: ignore


def validate_forecast_coherence(
    forecast: ForecastResult,
    reference_order_value: float,
    month_projection_total: float | None = None,
    month_projection_label: ConfidenceLabel | None = None,
    order_value_tolerance: float = 0.15,
    value_tolerance: float = 0.20,
    projection_tolerance: float = 0.25,
) -> ForecastCoherence:
    """
    Cross-check a forecast's count and value against a reference order value.

    An implied order value more than 15% off the reference, or a value forecast more than 20% off
    count * reference, make the forecast incoherent (low confidence). Diverging by more than 25%
    from a high-confidence month projection lowers confidence to medium.

    Family: backtest
    Version: 1.0

    Args:
        forecast: Forecast to check
        reference_order_value: Expected value per service (e.g. historical average)
        month_projection_total: Optional full-month projection to compare against
        month_projection_label: Confidence label of that projection
        order_value_tolerance: Allowed relative deviation of the implied order value
        value_tolerance: Allowed relative deviation of the value forecast
        projection_tolerance: Allowed relative deviation from a high-confidence projection

    Returns:
        ForecastCoherence
    """
    issues: list[str] = []
    label = ConfidenceLabel.HIGH

    implied = safe_divide(forecast.predicted_value, forecast.predicted_count)
    order_value_deviation = (
        safe_divide(abs(implied - reference_order_value), reference_order_value) if implied is not None else None
    )
    if order_value_deviation is not None and order_value_deviation > order_value_tolerance:
        label = ConfidenceLabel.LOW
        issues.append(
            f"implied order value {implied:.0f} deviates {order_value_deviation:.1%} "
            f"from reference {reference_order_value:.0f}"
        )

    expected_value = forecast.predicted_count * reference_order_value
    value_deviation = safe_divide(abs(forecast.predicted_value - expected_value), expected_value)
    if value_deviation is not None and value_deviation > value_tolerance:
        label = ConfidenceLabel.LOW
        issues.append(f"value forecast deviates {value_deviation:.1%} from count x reference order value")

    is_coherent = not issues

    if (
        month_projection_total
        and month_projection_label == ConfidenceLabel.HIGH
        and abs(forecast.predicted_value - month_projection_total) / month_projection_total > projection_tolerance
    ):
        issues.append("forecast diverges from a high-confidence month projection")
        if label == ConfidenceLabel.HIGH:
            label = ConfidenceLabel.MEDIUM

    return ForecastCoherence(
        is_coherent=is_coherent,
        implied_order_value=implied,
        order_value_deviation=order_value_deviation,
        value_deviation=value_deviation,
        confidence=_COHERENCE_CONFIDENCE[label],
        confidence_label=label,
        issues=issues,
    )
