# =============================================================================
# Forecasting Primitives
#
# This file includes the point-forecast strategies compared by the backtest:
# - Seasonal naive (mean scaled by a month-indexed factor table)
# - Linear trend (ordinary least squares over a time index)
# - Double exponential smoothing (Holt level/trend)
# - Weighted ensemble of the three
#
# All strategies share one contract: model(series, settings, target_month) -> ForecastResult,
# where series holds one service count per period, indexed by period start.
#
# Family: forecasting
# Version: 1.0
#
# Dependencies:
#   - pandas as pd
#   - numpy as np
#   - scipy.stats.linregress
#   - statsmodels.tsa.holtwinters
# =============================================================================

from collections.abc import Callable

import numpy as np
import pandas as pd
from scipy.stats import linregress
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import InsufficientDataError, PrimitiveError, ValidationError
from capacity_forecast.models import ForecastModelName, ForecastResult

ForecastModel = Callable[..., ForecastResult]

MODEL_CONFIDENCE: dict[str, float] = {
    ForecastModelName.SEASONAL_NAIVE.value: 0.70,
    ForecastModelName.LINEAR_TREND.value: 0.75,
    ForecastModelName.DOUBLE_EXPONENTIAL.value: 0.80,
    ForecastModelName.ENSEMBLE.value: 0.85,
}


def next_period_start(series: pd.Series) -> pd.Timestamp:
    """
    Start of the period following the last one in a monthly series.

    Family: forecasting
    Version: 1.0

    Raises:
        ValidationError: If the series is not indexed by dates
    """
    if not isinstance(series.index, pd.DatetimeIndex):
        raise ValidationError(
            "Series must be indexed by period start dates", {"index_type": type(series.index).__name__}
        )
    return series.index[-1] + pd.offsets.MonthBegin(1)


def _prepare(series: pd.Series, target_month: int | None) -> tuple[np.ndarray, int]:
    if series.empty:
        raise InsufficientDataError("Cannot forecast from an empty series", required=1, available=0)
    if target_month is None:
        target_month = next_period_start(series).month
    if not 1 <= target_month <= 12:
        raise ValidationError("target_month must be within 1-12", {"target_month": target_month})
    return series.astype(float).to_numpy(), target_month


def _result(model_name: ForecastModelName, count: float, settings: EngineSettings) -> ForecastResult:
    count = max(0.0, float(count))
    return ForecastResult(
        predicted_count=count,
        predicted_value=count * settings.AVERAGE_ORDER_VALUE,
        confidence=MODEL_CONFIDENCE[model_name.value],
        model_name=model_name.value,
    )


def seasonal_naive_forecast(
    series: pd.Series, settings: EngineSettings | None = None, target_month: int | None = None
) -> ForecastResult:
    """
    Mean of the training series scaled by the seasonal factor of the target month.

    Family: forecasting
    Version: 1.0

    Args:
        series: Service counts indexed by period start
        settings: Engine settings holding SEASONAL_FACTORS and AVERAGE_ORDER_VALUE
        target_month: Calendar month being forecast; defaults to the month after the series

    Returns:
        ForecastResult
    """
    settings = settings or get_settings()
    values, target_month = _prepare(series, target_month)
    factor = settings.SEASONAL_FACTORS[target_month - 1]
    return _result(ForecastModelName.SEASONAL_NAIVE, values.mean() * factor, settings)


def linear_trend_forecast(
    series: pd.Series, settings: EngineSettings | None = None, target_month: int | None = None
) -> ForecastResult:
    """
    Least-squares line of count against a zero-based index, evaluated at the next index.

    Family: forecasting
    Version: 1.0

    Args:
        series: Service counts indexed by period start
        settings: Engine settings holding AVERAGE_ORDER_VALUE
        target_month: Unused; accepted for a uniform model signature

    Returns:
        ForecastResult, floored at zero
    """
    settings = settings or get_settings()
    values, _ = _prepare(series, target_month)
    if len(values) < 2:
        return _result(ForecastModelName.LINEAR_TREND, values[-1], settings)

    x = np.arange(len(values))
    fit = linregress(x, values)
    return _result(ForecastModelName.LINEAR_TREND, fit.intercept + fit.slope * len(values), settings)


def double_exponential_forecast(
    series: pd.Series, settings: EngineSettings | None = None, target_month: int | None = None
) -> ForecastResult:
    """
    Holt's linear smoothing with fixed level and trend weights; predicts level + trend.

    The state starts at the first observation with the first difference as trend.

    Family: forecasting
    Version: 1.0

    Args:
        series: Service counts indexed by period start
        settings: Engine settings holding HOLT_LEVEL_WEIGHT, HOLT_TREND_WEIGHT and AVERAGE_ORDER_VALUE
        target_month: Unused; accepted for a uniform model signature

    Returns:
        ForecastResult, floored at zero
    """
    settings = settings or get_settings()
    values, _ = _prepare(series, target_month)
    if len(values) < 2:
        return _result(ForecastModelName.DOUBLE_EXPONENTIAL, values[-1], settings)

    initial_trend = values[1] - values[0]
    model = ExponentialSmoothing(
        values,
        trend="add",
        initialization_method="known",
        initial_level=values[0] - initial_trend,
        initial_trend=initial_trend,
    )
    fitted = model.fit(
        smoothing_level=settings.HOLT_LEVEL_WEIGHT,
        smoothing_trend=settings.HOLT_TREND_WEIGHT,
        optimized=False,
    )
    prediction = float(np.asarray(fitted.forecast(1))[0])
    return _result(ForecastModelName.DOUBLE_EXPONENTIAL, prediction, settings)


def combine_forecasts(results: dict[str, ForecastResult], settings: EngineSettings | None = None) -> ForecastResult:
    """
    Weighted combination of component forecasts using ENSEMBLE_WEIGHTS.

    Family: forecasting
    Version: 1.0

    Raises:
        PrimitiveError: If a weighted component is missing
    """
    settings = settings or get_settings()
    missing = [name for name in settings.ENSEMBLE_WEIGHTS if name not in results]
    if missing:
        raise PrimitiveError("Missing ensemble components", "combine_forecasts", {"missing": missing})

    count = sum(weight * results[name].predicted_count for name, weight in settings.ENSEMBLE_WEIGHTS.items())
    return _result(ForecastModelName.ENSEMBLE, count, settings)


def ensemble_forecast(
    series: pd.Series, settings: EngineSettings | None = None, target_month: int | None = None
) -> ForecastResult:
    """
    Fixed-weight ensemble of seasonal naive (0.4), linear trend (0.2) and double exponential (0.4).

    Family: forecasting
    Version: 1.0
    """
    settings = settings or get_settings()
    components = {
        name: FORECAST_MODELS[name](series, settings, target_month)
        for name in settings.ENSEMBLE_WEIGHTS
    }
    return combine_forecasts(components, settings)


FORECAST_MODELS: dict[str, ForecastModel] = {
    ForecastModelName.SEASONAL_NAIVE.value: seasonal_naive_forecast,
    ForecastModelName.LINEAR_TREND.value: linear_trend_forecast,
    ForecastModelName.DOUBLE_EXPONENTIAL.value: double_exponential_forecast,
    ForecastModelName.ENSEMBLE.value: ensemble_forecast,
}


def forecast_all_models(
    series: pd.Series,
    settings: EngineSettings | None = None,
    target_month: int | None = None,
    models: list[str] | None = None,
) -> dict[str, ForecastResult]:
    """
    Run every requested model on the same training series.

    The ensemble reuses the component forecasts already computed when they are requested too.

    Family: forecasting
    Version: 1.0

    Raises:
        PrimitiveError: If an unknown model name is requested
    """
    settings = settings or get_settings()
    models = models or list(FORECAST_MODELS)
    unknown = [name for name in models if name not in FORECAST_MODELS]
    if unknown:
        raise PrimitiveError(
            f"Unknown forecast models {unknown}. Use one of {list(FORECAST_MODELS)}", "forecast_all_models"
        )

    results: dict[str, ForecastResult] = {}
    for name in models:
        if name == ForecastModelName.ENSEMBLE.value:
            continue
        results[name] = FORECAST_MODELS[name](series, settings, target_month)

    if ForecastModelName.ENSEMBLE.value in models:
        if all(name in results for name in settings.ENSEMBLE_WEIGHTS):
            results[ForecastModelName.ENSEMBLE.value] = combine_forecasts(results, settings)
        else:
            results[ForecastModelName.ENSEMBLE.value] = ensemble_forecast(series, settings, target_month)

    return {name: results[name] for name in models}
