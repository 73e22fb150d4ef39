"""
Numeric operations primitives.
=============================================================================

General-purpose numeric helpers shared by the forecasting, capacity and
simulation families.

Dependencies:
  - numpy as np
  - scipy.stats
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd
from scipy import stats

from capacity_forecast.exceptions import DegenerateInputError, ValidationError


def safe_divide(
    numerator: float, denominator: float, default_value: float | None = None, as_percentage: bool = False
) -> float | None:
    """
    Safely divide two numbers, handling zero denominator cases.

    Family: numeric
    Version: 1.0

    Args:
        numerator: The numerator value
        denominator: The denominator value
        default_value: Value to return if denominator is zero
        as_percentage: If True, multiply the result by 100

    Returns:
        The division result, or default_value if denominator is zero

    Raises:
        ValidationError: If inputs are not numeric
    """
    try:
        numerator = float(numerator)
        denominator = float(denominator)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "Both numerator and denominator must be numeric",
            {"numerator": numerator, "denominator": denominator},
        ) from exc

    if denominator == 0 or pd.isna(denominator):
        return default_value

    result = numerator / denominator
    return result * 100.0 if as_percentage else result


def calculate_absolute_percentage_error(actual: float, predicted: float) -> float:
    """
    Calculate |predicted - actual| / |actual| as a percentage.

    Family: numeric
    Version: 1.0

    Args:
        actual: Realized value
        predicted: Forecast value

    Returns:
        The absolute percentage error

    Raises:
        DegenerateInputError: If the actual value is zero
    """
    actual = float(actual)
    predicted = float(predicted)
    if actual == 0:
        raise DegenerateInputError(
            "Cannot calculate a percentage error against a zero actual value",
            {"actual": actual, "predicted": predicted},
        )
    return abs(predicted - actual) / abs(actual) * 100.0


def clamp(value: float, lower: float, upper: float) -> float:
    """
    Bound a value to [lower, upper].

    Family: numeric
    Version: 1.0
    """
    if lower > upper:
        raise ValidationError("lower bound must not exceed upper bound", {"lower": lower, "upper": upper})
    return max(lower, min(upper, value))


def calculate_percentile(values: Sequence[float], fraction: float) -> float:
    """
    Nearest-rank percentile: the value at position ceil(n * fraction) - 1 of the sorted sample.

    Family: numeric
    Version: 1.0

    Args:
        values: Sample values (any order)
        fraction: Percentile as a fraction in [0, 1]

    Returns:
        The percentile value

    Raises:
        ValidationError: If the sample is empty or fraction is out of range
    """
    if len(values) == 0:
        raise ValidationError("Cannot take a percentile of an empty sample", {"values": "empty"})
    if not 0 <= fraction <= 1:
        raise ValidationError("fraction must be within [0, 1]", {"fraction": fraction})

    ordered = np.sort(np.asarray(values, dtype=float))
    index = max(0, int(np.ceil(len(ordered) * fraction)) - 1)
    return float(ordered[index])


def calculate_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation between two samples.

    Returns 0.0 when either sample is constant or shorter than two points, since the
    coefficient is undefined there.

    Family: numeric
    Version: 1.0

    Raises:
        ValidationError: If the samples differ in length
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape:
        raise ValidationError("Samples must have the same length", {"x": len(x_arr), "y": len(y_arr)})
    if len(x_arr) < 2 or np.std(x_arr) == 0 or np.std(y_arr) == 0:
        return 0.0

    result = stats.pearsonr(x_arr, y_arr)
    return float(result[0])


def round_to_precision(value: float, precision: int = 2) -> float:
    """
    Round a value to the specified precision.

    Family: numeric
    Version: 1.0

    Raises:
        ValidationError: If value is not numeric or precision is not an integer
    """
    try:
        value = float(value)
        precision = int(precision)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "Value must be numeric and precision must be an integer",
            {"value": value, "precision": precision},
        ) from exc

    return round(value, precision)
