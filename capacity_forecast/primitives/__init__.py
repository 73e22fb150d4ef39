# primitives/__init__.py
# Import and expose all primitives for easy access

from capacity_forecast.exceptions import PrimitiveError

# Numeric primitives
from .numeric import (
    calculate_absolute_percentage_error,
    calculate_correlation,
    calculate_percentile,
    clamp,
    round_to_precision,
    safe_divide,
)

# Seasonality primitives
from .seasonality import analyze_weekday_seasonality, default_weekday_pattern

# Projection primitives
from .projection import (
    calculate_month_to_date,
    classify_projection_confidence,
    fallback_projection,
    project_month_end,
)

# Forecasting primitives
from .forecasting import (
    FORECAST_MODELS,
    combine_forecasts,
    double_exponential_forecast,
    ensemble_forecast,
    forecast_all_models,
    linear_trend_forecast,
    next_period_start,
    seasonal_naive_forecast,
)

# Backtest primitives
from .backtest import (
    aggregate_monthly,
    calculate_historical_order_value,
    run_walk_forward_backtest,
    summarize_backtest,
    validate_forecast_coherence,
)

# Capacity primitives
from .capacity import (
    analyze_capacity_gap,
    analyze_optimal_distribution,
    calculate_deficit_analysis,
    calculate_effective_capacity,
    calculate_services_per_unit,
    calculate_urgency_score,
    generate_capacity_recommendations,
    simulate_hiring_impact,
)

# Simulation primitives
from .simulation import (
    calculate_risk_metrics,
    classify_simulation_risk,
    compare_recruitment_strategies,
    find_channels_at_cap,
    optimize_budget_allocation,
    resolve_rng,
    run_scenario_simulation,
    select_eligible_channels,
    simulate_recruitment_outcomes,
)

# Create a dictionary of primitives organized by family
_primitive_families = {
    "numeric": [
        safe_divide,
        calculate_absolute_percentage_error,
        clamp,
        calculate_percentile,
        calculate_correlation,
        round_to_precision,
    ],
    "seasonality": [
        analyze_weekday_seasonality,
        default_weekday_pattern,
    ],
    "projection": [
        classify_projection_confidence,
        calculate_month_to_date,
        project_month_end,
        fallback_projection,
    ],
    "forecasting": [
        next_period_start,
        seasonal_naive_forecast,
        linear_trend_forecast,
        double_exponential_forecast,
        combine_forecasts,
        ensemble_forecast,
        forecast_all_models,
    ],
    "backtest": [
        aggregate_monthly,
        run_walk_forward_backtest,
        summarize_backtest,
        calculate_historical_order_value,
        validate_forecast_coherence,
    ],
    "capacity": [
        calculate_effective_capacity,
        calculate_services_per_unit,
        calculate_deficit_analysis,
        calculate_urgency_score,
        generate_capacity_recommendations,
        simulate_hiring_impact,
        analyze_optimal_distribution,
        analyze_capacity_gap,
    ],
    "simulation": [
        resolve_rng,
        select_eligible_channels,
        find_channels_at_cap,
        classify_simulation_risk,
        run_scenario_simulation,
        optimize_budget_allocation,
        simulate_recruitment_outcomes,
        compare_recruitment_strategies,
        calculate_risk_metrics,
    ],
}


def list_primitives_by_family():
    """List all primitives organized by family"""
    result = {}
    for family, funcs in _primitive_families.items():
        result[family] = [func.__name__ for func in funcs]
    return result


def get_primitive_metadata(primitive_name: str):
    """Get metadata for a specific primitive"""
    primitive_func = globals().get(primitive_name)

    if not callable(primitive_func):
        raise PrimitiveError(
            "Primitive not found",
            primitive_name,
            {"code": "PRIMITIVE_NOT_FOUND"},
        )

    # Extract metadata from docstring
    docstring = primitive_func.__doc__ or ""
    lines = [line.strip() for line in docstring.split("\n") if line.strip()]

    # First non-empty line that's not a metadata tag
    description = ""
    for line in lines:
        if not any(line.startswith(tag) for tag in ["Family:", "Version:", "Args:", "Returns:", "Raises:"]):
            description = line
            break

    metadata = {
        "name": primitive_name,
        "description": description,
        "family": "",
        "version": "",
    }

    for line in lines:
        if line.startswith("Family:"):
            metadata["family"] = line.replace("Family:", "").strip()
        elif line.startswith("Version:"):
            metadata["version"] = line.replace("Version:", "").strip()

    return metadata


__all__ = [
    # Numeric primitives
    "safe_divide",
    "calculate_absolute_percentage_error",
    "clamp",
    "calculate_percentile",
    "calculate_correlation",
    "round_to_precision",
    # Seasonality primitives
    "analyze_weekday_seasonality",
    "default_weekday_pattern",
    # Projection primitives
    "classify_projection_confidence",
    "calculate_month_to_date",
    "project_month_end",
    "fallback_projection",
    # Forecasting primitives
    "FORECAST_MODELS",
    "next_period_start",
    "seasonal_naive_forecast",
    "linear_trend_forecast",
    "double_exponential_forecast",
    "combine_forecasts",
    "ensemble_forecast",
    "forecast_all_models",
    # Backtest primitives
    "aggregate_monthly",
    "run_walk_forward_backtest",
    "summarize_backtest",
    "calculate_historical_order_value",
    "validate_forecast_coherence",
    # Capacity primitives
    "calculate_effective_capacity",
    "calculate_services_per_unit",
    "calculate_deficit_analysis",
    "calculate_urgency_score",
    "generate_capacity_recommendations",
    "simulate_hiring_impact",
    "analyze_optimal_distribution",
    "analyze_capacity_gap",
    # Simulation primitives
    "resolve_rng",
    "select_eligible_channels",
    "find_channels_at_cap",
    "classify_simulation_risk",
    "run_scenario_simulation",
    "optimize_budget_allocation",
    "simulate_recruitment_outcomes",
    "compare_recruitment_strategies",
    "calculate_risk_metrics",
    # Utility functions
    "list_primitives_by_family",
    "get_primitive_metadata",
]
