"""
Main API for the capacity_forecast package.
"""

from datetime import date, timedelta
from typing import Any, Generic, TypeVar

import numpy as np
import pandas as pd

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import (
    CapacityForecastError,
    PatternError,
    UpstreamUnavailableError,
)
from capacity_forecast.models import (
    BacktestReport,
    BasePattern,
    CapacityConfig,
    CapacityDeficitReport,
    PatternConfig,
    ScenarioSimulationReport,
    SeasonalProjectionReport,
    SimulationConstraints,
    SimulationParameters,
    ZoneDemandMetric,
)
from capacity_forecast.patterns import Pattern
from capacity_forecast.primitives import get_primitive_metadata, list_primitives_by_family
from capacity_forecast.providers import (
    ConfigurationProvider,
    HistoricalSeriesProvider,
    ZoneMetricsProvider,
    fetch_observations,
    fetch_zone_metrics,
    load_settings,
)
from capacity_forecast.registry import PatternRegistry, autodiscover_patterns

T = TypeVar("T", bound=BasePattern)


class CapacityForecast(Generic[T]):
    """Main API class for accessing forecasting primitives and patterns."""

    # Map of pattern names to their output models
    _pattern_model_registry: dict[str, type[BasePattern]] = {
        "seasonal_projection": SeasonalProjectionReport,
        "forecast_backtest": BacktestReport,
        "capacity_deficit": CapacityDeficitReport,
        "scenario_simulation": ScenarioSimulationReport,
    }

    def __init__(self, settings: EngineSettings | None = None) -> None:
        """
        Initialize the API.

        Args:
            settings: Engine settings shared by every pattern run; defaults to the environment settings
        """
        autodiscover_patterns()
        self._pattern_registry = PatternRegistry[T]()
        self.settings = settings or get_settings()

    @classmethod
    def from_configuration(cls, provider: ConfigurationProvider) -> "CapacityForecast":
        """Create an API instance whose settings are overridden by a configuration store."""
        return cls(settings=load_settings(provider))

    @property
    def patterns(self) -> dict[str, type[Pattern[T]]]:
        """Get all registered patterns."""
        return self._pattern_registry._patterns

    @classmethod
    def get_pattern_model_class(cls, pattern_name: str) -> type[BasePattern]:
        """
        Get a pattern output model class by name.

        Raises:
            PatternError: If the pattern model is not found
        """
        pattern_class = cls._pattern_model_registry.get(pattern_name)
        if not pattern_class:
            raise PatternError(f"Unknown pattern type: {pattern_name}", pattern_name)
        return pattern_class

    @classmethod
    def load_pattern_model(cls, pattern_data: dict[str, Any]) -> BasePattern:
        """
        Load a stored pattern output, choosing the model from its 'pattern' field.

        Args:
            pattern_data: Dictionary containing pattern output with a 'pattern' key

        Returns:
            The matching output model (e.g. BacktestReport for pattern='forecast_backtest')

        Raises:
            PatternError: If the pattern type is unknown or validation fails
        """
        pattern_type = pattern_data.get("pattern")
        if not pattern_type:
            raise PatternError("No pattern type specified in data", "unknown")

        pattern_class = cls.get_pattern_model_class(pattern_type)

        try:
            return pattern_class(**pattern_data)
        except Exception as e:
            raise PatternError(
                f"Failed to load pattern data: {str(e)}", pattern_type, {"validation_error": str(e)}
            ) from e

    def get_pattern(self, pattern_name: str) -> type[Pattern[T]]:
        """
        Get a specific pattern by name.

        Raises:
            PatternError: If pattern not found
        """
        pattern = self._pattern_registry.get(pattern_name)
        if not pattern:
            raise PatternError("Pattern not found", pattern_name)
        return pattern

    def list_patterns(self) -> list[str]:
        """List all available pattern names."""
        return self._pattern_registry.list_all()

    def list_primitives(self) -> list[str]:
        """List all available primitive names."""
        all_primitives = []
        for primitives in list_primitives_by_family().values():
            all_primitives.extend(primitives)
        return all_primitives

    def get_pattern_info(self, pattern_name: str) -> dict[str, Any]:
        """Get detailed information about a pattern."""
        pattern = self.get_pattern(pattern_name)
        return pattern.get_info()

    def get_primitive_info(self, primitive_name: str) -> dict[str, Any]:
        """
        Get detailed information about a primitive.

        Raises:
            PrimitiveError: If primitive not found
        """
        return get_primitive_metadata(primitive_name)

    def list_primitives_by_family(self) -> dict[str, list[str]]:
        """List all primitives organized by family."""
        return list_primitives_by_family()

    def get_pattern_default_config(self, pattern_name: str) -> PatternConfig:
        """
        Get the default configuration for a pattern.

        Raises:
            PatternError: If pattern not found
        """
        pattern_class = self.get_pattern(pattern_name)
        return pattern_class.get_default_config()

    def execute_pattern(self, pattern_name: str, config: PatternConfig | None = None, **kwargs) -> Any:
        """
        Execute an analysis pattern.

        Args:
            pattern_name: Name of the pattern to execute
            config: PatternConfig overriding the pattern's default configuration
            **kwargs: Pattern-specific parameters

        Returns:
            Analysis results as a Pydantic model

        Raises:
            PatternError: If pattern execution fails
            UpstreamUnavailableError: If a data provider failed (propagated unchanged)
        """
        try:
            pattern_class = self.get_pattern(pattern_name)
            pattern = pattern_class(config=config, settings=self.settings)
            return pattern.analyze(**kwargs)
        except (PatternError, UpstreamUnavailableError):
            raise
        except Exception as e:
            if isinstance(e, CapacityForecastError):
                raise PatternError(
                    f"Error executing pattern: {str(e)}", pattern_name, {"original_error": type(e), **e.details}
                ) from e
            raise PatternError(f"Error executing pattern: {str(e)}", pattern_name, {"original_error": type(e)}) from e

    # Convenience methods for common patterns
    def project_month(
        self,
        data: pd.DataFrame,
        reference_date: date | None = None,
        month_to_date: pd.DataFrame | None = None,
    ) -> SeasonalProjectionReport:
        """
        Project the current month's monetary value to month end.

        Args:
            data: Daily observations (date, service_count, monetary_value)
            reference_date: Current, in-progress date; defaults to today
            month_to_date: Observations of the current month if held separately

        Returns:
            Seasonal projection report
        """
        return self.execute_pattern(
            pattern_name="seasonal_projection",
            data=data,
            reference_date=reference_date,
            month_to_date=month_to_date,
        )

    def backtest_models(
        self,
        data: pd.DataFrame,
        months_to_test: int | None = None,
        models: list[str] | None = None,
        period_end: date | None = None,
    ) -> BacktestReport:
        """
        Backtest the forecast models and forecast the next period with the best one.

        Args:
            data: Monthly (period, ...) or daily (date, ...) observations
            months_to_test: Number of trailing periods to test
            models: Model names to compare; defaults to all
            period_end: Last day daily data covers; defaults to the latest observation

        Returns:
            Backtest report
        """
        return self.execute_pattern(
            pattern_name="forecast_backtest",
            data=data,
            months_to_test=months_to_test,
            models=models,
            period_end=period_end,
        )

    def analyze_zone_capacity(
        self,
        zones: list[ZoneDemandMetric | dict[str, Any]],
        capacity_config: CapacityConfig | None = None,
    ) -> CapacityDeficitReport:
        """
        Compute deficits, urgency and recommendations per zone.

        Args:
            zones: Zone metrics, as models or raw records
            capacity_config: Capacity configuration; defaults to the engine settings

        Returns:
            Capacity deficit report
        """
        return self.execute_pattern(pattern_name="capacity_deficit", zones=zones, capacity_config=capacity_config)

    def simulate_scenarios(
        self,
        parameters: SimulationParameters | dict[str, Any],
        constraints: SimulationConstraints | None = None,
        iterations: int | None = None,
        seed: int | np.random.Generator | None = None,
    ) -> ScenarioSimulationReport:
        """
        Search channel budget allocations with a Monte-Carlo simulation.

        Args:
            parameters: Budget, timeline, channels and seasonality multipliers
            constraints: Simulation constraints; defaults to the engine settings
            iterations: Number of Monte-Carlo iterations
            seed: Seed for reproducible runs

        Returns:
            Scenario simulation report
        """
        return self.execute_pattern(
            pattern_name="scenario_simulation",
            parameters=parameters,
            constraints=constraints,
            iterations=iterations,
            seed=seed,
        )

    # Provider-backed methods
    def project_month_from_provider(
        self, provider: HistoricalSeriesProvider, reference_date: date | None = None
    ) -> SeasonalProjectionReport:
        """
        Fetch the trailing window and the current month from a provider and project the month.

        Raises:
            UpstreamUnavailableError: If the provider fails
        """
        reference_date = reference_date or date.today()
        start = (pd.Timestamp(reference_date) - pd.DateOffset(months=self.settings.WEEKDAY_WINDOW_MONTHS)).date()
        data = fetch_observations(provider, start, reference_date - timedelta(days=1))
        return self.project_month(data, reference_date=reference_date)

    def backtest_from_provider(
        self,
        provider: HistoricalSeriesProvider,
        start_date: date,
        end_date: date,
        months_to_test: int | None = None,
    ) -> BacktestReport:
        """
        Fetch daily history from a provider and backtest the forecast models on its monthly totals.

        A month that end_date cuts short is not backtested.

        Raises:
            UpstreamUnavailableError: If the provider fails
        """
        data = fetch_observations(provider, start_date, end_date)
        return self.backtest_models(data, months_to_test=months_to_test, period_end=end_date)

    def analyze_zones_from_provider(
        self, provider: ZoneMetricsProvider, capacity_config: CapacityConfig | None = None
    ) -> CapacityDeficitReport:
        """
        Fetch zone metrics from a provider and analyze their capacity.

        Raises:
            UpstreamUnavailableError: If the provider fails
        """
        zones = fetch_zone_metrics(provider)
        return self.analyze_zone_capacity(list(zones), capacity_config)
