"""
Scenario Simulation Pattern

Monte-Carlo search over recruitment channel budget allocations, reported next to the
deterministic greedy allocation.
"""

import logging
from typing import Any

import numpy as np

from capacity_forecast.exceptions import ConstraintInfeasibleError
from capacity_forecast.models import (
    ConfidenceLabel,
    DataSource,
    DataSourceType,
    PatternConfig,
    RiskLevel,
    ScenarioSimulationReport,
    SimulationConstraints,
    SimulationParameters,
)
from capacity_forecast.patterns.base import Pattern
from capacity_forecast.primitives import optimize_budget_allocation, run_scenario_simulation

logger = logging.getLogger(__name__)

_RISK_CONFIDENCE = {
    RiskLevel.LOW: ConfidenceLabel.HIGH,
    RiskLevel.MEDIUM: ConfidenceLabel.MEDIUM,
    RiskLevel.HIGH: ConfidenceLabel.LOW,
}


class ScenarioSimulationPattern(Pattern[ScenarioSimulationReport]):
    """Finds the channel budget allocation with the most expected acquisitions."""

    name = "scenario_simulation"
    version = "1.0"
    description = "Monte-Carlo channel budget allocation with alternatives and per-channel sensitivity"
    required_primitives = ["run_scenario_simulation", "optimize_budget_allocation"]
    output_model: type[ScenarioSimulationReport] = ScenarioSimulationReport

    @classmethod
    def get_default_config(cls) -> PatternConfig:
        """Get the default configuration for the scenario simulation pattern."""
        return PatternConfig(
            pattern_name=cls.name,
            description=cls.description,
            version=cls.version,
            data_sources=[
                DataSource(source_type=DataSourceType.CHANNEL_CONFIG, is_required=True, data_key="parameters"),
            ],
            settings={"iterations": None},
        )

    def analyze(  # type: ignore
        self,
        parameters: SimulationParameters | dict[str, Any],
        constraints: SimulationConstraints | None = None,
        iterations: int | None = None,
        seed: int | np.random.Generator | None = None,
    ) -> ScenarioSimulationReport:
        """
        Execute the scenario simulation pattern.

        Args:
            parameters: Budget, timeline, channels and seasonality multipliers
            constraints: Simulation constraints; defaults to the engine settings
            iterations: Number of Monte-Carlo iterations
            seed: Int seed or numpy Generator for reproducible runs

        Returns:
            ScenarioSimulationReport; flagged with an error when the ROI constraint had to be relaxed
        """
        if not isinstance(parameters, SimulationParameters):
            parameters = SimulationParameters.model_validate(parameters)
        constraints = constraints or SimulationConstraints.from_settings(self.settings)
        iterations = iterations or self.get_setting("iterations") or self.settings.SIMULATION_ITERATIONS

        result = run_scenario_simulation(parameters, constraints, iterations, seed, self.settings)

        try:
            baseline = optimize_budget_allocation(parameters, constraints)
        except ConstraintInfeasibleError:
            baseline = None

        output: dict[str, Any] = {
            "pattern": self.name,
            "version": self.version,
            "result": result,
            "greedy_baseline": baseline,
            "confidence_label": _RISK_CONFIDENCE[RiskLevel(result.risk_level)],
        }
        if result.constraint_violated:
            output["error"] = dict(
                message="No channel meets the minimum ROI; best-effort allocation returned",
                type="constraint_infeasible",
                violations=result.constraint_violations,
            )

        return self.validate_output(output)
