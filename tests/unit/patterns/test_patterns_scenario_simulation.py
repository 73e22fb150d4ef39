"""
Unit tests for the scenario simulation pattern.
"""

import pytest

from capacity_forecast.models import ConfidenceLabel, RiskLevel, ScenarioSimulationReport
from capacity_forecast.patterns import ScenarioSimulationPattern


@pytest.fixture
def pattern(settings):
    return ScenarioSimulationPattern(settings=settings)


class TestScenarioSimulationPattern:
    """Tests for the ScenarioSimulationPattern class."""

    def test_simulation_with_baseline(self, pattern, simulation_parameters):
        """Test a feasible simulation reported next to the greedy allocation."""
        # Act
        result = pattern.analyze(simulation_parameters, iterations=300, seed=8)

        # Assert
        assert isinstance(result, ScenarioSimulationReport)
        assert result.error is None
        assert result.result.iterations == 300
        assert result.greedy_baseline is not None
        assert sum(result.result.optimal_allocation.values()) <= simulation_parameters.budget
        expected_label = {
            RiskLevel.LOW.value: ConfidenceLabel.HIGH.value,
            RiskLevel.MEDIUM.value: ConfidenceLabel.MEDIUM.value,
            RiskLevel.HIGH.value: ConfidenceLabel.LOW.value,
        }[result.result.risk_level]
        assert result.confidence_label == expected_label

    def test_parameters_as_dict(self, pattern):
        """Test that raw parameters are validated into SimulationParameters."""
        # Arrange
        parameters = {
            "budget": 20_000,
            "timeline_days": 45,
            "channels": [
                {"channel_id": "web", "cost_per_acquisition": 800, "monthly_capacity": 10, "roi_percent": 350}
            ],
        }

        # Act
        result = pattern.analyze(parameters, iterations=100, seed=2)

        # Assert
        assert set(result.result.optimal_allocation) == {"web"}

    def test_single_low_roi_channel(self, pattern):
        """Test that an infeasible ROI floor is flagged while still returning an allocation."""
        # Arrange
        parameters = {
            "budget": 50_000,
            "timeline_days": 60,
            "channels": [
                {"channel_id": "flyers", "cost_per_acquisition": 2000, "monthly_capacity": 20, "roi_percent": 100}
            ],
        }

        # Act
        result = pattern.analyze(parameters, iterations=200, seed=3)

        # Assert
        assert result.result.constraint_violated is True
        assert result.result.optimal_allocation["flyers"] > 0
        assert result.greedy_baseline is None
        assert result.error["type"] == "constraint_infeasible"
        assert result.confidence_label == ConfidenceLabel.LOW

    def test_seeded_runs_match(self, pattern, simulation_parameters):
        """Test that equal seeds give equal results."""
        # Act
        first = pattern.analyze(simulation_parameters, iterations=200, seed=21)
        second = pattern.analyze(simulation_parameters, iterations=200, seed=21)

        # Assert
        assert first.result == second.result
