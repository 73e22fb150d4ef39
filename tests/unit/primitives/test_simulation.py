"""
Unit tests for the simulation primitives.
"""

import numpy as np
import pytest

from capacity_forecast.exceptions import ConstraintInfeasibleError, ValidationError
from capacity_forecast.models import (
    Channel,
    RecruitmentScenario,
    RecruitmentStrategy,
    RiskLevel,
    SimulationConstraints,
    SimulationParameters,
)
from capacity_forecast.primitives import (
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


@pytest.fixture
def constraints():
    return SimulationConstraints(max_budget_per_channel_fraction=0.4, min_roi_percent=200)


@pytest.fixture
def low_roi_parameters():
    return SimulationParameters(
        budget=50_000,
        timeline_days=60,
        channels=[Channel(channel_id="flyers", cost_per_acquisition=2000, monthly_capacity=20, roi_percent=100)],
    )


class TestResolveRng:
    """Tests for the resolve_rng function."""

    def test_generator_passthrough(self):
        """Test that a Generator is returned unchanged."""
        # Arrange
        rng = np.random.default_rng(1)

        # Act & Assert
        assert resolve_rng(rng) is rng

    def test_seed_is_reproducible(self):
        """Test that equal seeds produce equal draws."""
        # Act & Assert
        assert resolve_rng(7).random() == resolve_rng(7).random()


class TestSelectEligibleChannels:
    """Tests for the select_eligible_channels function."""

    def test_filters_by_roi(self, simulation_parameters):
        """Test that channels below the ROI floor are excluded."""
        # Act
        result = select_eligible_channels(simulation_parameters.channels, 200)

        # Assert
        assert [c.channel_id for c in result] == ["referrals", "job_boards"]

    def test_no_eligible_channel(self, low_roi_parameters):
        """Test that no eligible channel raises ConstraintInfeasibleError with the violations."""
        # Act & Assert
        with pytest.raises(ConstraintInfeasibleError) as exc_info:
            select_eligible_channels(low_roi_parameters.channels, 200)
        assert len(exc_info.value.violations) == 1
        assert "flyers" in exc_info.value.violations[0]


class TestClassifySimulationRisk:
    """Tests for the classify_simulation_risk function."""

    @pytest.mark.parametrize(
        "outcomes,expected",
        [
            ([10, 10, 10], RiskLevel.LOW),
            ([8, 12], RiskLevel.LOW),
            ([6, 14], RiskLevel.MEDIUM),
            ([0, 10], RiskLevel.HIGH),
        ],
    )
    def test_coefficient_of_variation(self, outcomes, expected):
        """Test the risk thresholds on the coefficient of variation."""
        # Act
        result = classify_simulation_risk(np.array(outcomes, dtype=float))

        # Assert
        assert result == expected

    def test_violation_is_high_risk(self):
        """Test that a relaxed result is always high risk."""
        # Act
        result = classify_simulation_risk(np.array([10.0, 10.0]), constraint_violated=True)

        # Assert
        assert result == RiskLevel.HIGH

    @pytest.mark.parametrize(
        "outcomes,expected",
        [
            ([10, 10, 10], RiskLevel.MEDIUM),
            ([6, 14], RiskLevel.HIGH),
            ([0, 10], RiskLevel.HIGH),
        ],
    )
    def test_channels_at_cap_raise_risk(self, outcomes, expected):
        """Test that channels allocated at the per-channel cap raise the level by one step."""
        # Act
        result = classify_simulation_risk(np.array(outcomes, dtype=float), channels_at_cap=2)

        # Assert
        assert result == expected

    def test_clipped_timeline_is_high_risk(self):
        """Test that a timeline cut short by the timeframe limit is high risk."""
        # Act
        result = classify_simulation_risk(np.array([10.0, 10.0]), timeline_clipped=True)

        # Assert
        assert result == RiskLevel.HIGH


class TestFindChannelsAtCap:
    """Tests for the find_channels_at_cap function."""

    def test_channels_within_proximity(self):
        """Test that channels at 90% of the cap or more are reported."""
        # Act
        result = find_channels_at_cap({"a": 9_500.0, "b": 5_000.0, "c": 10_000.0}, 10_000.0, proximity=0.9)

        # Assert
        assert result == ["a", "c"]

    def test_unallocated_channels(self):
        """Test that an empty allocation has no channel at the cap."""
        # Act & Assert
        assert find_channels_at_cap({"a": 0.0, "b": 0.0}, 10_000.0) == []


class TestRunScenarioSimulation:
    """Tests for the run_scenario_simulation function."""

    def test_allocation_bounds(self, simulation_parameters, constraints, settings):
        """Test the budget and per-channel limits of the optimal allocation."""
        # Act
        result = run_scenario_simulation(simulation_parameters, constraints, iterations=500, seed=3, settings=settings)

        # Assert
        allocation = result.optimal_allocation
        assert sum(allocation.values()) <= simulation_parameters.budget
        assert all(0 <= amount <= 0.4 * simulation_parameters.budget for amount in allocation.values())
        for scenario in result.alternative_scenarios:
            assert sum(scenario.allocation.values()) <= simulation_parameters.budget

    def test_ineligible_channel_gets_nothing(self, simulation_parameters, constraints, settings):
        """Test that channels below the ROI floor receive no budget."""
        # Act
        result = run_scenario_simulation(simulation_parameters, constraints, iterations=300, seed=3, settings=settings)

        # Assert
        assert result.optimal_allocation["radio"] == 0
        assert result.constraint_violated is False
        assert result.sensitivity_by_channel["radio"] == 0.0

    def test_seeded_runs_are_identical(self, simulation_parameters, constraints, settings):
        """Test that the same seed reproduces the same result."""
        # Act
        first = run_scenario_simulation(simulation_parameters, constraints, iterations=300, seed=42, settings=settings)
        second = run_scenario_simulation(simulation_parameters, constraints, iterations=300, seed=42, settings=settings)

        # Assert
        assert first.model_dump() == second.model_dump()

    def test_best_is_at_least_every_alternative(self, simulation_parameters, constraints, settings):
        """Test that alternatives never beat the optimal allocation."""
        # Act
        result = run_scenario_simulation(simulation_parameters, constraints, iterations=500, seed=11, settings=settings)

        # Assert
        assert len(result.alternative_scenarios) <= settings.MAX_ALTERNATIVE_SCENARIOS
        for scenario in result.alternative_scenarios:
            assert scenario.expected_acquisitions <= result.expected_acquisitions
            assert 0 < scenario.probability <= 1

    def test_timeline_limited_by_constraint(self, simulation_parameters, settings):
        """Test that the sampled timeline respects max_timeframe_days."""
        # Arrange
        constraints = SimulationConstraints(min_roi_percent=200, max_timeframe_days=80)

        # Act
        result = run_scenario_simulation(simulation_parameters, constraints, iterations=200, seed=5, settings=settings)

        # Assert
        assert result.optimal_timeline_days <= 80

    def test_allocation_at_channel_cap_is_not_low_risk(self, settings):
        """Test that an optimal allocation with channels at the per-channel cap is not reported as low risk."""
        # Arrange
        parameters = SimulationParameters(
            budget=120_000,
            timeline_days=60,
            channels=[
                Channel(channel_id=f"channel_{i}", cost_per_acquisition=1000, monthly_capacity=100, roi_percent=300)
                for i in range(12)
            ],
        )
        constraints = SimulationConstraints(max_budget_per_channel_fraction=0.1, min_roi_percent=200)

        # Act
        result = run_scenario_simulation(parameters, constraints, iterations=2000, seed=1, settings=settings)

        # Assert
        assert result.channels_at_cap
        assert all(result.optimal_allocation[cid] >= 0.9 * 12_000 for cid in result.channels_at_cap)
        assert result.risk_level != RiskLevel.LOW

    def test_clipped_timeline_is_flagged(self, simulation_parameters, settings):
        """Test that a timeline cut by max_timeframe_days is flagged and classified high risk."""
        # Arrange
        constraints = SimulationConstraints(min_roi_percent=200, max_timeframe_days=72)

        # Act
        result = run_scenario_simulation(simulation_parameters, constraints, iterations=200, seed=5, settings=settings)

        # Assert
        assert result.timeline_clipped is True
        assert result.optimal_timeline_days == 72
        assert result.risk_level == RiskLevel.HIGH

    def test_relaxes_infeasible_roi_constraint(self, low_roi_parameters, constraints, settings):
        """Test that a single low-ROI channel yields a flagged best-effort allocation."""
        # Act
        result = run_scenario_simulation(low_roi_parameters, constraints, iterations=300, seed=1, settings=settings)

        # Assert
        assert result.constraint_violated is True
        assert result.constraint_violations
        assert result.risk_level == RiskLevel.HIGH
        assert 0 < result.optimal_allocation["flyers"] <= 0.4 * low_roi_parameters.budget

    def test_invalid_iterations(self, simulation_parameters, constraints, settings):
        """Test that a negative iteration count raises ValidationError."""
        # Act & Assert
        with pytest.raises(ValidationError):
            run_scenario_simulation(simulation_parameters, constraints, iterations=-1, settings=settings)


class TestOptimizeBudgetAllocation:
    """Tests for the optimize_budget_allocation function."""

    def test_greedy_allocation(self, simulation_parameters, constraints):
        """Test that channels are filled by roi / cpa up to the per-channel cap."""
        # Act
        result = optimize_budget_allocation(simulation_parameters, constraints)

        # Assert
        assert result.allocation == {"referrals": 40_000, "job_boards": 40_000, "radio": 0.0}
        assert result.unallocated_budget == 20_000
        assert result.expected_acquisitions == pytest.approx(40_000 / 1200 + 40_000 / 2500, abs=0.01)

    def test_capacity_limits_spend(self, constraints):
        """Test that a channel never gets more than it can convert over the timeline."""
        # Arrange
        parameters = SimulationParameters(
            budget=100_000,
            timeline_days=30,
            channels=[Channel(channel_id="events", cost_per_acquisition=1000, monthly_capacity=5, roi_percent=300)],
        )

        # Act
        result = optimize_budget_allocation(parameters, constraints)

        # Assert
        assert result.allocation["events"] == 5_000
        assert result.expected_acquisitions == 5

    def test_infeasible(self, low_roi_parameters, constraints):
        """Test that the greedy allocation does not relax the ROI floor."""
        # Act & Assert
        with pytest.raises(ConstraintInfeasibleError):
            optimize_budget_allocation(low_roi_parameters, constraints)


class TestSimulateRecruitmentOutcomes:
    """Tests for the simulate_recruitment_outcomes function."""

    def test_distribution_is_ordered(self):
        """Test percentile ordering and probability bounds."""
        # Act
        result = simulate_recruitment_outcomes(300_000, 8, iterations=2000, seed=9)

        # Assert
        assert result.p10_hires <= result.p50_hires <= result.p90_hires
        assert result.hires_ci_95[0] <= result.hires_ci_95[1]
        assert result.cost_ci_95[0] <= result.mean_cost <= result.cost_ci_95[1]
        assert 0 <= result.success_probability <= 1
        assert result.timeline_ci_95[0] >= 8 * 0.7

    def test_conservative_has_less_cost_variance(self):
        """Test that the conservative strategy spreads cost less than the aggressive one."""
        # Act
        conservative = simulate_recruitment_outcomes(
            300_000, 8, strategy=RecruitmentStrategy.CONSERVATIVE, iterations=2000, seed=4
        )
        aggressive = simulate_recruitment_outcomes(
            300_000, 8, strategy=RecruitmentStrategy.AGGRESSIVE, iterations=2000, seed=4
        )

        # Assert
        assert conservative.cost_variance < aggressive.cost_variance

    def test_seeded(self):
        """Test that equal seeds give equal distributions."""
        # Act & Assert
        assert simulate_recruitment_outcomes(200_000, 6, iterations=500, seed=2) == simulate_recruitment_outcomes(
            200_000, 6, iterations=500, seed=2
        )

    def test_invalid_budget(self):
        """Test that a non-positive budget raises ValidationError."""
        # Act & Assert
        with pytest.raises(ValidationError):
            simulate_recruitment_outcomes(0, 8)


@pytest.fixture
def recruitment_scenarios():
    return [
        RecruitmentScenario(name="push", budget=300_000, timeline_weeks=6, strategy=RecruitmentStrategy.AGGRESSIVE),
        RecruitmentScenario(name="steady", budget=300_000, timeline_weeks=8, strategy=RecruitmentStrategy.MODERATE),
        RecruitmentScenario(
            name="careful", budget=200_000, timeline_weeks=12, strategy=RecruitmentStrategy.CONSERVATIVE
        ),
    ]


class TestCompareRecruitmentStrategies:
    """Tests for the compare_recruitment_strategies function."""

    def test_ranked_by_success_probability(self, recruitment_scenarios):
        """Test that every scenario is compared and ranked by success probability."""
        # Act
        result = compare_recruitment_strategies(recruitment_scenarios, iterations=1000, seed=3)

        # Assert
        assert {c.scenario_name for c in result} == {"push", "steady", "careful"}
        probabilities = [c.success_probability for c in result]
        assert probabilities == sorted(probabilities, reverse=True)
        for comparison in result:
            assert comparison.cost_per_hire == pytest.approx(comparison.expected_cost / comparison.expected_hires)
            assert comparison.risk_score >= 0
            assert 0 <= comparison.confidence_level <= 1

    def test_strategy_carried_over(self, recruitment_scenarios):
        """Test that each comparison keeps the strategy of its scenario."""
        # Act
        result = compare_recruitment_strategies(recruitment_scenarios, iterations=500, seed=3)

        # Assert
        strategies = {c.scenario_name: c.strategy for c in result}
        assert strategies["push"] == RecruitmentStrategy.AGGRESSIVE
        assert strategies["careful"] == RecruitmentStrategy.CONSERVATIVE

    def test_seeded(self, recruitment_scenarios):
        """Test that equal seeds give equal comparisons."""
        # Act
        first = compare_recruitment_strategies(recruitment_scenarios, iterations=300, seed=8)
        second = compare_recruitment_strategies(recruitment_scenarios, iterations=300, seed=8)

        # Assert
        assert first == second

    def test_no_scenarios(self):
        """Test that an empty comparison raises ValidationError."""
        # Act & Assert
        with pytest.raises(ValidationError):
            compare_recruitment_strategies([])


class TestCalculateRiskMetrics:
    """Tests for the calculate_risk_metrics function."""

    def test_components_and_average(self):
        """Test market, execution and financial risk and their average."""
        # Arrange
        scenarios = [
            RecruitmentScenario(name="a", budget=100_000, timeline_weeks=8, strategy=RecruitmentStrategy.AGGRESSIVE),
            RecruitmentScenario(name="b", budget=100_000, timeline_weeks=8, strategy=RecruitmentStrategy.MODERATE),
        ]

        # Act
        result = calculate_risk_metrics([100, 100, 100], scenarios)

        # Assert
        assert result.market_risk == 0.0
        assert result.execution_risk == 0.5
        assert result.financial_risk == 0.0
        assert result.overall_risk_score == pytest.approx(0.5 / 3)

    def test_market_risk_is_capped(self, recruitment_scenarios):
        """Test that volatile demand caps market risk at 1."""
        # Act
        result = calculate_risk_metrics([50, 150], recruitment_scenarios)

        # Assert
        assert result.market_risk == 1.0

    def test_short_history_is_medium_market_risk(self, recruitment_scenarios):
        """Test that fewer than two months of demand give a market risk of 0.5."""
        # Act
        result = calculate_risk_metrics([120], recruitment_scenarios)

        # Assert
        assert result.market_risk == 0.5
        assert result.execution_risk == pytest.approx(1 / 3)

    def test_no_scenarios(self):
        """Test that risk metrics need at least one scenario."""
        # Act & Assert
        with pytest.raises(ValidationError):
            calculate_risk_metrics([100, 120], [])
