# =============================================================================
# Simulation Primitives
#
# This file includes primitives for recruitment planning under uncertainty:
# - Monte-Carlo search over channel budget allocations
# - Greedy deterministic allocation baseline
# - Monte-Carlo distribution of recruitment outcomes per strategy
# - Strategy comparison and aggregate risk metrics
#
# Every stochastic primitive takes `seed`, either an int or a numpy Generator,
# so results are reproducible in tests. None draws from system entropy.
#
# Family: simulation
# Version: 1.0
#
# Dependencies:
#   - numpy as np
#   - scipy.stats (through numeric.calculate_correlation)
# =============================================================================

import logging
import math
from collections.abc import Sequence

import numpy as np

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import ConstraintInfeasibleError, ValidationError
from capacity_forecast.models import (
    AlternativeScenario,
    BudgetAllocation,
    Channel,
    OutcomeDistribution,
    RecruitmentScenario,
    RecruitmentStrategy,
    RiskLevel,
    RiskMetrics,
    SimulationConstraints,
    SimulationParameters,
    SimulationResult,
    StrategyComparison,
)
from capacity_forecast.primitives.numeric import calculate_correlation, calculate_percentile, clamp, safe_divide

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30

_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]

# Standard deviations of the cost, timeline and success multipliers per strategy
STRATEGY_VARIABILITY: dict[RecruitmentStrategy, dict[str, float]] = {
    RecruitmentStrategy.AGGRESSIVE: {"cost": 0.3, "timeline": 0.4, "success": 0.25},
    RecruitmentStrategy.MODERATE: {"cost": 0.2, "timeline": 0.25, "success": 0.15},
    RecruitmentStrategy.CONSERVATIVE: {"cost": 0.1, "timeline": 0.15, "success": 0.1},
}


def resolve_rng(seed: int | np.random.Generator | None = None) -> np.random.Generator:
    """
    Return a numpy Generator for a seed, or the Generator itself.

    Family: simulation
    Version: 1.0
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def select_eligible_channels(channels: list[Channel], min_roi_percent: float) -> list[Channel]:
    """
    Channels whose ROI meets the floor.

    Family: simulation
    Version: 1.0

    Raises:
        ConstraintInfeasibleError: If no channel meets the floor
    """
    eligible = [c for c in channels if c.roi_percent >= min_roi_percent]
    if not eligible:
        violations = [f"{c.channel_id}: roi {c.roi_percent:g}% below {min_roi_percent:g}%" for c in channels]
        raise ConstraintInfeasibleError("No channel meets the minimum ROI", violations)
    return eligible


def _floor_cents(amount: float) -> float:
    return math.floor(amount * 100) / 100


def find_channels_at_cap(allocation: dict[str, float], channel_cap: float, proximity: float = 0.9) -> list[str]:
    """
    Channels whose allocation reaches `proximity` of the per-channel budget cap.

    Family: simulation
    Version: 1.0
    """
    return [cid for cid, amount in allocation.items() if channel_cap > 0 and amount >= proximity * channel_cap]


def classify_simulation_risk(
    outcomes: np.ndarray,
    constraint_violated: bool = False,
    channels_at_cap: int = 0,
    timeline_clipped: bool = False,
) -> RiskLevel:
    """
    Classify risk from the coefficient of variation of simulated acquisitions and the constraint margin.

    Below 0.25 is low, below 0.5 medium, anything above high. Channels allocated at the per-channel
    cap raise the level by one step. A relaxed (constraint-violating) result and a timeline cut
    short by max_timeframe_days are always high risk.

    Family: simulation
    Version: 1.0
    """
    if constraint_violated or timeline_clipped:
        return RiskLevel.HIGH
    mean = float(np.mean(outcomes)) if len(outcomes) else 0.0
    cv = float(np.std(outcomes)) / mean if mean > 0 else 0.0
    if cv < 0.25:
        level = RiskLevel.LOW
    elif cv < 0.5:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.HIGH

    if channels_at_cap:
        level = _RISK_ORDER[min(len(_RISK_ORDER) - 1, _RISK_ORDER.index(level) + 1)]
    return level


def _sample_allocation(
    rng: np.random.Generator,
    channels: list[Channel],
    budget: float,
    channel_cap: float,
    timeline_months: float,
    cost_variability: float,
    capacity_variability: float,
) -> tuple[dict[str, float], float]:
    """One random allocation: channels visited in (roi / cpa) * U(0,1) order."""
    priority = np.array([(c.roi_percent / c.cost_per_acquisition) * rng.random() for c in channels])
    remaining = budget
    allocation: dict[str, float] = {}
    acquisitions = 0.0

    for idx in np.argsort(-priority, kind="stable"):
        channel = channels[idx]
        cpa = channel.cost_per_acquisition * rng.uniform(1 - cost_variability, 1 + cost_variability)
        capacity = channel.monthly_capacity * timeline_months * rng.uniform(
            1 - capacity_variability, 1 + capacity_variability
        )
        max_allowable = min(remaining, channel_cap, capacity * cpa)
        amount = _floor_cents(rng.random() * max(0.0, max_allowable))
        remaining -= amount
        allocation[channel.channel_id] = amount
        acquisitions += amount / cpa

    return allocation, acquisitions


def run_scenario_simulation(
    parameters: SimulationParameters,
    constraints: SimulationConstraints | None = None,
    iterations: int | None = None,
    seed: int | np.random.Generator | None = None,
    settings: EngineSettings | None = None,
) -> SimulationResult:
    """
    Monte-Carlo search for the channel budget allocation with the most acquisitions.

    Each iteration perturbs channel cost per acquisition and capacity, allocates a random share of
    min(remaining budget, per-channel cap, capacity * cpa) to each eligible channel, applies a random
    monthly seasonality multiplier and samples a completion timeline. Only channels meeting the ROI
    floor receive budget; when none does, all channels are sampled and the result is flagged as
    constraint-violating.

    Family: simulation
    Version: 1.0

    Args:
        parameters: Budget, timeline, channels and seasonality multipliers
        constraints: Per-channel cap, ROI floor and timeframe limit; defaults to the engine settings
        iterations: Number of sampled allocations; defaults to SIMULATION_ITERATIONS
        seed: Int seed or numpy Generator for reproducible runs
        settings: Engine settings

    Returns:
        SimulationResult with the optimal allocation, alternatives, risk and per-channel sensitivity
    """
    settings = settings or get_settings()
    constraints = constraints or SimulationConstraints.from_settings(settings)
    iterations = iterations or settings.SIMULATION_ITERATIONS
    if iterations < 1:
        raise ValidationError("iterations must be positive", {"iterations": iterations})
    rng = resolve_rng(seed)

    violations: list[str] = []
    try:
        channels = select_eligible_channels(parameters.channels, constraints.min_roi_percent)
    except ConstraintInfeasibleError as exc:
        logger.warning("%s, relaxing ROI constraint: %s", exc.message, exc.violations)
        channels = list(parameters.channels)
        violations = exc.violations

    budget = parameters.budget
    channel_cap = budget * constraints.max_budget_per_channel_fraction
    timeline_months = parameters.timeline_days / DAYS_PER_MONTH
    channel_ids = [c.channel_id for c in parameters.channels]

    allocations = np.zeros((iterations, len(channel_ids)))
    outcomes = np.zeros(iterations)
    timelines = np.zeros(iterations)

    for i in range(iterations):
        allocation, acquisitions = _sample_allocation(
            rng,
            channels,
            budget,
            channel_cap,
            timeline_months,
            settings.COST_VARIABILITY,
            settings.CAPACITY_VARIABILITY,
        )
        season = parameters.seasonality_multipliers[int(rng.integers(12))]
        allocations[i] = [allocation.get(cid, 0.0) for cid in channel_ids]
        outcomes[i] = acquisitions * season
        timelines[i] = parameters.timeline_days * (0.8 + 0.4 * rng.random())

    best = int(np.argmax(outcomes))
    timeline_clipped = False
    if constraints.max_timeframe_days:
        timeline_clipped = bool(timelines[best] > constraints.max_timeframe_days)
        timelines = np.minimum(timelines, constraints.max_timeframe_days)

    optimal_allocation = dict(zip(channel_ids, allocations[best].tolist()))
    expected = float(outcomes[best])
    at_cap = find_channels_at_cap(optimal_allocation, channel_cap, settings.CAP_PROXIMITY_FRACTION)

    result = SimulationResult(
        optimal_allocation=optimal_allocation,
        expected_acquisitions=round(expected, 2),
        optimal_timeline_days=int(round(timelines[best])),
        risk_level=classify_simulation_risk(
            outcomes,
            constraint_violated=bool(violations),
            channels_at_cap=len(at_cap),
            timeline_clipped=timeline_clipped,
        ),
        alternative_scenarios=_alternative_scenarios(
            allocations,
            outcomes,
            channel_ids,
            bucket_size=budget * settings.ALLOCATION_BUCKET_FRACTION,
            best=best,
            limit=settings.MAX_ALTERNATIVE_SCENARIOS,
        ),
        sensitivity_by_channel={
            cid: round(calculate_correlation(allocations[:, j], outcomes) * 100, 2)
            for j, cid in enumerate(channel_ids)
        },
        constraint_violated=bool(violations),
        constraint_violations=violations,
        channels_at_cap=at_cap,
        timeline_clipped=timeline_clipped,
        projected_roi_percent=round((expected * settings.VALUE_PER_ACQUISITION / budget - 1) * 100, 2),
        iterations=iterations,
    )
    logger.info(
        "Simulated %s allocations: best %.1f acquisitions, risk %s", iterations, expected, result.risk_level
    )
    return result


def _alternative_scenarios(
    allocations: np.ndarray,
    outcomes: np.ndarray,
    channel_ids: list[str],
    bucket_size: float,
    best: int,
    limit: int,
) -> list[AlternativeScenario]:
    """Next-best distinct allocation buckets, with their empirical frequency."""
    buckets: dict[tuple[int, ...], list[int]] = {}
    for i, row in enumerate(allocations):
        key = tuple(int(round(amount / bucket_size)) for amount in row)
        buckets.setdefault(key, []).append(i)

    best_key = tuple(int(round(amount / bucket_size)) for amount in allocations[best])
    ranked = sorted(
        (key for key in buckets if key != best_key),
        key=lambda k: max(outcomes[i] for i in buckets[k]),
        reverse=True,
    )

    scenarios = []
    for n, key in enumerate(ranked[:limit], start=1):
        members = buckets[key]
        top = max(members, key=lambda i: outcomes[i])
        scenarios.append(
            AlternativeScenario(
                name=f"Scenario {n}",
                allocation=dict(zip(channel_ids, allocations[top].tolist())),
                expected_acquisitions=round(float(outcomes[top]), 2),
                probability=len(members) / len(outcomes),
            )
        )
    return scenarios


def optimize_budget_allocation(
    parameters: SimulationParameters, constraints: SimulationConstraints | None = None
) -> BudgetAllocation:
    """
    Deterministic greedy allocation: fill eligible channels in descending roi / cpa order up to
    the per-channel cap and the channel's capacity over the timeline.

    Family: simulation
    Version: 1.0

    Raises:
        ConstraintInfeasibleError: If no channel meets the ROI floor
    """
    constraints = constraints or SimulationConstraints.from_settings()
    channels = select_eligible_channels(parameters.channels, constraints.min_roi_percent)
    channel_cap = parameters.budget * constraints.max_budget_per_channel_fraction
    timeline_months = parameters.timeline_days / DAYS_PER_MONTH

    remaining = parameters.budget
    allocation = {c.channel_id: 0.0 for c in parameters.channels}
    acquisitions = 0.0
    for channel in sorted(channels, key=lambda c: c.roi_percent / c.cost_per_acquisition, reverse=True):
        capacity_spend = channel.monthly_capacity * timeline_months * channel.cost_per_acquisition
        amount = _floor_cents(min(remaining, channel_cap, capacity_spend))
        allocation[channel.channel_id] = amount
        acquisitions += amount / channel.cost_per_acquisition
        remaining -= amount

    return BudgetAllocation(
        allocation=allocation,
        expected_acquisitions=round(acquisitions, 2),
        unallocated_budget=round(max(0.0, remaining), 2),
    )


def simulate_recruitment_outcomes(
    budget: float,
    timeline_weeks: float,
    quality_threshold: float = 0.7,
    strategy: RecruitmentStrategy = RecruitmentStrategy.MODERATE,
    iterations: int = 10000,
    seed: int | np.random.Generator | None = None,
    cost_per_hire: float = 15000.0,
) -> OutcomeDistribution:
    """
    Monte-Carlo distribution of hires, cost and timeline for a recruitment plan.

    Cost multipliers are normal around 1 (floored at 0.5), timeline multipliers gamma(2, v)
    (floored at 0.7) and the success rate is normal around 0.6 * budget factor * quality penalty,
    clipped to [0.1, 0.95]. The spread of each draw depends on the strategy.

    Family: simulation
    Version: 1.0

    Args:
        budget: Recruitment budget
        timeline_weeks: Target timeline in weeks
        quality_threshold: Candidate quality bar; above 0.8 reduces the hire rate
        strategy: Recruitment strategy
        iterations: Number of simulated outcomes
        seed: Int seed or numpy Generator
        cost_per_hire: Budget needed per hire

    Returns:
        OutcomeDistribution

    Raises:
        ValidationError: If budget, timeline or iterations are not positive
    """
    if budget <= 0 or timeline_weeks <= 0 or iterations < 1:
        raise ValidationError(
            "budget, timeline_weeks and iterations must be positive",
            {"budget": budget, "timeline_weeks": timeline_weeks, "iterations": iterations},
        )
    strategy = RecruitmentStrategy(strategy)
    spread = STRATEGY_VARIABILITY[strategy]
    rng = resolve_rng(seed)

    costs = budget * np.maximum(0.5, rng.normal(1.0, spread["cost"], iterations))
    timelines = timeline_weeks * np.maximum(0.7, rng.gamma(2.0, spread["timeline"], iterations))

    budget_factor = min(2.0, budget / 200_000)
    quality_penalty = 0.8 if quality_threshold > 0.8 else 1.0
    base_rate = 0.6 * budget_factor * quality_penalty
    success = np.clip(base_rate + rng.normal(0.0, spread["success"], iterations), 0.1, 0.95)

    target_hires = round(budget / cost_per_hire)
    hires = np.round(target_hires * success)

    return OutcomeDistribution(
        strategy=strategy,
        iterations=iterations,
        mean_hires=float(np.mean(hires)),
        p10_hires=calculate_percentile(hires, 0.1),
        p50_hires=calculate_percentile(hires, 0.5),
        p90_hires=calculate_percentile(hires, 0.9),
        mean_cost=float(np.mean(costs)),
        cost_variance=float(np.var(costs)),
        success_probability=float(np.mean(success > 0.7)),
        hires_ci_95=(calculate_percentile(hires, 0.025), calculate_percentile(hires, 0.975)),
        cost_ci_95=(calculate_percentile(costs, 0.025), calculate_percentile(costs, 0.975)),
        timeline_ci_95=(calculate_percentile(timelines, 0.025), calculate_percentile(timelines, 0.975)),
    )


def compare_recruitment_strategies(
    scenarios: list[RecruitmentScenario],
    iterations: int = 1000,
    seed: int | np.random.Generator | None = None,
    cost_per_hire: float = 15000.0,
) -> list[StrategyComparison]:
    """
    Simulate each recruitment scenario and rank them by success probability.

    Every scenario is run through simulate_recruitment_outcomes with one shared random stream, so a
    seeded comparison is reproducible as a whole.

    Family: simulation
    Version: 1.0

    Args:
        scenarios: Recruitment plans to compare
        iterations: Simulated outcomes per scenario
        seed: Int seed or numpy Generator
        cost_per_hire: Budget needed per hire

    Returns:
        One StrategyComparison per scenario, highest success probability first

    Raises:
        ValidationError: If no scenario is given
    """
    if not scenarios:
        raise ValidationError("At least one scenario is required to compare strategies", {"scenarios": 0})
    rng = resolve_rng(seed)

    comparisons = []
    for scenario in scenarios:
        outcome = simulate_recruitment_outcomes(
            budget=scenario.budget,
            timeline_weeks=scenario.timeline_weeks,
            quality_threshold=scenario.quality_threshold,
            strategy=RecruitmentStrategy(scenario.strategy),
            iterations=iterations,
            seed=rng,
            cost_per_hire=cost_per_hire,
        )
        cost_cv = safe_divide(math.sqrt(outcome.cost_variance), outcome.mean_cost, default_value=0.0)
        ci_width = outcome.hires_ci_95[1] - outcome.hires_ci_95[0]
        confidence = 1 - ci_width / outcome.mean_hires if outcome.mean_hires > 0 else 0.0
        comparisons.append(
            StrategyComparison(
                scenario_name=scenario.name,
                strategy=outcome.strategy,
                expected_hires=outcome.mean_hires,
                expected_cost=outcome.mean_cost,
                success_probability=outcome.success_probability,
                cost_per_hire=safe_divide(outcome.mean_cost, outcome.mean_hires),
                risk_score=cost_cv * (1 - outcome.success_probability),  # type: ignore
                confidence_level=clamp(confidence, 0.0, 1.0),
            )
        )

    return sorted(comparisons, key=lambda c: c.success_probability, reverse=True)


def _variation(values: np.ndarray) -> float:
    mean = float(np.mean(values))
    return float(np.std(values)) / mean if mean > 0 else 0.0


def calculate_risk_metrics(
    monthly_service_counts: Sequence[float], scenarios: list[RecruitmentScenario]
) -> RiskMetrics:
    """
    Market, execution and financial risk of a recruitment plan set, and their average.

    - Market risk: twice the coefficient of variation of monthly service counts, capped at 1;
      0.5 when fewer than two months are known.
    - Execution risk: share of aggressive scenarios.
    - Financial risk: coefficient of variation of scenario budgets, capped at 1.

    Family: simulation
    Version: 1.0

    Raises:
        ValidationError: If no scenario is given
    """
    if not scenarios:
        raise ValidationError("At least one scenario is required to assess risk", {"scenarios": 0})

    counts = np.asarray(monthly_service_counts, dtype=float)
    market = min(1.0, _variation(counts) * 2) if len(counts) >= 2 else 0.5
    execution = sum(
        1 for s in scenarios if RecruitmentStrategy(s.strategy) == RecruitmentStrategy.AGGRESSIVE
    ) / len(scenarios)
    financial = min(1.0, _variation(np.array([s.budget for s in scenarios])))

    return RiskMetrics(
        market_risk=market,
        execution_risk=execution,
        financial_risk=financial,
        overall_risk_score=(market + execution + financial) / 3,
    )
