"""
Simulation Models

Pydantic models for the channel budget simulator and recruitment outcome simulation.
"""

from pydantic import Field, field_validator

from capacity_forecast.models.common import BaseModel, BasePattern
from capacity_forecast.models.enums import RecruitmentStrategy, RiskLevel

DEFAULT_SEASONALITY = [1.0, 1.1, 1.2, 1.0, 0.9, 0.8, 0.9, 1.0, 1.1, 1.2, 1.1, 1.0]


class Channel(BaseModel):
    """Recruitment/marketing channel."""

    channel_id: str
    cost_per_acquisition: float = Field(gt=0)
    # Acquisitions the channel can deliver per month
    monthly_capacity: float = Field(ge=0)
    roi_percent: float


class SimulationParameters(BaseModel):
    """Inputs of a budget allocation simulation."""

    budget: float = Field(gt=0)
    timeline_days: int = Field(ge=30, le=365)
    channels: list[Channel] = Field(min_length=1)
    seasonality_multipliers: list[float] = Field(default_factory=lambda: list(DEFAULT_SEASONALITY))

    @field_validator("seasonality_multipliers")
    @classmethod
    def check_twelve_months(cls, v: list[float]) -> list[float]:
        if len(v) != 12:
            raise ValueError("seasonality_multipliers needs exactly 12 values")
        return v

    @field_validator("channels")
    @classmethod
    def check_unique_ids(cls, v: list[Channel]) -> list[Channel]:
        ids = [c.channel_id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("channel ids must be unique")
        return v


class AlternativeScenario(BaseModel):
    """A distinct allocation found during sampling."""

    name: str
    allocation: dict[str, float]
    expected_acquisitions: float
    # Share of iterations that landed on this allocation bucket
    probability: float = Field(ge=0, le=1)


class SimulationResult(BaseModel):
    """Best allocation found by the Monte-Carlo sampler."""

    optimal_allocation: dict[str, float]
    expected_acquisitions: float
    optimal_timeline_days: int
    risk_level: RiskLevel
    alternative_scenarios: list[AlternativeScenario] = Field(default_factory=list)
    # Correlation between channel budget and acquisitions, as a signed percentage
    sensitivity_by_channel: dict[str, float] = Field(default_factory=dict)
    # True when no channel met the ROI floor and the result is a relaxation
    constraint_violated: bool = False
    constraint_violations: list[str] = Field(default_factory=list)
    # Channels of the optimal allocation at or near the per-channel cap
    channels_at_cap: list[str] = Field(default_factory=list)
    timeline_clipped: bool = False
    projected_roi_percent: float = 0.0
    iterations: int = 0


class BudgetAllocation(BaseModel):
    """Deterministic greedy allocation."""

    allocation: dict[str, float]
    expected_acquisitions: float
    unallocated_budget: float = Field(ge=0)


class OutcomeDistribution(BaseModel):
    """Distribution of simulated recruitment outcomes."""

    strategy: RecruitmentStrategy
    iterations: int
    mean_hires: float
    p10_hires: float
    p50_hires: float
    p90_hires: float
    mean_cost: float
    cost_variance: float
    # Share of iterations with success rate above 0.7
    success_probability: float = Field(ge=0, le=1)
    hires_ci_95: tuple[float, float]
    cost_ci_95: tuple[float, float]
    timeline_ci_95: tuple[float, float]


class RecruitmentScenario(BaseModel):
    """A recruitment plan to compare against others."""

    name: str
    budget: float = Field(gt=0)
    timeline_weeks: float = Field(gt=0)
    quality_threshold: float = Field(default=0.7, ge=0, le=1)
    strategy: RecruitmentStrategy = RecruitmentStrategy.MODERATE


class StrategyComparison(BaseModel):
    """Simulated outcome of one recruitment scenario, as ranked by compare_recruitment_strategies."""

    scenario_name: str
    strategy: RecruitmentStrategy
    expected_hires: float
    expected_cost: float
    success_probability: float = Field(ge=0, le=1)
    # None when no hire is expected
    cost_per_hire: float | None = None
    # Cost coefficient of variation weighted by the chance of missing the success bar
    risk_score: float = Field(ge=0)
    # 1 - width of the 95% hires interval relative to mean hires, floored at 0
    confidence_level: float = Field(ge=0, le=1)


class RiskMetrics(BaseModel):
    """Market, execution and financial risk of a set of recruitment scenarios, each in [0, 1]."""

    market_risk: float = Field(ge=0, le=1)
    execution_risk: float = Field(ge=0, le=1)
    financial_risk: float = Field(ge=0, le=1)
    overall_risk_score: float = Field(ge=0, le=1)


class ScenarioSimulationReport(BasePattern):
    """Output of the scenario simulation pattern."""

    pattern: str = "scenario_simulation"
    result: SimulationResult | None = None
    greedy_baseline: BudgetAllocation | None = None
