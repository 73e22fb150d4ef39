from enum import Enum


class Weekday(str, Enum):
    """Day of week, ordered as pandas/`date.weekday()` numbers them (Monday = 0)"""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]

    @property
    def is_weekend(self) -> bool:
        return self in (Weekday.SATURDAY, Weekday.SUNDAY)


class ConfidenceLabel(str, Enum):
    """Qualitative confidence attached to a projection or forecast"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    """Risk classification of a simulated scenario"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ServiceSegment(str, Enum):
    """Service-duration classes used to split zone demand"""

    LOCAL = "local"  # short urban services
    LONGHAUL = "longhaul"  # out-of-town services
    EXPRESS = "express"  # short priority services


class ForecastModelName(str, Enum):
    """Point-forecast strategies compared by the backtest"""

    SEASONAL_NAIVE = "seasonal_naive"
    LINEAR_TREND = "linear_trend"
    DOUBLE_EXPONENTIAL = "double_exponential"
    ENSEMBLE = "ensemble"


class DemandScenario(str, Enum):
    """Demand scenario used when comparing capacity against a forecast"""

    OPTIMISTIC = "optimistic"
    REALISTIC = "realistic"
    PESSIMISTIC = "pessimistic"


class GapStatus(str, Enum):
    """Outcome of a capacity vs forecast comparison"""

    SURPLUS = "surplus"
    BALANCED = "balanced"
    DEFICIT = "deficit"


class RecruitmentStrategy(str, Enum):
    """Recruitment strategy, which sets the variability of simulated outcomes"""

    AGGRESSIVE = "aggressive"
    MODERATE = "moderate"
    CONSERVATIVE = "conservative"


class DataSourceType(str, Enum):
    """Types of inputs that patterns can consume."""

    HISTORICAL_SERIES = "historical_series"
    ZONE_METRICS = "zone_metrics"
    CHANNEL_CONFIG = "channel_config"
