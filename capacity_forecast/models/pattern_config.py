"""
Named configuration structures passed to the primitives.

Each structure can be built from `EngineSettings` or constructed directly, e.g. in tests.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import ValidationError
from capacity_forecast.models.enums import DataSourceType, ServiceSegment


class SegmentConfig(BaseModel):
    """Operational profile of one service segment."""

    segment: ServiceSegment
    duration_hours: float = Field(gt=0)
    availability: float = Field(gt=0, le=1)
    # Share of zone demand attributed to this segment (modeling assumption)
    demand_share: float = Field(ge=0, le=1)


class CapacityConfig(BaseModel):
    """Capacity configuration for deficit calculations."""

    rejection_ratio: float = Field(default=0.25, ge=0, lt=1)
    segment_efficiency: float = Field(default=0.85, gt=0, le=1)
    available_hours: float = Field(default=16.0, gt=0)
    monthly_services_per_unit: float = Field(default=29.0, gt=0)
    segments: list[SegmentConfig]

    @model_validator(mode="after")
    def check_shares(self) -> "CapacityConfig":
        total = sum(s.demand_share for s in self.segments)
        if abs(total - 1.0) > 1e-6:
            raise ValidationError(
                "Segment demand shares must add up to 1",
                {"demand_share": total},
            )
        return self

    def get_segment(self, segment: ServiceSegment | str) -> SegmentConfig:
        for seg in self.segments:
            if seg.segment == ServiceSegment(segment):
                return seg
        raise ValidationError(f"Segment '{segment}' is not configured", {"segment": str(segment)})

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> "CapacityConfig":
        settings = settings or get_settings()
        segments = [
            SegmentConfig(
                segment=segment,
                duration_hours=settings.SEGMENT_DURATION_HOURS[segment.value],
                availability=settings.SEGMENT_AVAILABILITY[segment.value],
                demand_share=settings.SEGMENT_DEMAND_SHARES[segment.value],
            )
            for segment in ServiceSegment
        ]
        return cls(
            rejection_ratio=settings.REJECTION_RATIO,
            segment_efficiency=settings.SEGMENT_EFFICIENCY,
            available_hours=settings.AVAILABLE_HOURS,
            monthly_services_per_unit=settings.MONTHLY_SERVICES_PER_UNIT,
            segments=segments,
        )


class SimulationConstraints(BaseModel):
    """Constraints enforced by the scenario simulator."""

    max_budget_per_channel_fraction: float = Field(default=0.4, gt=0, le=1)
    min_roi_percent: float = 200.0
    max_timeframe_days: int | None = Field(default=None, ge=1)

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None, **overrides: Any) -> "SimulationConstraints":
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "max_budget_per_channel_fraction": settings.MAX_BUDGET_PER_CHANNEL_FRACTION,
            "min_roi_percent": settings.MIN_ROI_PERCENT,
        }
        values.update(overrides)
        return cls(**values)


class DataSource(BaseModel):
    """Configuration for an input required by a pattern."""

    source_type: DataSourceType
    is_required: bool = True
    data_key: str = Field(..., description="Keyword argument under which the pattern receives the data")
    meta: dict[str, Any] = Field(default_factory=dict)


class PatternConfig(BaseModel):
    """Configuration for a pattern."""

    pattern_name: str
    version: str = "1.0"
    description: str | None = None

    # Inputs required for analysis
    data_sources: list[DataSource]

    # Pattern-specific settings
    settings: dict[str, Any] = Field(default_factory=dict)

    # Additional metadata
    meta: dict[str, Any] = Field(default_factory=dict)
