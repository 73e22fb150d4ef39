"""
Common models used across patterns.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel as PydanticBase, ConfigDict, Field

from capacity_forecast.models.enums import ConfidenceLabel


class BaseModel(PydanticBase):
    """Base model for all models"""

    model_config = ConfigDict(use_enum_values=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert the model to a dictionary."""
        return self.model_dump(mode="json")


class Observation(BaseModel):
    """One calendar day of aggregated service records"""

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    date: date
    service_count: int = Field(ge=0)
    monetary_value: float = Field(ge=0)


class BasePattern(BaseModel):
    """Base model for all pattern outputs"""

    pattern: str
    version: str = "1.0"
    analysis_date: date = Field(default_factory=date.today)
    evaluation_time: datetime = Field(default_factory=datetime.now)
    # Set when the output is a fallback; always low confidence in that case
    confidence_label: ConfidenceLabel = ConfidenceLabel.MEDIUM
    # Error information if pattern analysis fails
    error: dict[str, Any] | None = None
