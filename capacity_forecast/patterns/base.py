from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from capacity_forecast.config import EngineSettings, get_settings
from capacity_forecast.exceptions import (
    InsufficientDataError,
    MissingDataError,
    PatternError,
    ValidationError as EngineValidationError,
)
from capacity_forecast.models import BasePattern, ConfidenceLabel, DataSource, DataSourceType, PatternConfig

T = TypeVar("T", bound=BasePattern)


class Pattern(ABC, Generic[T]):
    """Base class for all engine patterns."""

    # Class attributes to be defined by subclasses
    name: str = ""
    description: str = ""
    version: str = "1.0"
    required_primitives: list[str] = []
    output_model: type[T]  # Will be defined by subclasses

    config: PatternConfig | None = None

    def __init__(self, config: PatternConfig | None = None, settings: EngineSettings | None = None) -> None:
        """
        Initialize the pattern.

        Args:
            config: Optional pattern configuration. If not provided, default config will be used.
            settings: Engine settings; defaults to the cached environment settings.
        """
        if not self.name:
            self.name = self.__class__.__name__
        if not self.description and self.__doc__:
            self.description = self.__doc__.strip().split("\n")[0]

        self.config = config or self.get_default_config()
        self.settings = settings or get_settings()

    @classmethod
    def get_default_config(cls) -> PatternConfig:
        """
        Get the default configuration for this pattern.
        Subclasses should override this method to provide a specific configuration.

        Returns:
            Default PatternConfig for this pattern
        """
        return PatternConfig(
            pattern_name=cls.name or cls.__name__,
            description=cls.description,
            version=cls.version,
            data_sources=[DataSource(source_type=DataSourceType.HISTORICAL_SERIES, is_required=True, data_key="data")],
        )

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Read a pattern-specific setting from the configuration."""
        if self.config:
            return self.config.settings.get(key, default)
        return default

    def get_data_requirements(self) -> list[str]:
        """
        Get the data requirements for this pattern.

        Returns:
            List of keyword arguments required by the pattern
        """
        if self.config:
            return [ds.data_key for ds in self.config.data_sources if ds.is_required]
        return []

    @abstractmethod
    def analyze(self, **kwargs) -> T:
        """
        Execute the pattern and return a standardized output.

        Returns:
            Structured output using the pattern's Pydantic model
        """
        pass

    def validate_output(self, output: dict[str, Any] | T) -> T:
        """
        Validate the pattern output against its output model.

        Raises:
            PatternError: If no output model is defined
            EngineValidationError: If output validation fails
        """
        if not getattr(self, "output_model", None):
            raise PatternError(
                "No output model defined for pattern",
                self.name,
                {"pattern_class": self.__class__.__name__},
            )

        try:
            if isinstance(output, self.output_model):
                return output
            return self.output_model.model_validate(output)
        except PydanticValidationError as e:
            raise EngineValidationError(
                f"Invalid output structure for {self.name}", {"validation_errors": e.errors()}
            ) from e

    def validate_data(self, data: pd.DataFrame, required_columns: list[str]) -> bool:
        """
        Validate that the input DataFrame contains all required columns.

        Raises:
            MissingDataError: If any required column is missing
        """
        missing_columns = [col for col in required_columns if col not in data.columns]
        if missing_columns:
            raise MissingDataError(f"Missing required columns: {missing_columns}", missing_columns)
        return True

    def handle_empty_data(self, error: InsufficientDataError | None = None, **fields: Any) -> T:
        """
        Create a standardized low-confidence output for empty or insufficient data.

        Args:
            error: The error that made the analysis fall back, if any
            **fields: Extra output fields (e.g. a fallback projection)

        Returns:
            Output flagged with an error dict and a low confidence label
        """
        result = {
            "pattern": self.name,
            "version": self.version,
            "confidence_label": ConfidenceLabel.LOW,
            "error": dict(
                message=error.message if error else "Insufficient data for analysis",
                type="data_error",
                **(error.details if error else {}),
            ),
            **fields,
        }
        return self.validate_output(result)

    @classmethod
    def get_info(cls) -> dict[str, Any]:
        """
        Get pattern information.

        Returns:
            Dictionary with pattern metadata including full output schema
        """
        info: dict[str, Any] = {
            "name": cls.name,
            "description": cls.__doc__.strip().split("\n")[0] if cls.__doc__ else "",
            "required_primitives": cls.required_primitives,
        }

        if hasattr(cls, "output_model"):
            try:
                info["output"] = cls.output_model.model_json_schema()
            except Exception as e:
                info["output"] = {"error": f"Could not generate schema: {str(e)}"}
        else:
            info["output"] = None

        return info
