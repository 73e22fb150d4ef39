from typing import Any, TypeAlias

# Type aliases for common types
ErrorDetails: TypeAlias = dict[str, Any]
InvalidFields: TypeAlias = dict[str, Any]
DataDetails: TypeAlias = dict[str, Any]


class CapacityForecastError(Exception):
    """Base exception for all capacity_forecast errors"""

    def __init__(self, message: str, details: ErrorDetails | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CapacityForecastError):
    """Exception raised when input validation fails"""

    def __init__(self, message: str, invalid_fields: InvalidFields | None = None) -> None:
        details = {"invalid_fields": invalid_fields or {}}
        super().__init__(message, details)
        self.invalid_fields = invalid_fields or {}


class DataError(CapacityForecastError):
    """Exception raised for data-related issues"""

    def __init__(self, message: str, data_details: DataDetails | None = None) -> None:
        details = {"data_details": data_details or {}}
        super().__init__(message, details)
        self.data_details = data_details or {}


class MissingDataError(DataError):
    """Exception raised when required columns or fields are missing"""

    def __init__(self, message: str, missing_fields: list[str]) -> None:
        data_details = {"missing_fields": missing_fields}
        super().__init__(message, data_details)
        self.missing_fields = missing_fields


class InsufficientDataError(DataError):
    """Exception raised when there are not enough samples or periods to analyze.

    Recoverable: patterns answer it with a fallback result labelled as low confidence.
    """

    def __init__(self, message: str, required: int, available: int) -> None:
        data_details = {"required": required, "available": available}
        super().__init__(message, data_details)
        self.required = required
        self.available = available


class DegenerateInputError(DataError):
    """Exception raised when an input makes a ratio meaningless (e.g. a zero actual value)"""

    pass


class CalculationError(CapacityForecastError):
    """Exception raised when a calculation fails"""

    pass


class ConstraintInfeasibleError(CapacityForecastError):
    """Exception raised when no channel satisfies the simulation constraints"""

    def __init__(self, message: str, violations: list[str], details: ErrorDetails | None = None) -> None:
        super().__init__(message, {"violations": violations, **(details or {})})
        self.violations = violations


class UpstreamUnavailableError(CapacityForecastError):
    """Exception raised when an external data provider fails"""

    def __init__(self, message: str, provider: str, details: ErrorDetails | None = None) -> None:
        super().__init__(message, {"provider": provider, **(details or {})})
        self.provider = provider


class PatternError(CapacityForecastError):
    """Exception raised for pattern-specific errors"""

    def __init__(self, message: str, pattern_name: str, details: ErrorDetails | None = None):
        pattern_details = {"pattern_name": pattern_name, **(details or {})}
        super().__init__(message, pattern_details)
        self.pattern_name = pattern_name


class PrimitiveError(CapacityForecastError):
    """Exception raised for primitive-specific errors"""

    def __init__(self, message: str, primitive_name: str, details: ErrorDetails | None = None):
        primitive_details = {"primitive_name": primitive_name, **(details or {})}
        super().__init__(message, primitive_details)
        self.primitive_name = primitive_name
