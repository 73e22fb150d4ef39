"""
Inbound data boundary.

The engine never performs I/O itself. Callers hand it providers that satisfy the protocols below;
records coming out of them are normalized here, once, into strict engine types. Provider failures
are wrapped in UpstreamUnavailableError and propagated.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Protocol

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from capacity_forecast.config import EngineSettings
from capacity_forecast.exceptions import UpstreamUnavailableError, ValidationError
from capacity_forecast.models import Observation, ZoneDemandMetric

logger = logging.getLogger(__name__)

# Accepted spellings per field, matched case-insensitively
OBSERVATION_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "day", "service_date", "fecha"),
    "service_count": ("service_count", "services", "count", "total_services", "servicios"),
    "monetary_value": ("monetary_value", "value", "gmv", "revenue", "amount"),
}
ZONE_ALIASES: dict[str, tuple[str, ...]] = {
    "zone_id": ("zone_id", "zone", "id", "zona_id"),
    "active_capacity_units": ("active_capacity_units", "active_units", "capacity_units", "custodios_activos"),
    "average_daily_service_volume": ("average_daily_service_volume", "daily_services", "servicios_dia"),
}


class HistoricalSeriesProvider(Protocol):
    """Read-only source of daily service records."""

    def fetch_observations(self, start_date: date, end_date: date) -> Iterable[Mapping[str, Any]]: ...


class ZoneMetricsProvider(Protocol):
    """Read-only source of zone demand/capacity records."""

    def fetch_zone_metrics(self) -> Iterable[Mapping[str, Any]]: ...


class ConfigurationProvider(Protocol):
    """Source of configuration overrides (rejection ratio, durations, channels...)."""

    def fetch_configuration(self) -> Mapping[str, Any]: ...


def _lookup(record: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    lowered = {str(key).lower(): value for key, value in record.items()}
    for alias in aliases:
        if alias in lowered and lowered[alias] is not None:
            return lowered[alias]
    return None


def _as_number(value: Any, field: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Field '{field}' must be numeric", {field: value}) from exc
    return 0.0 if math.isnan(number) else number


def normalize_observations(records: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Normalize raw service records into one validated row per day.

    Keys are matched case-insensitively against known aliases. Missing counts and values default
    to 0, records without a parsable date are dropped, and several records on the same day are
    summed.

    Args:
        records: Raw records from a HistoricalSeriesProvider

    Returns:
        DataFrame with columns date, service_count, monetary_value sorted by date

    Raises:
        ValidationError: If a value is not numeric or is negative
    """
    rows = []
    dropped = 0
    for record in records:
        raw_date = _lookup(record, OBSERVATION_ALIASES["date"])
        parsed = pd.to_datetime(raw_date, errors="coerce") if raw_date is not None else pd.NaT
        if pd.isna(parsed):
            dropped += 1
            continue
        rows.append(
            {
                "date": parsed.date(),
                "service_count": _as_number(_lookup(record, OBSERVATION_ALIASES["service_count"]), "service_count"),
                "monetary_value": _as_number(
                    _lookup(record, OBSERVATION_ALIASES["monetary_value"]), "monetary_value"
                ),
            }
        )

    if dropped:
        logger.warning("Dropped %s records without a valid date", dropped)
    if not rows:
        return pd.DataFrame(columns=["date", "service_count", "monetary_value"])

    daily = pd.DataFrame(rows).groupby("date", as_index=False).sum().sort_values("date")

    try:
        observations = [
            Observation(
                date=row.date,
                service_count=int(round(row.service_count)),
                monetary_value=row.monetary_value,
            )
            for row in daily.itertuples(index=False)
        ]
    except PydanticValidationError as e:
        raise ValidationError("Invalid observation records", {"validation_errors": e.errors()}) from e

    return pd.DataFrame([obs.model_dump() for obs in observations])


def normalize_zone_metrics(records: Iterable[Mapping[str, Any]]) -> list[ZoneDemandMetric]:
    """
    Normalize raw zone records into ZoneDemandMetric objects.

    Missing or NaN capacity and volume default to 0; records without a zone id are rejected.

    Raises:
        ValidationError: If a record has no zone id or holds invalid values
    """
    metrics = []
    for record in records:
        zone_id = _lookup(record, ZONE_ALIASES["zone_id"])
        if zone_id is None:
            raise ValidationError("Zone record without an id", {"record": dict(record)})
        try:
            metrics.append(
                ZoneDemandMetric(
                    zone_id=str(zone_id),
                    active_capacity_units=_as_number(
                        _lookup(record, ZONE_ALIASES["active_capacity_units"]), "active_capacity_units"
                    ),
                    average_daily_service_volume=_as_number(
                        _lookup(record, ZONE_ALIASES["average_daily_service_volume"]),
                        "average_daily_service_volume",
                    ),
                )
            )
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid zone record '{zone_id}'", {"validation_errors": e.errors()}
            ) from e
    return metrics


def fetch_observations(provider: HistoricalSeriesProvider, start_date: date, end_date: date) -> pd.DataFrame:
    """
    Fetch and normalize observations for a date range.

    Raises:
        UpstreamUnavailableError: If the provider fails
    """
    try:
        records = list(provider.fetch_observations(start_date, end_date))
    except Exception as e:
        raise UpstreamUnavailableError(
            f"Historical series provider failed: {str(e)}",
            type(provider).__name__,
            {"start_date": str(start_date), "end_date": str(end_date)},
        ) from e
    return normalize_observations(records)


def fetch_zone_metrics(provider: ZoneMetricsProvider) -> list[ZoneDemandMetric]:
    """
    Fetch and normalize zone metrics.

    Raises:
        UpstreamUnavailableError: If the provider fails
    """
    try:
        records = list(provider.fetch_zone_metrics())
    except Exception as e:
        raise UpstreamUnavailableError(
            f"Zone metrics provider failed: {str(e)}", type(provider).__name__
        ) from e
    return normalize_zone_metrics(records)


def load_settings(provider: ConfigurationProvider) -> EngineSettings:
    """
    Build engine settings with overrides from a configuration store.

    Keys are matched case-insensitively against the EngineSettings fields; unknown keys are ignored.

    Raises:
        UpstreamUnavailableError: If the provider fails
        ValidationError: If an override is invalid
    """
    try:
        overrides = dict(provider.fetch_configuration())
    except Exception as e:
        raise UpstreamUnavailableError(
            f"Configuration provider failed: {str(e)}", type(provider).__name__
        ) from e

    fields = set(EngineSettings.model_fields)
    values = {str(key).upper(): value for key, value in overrides.items() if str(key).upper() in fields}
    try:
        return EngineSettings(**values)
    except PydanticValidationError as e:
        raise ValidationError("Invalid configuration overrides", {"validation_errors": e.errors()}) from e
