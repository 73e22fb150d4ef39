"""
Capacity Deficit Pattern

Computes segmented deficits, urgency scores and staffing recommendations for a set of zones.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from capacity_forecast.exceptions import InsufficientDataError
from capacity_forecast.models import (
    CapacityConfig,
    CapacityDeficitReport,
    DataSource,
    DataSourceType,
    PatternConfig,
    ZoneCapacityReport,
    ZoneDemandMetric,
)
from capacity_forecast.patterns.base import Pattern
from capacity_forecast.primitives import (
    calculate_deficit_analysis,
    calculate_urgency_score,
    generate_capacity_recommendations,
)
from capacity_forecast.providers import normalize_zone_metrics

logger = logging.getLogger(__name__)


class CapacityDeficitPattern(Pattern[CapacityDeficitReport]):
    """Ranks zones by staffing urgency from their demand and effective capacity."""

    name = "capacity_deficit"
    version = "1.0"
    description = "Segmented capacity deficit, urgency score and recommendations per zone"
    required_primitives = [
        "calculate_deficit_analysis",
        "calculate_urgency_score",
        "generate_capacity_recommendations",
    ]
    output_model: type[CapacityDeficitReport] = CapacityDeficitReport

    @classmethod
    def get_default_config(cls) -> PatternConfig:
        """Get the default configuration for the capacity deficit pattern."""
        return PatternConfig(
            pattern_name=cls.name,
            description=cls.description,
            version=cls.version,
            data_sources=[
                DataSource(source_type=DataSourceType.ZONE_METRICS, is_required=True, data_key="zones"),
            ],
            meta={"segment_shares": "modeling assumption, override through CapacityConfig"},
        )

    def analyze_zone(self, metric: ZoneDemandMetric, config: CapacityConfig) -> ZoneCapacityReport:
        """Deficit, urgency and recommendations for one zone."""
        analysis = calculate_deficit_analysis(metric, config)
        score = calculate_urgency_score(
            analysis.deficit_total,
            metric.average_daily_service_volume,
            metric.active_capacity_units,
            config.rejection_ratio,
        )
        return ZoneCapacityReport(
            zone_id=metric.zone_id,
            deficit_analysis=analysis,
            urgency_score=score,
            is_at_risk=score >= self.settings.URGENCY_RISK_THRESHOLD,
            recommendations=generate_capacity_recommendations(analysis, metric, config),
        )

    def analyze(  # type: ignore
        self,
        zones: Sequence[ZoneDemandMetric | Mapping[str, Any]],
        capacity_config: CapacityConfig | None = None,
    ) -> CapacityDeficitReport:
        """
        Execute the capacity deficit pattern.

        Args:
            zones: Zone metrics, either models or raw records
            capacity_config: Capacity configuration; defaults to the engine settings

        Returns:
            CapacityDeficitReport with zones ordered as given and priority_zones by urgency
        """
        if not zones:
            return self.handle_empty_data(InsufficientDataError("No zones to analyze", required=1, available=0))

        config = capacity_config or CapacityConfig.from_settings(self.settings)
        metrics = [
            zone if isinstance(zone, ZoneDemandMetric) else normalize_zone_metrics([zone])[0] for zone in zones
        ]

        reports = [self.analyze_zone(metric, config) for metric in metrics]
        priority = sorted(
            reports, key=lambda r: (r.urgency_score, r.deficit_analysis.deficit_total), reverse=True
        )
        at_risk = [r.zone_id for r in reports if r.is_at_risk]
        if at_risk:
            logger.info("Zones at risk: %s", ", ".join(at_risk))

        return self.validate_output(
            {
                "pattern": self.name,
                "version": self.version,
                "zones": reports,
                "priority_zones": [r.zone_id for r in priority],
                "total_deficit": sum(r.deficit_analysis.deficit_total for r in reports),
            }
        )
