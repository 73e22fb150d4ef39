"""
Common fixtures for all tests in the capacity_forecast package.
"""

from datetime import date, timedelta

import pandas as pd
import pytest

from capacity_forecast.config import EngineSettings
from capacity_forecast.models import Channel, SimulationParameters, ZoneDemandMetric


@pytest.fixture
def settings():
    """Fixture providing default engine settings independent of the cached instance."""
    return EngineSettings()


@pytest.fixture
def identical_daily_history():
    """Fixture providing 90 identical days (50 services, 300,000 each) ending 2024-03-31."""
    start = date(2024, 1, 2)
    dates = [start + timedelta(days=i) for i in range(90)]
    return pd.DataFrame(
        {
            "date": dates,
            "service_count": [50] * 90,
            "monetary_value": [300_000.0] * 90,
        }
    )


@pytest.fixture
def linear_monthly_series():
    """Fixture providing 12 months of perfectly linear service counts at 6,500 per service."""
    periods = pd.date_range("2023-01-01", periods=12, freq="MS")
    counts = [100 + 10 * i for i in range(12)]
    return pd.DataFrame(
        {
            "period": periods,
            "service_count": counts,
            "monetary_value": [count * 6500.0 for count in counts],
        }
    )


@pytest.fixture
def zone_metrics():
    """Fixture providing zones with different staffing levels."""
    return [
        ZoneDemandMetric(zone_id="north", active_capacity_units=10, average_daily_service_volume=0),
        ZoneDemandMetric(zone_id="center", active_capacity_units=1, average_daily_service_volume=40),
        ZoneDemandMetric(zone_id="south", active_capacity_units=6, average_daily_service_volume=12),
    ]


@pytest.fixture
def simulation_parameters():
    """Fixture providing a three-channel simulation setup."""
    return SimulationParameters(
        budget=100_000,
        timeline_days=90,
        channels=[
            Channel(channel_id="referrals", cost_per_acquisition=1200, monthly_capacity=15, roi_percent=400),
            Channel(channel_id="job_boards", cost_per_acquisition=2500, monthly_capacity=30, roi_percent=250),
            Channel(channel_id="radio", cost_per_acquisition=5000, monthly_capacity=10, roi_percent=120),
        ],
    )
