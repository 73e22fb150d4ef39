"""
Fixtures specific to unit tests.
"""

from datetime import date, timedelta

import pandas as pd
import pytest

from capacity_forecast.models import Weekday, WeekdayAverage, WeekdayPattern


@pytest.fixture
def flat_weekday_pattern():
    """Fixture providing a high-confidence pattern worth 70,000 on every weekday."""
    return WeekdayPattern(
        averages=[
            WeekdayAverage(weekday=weekday, average_count=10, average_value=70_000, samples=13)
            for weekday in Weekday
        ],
        confidence=0.85,
        samples_analyzed=91,
    )


@pytest.fixture
def june_month_to_date():
    """Fixture providing 1,000,000 of month-to-date value over the first 10 days of June 2024."""
    dates = [date(2024, 6, 1) + timedelta(days=i) for i in range(10)]
    return pd.DataFrame(
        {
            "date": dates,
            "service_count": [15] * 10,
            "monetary_value": [100_000.0] * 10,
        }
    )


@pytest.fixture
def weekday_only_history():
    """Fixture providing eight weeks of Monday-Friday observations only."""
    start = date(2024, 3, 4)  # Monday
    dates = [start + timedelta(days=i) for i in range(56) if (start + timedelta(days=i)).weekday() < 5]
    return pd.DataFrame(
        {
            "date": dates,
            "service_count": [40] * len(dates),
            "monetary_value": [260_000.0] * len(dates),
        }
    )
