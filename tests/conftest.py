from datetime import datetime, timedelta

import pytest

from energy_sim.config import Settings
from energy_sim.models import BatteryConfig, ConsumptionInterval, RatePeriod


def make_series(start: datetime, values: list[float], minutes: int = 30) -> list[ConsumptionInterval]:
    """Contiguous intervals of the given length starting at start."""
    step = timedelta(minutes=minutes)
    return [
        ConsumptionInterval(consumption=v, start=start + i * step, end=start + (i + 1) * step)
        for i, v in enumerate(values)
    ]


@pytest.fixture
def two_rate_periods():
    return [
        RatePeriod(id="cheap", name="Cheap", start_time="23:30", end_time="05:30", rate_per_kwh=0.07),
        RatePeriod(id="standard", name="Standard", start_time="05:30", end_time="23:30", rate_per_kwh=0.30),
    ]


@pytest.fixture
def flat_day():
    """48 half-hour readings of 0.5 kWh on 1 Jan 2024."""
    return make_series(datetime(2024, 1, 1), [0.5] * 48)


@pytest.fixture
def battery_config():
    return BatteryConfig(
        capacity=10,
        charge_rate=5,
        discharge_rate=5,
        roundtrip_efficiency=90,
        minimum_soc=10,
        maximum_soc=100,
        cost=6000,
    )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def series_factory():
    return make_series
