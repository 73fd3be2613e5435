"""Synthetic half-hourly consumption for households without meter data."""

import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..models import ConsumptionInterval


@dataclass(frozen=True)
class ExampleProfile:
    id: str
    name: str
    description: str
    avg_daily_consumption: float  # kWh


EXAMPLE_PROFILES = [
    ExampleProfile("low", "Low Usage", "1-2 person flat or small home", 8.5),
    ExampleProfile("medium", "Medium Usage", "3-4 person family home", 14.0),
    ExampleProfile("high", "High Usage", "Large home or electric heating", 22.0),
]

# Winter higher, summer lower (Jan-Dec)
SEASONAL_MULTIPLIERS = [1.3, 1.25, 1.15, 1.0, 0.85, 0.75, 0.7, 0.75, 0.85, 1.0, 1.15, 1.25]
WEEKEND_MULTIPLIER = 1.1
MIN_INTERVAL_KWH = 0.1
VARIATION = 0.15


def get_profile(profile_id: str) -> ExampleProfile:
    for profile in EXAMPLE_PROFILES:
        if profile.id == profile_id:
            return profile
    raise ValueError(f"Unknown profile '{profile_id}'")


def time_of_day_multiplier(hour: int) -> float:
    if hour < 6:
        return 0.4  # overnight
    if hour < 9:
        return 1.6  # morning peak
    if hour < 12:
        return 0.9
    if hour < 14:
        return 1.1  # lunch
    if hour < 17:
        return 0.8
    if hour < 22:
        return 1.8  # evening peak
    return 0.7


def generate_example_consumption(
    profile: ExampleProfile,
    start: date | None = None,
    days: int = 365,
    seed: int | None = None,
) -> list[ConsumptionInterval]:
    """Generate half-hourly readings for a profile.

    Starts a year before today unless start is given. Pass a seed for a
    repeatable series.
    """
    rng = random.Random(seed)
    if start is None:
        start = date.today() - timedelta(days=365)

    per_interval = profile.avg_daily_consumption / 48
    readings = []
    for day_offset in range(days):
        current = start + timedelta(days=day_offset)
        seasonal = SEASONAL_MULTIPLIERS[current.month - 1]
        weekend = WEEKEND_MULTIPLIER if current.weekday() >= 5 else 1.0
        midnight = datetime.combine(current, time.min)

        for slot in range(48):
            interval_start = midnight + timedelta(minutes=30 * slot)
            noise = 1 - VARIATION + rng.random() * 2 * VARIATION
            consumption = (
                per_interval * seasonal * weekend * time_of_day_multiplier(interval_start.hour) * noise
            )
            readings.append(
                ConsumptionInterval(
                    consumption=max(MIN_INTERVAL_KWH, consumption),
                    start=interval_start,
                    end=interval_start + timedelta(minutes=30),
                )
            )
    return readings
