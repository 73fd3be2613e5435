"""Runtime settings, overridable from the environment or a .env file."""

import math
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Default system cost heuristics (GBP)
BATTERY_COST_PER_KWH = 500.0
SOLAR_COST_PER_KW = 1200.0

# Export tariff used when neither the call nor the solar config supplies one
DEFAULT_EXPORT_RATE = 0.15

# Rough estimate of peak demand reduction from a battery
PEAK_SHAVING_FACTOR = 0.2

# Annualisation assumes half-hourly data
INTERVALS_PER_DAY = 48


@dataclass(frozen=True)
class Settings:
    """Domain constants used by the simulators."""

    battery_cost_per_kwh: float = BATTERY_COST_PER_KWH
    solar_cost_per_kw: float = SOLAR_COST_PER_KW
    export_rate: float = DEFAULT_EXPORT_RATE
    peak_shaving_factor: float = PEAK_SHAVING_FACTOR
    tariffs_path: Path | None = None


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def load_settings() -> Settings:
    """Build settings from ENERGY_SIM_* environment variables."""
    load_dotenv()
    tariffs_path = os.environ.get("ENERGY_SIM_TARIFFS_PATH")
    return Settings(
        battery_cost_per_kwh=_env_float("ENERGY_SIM_BATTERY_COST_PER_KWH", BATTERY_COST_PER_KWH),
        solar_cost_per_kw=_env_float("ENERGY_SIM_SOLAR_COST_PER_KW", SOLAR_COST_PER_KW),
        export_rate=_env_float("ENERGY_SIM_EXPORT_RATE", DEFAULT_EXPORT_RATE),
        peak_shaving_factor=_env_float("ENERGY_SIM_PEAK_SHAVING_FACTOR", PEAK_SHAVING_FACTOR),
        tariffs_path=Path(tariffs_path) if tariffs_path else None,
    )


def dataset_days(interval_count: int) -> float:
    """Number of days covered by a half-hourly series of this length."""
    return interval_count / INTERVALS_PER_DAY


def annualise(total: float, interval_count: int) -> float:
    """Scale a total over the dataset to a 365-day estimate."""
    if interval_count == 0:
        return 0.0
    return total / dataset_days(interval_count) * 365


def payback_years(cost: float, annual_savings: float) -> float:
    """Years to recover cost, infinite when savings never accrue."""
    return cost / annual_savings if annual_savings > 0 else math.inf
