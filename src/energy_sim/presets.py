"""Reference tariffs and typical battery and solar systems."""

from importlib import resources
from pathlib import Path

import yaml

from .config import Settings, load_settings
from .models import BatteryConfig, SolarConfig, Tariff
from .tariffs import load_tariffs_from_yaml, tariffs_from_data


def get_tariff_presets(
    config_path: Path | None = None, settings: Settings | None = None
) -> list[Tariff]:
    """Load the tariff catalog.

    Uses config_path, then the settings' tariffs_path (ENERGY_SIM_TARIFFS_PATH
    when settings are not given), then the bundled catalog.
    """
    path = config_path or (settings or load_settings()).tariffs_path
    if path:
        return load_tariffs_from_yaml(path)

    text = resources.files("energy_sim").joinpath("data").joinpath("tariffs.yaml").read_text()
    return tariffs_from_data(yaml.safe_load(text))


def get_tariff_by_id(
    tariff_id: str, config_path: Path | None = None, settings: Settings | None = None
) -> Tariff | None:
    for tariff in get_tariff_presets(config_path, settings):
        if tariff.id == tariff_id:
            return tariff
    return None


def calculate_arbitrage_spread(tariff: Tariff) -> float:
    """Difference between the dearest and cheapest import rate."""
    rates = [p.rate_per_kwh for p in tariff.rate_periods]
    return max(rates) - min(rates)


def _hours(time_str: str) -> float:
    hour, minute = time_str.split(":")
    return int(hour) + int(minute) / 60


def calculate_off_peak_hours(tariff: Tariff) -> float:
    """Hours per day charged at the cheapest rate."""
    min_rate = min(p.rate_per_kwh for p in tariff.rate_periods)
    total = 0.0
    for period in tariff.rate_periods:
        if period.rate_per_kwh != min_rate:
            continue
        start = _hours(period.start_time)
        end = _hours(period.end_time)
        if end <= start:
            end += 24
        total += end - start
    return total


def get_battery_presets() -> list[BatteryConfig]:
    return [
        BatteryConfig(
            name="Small (5 kWh)",
            capacity=5,
            charge_rate=3,
            discharge_rate=3,
            roundtrip_efficiency=90,
            cost=3500,
            description="Suitable for small homes or apartments",
        ),
        BatteryConfig(
            name="Medium (10 kWh)",
            capacity=10,
            charge_rate=5,
            discharge_rate=5,
            roundtrip_efficiency=90,
            cost=6000,
            description="Good for average homes",
        ),
        BatteryConfig(
            name="Large (13.5 kWh - Powerwall 2)",
            capacity=13.5,
            charge_rate=5,
            discharge_rate=5,
            roundtrip_efficiency=90,
            cost=8000,
            description="Tesla Powerwall 2 equivalent, suitable for larger homes",
        ),
        BatteryConfig(
            name="Extra Large (20 kWh)",
            capacity=20,
            charge_rate=7,
            discharge_rate=7,
            roundtrip_efficiency=90,
            cost=12000,
            description="For large homes with high consumption",
        ),
    ]


def get_solar_presets() -> list[SolarConfig]:
    return [
        SolarConfig(
            name="Small System (3 kW)",
            capacity=3.0,
            cost=3600,
            description="Suitable for small homes, 8-10 panels",
        ),
        SolarConfig(
            name="Medium System (4 kW)",
            capacity=4.0,
            cost=4800,
            description="Good for average homes, 10-12 panels",
        ),
        SolarConfig(
            name="Large System (6 kW)",
            capacity=6.0,
            cost=7200,
            description="For larger homes, 15-18 panels",
        ),
        SolarConfig(
            name="Premium System (8 kW)",
            capacity=8.0,
            panel_efficiency=22,
            system_efficiency=90,
            cost=10400,
            description="High-efficiency system for maximum generation",
        ),
    ]
