import math
from pathlib import Path

import pytest

from energy_sim.config import (
    BATTERY_COST_PER_KWH,
    DEFAULT_EXPORT_RATE,
    annualise,
    dataset_days,
    load_settings,
    payback_years,
)

ENV_VARS = (
    "ENERGY_SIM_BATTERY_COST_PER_KWH",
    "ENERGY_SIM_SOLAR_COST_PER_KW",
    "ENERGY_SIM_EXPORT_RATE",
    "ENERGY_SIM_PEAK_SHAVING_FACTOR",
    "ENERGY_SIM_TARIFFS_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()
    assert settings.battery_cost_per_kwh == BATTERY_COST_PER_KWH
    assert settings.export_rate == DEFAULT_EXPORT_RATE
    assert settings.peak_shaving_factor == 0.2
    assert settings.tariffs_path is None


def test_environment_overrides(clean_env):
    clean_env.setenv("ENERGY_SIM_EXPORT_RATE", "0.12")
    clean_env.setenv("ENERGY_SIM_SOLAR_COST_PER_KW", "1500")
    clean_env.setenv("ENERGY_SIM_TARIFFS_PATH", "/tmp/tariffs.yaml")

    settings = load_settings()
    assert settings.export_rate == 0.12
    assert settings.solar_cost_per_kw == 1500
    assert settings.tariffs_path == Path("/tmp/tariffs.yaml")


def test_blank_value_uses_default(clean_env):
    clean_env.setenv("ENERGY_SIM_PEAK_SHAVING_FACTOR", "  ")
    assert load_settings().peak_shaving_factor == 0.2


def test_invalid_number_names_the_variable(clean_env):
    clean_env.setenv("ENERGY_SIM_BATTERY_COST_PER_KWH", "cheap")
    with pytest.raises(ValueError, match="ENERGY_SIM_BATTERY_COST_PER_KWH"):
        load_settings()


def test_annualise():
    assert dataset_days(96) == 2
    assert annualise(10.0, 96) == pytest.approx(1825.0)
    assert annualise(10.0, 0) == 0


def test_payback_years():
    assert payback_years(6000, 1200) == 5
    assert math.isinf(payback_years(6000, 0))
    assert math.isinf(payback_years(6000, -10))
