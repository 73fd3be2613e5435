"""Tests for the battery arbitrage simulator."""

from datetime import date, datetime

import pytest

from energy_sim.collectors.example_profiles import generate_example_consumption, get_profile
from energy_sim.config import Settings
from energy_sim.models import BatteryConfig
from energy_sim.simulation.battery import (
    battery_cost,
    calculate_winter_coverage,
    compare_battery_configs,
    recommend_battery_size,
    simulate_battery,
)


def test_flat_day_scenario(flat_day, battery_config, two_rate_periods, settings):
    """Charge overnight at 0.5 kWh per slot, then discharge through the day."""
    result = simulate_battery(flat_day, battery_config, two_rate_periods, settings)

    assert result.total_charged == pytest.approx(6.0)
    assert result.total_discharged == pytest.approx(4.95)
    assert result.total_savings == pytest.approx(4.95 * 0.23 - 6.0 * 0.07)
    assert result.savings_by_rate["cheap"] == pytest.approx(-0.42)
    assert result.savings_by_rate["standard"] == pytest.approx(1.1385)
    assert result.self_consumption_rate == pytest.approx(20.625)
    assert result.peak_shaving_benefit == pytest.approx(0.1)
    assert result.annual_estimate == pytest.approx(result.total_savings * 365)
    assert result.daily_average_savings == pytest.approx(result.total_savings)
    assert result.payback_period == pytest.approx(6000 / result.annual_estimate)


def test_states_track_every_interval(flat_day, battery_config, two_rate_periods, settings):
    result = simulate_battery(flat_day, battery_config, two_rate_periods, settings)

    assert len(result.states) == len(flat_day)
    first = result.states[0]
    assert first.action == "charging"
    assert first.state_of_charge == pytest.approx(1.45)
    assert first.power_flow == pytest.approx(1.0)

    morning = result.states[11]  # 05:30, first standard slot
    assert morning.action == "discharging"
    assert morning.power_flow == pytest.approx(-1.0)

    assert result.states[-1].action == "charging"  # 23:30 is cheap


def test_soc_stays_within_bounds(series_factory, battery_config, two_rate_periods, settings):
    values = [4.0 if i % 3 else 0.2 for i in range(48 * 3)]
    series = series_factory(datetime(2024, 6, 1), values)
    result = simulate_battery(series, battery_config, two_rate_periods, settings)

    for state in result.states:
        assert battery_config.min_soc_kwh <= state.state_of_charge <= battery_config.max_soc_kwh
        assert state.action in ("charging", "discharging", "idle")


def test_charging_never_exceeds_demand(series_factory, battery_config, two_rate_periods, settings):
    series = series_factory(datetime(2024, 1, 1), [0.1] * 4)
    result = simulate_battery(series, battery_config, two_rate_periods, settings)
    assert result.total_charged == pytest.approx(0.4)


def test_zero_minimum_soc_is_honoured(series_factory, two_rate_periods, settings):
    config = BatteryConfig(
        capacity=5, charge_rate=3, discharge_rate=3, roundtrip_efficiency=100, minimum_soc=0
    )
    series = series_factory(datetime(2024, 1, 1, 12, 0), [1.0])
    result = simulate_battery(series, config, two_rate_periods, settings)

    assert result.states[0].state_of_charge == 0
    assert result.states[0].action == "idle"


def test_empty_series(battery_config, two_rate_periods, settings):
    result = simulate_battery([], battery_config, two_rate_periods, settings)
    assert result.total_savings == 0
    assert result.annual_estimate == 0
    assert result.payback_period == float("inf")
    assert result.states == []
    assert result.winter_coverage.worst_day is None


def test_peak_shaving_factor_from_settings(flat_day, battery_config, two_rate_periods):
    result = simulate_battery(flat_day, battery_config, two_rate_periods, Settings(peak_shaving_factor=0.5))
    assert result.peak_shaving_benefit == pytest.approx(0.25)


def test_battery_cost_defaults_to_per_kwh_estimate(settings):
    config = BatteryConfig(capacity=8, charge_rate=3, discharge_rate=3, roundtrip_efficiency=90)
    assert battery_cost(config, settings) == 4000


def test_winter_coverage(series_factory):
    series = series_factory(datetime(2024, 1, 1), [1.0] * 96)
    discharged = [0.5] * 48 + [0.25] * 48
    coverage = calculate_winter_coverage(series, discharged)

    assert coverage.average_daily_coverage == pytest.approx(37.5)
    assert coverage.minimum_coverage == pytest.approx(25.0)
    assert coverage.worst_day == date(2024, 1, 2)


def test_compare_battery_configs(flat_day, battery_config, two_rate_periods, settings):
    small = BatteryConfig(capacity=2, charge_rate=1, discharge_rate=1, roundtrip_efficiency=90)
    results = compare_battery_configs(flat_day, [small, battery_config], two_rate_periods, settings)

    assert [r.battery_config.capacity for r in results] == [2, 10]
    assert results[1].total_savings > results[0].total_savings


def test_recommend_battery_size(flat_day, two_rate_periods):
    """18 kWh of daily standard-rate use targets 15 kWh, closest common size 13.5."""
    recommendation = recommend_battery_size(flat_day, two_rate_periods)
    assert recommendation["recommended_capacity"] == 13.5
    assert "18.0 kWh" in recommendation["reasoning"]


def test_recommend_battery_size_without_data(two_rate_periods):
    assert recommend_battery_size([], two_rate_periods)["recommended_capacity"] == 10


def test_discharge_never_exceeds_available_energy(series_factory, battery_config, two_rate_periods, settings):
    values = [0.3 + (i % 9) * 0.35 for i in range(48 * 2)]
    series = series_factory(datetime(2024, 2, 1), values)
    result = simulate_battery(series, battery_config, two_rate_periods, settings)

    prior = battery_config.min_soc_kwh
    for state in result.states:
        if state.action == "discharging":
            delivered = prior - state.state_of_charge
            assert delivered <= min(battery_config.discharge_rate * 0.5, prior - battery_config.min_soc_kwh) + 1e-9
        prior = state.state_of_charge


def test_simulation_is_repeatable(flat_day, battery_config, two_rate_periods, settings):
    first = simulate_battery(flat_day, battery_config, two_rate_periods, settings)
    second = simulate_battery(flat_day, battery_config, two_rate_periods, settings)
    assert first == second


def test_week_of_realistic_data(battery_config, two_rate_periods, settings):
    series = generate_example_consumption(get_profile("medium"), start=date(2024, 1, 8), days=7, seed=11)
    result = simulate_battery(series, battery_config, two_rate_periods, settings)

    assert result.annual_estimate == pytest.approx(result.total_savings / (len(series) / 48) * 365)
    assert result.payback_period == pytest.approx(6000 / result.annual_estimate)
    assert result.total_savings > 0


def test_default_settings_ignore_environment(flat_day, battery_config, two_rate_periods, monkeypatch):
    monkeypatch.setenv("ENERGY_SIM_PEAK_SHAVING_FACTOR", "0.5")
    result = simulate_battery(flat_day, battery_config, two_rate_periods)
    assert result.peak_shaving_benefit == pytest.approx(0.1)
