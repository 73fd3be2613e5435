"""Tests for combined solar and battery dispatch."""

from datetime import datetime

import pytest

from energy_sim.models import SolarConfig
from energy_sim.simulation.combined import simulate_solar_with_battery


@pytest.fixture
def solar_config():
    return SolarConfig(capacity=4)


def test_night_grid_charge(flat_day, solar_config, battery_config, two_rate_periods, settings):
    result = simulate_solar_with_battery(flat_day, solar_config, battery_config, two_rate_periods, settings=settings)

    first = result.battery_states[0]
    assert first.action == "charging"
    assert first.state_of_charge == pytest.approx(3.25)
    assert first.power_flow == pytest.approx(5.0)
    assert result.total_grid_charged > 0


def test_summer_surplus_charges_battery_then_exports(
    series_factory, solar_config, battery_config, two_rate_periods, settings
):
    series = series_factory(datetime(2024, 6, 15, 12, 0), [0.2] * 4)
    result = simulate_solar_with_battery(series, solar_config, battery_config, two_rate_periods, settings=settings)

    first = result.generations[0]
    assert first.battery_charged > 0
    assert result.total_battery_charged > 0
    assert result.battery_states[0].action == "charging"
    assert result.total_self_consumed == pytest.approx(0.8)
    assert result.total_generation == pytest.approx(
        result.total_self_consumed + result.total_battery_charged + result.total_exported
    )


def test_battery_covers_evening_demand(series_factory, solar_config, battery_config, two_rate_periods, settings):
    # Midday surplus then a dark evening
    series = series_factory(datetime(2024, 6, 15, 12, 0), [0.1] * 4 + [0.0] * 12 + [0.8] * 4)
    result = simulate_solar_with_battery(series, solar_config, battery_config, two_rate_periods, settings=settings)

    evening = result.battery_states[-1]
    assert evening.action == "discharging"
    assert result.total_battery_discharged > 0
    assert result.import_savings == pytest.approx(
        (result.total_self_consumed + result.total_battery_discharged) * 0.30
    )


def test_state_of_charge_within_bounds(series_factory, solar_config, battery_config, two_rate_periods, settings):
    values = [0.2 + (i % 5) * 0.4 for i in range(48 * 4)]
    series = series_factory(datetime(2024, 5, 1), values)
    result = simulate_solar_with_battery(series, solar_config, battery_config, two_rate_periods, settings=settings)

    for state in result.battery_states:
        assert battery_config.min_soc_kwh <= state.state_of_charge <= battery_config.max_soc_kwh
    assert 0 <= result.self_sufficiency_rate <= 100


def test_self_sufficiency_counts_direct_and_battery(
    series_factory, solar_config, battery_config, two_rate_periods, settings
):
    series = series_factory(datetime(2024, 6, 15), [0.4] * 48)
    result = simulate_solar_with_battery(series, solar_config, battery_config, two_rate_periods, settings=settings)

    on_site = result.total_self_consumed + result.total_battery_discharged
    assert result.self_sufficiency_rate == pytest.approx(on_site / (0.4 * 48) * 100)


def test_payback_includes_both_systems(flat_day, solar_config, battery_config, two_rate_periods, settings):
    result = simulate_solar_with_battery(flat_day, solar_config, battery_config, two_rate_periods, settings=settings)
    assert result.payback_period == pytest.approx((4800 + 6000) / result.annual_estimate)


def test_empty_series(solar_config, battery_config, two_rate_periods, settings):
    result = simulate_solar_with_battery([], solar_config, battery_config, two_rate_periods, settings=settings)
    assert result.total_savings == 0
    assert result.self_sufficiency_rate == 0
    assert result.payback_period == float("inf")
