"""Tests for the bundled tariff catalog and system presets."""

from datetime import datetime

import pytest

from energy_sim.presets import (
    calculate_arbitrage_spread,
    calculate_off_peak_hours,
    get_battery_presets,
    get_solar_presets,
    get_tariff_by_id,
    get_tariff_presets,
)
from energy_sim.tariffs import find_overlapping_periods, match_rate_period


@pytest.fixture(autouse=True)
def no_tariffs_override(monkeypatch):
    monkeypatch.delenv("ENERGY_SIM_TARIFFS_PATH", raising=False)


def test_bundled_catalog():
    tariffs = get_tariff_presets()
    ids = [t.id for t in tariffs]

    assert len(tariffs) == 8
    assert ids[0] == "octopus-intelligent-go"
    assert "good-energy-solar" in ids
    assert len(set(ids)) == len(ids)


def test_bundled_tariffs_have_no_overlaps():
    for tariff in get_tariff_presets():
        assert find_overlapping_periods(tariff.rate_periods) == [], tariff.id


def test_intelligent_go():
    tariff = get_tariff_by_id("octopus-intelligent-go")
    assert tariff.provider == "Octopus Energy"
    assert tariff.export_rate == 0.15
    assert tariff.standing_charge == 55
    assert [p.rate_per_kwh for p in tariff.rate_periods] == [0.07, 0.27]
    assert calculate_arbitrage_spread(tariff) == pytest.approx(0.20)
    assert calculate_off_peak_hours(tariff) == pytest.approx(6.0)


def test_flux_has_three_rates():
    tariff = get_tariff_by_id("octopus-flux")
    assert calculate_arbitrage_spread(tariff) == pytest.approx(0.223)
    assert calculate_off_peak_hours(tariff) == pytest.approx(3.0)
    assert match_rate_period(datetime(2024, 1, 1, 17, 0), tariff.rate_periods).id == "peak"
    assert match_rate_period(datetime(2024, 1, 1, 23, 0), tariff.rate_periods).id == "evening"


def test_single_rate_tariff():
    """A 00:00-00:00 window matches nothing, so every time falls back to it."""
    tariff = get_tariff_by_id("good-energy-solar")
    assert calculate_arbitrage_spread(tariff) == 0
    assert calculate_off_peak_hours(tariff) == pytest.approx(24.0)
    assert match_rate_period(datetime(2024, 1, 1, 9, 0), tariff.rate_periods).id == "standard"


def test_unknown_tariff():
    assert get_tariff_by_id("no-such-tariff") is None


def test_tariffs_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "tariffs.yaml"
    path.write_text(
        "tariffs:\n"
        "  - id: custom\n"
        "    name: Custom\n"
        "    export_rate: 0.05\n"
        "    rates:\n"
        '      - {id: flat, name: Flat, start: "00:00", end: "00:00", rate: 0.25}\n'
    )
    monkeypatch.setenv("ENERGY_SIM_TARIFFS_PATH", str(path))

    assert [t.id for t in get_tariff_presets()] == ["custom"]
    assert get_tariff_by_id("custom").export_rate == 0.05


def test_battery_presets():
    presets = get_battery_presets()
    assert [b.capacity for b in presets] == [5, 10, 13.5, 20]
    assert [b.cost for b in presets] == [3500, 6000, 8000, 12000]
    assert all(b.roundtrip_efficiency == 90 for b in presets)


def test_solar_presets():
    presets = get_solar_presets()
    assert [s.capacity for s in presets] == [3.0, 4.0, 6.0, 8.0]
    assert presets[-1].panel_efficiency == 22
    assert presets[-1].system_efficiency == 90
    assert all(s.orientation == "south" for s in presets)
