"""Battery arbitrage simulation.

The battery charges during the tariff's cheapest rate period and discharges
to cover demand whenever the current rate is above that cheapest rate.
"""

import logging
import math
from datetime import date

from ..config import Settings, annualise, dataset_days, payback_years
from ..models import (
    BatteryAnalysis,
    BatteryConfig,
    BatteryState,
    ConsumptionInterval,
    RatePeriod,
    WinterCoverage,
)
from ..tariffs import find_cheapest_period, match_rate_period

logger = logging.getLogger(__name__)

COMMON_BATTERY_SIZES = [5, 10, 13.5, 20]  # kWh
EXPENSIVE_COVERAGE_TARGET = 0.8


def battery_cost(config: BatteryConfig, settings: Settings) -> float:
    """Configured cost, or the per-kWh default."""
    return config.cost or config.capacity * settings.battery_cost_per_kwh


def soc_percentage(state_of_charge: float, config: BatteryConfig) -> float:
    return state_of_charge / config.capacity * 100


def calculate_winter_coverage(
    series: list[ConsumptionInterval], discharged: list[float]
) -> WinterCoverage:
    """Per-day share of consumption met by battery discharge.

    discharged holds the kWh delivered by the battery in each interval.
    """
    if not series:
        return WinterCoverage(average_daily_coverage=0.0, minimum_coverage=0.0, worst_day=None)

    days: dict[date, list[float]] = {}
    for interval, kwh in zip(series, discharged):
        totals = days.setdefault(interval.start.date(), [0.0, 0.0])
        totals[0] += interval.consumption
        totals[1] += kwh

    coverages = {
        day: (provided / consumed * 100 if consumed > 0 else 0.0)
        for day, (consumed, provided) in days.items()
    }
    worst_day = min(coverages, key=lambda d: (coverages[d], d))

    return WinterCoverage(
        average_daily_coverage=sum(coverages.values()) / len(coverages),
        minimum_coverage=coverages[worst_day],
        worst_day=worst_day,
    )


def simulate_battery(
    series: list[ConsumptionInterval],
    config: BatteryConfig,
    rate_periods: list[RatePeriod],
    settings: Settings | None = None,
) -> BatteryAnalysis:
    """Walk the series once, charging cheap and discharging dear."""
    settings = settings or Settings()

    min_soc = config.min_soc_kwh
    max_soc = config.max_soc_kwh
    cheap_period = find_cheapest_period(rate_periods)
    cheap_rate = cheap_period.rate_per_kwh

    states = []
    discharged_per_interval = []
    savings_by_rate = {period.id: 0.0 for period in rate_periods}
    total_savings = 0.0
    total_charged = 0.0
    total_discharged = 0.0
    state_of_charge = min_soc

    for interval in series:
        hours = interval.duration_hours
        rate = match_rate_period(interval.start, rate_periods)

        action = "idle"
        power_flow = 0.0
        interval_savings = 0.0
        discharged = 0.0

        if rate.id == cheap_period.id and state_of_charge < max_soc:
            # Grid charging is capped by the demand seen this interval
            charge = min(max_soc - state_of_charge, config.charge_rate * hours, interval.consumption)
            if charge > 0:
                state_of_charge += charge * config.efficiency_factor
                action = "charging"
                power_flow = charge / hours
                interval_savings -= charge * rate.rate_per_kwh
                total_charged += charge
        elif rate.rate_per_kwh > cheap_rate and state_of_charge > min_soc:
            discharge = min(
                state_of_charge - min_soc, config.discharge_rate * hours, interval.consumption
            )
            if discharge > 0:
                state_of_charge -= discharge
                action = "discharging"
                power_flow = -discharge / hours
                interval_savings += discharge * (rate.rate_per_kwh - cheap_rate)
                discharged = discharge
                total_discharged += discharge

        state_of_charge = max(min_soc, min(max_soc, state_of_charge))

        states.append(
            BatteryState(
                timestamp=interval.start,
                state_of_charge=state_of_charge,
                soc_percentage=soc_percentage(state_of_charge, config),
                action=action,
                power_flow=power_flow,
            )
        )
        discharged_per_interval.append(discharged)
        total_savings += interval_savings
        savings_by_rate[rate.id] = savings_by_rate.get(rate.id, 0.0) + interval_savings

    annual_estimate = annualise(total_savings, len(series))
    total_consumption = sum(interval.consumption for interval in series)
    peak_consumption = max((interval.consumption for interval in series), default=0.0)

    logger.debug(
        "Battery %.1f kWh: charged %.2f kWh, discharged %.2f kWh, saved %.2f",
        config.capacity,
        total_charged,
        total_discharged,
        total_savings,
    )

    return BatteryAnalysis(
        battery_config=config,
        total_savings=total_savings,
        daily_average_savings=total_savings / dataset_days(len(series)) if series else 0.0,
        annual_estimate=annual_estimate,
        payback_period=payback_years(battery_cost(config, settings), annual_estimate),
        self_consumption_rate=total_discharged / total_consumption * 100 if total_consumption > 0 else 0.0,
        peak_shaving_benefit=peak_consumption * settings.peak_shaving_factor,
        total_charged=total_charged,
        total_discharged=total_discharged,
        states=states,
        savings_by_rate=savings_by_rate,
        winter_coverage=calculate_winter_coverage(series, discharged_per_interval),
    )


def compare_battery_configs(
    series: list[ConsumptionInterval],
    configs: list[BatteryConfig],
    rate_periods: list[RatePeriod],
    settings: Settings | None = None,
) -> list[BatteryAnalysis]:
    settings = settings or Settings()
    return [simulate_battery(series, config, rate_periods, settings) for config in configs]


def recommend_battery_size(series: list[ConsumptionInterval], rate_periods: list[RatePeriod]) -> dict:
    """Suggest a common battery size covering most expensive-rate demand.

    Returns a dict with 'recommended_capacity' (kWh) and 'reasoning'.
    """
    if not series:
        return {"recommended_capacity": 10, "reasoning": "No data available for analysis"}

    cheap_period = find_cheapest_period(rate_periods)
    expensive_consumption = sum(
        interval.consumption
        for interval in series
        if match_rate_period(interval.start, rate_periods).id != cheap_period.id
    )
    avg_daily_expensive = expensive_consumption / dataset_days(len(series))

    target = math.ceil(avg_daily_expensive * EXPENSIVE_COVERAGE_TARGET)
    closest = COMMON_BATTERY_SIZES[0]
    for size in COMMON_BATTERY_SIZES[1:]:
        if abs(size - target) < abs(closest - target):
            closest = size

    coverage = closest / avg_daily_expensive * 100 if avg_daily_expensive > 0 else 100.0

    return {
        "recommended_capacity": closest,
        "reasoning": (
            f"Based on your consumption patterns, you use approximately {avg_daily_expensive:.1f} kWh "
            f"per day during expensive rate periods. A {closest} kWh battery can cover {coverage:.0f}% "
            f"of this consumption, maximizing savings while keeping costs reasonable."
        ),
    }
