"""Solar generation estimate and solar-only savings simulation.

The generation model is a simple UK irradiance approximation: a seasonal
amplitude from monthly peak sun hours, a parabolic daily curve centred on
13:00, and fixed multipliers for orientation and tilt.
"""

import logging
import math
from datetime import datetime

from ..config import Settings, annualise, dataset_days, payback_years
from ..models import ConsumptionInterval, RatePeriod, SolarAnalysis, SolarConfig, SolarGeneration
from ..tariffs import match_rate_period

logger = logging.getLogger(__name__)

# Peak sun hours per month in the UK (Jan-Dec)
PEAK_SUN_HOURS = [1.0, 1.5, 2.5, 4.0, 5.0, 5.5, 5.0, 4.5, 3.5, 2.5, 1.5, 1.0]
PEAK_MONTH_HOURS = max(PEAK_SUN_HOURS)

DAYLIGHT_START_HOUR = 6
DAYLIGHT_END_HOUR = 20
SOLAR_NOON_HOUR = 13
HALF_DAY_HOURS = 7

ORIENTATION_FACTORS = {
    "south": 1.0,
    "south-east": 0.9,
    "south-west": 0.9,
    "east": 0.7,
    "west": 0.7,
    "north": 0.5,
}

OPTIMAL_TILT = 35  # degrees, UK
REFERENCE_PANEL_EFFICIENCY = 20  # percent

# Typical UK yield, kWh per kW installed per day (annual average)
DAILY_YIELD_PER_KW = 3.5


def estimate_generation(timestamp: datetime, config: SolarConfig, scaling_factor: float = 1.0) -> float:
    """Average generation in kW for the interval starting at timestamp."""
    hour = timestamp.hour
    if not DAYLIGHT_START_HOUR <= hour <= DAYLIGHT_END_HOUR:
        return 0.0

    seasonal_factor = PEAK_SUN_HOURS[timestamp.month - 1] / PEAK_MONTH_HOURS
    hours_from_noon = abs(SOLAR_NOON_HOUR - hour)
    elevation_factor = max(0.0, 1 - (hours_from_noon / HALF_DAY_HOURS) ** 2)
    orientation_factor = ORIENTATION_FACTORS.get(config.orientation, 1.0)
    tilt_factor = 1 - abs(config.tilt - OPTIMAL_TILT) / 100

    generation = (
        config.capacity
        * seasonal_factor
        * elevation_factor
        * orientation_factor
        * tilt_factor
        * (config.panel_efficiency / REFERENCE_PANEL_EFFICIENCY)
        * (config.system_efficiency / 100)
        * scaling_factor
    )
    return max(0.0, generation)


def calculate_scaling_factor(series: list[ConsumptionInterval], config: SolarConfig) -> float:
    """Factor that makes the annualised estimate match predicted_annual_output.

    Returns 1.0 when no prediction is configured or the unscaled estimate is zero.
    """
    if not config.predicted_annual_output or not series:
        return 1.0

    estimated_total = 0.0
    for interval in series:
        estimated_total += estimate_generation(interval.start, config) * interval.duration_hours

    if estimated_total == 0:
        return 1.0

    annualised_estimate = estimated_total / dataset_days(len(series)) * 365
    return config.predicted_annual_output / annualised_estimate


def system_cost(config: SolarConfig, settings: Settings) -> float:
    """Configured cost, or the per-kW default."""
    return config.cost or config.capacity * settings.solar_cost_per_kw


def simulate_solar(
    series: list[ConsumptionInterval],
    config: SolarConfig,
    rate_periods: list[RatePeriod],
    export_rate: float | None = None,
    settings: Settings | None = None,
) -> SolarAnalysis:
    """Simulate a solar-only system against the consumption series."""
    settings = settings or Settings()
    if export_rate is None:
        export_rate = config.export_rate if config.export_rate is not None else settings.export_rate

    scaling_factor = calculate_scaling_factor(series, config)

    generations = []
    total_generation = 0.0
    total_exported = 0.0
    total_self_consumed = 0.0
    export_earnings = 0.0
    import_savings = 0.0

    for interval in series:
        hours = interval.duration_hours
        rate = match_rate_period(interval.start, rate_periods)

        generation_kw = estimate_generation(interval.start, config, scaling_factor)
        generation_kwh = generation_kw * hours

        consumed = min(generation_kwh, interval.consumption)
        exported = max(0.0, generation_kwh - interval.consumption)

        total_generation += generation_kwh
        total_exported += exported
        total_self_consumed += consumed
        export_earnings += exported * export_rate
        import_savings += consumed * rate.rate_per_kwh

        generations.append(
            SolarGeneration(
                timestamp=interval.start,
                generation=generation_kw,
                consumed=consumed / hours,
                exported=exported / hours,
            )
        )

    total_savings = export_earnings + import_savings
    annual_estimate = annualise(total_savings, len(series))

    logger.debug(
        "Solar %.1f kW: %.1f kWh generated over %d intervals (scale %.3f)",
        config.capacity,
        total_generation,
        len(series),
        scaling_factor,
    )

    return SolarAnalysis(
        solar_config=config,
        total_generation=total_generation,
        total_exported=total_exported,
        total_self_consumed=total_self_consumed,
        export_earnings=export_earnings,
        import_savings=import_savings,
        total_savings=total_savings,
        daily_average_savings=total_savings / dataset_days(len(series)) if series else 0.0,
        annual_estimate=annual_estimate,
        payback_period=payback_years(system_cost(config, settings), annual_estimate),
        self_consumption_rate=total_self_consumed / total_generation * 100 if total_generation > 0 else 0.0,
        generations=generations,
    )


def recommend_solar_size(series: list[ConsumptionInterval]) -> dict:
    """Suggest a system size covering roughly a year's consumption.

    Returns a dict with 'recommended_capacity' (kW) and 'reasoning'.
    """
    if not series:
        return {"recommended_capacity": 4.0, "reasoning": "No data available for analysis"}

    total_consumption = sum(interval.consumption for interval in series)
    avg_daily = total_consumption / dataset_days(len(series))

    capacity = math.ceil(avg_daily / DAILY_YIELD_PER_KW * 10) / 10
    capacity = math.floor(capacity * 2 + 0.5) / 2
    capacity = min(max(capacity, 3.0), 10.0)

    daily_generation = capacity * DAILY_YIELD_PER_KW
    coverage = daily_generation / avg_daily * 100 if avg_daily > 0 else 0.0

    return {
        "recommended_capacity": capacity,
        "reasoning": (
            f"Based on your average daily consumption of {avg_daily:.1f} kWh, a {capacity} kW "
            f"solar system would generate approximately {daily_generation:.1f} kWh per day "
            f"(annual average), covering around {coverage:.0f}% of your consumption."
        ),
    }
