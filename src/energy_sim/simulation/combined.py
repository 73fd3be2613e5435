"""Combined solar and battery dispatch.

Each interval allocates energy in a fixed order:

1. Solar covers demand directly.
2. Surplus solar charges the battery.
3. Outside the cheapest rate period the battery covers remaining demand.
4. Inside the cheapest rate period an otherwise idle battery charges from the grid.
5. Whatever solar is left is exported.
"""

import logging

from ..config import Settings, annualise, dataset_days, payback_years
from ..models import (
    BatteryConfig,
    BatteryState,
    CombinedAnalysis,
    ConsumptionInterval,
    RatePeriod,
    SolarConfig,
    SolarGeneration,
)
from ..tariffs import find_cheapest_period, match_rate_period
from .battery import battery_cost, soc_percentage
from .solar import calculate_scaling_factor, estimate_generation, system_cost

logger = logging.getLogger(__name__)


def simulate_solar_with_battery(
    series: list[ConsumptionInterval],
    solar_config: SolarConfig,
    battery_config: BatteryConfig,
    rate_periods: list[RatePeriod],
    export_rate: float | None = None,
    settings: Settings | None = None,
) -> CombinedAnalysis:
    """Simulate solar generation and battery storage together."""
    settings = settings or Settings()
    if export_rate is None:
        export_rate = (
            solar_config.export_rate if solar_config.export_rate is not None else settings.export_rate
        )

    min_soc = battery_config.min_soc_kwh
    max_soc = battery_config.max_soc_kwh
    efficiency = battery_config.efficiency_factor
    cheap_period = find_cheapest_period(rate_periods)
    scaling_factor = calculate_scaling_factor(series, solar_config)

    generations = []
    battery_states = []
    totals = {
        "generation": 0.0,
        "exported": 0.0,
        "self_consumed": 0.0,
        "battery_charged": 0.0,
        "battery_discharged": 0.0,
        "grid_charged": 0.0,
    }
    export_earnings = 0.0
    import_savings = 0.0
    state_of_charge = min_soc

    for interval in series:
        hours = interval.duration_hours
        rate = match_rate_period(interval.start, rate_periods)
        is_cheap = rate.id == cheap_period.id

        generation_kw = estimate_generation(interval.start, solar_config, scaling_factor)
        generation_kwh = generation_kw * hours

        action = "idle"
        power_flow = 0.0
        solar_charged = 0.0
        discharged = 0.0

        direct_use = min(generation_kwh, interval.consumption)
        available_solar = generation_kwh - direct_use
        remaining_demand = interval.consumption - direct_use

        if available_solar > 0 and state_of_charge < max_soc:
            solar_charged = min(
                max_soc - state_of_charge, battery_config.charge_rate * hours, available_solar
            )
            state_of_charge += solar_charged * efficiency
            available_solar -= solar_charged
            action = "charging"
            power_flow = solar_charged / hours

        if remaining_demand > 0 and state_of_charge > min_soc and not is_cheap:
            discharged = min(
                state_of_charge - min_soc, battery_config.discharge_rate * hours, remaining_demand
            )
            state_of_charge -= discharged
            remaining_demand -= discharged
            action = "discharging"
            power_flow = -discharged / hours

        if is_cheap and state_of_charge < max_soc and action == "idle":
            grid_charge = min(max_soc - state_of_charge, battery_config.charge_rate * hours)
            state_of_charge += grid_charge * efficiency
            totals["grid_charged"] += grid_charge
            action = "charging"
            power_flow = grid_charge / hours

        exported = available_solar
        state_of_charge = max(min_soc, min(max_soc, state_of_charge))

        totals["generation"] += generation_kwh
        totals["exported"] += exported
        totals["self_consumed"] += direct_use
        totals["battery_charged"] += solar_charged
        totals["battery_discharged"] += discharged

        export_earnings += exported * export_rate
        import_savings += (direct_use + discharged) * rate.rate_per_kwh

        generations.append(
            SolarGeneration(
                timestamp=interval.start,
                generation=generation_kw,
                consumed=(direct_use + discharged) / hours,
                exported=exported / hours,
                battery_charged=solar_charged / hours,
            )
        )
        battery_states.append(
            BatteryState(
                timestamp=interval.start,
                state_of_charge=state_of_charge,
                soc_percentage=soc_percentage(state_of_charge, battery_config),
                action=action,
                power_flow=power_flow,
            )
        )

    total_savings = export_earnings + import_savings
    annual_estimate = annualise(total_savings, len(series))
    cost = system_cost(solar_config, settings) + battery_cost(battery_config, settings)
    total_consumption = sum(interval.consumption for interval in series)
    on_site = totals["self_consumed"] + totals["battery_discharged"]

    logger.debug(
        "Solar %.1f kW + battery %.1f kWh: %.1f kWh generated, %.1f kWh exported",
        solar_config.capacity,
        battery_config.capacity,
        totals["generation"],
        totals["exported"],
    )

    return CombinedAnalysis(
        solar_config=solar_config,
        battery_config=battery_config,
        total_generation=totals["generation"],
        total_exported=totals["exported"],
        total_self_consumed=totals["self_consumed"],
        total_battery_charged=totals["battery_charged"],
        total_battery_discharged=totals["battery_discharged"],
        total_grid_charged=totals["grid_charged"],
        export_earnings=export_earnings,
        import_savings=import_savings,
        total_savings=total_savings,
        daily_average_savings=total_savings / dataset_days(len(series)) if series else 0.0,
        annual_estimate=annual_estimate,
        payback_period=payback_years(cost, annual_estimate),
        self_sufficiency_rate=on_site / total_consumption * 100 if total_consumption > 0 else 0.0,
        generations=generations,
        battery_states=battery_states,
    )
