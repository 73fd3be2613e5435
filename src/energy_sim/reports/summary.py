"""Summaries of costs and simulation results for display or JSON output."""

import math

from ..analysis.aggregation import calculate_statistics
from ..models import (
    BatteryAnalysis,
    CombinedAnalysis,
    ConsumptionInterval,
    RatePeriod,
    SolarAnalysis,
)
from ..tariffs import (
    calculate_annual_cost,
    calculate_average_cost_per_kwh,
    calculate_cost_breakdown,
    calculate_total_cost,
)


def _years(value: float) -> float | None:
    return None if math.isinf(value) else round(value, 1)


def get_cost_summary(series: list[ConsumptionInterval], rate_periods: list[RatePeriod]) -> dict:
    """Cost of the series under a set of rate periods."""
    stats = calculate_statistics(series)
    breakdown = calculate_cost_breakdown(series, rate_periods)
    total_kwh = stats.total if stats else 0.0

    return {
        "period": {
            "start": stats.start.isoformat() if stats else None,
            "end": stats.end.isoformat() if stats else None,
            "intervals": len(series),
        },
        "total_kwh": round(total_kwh, 2),
        "total_cost": round(calculate_total_cost(series, rate_periods), 2),
        "annual_cost": round(calculate_annual_cost(series, rate_periods), 2),
        "average_cost_per_kwh": round(calculate_average_cost_per_kwh(series, rate_periods), 4),
        "by_rate": [
            {
                "id": rate_id,
                "name": entry.rate_period.name,
                "window": f"{entry.rate_period.start_time}-{entry.rate_period.end_time}",
                "rate": entry.rate_period.rate_per_kwh,
                "kwh": round(entry.consumption, 2),
                "cost": round(entry.cost, 2),
                "percent_of_kwh": round(entry.consumption / total_kwh * 100, 1) if total_kwh > 0 else 0,
            }
            for rate_id, entry in breakdown.items()
        ],
    }


def get_battery_summary(analysis: BatteryAnalysis) -> dict:
    config = analysis.battery_config
    coverage = analysis.winter_coverage
    return {
        "battery": {
            "name": config.name,
            "capacity_kwh": config.capacity,
            "charge_rate_kw": config.charge_rate,
            "discharge_rate_kw": config.discharge_rate,
            "roundtrip_efficiency": config.roundtrip_efficiency,
        },
        "total_savings": round(analysis.total_savings, 2),
        "daily_average_savings": round(analysis.daily_average_savings, 2),
        "annual_estimate": round(analysis.annual_estimate, 2),
        "payback_years": _years(analysis.payback_period),
        "self_consumption_percent": round(analysis.self_consumption_rate, 1),
        "peak_shaving_kwh": round(analysis.peak_shaving_benefit, 2),
        "charged_kwh": round(analysis.total_charged, 2),
        "discharged_kwh": round(analysis.total_discharged, 2),
        "savings_by_rate": {k: round(v, 2) for k, v in analysis.savings_by_rate.items()},
        "daily_coverage": {
            "average_percent": round(coverage.average_daily_coverage, 1),
            "minimum_percent": round(coverage.minimum_coverage, 1),
            "worst_day": coverage.worst_day.isoformat() if coverage.worst_day else None,
        },
    }


def get_solar_summary(analysis: SolarAnalysis) -> dict:
    config = analysis.solar_config
    return {
        "solar": {
            "name": config.name,
            "capacity_kw": config.capacity,
            "orientation": config.orientation,
            "tilt": config.tilt,
        },
        "generation_kwh": round(analysis.total_generation, 1),
        "self_consumed_kwh": round(analysis.total_self_consumed, 1),
        "exported_kwh": round(analysis.total_exported, 1),
        "import_savings": round(analysis.import_savings, 2),
        "export_earnings": round(analysis.export_earnings, 2),
        "total_savings": round(analysis.total_savings, 2),
        "annual_estimate": round(analysis.annual_estimate, 2),
        "payback_years": _years(analysis.payback_period),
        "self_consumption_percent": round(analysis.self_consumption_rate, 1),
    }


def get_combined_summary(analysis: CombinedAnalysis) -> dict:
    return {
        "solar_capacity_kw": analysis.solar_config.capacity,
        "battery_capacity_kwh": analysis.battery_config.capacity,
        "generation_kwh": round(analysis.total_generation, 1),
        "self_consumed_kwh": round(analysis.total_self_consumed, 1),
        "battery_charged_kwh": round(analysis.total_battery_charged, 1),
        "battery_discharged_kwh": round(analysis.total_battery_discharged, 1),
        "grid_charged_kwh": round(analysis.total_grid_charged, 1),
        "exported_kwh": round(analysis.total_exported, 1),
        "import_savings": round(analysis.import_savings, 2),
        "export_earnings": round(analysis.export_earnings, 2),
        "total_savings": round(analysis.total_savings, 2),
        "annual_estimate": round(analysis.annual_estimate, 2),
        "payback_years": _years(analysis.payback_period),
        "self_sufficiency_percent": round(analysis.self_sufficiency_rate, 1),
    }


def _payback_text(years: float | None) -> str:
    return f"{years} years" if years is not None else "never"


def format_cost_summary_text(summary: dict) -> str:
    lines = [
        f"Cost Summary: {summary['period']['start']} to {summary['period']['end']}",
        f"- Consumption: {summary['total_kwh']} kWh",
        f"- Cost: £{summary['total_cost']:.2f} (≈ £{summary['annual_cost']:.2f}/year)",
        f"- Effective rate: £{summary['average_cost_per_kwh']:.4f}/kWh",
    ]
    for rate in summary["by_rate"]:
        lines.append(
            f"  - {rate['name']} {rate['window']}: {rate['kwh']} kWh "
            f"({rate['percent_of_kwh']}%), £{rate['cost']:.2f}"
        )
    return "\n".join(lines)


def format_battery_summary_text(summary: dict) -> str:
    battery = summary["battery"]
    coverage = summary["daily_coverage"]
    name = battery["name"] or f"{battery['capacity_kwh']} kWh"
    lines = [
        f"Battery: {name}",
        f"- Savings over dataset: £{summary['total_savings']:.2f}",
        f"- Annual estimate: £{summary['annual_estimate']:.2f}",
        f"- Payback: {_payback_text(summary['payback_years'])}",
        f"- Battery share of consumption: {summary['self_consumption_percent']}%",
        f"- Estimated peak shaving: {summary['peak_shaving_kwh']} kWh",
        f"- Daily coverage: avg {coverage['average_percent']}%, "
        f"worst {coverage['minimum_percent']}% ({coverage['worst_day']})",
    ]
    return "\n".join(lines)


def format_solar_summary_text(summary: dict) -> str:
    solar = summary["solar"]
    lines = [
        f"Solar: {solar['capacity_kw']} kW facing {solar['orientation']} at {solar['tilt']}°",
        f"- Generation: {summary['generation_kwh']} kWh "
        f"({summary['self_consumption_percent']}% used on site)",
        f"- Exported: {summary['exported_kwh']} kWh (£{summary['export_earnings']:.2f})",
        f"- Import savings: £{summary['import_savings']:.2f}",
        f"- Annual estimate: £{summary['annual_estimate']:.2f}",
        f"- Payback: {_payback_text(summary['payback_years'])}",
    ]
    return "\n".join(lines)


def format_combined_summary_text(summary: dict) -> str:
    lines = [
        f"Solar {summary['solar_capacity_kw']} kW + Battery {summary['battery_capacity_kwh']} kWh",
        f"- Generation: {summary['generation_kwh']} kWh, exported {summary['exported_kwh']} kWh",
        f"- Battery: {summary['battery_charged_kwh']} kWh from solar, "
        f"{summary['grid_charged_kwh']} kWh from grid, {summary['battery_discharged_kwh']} kWh delivered",
        f"- Self-sufficiency: {summary['self_sufficiency_percent']}%",
        f"- Annual estimate: £{summary['annual_estimate']:.2f}",
        f"- Payback: {_payback_text(summary['payback_years'])}",
    ]
    return "\n".join(lines)
