"""Rate period matching, tariff loading and cost calculation."""

import logging
from datetime import datetime
from itertools import combinations
from pathlib import Path

import yaml

from .analysis.aggregation import bucket_key
from .config import annualise
from .models import AggregatedBucket, ConsumptionInterval, CostPoint, RateBreakdown, RatePeriod, Tariff

logger = logging.getLogger(__name__)


def _parse_clock_time(value, label: str) -> str:
    """Normalise a rate period boundary to zero-padded HH:MM.

    Unquoted times like 23:30 load from YAML as base-60 ints (1410), so
    minutes past midnight are accepted too.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value < 24 * 60:
            return f"{value // 60:02d}:{value % 60:02d}"
    elif isinstance(value, str):
        hour, sep, minute = value.strip().partition(":")
        if sep and hour.isdigit() and minute.isdigit() and len(minute) == 2:
            if int(hour) < 24 and int(minute) < 60:
                return f"{int(hour):02d}:{minute}"
    raise ValueError(f"Invalid {label} time {value!r}, expected HH:MM")


def _rate_period_from_dict(r: dict, index: int) -> RatePeriod:
    return RatePeriod(
        id=str(r.get("id") or f"rate-{index}"),
        name=r.get("name", f"Rate {index + 1}"),
        start_time=_parse_clock_time(r["start"], "start"),
        end_time=_parse_clock_time(r["end"], "end"),
        rate_per_kwh=float(r["rate"]),
        color=r.get("color"),
    )


def tariffs_from_data(data: dict) -> list[Tariff]:
    """Build tariffs from parsed YAML data."""
    tariffs = []
    for t in data.get("tariffs", []):
        rate_periods = [_rate_period_from_dict(r, i) for i, r in enumerate(t.get("rates", []))]
        overlaps = find_overlapping_periods(rate_periods)
        if overlaps:
            logger.warning(
                "Tariff %s has overlapping rate periods %s; the first listed period wins",
                t.get("id", t.get("name")),
                overlaps,
            )
        tariffs.append(
            Tariff(
                id=t.get("id") or t["name"].lower().replace(" ", "-"),
                provider=t.get("provider", ""),
                name=t["name"],
                rate_periods=rate_periods,
                export_rate=float(t.get("export_rate", 0.0)),
                standing_charge=float(t.get("standing_charge", 0.0)),
                notes=t.get("notes", ""),
            )
        )
    return tariffs


def load_tariffs_from_yaml(config_path: Path) -> list[Tariff]:
    """Load tariff definitions from a YAML file."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return tariffs_from_data(data)


def load_rate_periods_from_yaml(config_path: Path) -> list[RatePeriod]:
    """Load a bare list of rate periods.

    Accepts either a top-level ``rates`` list or a tariffs file, in which
    case the first tariff's periods are returned.
    """
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if "rates" in data:
        periods = [_rate_period_from_dict(r, i) for i, r in enumerate(data["rates"])]
    else:
        tariffs = tariffs_from_data(data)
        if not tariffs:
            raise ValueError(f"No rate periods found in {config_path}")
        periods = tariffs[0].rate_periods

    if not periods:
        raise ValueError(f"No rate periods found in {config_path}")
    return periods


def is_time_in_range(check_time: str, start: str, end: str) -> bool:
    """Check if an HH:MM time falls within a range (handles overnight ranges)."""
    if start > end:
        # Overnight range (e.g., 23:30 to 05:30)
        return check_time >= start or check_time < end
    return start <= check_time < end


def match_rate_period(timestamp: datetime, rate_periods: list[RatePeriod]) -> RatePeriod:
    """Get the rate period covering a timestamp.

    Periods are checked in order and the first match wins. If nothing
    matches, the first period is returned.
    """
    check_time = timestamp.strftime("%H:%M")
    for period in rate_periods:
        if is_time_in_range(check_time, period.start_time, period.end_time):
            return period
    return rate_periods[0]


def find_cheapest_period(rate_periods: list[RatePeriod]) -> RatePeriod:
    """The first period carrying the lowest rate."""
    return min(rate_periods, key=lambda p: p.rate_per_kwh)


def find_overlapping_periods(rate_periods: list[RatePeriod]) -> list[tuple[str, str]]:
    """Return id pairs of periods that share at least one minute of the day."""
    minutes = [f"{m // 60:02d}:{m % 60:02d}" for m in range(24 * 60)]
    overlaps = []
    for a, b in combinations(rate_periods, 2):
        for t in minutes:
            if is_time_in_range(t, a.start_time, a.end_time) and is_time_in_range(
                t, b.start_time, b.end_time
            ):
                overlaps.append((a.id, b.id))
                break
    return overlaps


def calculate_cost(interval: ConsumptionInterval, rate_periods: list[RatePeriod]) -> CostPoint:
    """Cost of one interval at its matched rate."""
    rate_period = match_rate_period(interval.start, rate_periods)
    return CostPoint(
        consumption=interval.consumption,
        cost=interval.consumption * rate_period.rate_per_kwh,
        rate_period=rate_period,
        timestamp=interval.start,
    )


def calculate_all_costs(
    series: list[ConsumptionInterval], rate_periods: list[RatePeriod]
) -> list[CostPoint]:
    return [calculate_cost(interval, rate_periods) for interval in series]


def calculate_total_cost(series: list[ConsumptionInterval], rate_periods: list[RatePeriod]) -> float:
    """Total cost of the series under the given rate periods."""
    total = 0.0
    for interval in series:
        total += interval.consumption * match_rate_period(interval.start, rate_periods).rate_per_kwh
    return total


def calculate_cost_breakdown(
    series: list[ConsumptionInterval], rate_periods: list[RatePeriod]
) -> dict[str, RateBreakdown]:
    """Consumption and cost per rate period id."""
    breakdown = {period.id: RateBreakdown(rate_period=period) for period in rate_periods}
    for interval in series:
        period = match_rate_period(interval.start, rate_periods)
        entry = breakdown[period.id]
        entry.consumption += interval.consumption
        entry.cost += interval.consumption * period.rate_per_kwh
    return breakdown


def calculate_annual_cost(series: list[ConsumptionInterval], rate_periods: list[RatePeriod]) -> float:
    """Extrapolate the series cost to a full year."""
    return annualise(calculate_total_cost(series, rate_periods), len(series))


def calculate_average_cost_per_kwh(
    series: list[ConsumptionInterval], rate_periods: list[RatePeriod]
) -> float:
    """Effective rate paid per kWh."""
    total_consumption = sum(interval.consumption for interval in series)
    if total_consumption <= 0:
        return 0.0
    return calculate_total_cost(series, rate_periods) / total_consumption


def find_most_expensive_periods(
    series: list[ConsumptionInterval], rate_periods: list[RatePeriod], limit: int = 10
) -> list[CostPoint]:
    costs = calculate_all_costs(series, rate_periods)
    return sorted(costs, key=lambda c: c.cost, reverse=True)[:limit]


def calculate_shifting_savings(
    series: list[ConsumptionInterval],
    rate_periods: list[RatePeriod],
    shiftable_fraction: float = 0.3,
) -> dict:
    """Savings if a fraction of consumption moved from the dearest to the cheapest rate."""
    current_cost = calculate_total_cost(series, rate_periods)
    total_consumption = sum(interval.consumption for interval in series)
    rates = [p.rate_per_kwh for p in rate_periods]

    savings = total_consumption * shiftable_fraction * (max(rates) - min(rates))

    return {
        "current_cost": current_cost,
        "potential_cost": current_cost - savings,
        "savings": savings,
        "savings_percentage": savings / current_cost * 100 if current_cost > 0 else 0.0,
    }


def add_costs_to_buckets(
    buckets: list[AggregatedBucket],
    series: list[ConsumptionInterval],
    rate_periods: list[RatePeriod],
    frame: str,
) -> list[AggregatedBucket]:
    """Return copies of the buckets with cost totals filled in."""
    grouped: dict[str, list[ConsumptionInterval]] = {}
    for interval in series:
        grouped.setdefault(bucket_key(interval.start, frame), []).append(interval)

    result = []
    for bucket in buckets:
        intervals = grouped.get(bucket.period, [])
        breakdown = calculate_cost_breakdown(intervals, rate_periods)
        result.append(
            AggregatedBucket(
                period=bucket.period,
                label=bucket.label,
                total_consumption=bucket.total_consumption,
                average_consumption=bucket.average_consumption,
                peak_consumption=bucket.peak_consumption,
                peak_time=bucket.peak_time,
                data_point_count=bucket.data_point_count,
                total_cost=sum(entry.cost for entry in breakdown.values()),
                cost_by_rate={rate_id: entry.cost for rate_id, entry in breakdown.items()},
            )
        )
    return result
