"""Data models for consumption readings, tariffs and simulation results."""

from dataclasses import dataclass, field
from datetime import date, datetime

DEFAULT_INTERVAL_HOURS = 0.5

ORIENTATIONS = ("south", "south-east", "south-west", "east", "west", "north")
BATTERY_ACTIONS = ("charging", "discharging", "idle")


@dataclass(frozen=True)
class ConsumptionInterval:
    """A single metered consumption reading."""

    consumption: float  # kWh
    start: datetime
    end: datetime

    @property
    def duration_hours(self) -> float:
        """Interval length in hours, 0.5 when it can't be derived."""
        try:
            hours = (self.end - self.start).total_seconds() / 3600
        except (TypeError, AttributeError):
            return DEFAULT_INTERVAL_HOURS
        return hours if hours > 0 else DEFAULT_INTERVAL_HOURS


@dataclass(frozen=True)
class RatePeriod:
    """A time-of-day window within a tariff."""

    id: str
    name: str
    start_time: str  # HH:MM format
    end_time: str  # HH:MM format
    rate_per_kwh: float
    color: str | None = None

    @property
    def wraps_midnight(self) -> bool:
        return self.start_time > self.end_time


@dataclass(frozen=True)
class Tariff:
    """A supplier tariff with import rate periods and an export rate."""

    id: str
    provider: str
    name: str
    rate_periods: list[RatePeriod]
    export_rate: float
    standing_charge: float = 0.0  # pence per day
    notes: str = ""


@dataclass(frozen=True)
class BatteryConfig:
    """Operating envelope of a home battery."""

    capacity: float  # kWh
    charge_rate: float  # kW
    discharge_rate: float  # kW
    roundtrip_efficiency: float  # percent
    minimum_soc: float = 10.0  # percent of capacity
    maximum_soc: float = 100.0  # percent of capacity
    cost: float | None = None
    name: str | None = None
    description: str = ""

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"Battery capacity must be positive, got {self.capacity}")
        if self.charge_rate <= 0 or self.discharge_rate <= 0:
            raise ValueError("Battery charge and discharge rates must be positive")
        if not 0 < self.roundtrip_efficiency <= 100:
            raise ValueError(
                f"Roundtrip efficiency must be in (0, 100], got {self.roundtrip_efficiency}"
            )
        if not 0 <= self.minimum_soc <= self.maximum_soc <= 100:
            raise ValueError(
                f"Invalid SoC bounds {self.minimum_soc}-{self.maximum_soc}%"
            )

    @property
    def min_soc_kwh(self) -> float:
        return self.minimum_soc / 100 * self.capacity

    @property
    def max_soc_kwh(self) -> float:
        return self.maximum_soc / 100 * self.capacity

    @property
    def efficiency_factor(self) -> float:
        return self.roundtrip_efficiency / 100


@dataclass(frozen=True)
class SolarConfig:
    """A rooftop PV system."""

    capacity: float  # kW peak
    panel_efficiency: float = 20.0  # percent
    system_efficiency: float = 85.0  # percent
    orientation: str = "south"
    tilt: float = 35.0  # degrees
    predicted_annual_output: float | None = None  # kWh/year override
    export_rate: float | None = None
    cost: float | None = None
    name: str | None = None
    description: str = ""

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"Solar capacity must be positive, got {self.capacity}")
        if self.orientation not in ORIENTATIONS:
            raise ValueError(
                f"Unknown orientation '{self.orientation}', expected one of {', '.join(ORIENTATIONS)}"
            )
        if not 0 <= self.tilt <= 90:
            raise ValueError(f"Tilt must be between 0 and 90 degrees, got {self.tilt}")


@dataclass
class BatteryState:
    """Battery snapshot at the end of an interval."""

    timestamp: datetime
    state_of_charge: float  # kWh
    soc_percentage: float
    action: str  # 'charging', 'discharging' or 'idle'
    power_flow: float  # kW, positive = charging, negative = discharging


@dataclass
class SolarGeneration:
    """Solar output split for an interval (all kW averages)."""

    timestamp: datetime
    generation: float
    consumed: float
    exported: float
    battery_charged: float = 0.0


@dataclass
class WinterCoverage:
    """Share of daily consumption met by the battery."""

    average_daily_coverage: float  # percent
    minimum_coverage: float  # percent
    worst_day: date | None


@dataclass
class BatteryAnalysis:
    """Result of a battery-only simulation."""

    battery_config: BatteryConfig
    total_savings: float
    daily_average_savings: float
    annual_estimate: float
    payback_period: float  # years, inf if never
    self_consumption_rate: float  # percent of consumption from battery
    peak_shaving_benefit: float  # kWh
    total_charged: float
    total_discharged: float
    states: list[BatteryState]
    savings_by_rate: dict[str, float]
    winter_coverage: WinterCoverage


@dataclass
class SolarAnalysis:
    """Result of a solar-only simulation."""

    solar_config: SolarConfig
    total_generation: float
    total_exported: float
    total_self_consumed: float
    export_earnings: float
    import_savings: float
    total_savings: float
    daily_average_savings: float
    annual_estimate: float
    payback_period: float
    self_consumption_rate: float  # percent of generation used on site
    generations: list[SolarGeneration]


@dataclass
class CombinedAnalysis:
    """Result of a solar plus battery simulation."""

    solar_config: SolarConfig
    battery_config: BatteryConfig
    total_generation: float
    total_exported: float
    total_self_consumed: float
    total_battery_charged: float
    total_battery_discharged: float
    total_grid_charged: float
    export_earnings: float
    import_savings: float
    total_savings: float
    daily_average_savings: float
    annual_estimate: float
    payback_period: float
    self_sufficiency_rate: float  # percent of consumption met on site
    generations: list[SolarGeneration]
    battery_states: list[BatteryState]


@dataclass
class AggregatedBucket:
    """Consumption summary for one calendar bucket."""

    period: str  # sortable key, e.g. '2024-01' for months
    label: str
    total_consumption: float
    average_consumption: float
    peak_consumption: float
    peak_time: datetime
    data_point_count: int
    total_cost: float | None = None
    cost_by_rate: dict[str, float] | None = None


@dataclass
class ConsumptionStats:
    """Dataset-wide consumption statistics."""

    total: float
    average: float
    min: float
    max: float
    median: float
    standard_deviation: float
    data_points: int
    start: datetime
    end: datetime


@dataclass
class CostPoint:
    """Cost of a single interval at its matched rate."""

    consumption: float
    cost: float
    rate_period: RatePeriod
    timestamp: datetime


@dataclass
class RateBreakdown:
    """Consumption and cost accumulated under one rate period."""

    rate_period: RatePeriod
    consumption: float = 0.0
    cost: float = 0.0


@dataclass
class ParseResult:
    """Outcome of parsing a consumption CSV."""

    readings: list[ConsumptionInterval]
    errors: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.readings)

    @property
    def start(self) -> datetime | None:
        return self.readings[0].start if self.readings else None

    @property
    def end(self) -> datetime | None:
        return self.readings[-1].end if self.readings else None
