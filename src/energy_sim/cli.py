"""Command-line interface for tariff, battery and solar projections."""

import csv
import json
import logging
from datetime import date
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import presets
from .analysis import aggregation
from .collectors import consumption_csv, example_profiles
from .config import Settings, load_settings
from .models import BatteryConfig, ConsumptionInterval, RatePeriod, SolarConfig, Tariff, ORIENTATIONS
from .reports import summary
from .simulation.battery import recommend_battery_size, simulate_battery
from .simulation.combined import simulate_solar_with_battery
from .simulation.solar import recommend_solar_size, simulate_solar
from .tariffs import add_costs_to_buckets, load_rate_periods_from_yaml

DEFAULT_TARIFF = "octopus-intelligent-go"

# Failures reading a tariff or rates YAML file
TARIFF_FILE_ERRORS = (OSError, yaml.YAMLError, ValueError, KeyError)

console = Console()


def load_series(csv_path: str) -> list[ConsumptionInterval]:
    try:
        result = consumption_csv.parse_csv(Path(csv_path))
    except consumption_csv.ConsumptionCsvError as e:
        raise click.ClickException(str(e))
    if result.errors:
        click.echo(f"Skipped {len(result.errors)} invalid rows", err=True)
    return result.readings


def load_catalog(settings: Settings) -> list[Tariff]:
    try:
        return presets.get_tariff_presets(settings=settings)
    except TARIFF_FILE_ERRORS as e:
        raise click.ClickException(f"Could not load tariffs from {settings.tariffs_path}: {e}")


def find_tariff(settings: Settings, tariff_id: str) -> Tariff | None:
    for tariff in load_catalog(settings):
        if tariff.id == tariff_id:
            return tariff
    return None


def resolve_rates(
    settings: Settings, tariff_id: str | None, rates_path: str | None
) -> tuple[list[RatePeriod], float | None]:
    """Rate periods and export rate from a YAML file or a catalog tariff."""
    if rates_path:
        try:
            return load_rate_periods_from_yaml(Path(rates_path)), None
        except TARIFF_FILE_ERRORS as e:
            raise click.ClickException(f"Invalid rates file: {e}")

    tariff = find_tariff(settings, tariff_id or DEFAULT_TARIFF)
    if tariff is None:
        raise click.ClickException(f"Unknown tariff '{tariff_id}'. See 'energy-sim tariffs list'.")
    return tariff.rate_periods, tariff.export_rate


def output(data: dict, as_json: bool, formatter) -> None:
    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        # Names come from user files, so don't interpret them as markup
        console.print(formatter(data), markup=False)


def rates_options(f):
    f = click.option("--rates", "rates_path", type=click.Path(exists=True), help="YAML file of rate periods")(f)
    f = click.option("--tariff", "tariff_id", help=f"Catalog tariff id (default: {DEFAULT_TARIFF})")(f)
    return f


def battery_options(f):
    f = click.option("--battery-cost", type=float, help="Battery cost (default: capacity x per-kWh cost)")(f)
    f = click.option("--max-soc", default=100.0, show_default=True, help="Maximum state of charge %")(f)
    f = click.option("--min-soc", default=10.0, show_default=True, help="Minimum state of charge %")(f)
    f = click.option("--efficiency", default=90.0, show_default=True, help="Roundtrip efficiency %")(f)
    f = click.option("--discharge-rate", default=5.0, show_default=True, help="Max discharge power (kW)")(f)
    f = click.option("--charge-rate", default=5.0, show_default=True, help="Max charge power (kW)")(f)
    f = click.option("--battery-capacity", default=10.0, show_default=True, help="Battery capacity (kWh)")(f)
    return f


def solar_options(f):
    f = click.option("--solar-cost", type=float, help="Solar cost (default: capacity x per-kW cost)")(f)
    f = click.option("--export-rate", type=float, help="Export payment per kWh (default: tariff's)")(f)
    f = click.option("--annual-output", type=float, help="Predicted annual generation (kWh) to scale to")(f)
    f = click.option("--tilt", default=35.0, show_default=True, help="Panel tilt in degrees")(f)
    f = click.option(
        "--orientation", type=click.Choice(ORIENTATIONS), default="south", show_default=True
    )(f)
    f = click.option("--system-efficiency", default=85.0, show_default=True, help="System efficiency %")(f)
    f = click.option("--panel-efficiency", default=20.0, show_default=True, help="Panel efficiency %")(f)
    f = click.option("--solar-capacity", default=4.0, show_default=True, help="Peak capacity (kW)")(f)
    return f


def build_battery(opts: dict) -> BatteryConfig:
    try:
        return BatteryConfig(
            capacity=opts["battery_capacity"],
            charge_rate=opts["charge_rate"],
            discharge_rate=opts["discharge_rate"],
            roundtrip_efficiency=opts["efficiency"],
            minimum_soc=opts["min_soc"],
            maximum_soc=opts["max_soc"],
            cost=opts["battery_cost"],
        )
    except ValueError as e:
        raise click.ClickException(str(e))


def build_solar(opts: dict) -> SolarConfig:
    try:
        return SolarConfig(
            capacity=opts["solar_capacity"],
            panel_efficiency=opts["panel_efficiency"],
            system_efficiency=opts["system_efficiency"],
            orientation=opts["orientation"],
            tilt=opts["tilt"],
            predicted_annual_output=opts["annual_output"],
            export_rate=opts["export_rate"],
            cost=opts["solar_cost"],
        )
    except ValueError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, verbose):
    """Project tariff costs and battery/solar savings from meter data."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    try:
        ctx.obj = load_settings()
    except ValueError as e:
        raise click.ClickException(str(e))


# Tariff commands
@cli.group()
def tariffs():
    """Tariff catalog commands."""
    pass


@tariffs.command("list")
@click.pass_obj
def tariffs_list(settings):
    """List catalog tariffs."""
    table = Table(title="Tariffs")
    table.add_column("ID", style="cyan")
    table.add_column("Provider")
    table.add_column("Name")
    table.add_column("Spread", justify="right")
    table.add_column("Off-peak hours", justify="right")
    table.add_column("Export", justify="right")

    for tariff in load_catalog(settings):
        table.add_row(
            escape(tariff.id),
            escape(tariff.provider),
            escape(tariff.name),
            f"{presets.calculate_arbitrage_spread(tariff) * 100:.1f}p",
            f"{presets.calculate_off_peak_hours(tariff):g}",
            f"{tariff.export_rate * 100:.1f}p",
        )

    console.print(table)


@tariffs.command("show")
@click.argument("tariff_id")
@click.pass_obj
def tariffs_show(settings, tariff_id):
    """Show the rate periods of a tariff."""
    tariff = find_tariff(settings, tariff_id)
    if tariff is None:
        raise click.ClickException(f"Unknown tariff '{tariff_id}'")

    table = Table(title=escape(f"{tariff.provider} {tariff.name}"))
    table.add_column("Period", style="cyan")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Rate", justify="right")

    for period in tariff.rate_periods:
        table.add_row(escape(period.name), period.start_time, period.end_time, f"{period.rate_per_kwh * 100:.1f}p")

    console.print(table)
    console.print(f"Export: {tariff.export_rate * 100:.1f}p/kWh, standing charge {tariff.standing_charge:g}p/day")
    if tariff.notes:
        console.print(f"[dim]{escape(tariff.notes)}[/dim]")


# Consumption commands
@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
def stats(csv_path):
    """Show consumption statistics."""
    result = aggregation.calculate_statistics(load_series(csv_path))
    if result is None:
        console.print("[yellow]No data[/yellow]")
        return

    table = Table(title="Consumption Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Range", f"{result.start:%Y-%m-%d %H:%M} → {result.end:%Y-%m-%d %H:%M}")
    table.add_row("Intervals", str(result.data_points))
    table.add_row("Total", f"{result.total:.2f} kWh")
    table.add_row("Mean", f"{result.average:.3f} kWh")
    table.add_row("Median", f"{result.median:.3f} kWh")
    table.add_row("Min / Max", f"{result.min:.3f} / {result.max:.3f} kWh")
    table.add_row("Std dev", f"{result.standard_deviation:.3f} kWh")
    console.print(table)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@click.option(
    "--frame", type=click.Choice(aggregation.TIME_FRAMES), default="day", show_default=True
)
@rates_options
@click.pass_obj
def aggregate(settings, csv_path, frame, tariff_id, rates_path):
    """Show consumption and cost per calendar period."""
    series = load_series(csv_path)
    rate_periods, _ = resolve_rates(settings, tariff_id, rates_path)
    buckets = add_costs_to_buckets(
        aggregation.aggregate_by_time_frame(series, frame), series, rate_periods, frame
    )

    table = Table(title=f"Consumption by {frame}")
    table.add_column("Period", style="cyan")
    table.add_column("kWh", justify="right")
    table.add_column("Avg kWh", justify="right")
    table.add_column("Peak", justify="right")
    table.add_column("Peak time")
    table.add_column("Cost", justify="right")

    for bucket in buckets:
        table.add_row(
            bucket.label,
            f"{bucket.total_consumption:.2f}",
            f"{bucket.average_consumption:.3f}",
            f"{bucket.peak_consumption:.2f}",
            f"{bucket.peak_time:%Y-%m-%d %H:%M}",
            f"£{bucket.total_cost:.2f}",
        )

    console.print(table)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@rates_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def cost(settings, csv_path, tariff_id, rates_path, as_json):
    """Cost the consumption under a tariff."""
    series = load_series(csv_path)
    rate_periods, _ = resolve_rates(settings, tariff_id, rates_path)
    output(summary.get_cost_summary(series, rate_periods), as_json, summary.format_cost_summary_text)


# Simulation commands
@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@rates_options
@battery_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def battery(settings, csv_path, tariff_id, rates_path, as_json, **opts):
    """Simulate a battery charging off-peak and discharging at peak."""
    series = load_series(csv_path)
    rate_periods, _ = resolve_rates(settings, tariff_id, rates_path)
    analysis = simulate_battery(series, build_battery(opts), rate_periods, settings)
    output(summary.get_battery_summary(analysis), as_json, summary.format_battery_summary_text)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@rates_options
@solar_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def solar(settings, csv_path, tariff_id, rates_path, as_json, **opts):
    """Simulate solar panels without storage."""
    series = load_series(csv_path)
    rate_periods, tariff_export = resolve_rates(settings, tariff_id, rates_path)
    config = build_solar(opts)
    export_rate = config.export_rate if config.export_rate is not None else tariff_export
    analysis = simulate_solar(series, config, rate_periods, export_rate, settings)
    output(summary.get_solar_summary(analysis), as_json, summary.format_solar_summary_text)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@rates_options
@solar_options
@battery_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def combined(settings, csv_path, tariff_id, rates_path, as_json, **opts):
    """Simulate solar panels with a battery."""
    series = load_series(csv_path)
    rate_periods, tariff_export = resolve_rates(settings, tariff_id, rates_path)
    solar_config = build_solar(opts)
    export_rate = solar_config.export_rate if solar_config.export_rate is not None else tariff_export
    analysis = simulate_solar_with_battery(
        series, solar_config, build_battery(opts), rate_periods, export_rate, settings
    )
    output(summary.get_combined_summary(analysis), as_json, summary.format_combined_summary_text)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True))
@rates_options
@click.pass_obj
def recommend(settings, csv_path, tariff_id, rates_path):
    """Suggest battery and solar sizes for the consumption."""
    series = load_series(csv_path)
    rate_periods, _ = resolve_rates(settings, tariff_id, rates_path)

    battery_advice = recommend_battery_size(series, rate_periods)
    solar_advice = recommend_solar_size(series)

    console.print(f"[cyan]Battery:[/cyan] {battery_advice['recommended_capacity']} kWh")
    console.print(f"  {battery_advice['reasoning']}")
    console.print(f"[cyan]Solar:[/cyan] {solar_advice['recommended_capacity']} kW")
    console.print(f"  {solar_advice['reasoning']}")


@cli.command()
@click.option(
    "--profile",
    type=click.Choice([p.id for p in example_profiles.EXAMPLE_PROFILES]),
    default="medium",
    show_default=True,
)
@click.option("--days", default=365, show_default=True, help="Number of days to generate")
@click.option("--start", "start_date", help="First day (YYYY-MM-DD), defaults to a year ago")
@click.option("--seed", type=int, help="Random seed for a repeatable series")
@click.option("--output", "output_path", type=click.Path(), required=True, help="CSV file to write")
def example(profile, days, start_date, seed, output_path):
    """Write a synthetic consumption CSV for a household profile."""
    try:
        start = date.fromisoformat(start_date) if start_date else None
    except ValueError:
        raise click.ClickException(f"Invalid start date '{start_date}', expected YYYY-MM-DD")
    readings = example_profiles.generate_example_consumption(
        example_profiles.get_profile(profile), start=start, days=days, seed=seed
    )

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(consumption_csv.REQUIRED_COLUMNS)
        for r in readings:
            writer.writerow([f"{r.consumption:.3f}", r.start.isoformat(), r.end.isoformat()])

    console.print(f"[green]Wrote {len(readings)} readings to {output_path}[/green]")


if __name__ == "__main__":
    cli()
