"""Calendar bucketing and summary statistics for consumption series."""

import math
from datetime import date, datetime, timedelta

from ..models import AggregatedBucket, ConsumptionInterval, ConsumptionStats

TIME_FRAMES = ("day", "week", "month", "year", "all")


def bucket_key(timestamp: datetime, frame: str) -> str:
    """Sortable calendar key for a timestamp.

    Weeks start on Monday. Unknown frames bucket by day.
    """
    if frame == "week":
        week_start = timestamp.date() - timedelta(days=timestamp.weekday())
        return week_start.isoformat()
    if frame == "month":
        return timestamp.strftime("%Y-%m")
    if frame == "year":
        return timestamp.strftime("%Y")
    if frame == "all":
        return "all"
    return timestamp.date().isoformat()


def _bucket_label(key: str, frame: str) -> str:
    if frame == "week":
        return f"Week of {key}"
    if frame == "month":
        return datetime.strptime(key, "%Y-%m").strftime("%b %Y")
    return key


def filter_by_date_range(
    series: list[ConsumptionInterval], start: datetime, end: datetime
) -> list[ConsumptionInterval]:
    """Intervals whose start falls within [start, end]."""
    return [interval for interval in series if start <= interval.start <= end]


def _summarise(period: str, label: str, intervals: list[ConsumptionInterval]) -> AggregatedBucket:
    total = 0.0
    peak = intervals[0]
    for interval in intervals:
        total += interval.consumption
        if interval.consumption > peak.consumption:
            peak = interval

    return AggregatedBucket(
        period=period,
        label=label,
        total_consumption=total,
        average_consumption=total / len(intervals),
        peak_consumption=peak.consumption,
        peak_time=peak.start,
        data_point_count=len(intervals),
    )


def _aggregate(series: list[ConsumptionInterval], frame: str) -> list[AggregatedBucket]:
    grouped: dict[str, list[ConsumptionInterval]] = {}
    for interval in series:
        grouped.setdefault(bucket_key(interval.start, frame), []).append(interval)

    return [
        _summarise(key, _bucket_label(key, frame), intervals)
        for key, intervals in sorted(grouped.items())
    ]


def aggregate_by_day(series: list[ConsumptionInterval]) -> list[AggregatedBucket]:
    return _aggregate(series, "day")


def aggregate_by_week(series: list[ConsumptionInterval]) -> list[AggregatedBucket]:
    return _aggregate(series, "week")


def aggregate_by_month(series: list[ConsumptionInterval]) -> list[AggregatedBucket]:
    return _aggregate(series, "month")


def aggregate_by_year(series: list[ConsumptionInterval]) -> list[AggregatedBucket]:
    return _aggregate(series, "year")


def aggregate_all(series: list[ConsumptionInterval]) -> AggregatedBucket | None:
    """Single bucket spanning the whole series, None when it is empty."""
    if not series:
        return None
    start = series[0].start
    end = series[-1].end
    days = (end - start).days
    label = f"{start:%b %d, %Y} - {end:%b %d, %Y} ({days} days)"
    return _summarise("all", label, series)


def aggregate_by_time_frame(
    series: list[ConsumptionInterval],
    frame: str,
    date_range: tuple[datetime, datetime] | None = None,
) -> list[AggregatedBucket]:
    """Bucket a series by calendar period, in ascending period order."""
    data = filter_by_date_range(series, *date_range) if date_range else series
    if not data:
        return []
    if frame == "all":
        return [aggregate_all(data)]
    return _aggregate(data, frame)


def get_hourly_breakdown(series: list[ConsumptionInterval], day: date) -> list[AggregatedBucket]:
    """Buckets keyed HH:00 for a single calendar day."""
    grouped: dict[str, list[ConsumptionInterval]] = {}
    for interval in series:
        if interval.start.date() == day:
            grouped.setdefault(interval.start.strftime("%H:00"), []).append(interval)
    return [_summarise(hour, hour, intervals) for hour, intervals in sorted(grouped.items())]


def calculate_statistics(series: list[ConsumptionInterval]) -> ConsumptionStats | None:
    """Total, mean, min, max, median and population standard deviation."""
    if not series:
        return None

    values = [interval.consumption for interval in series]
    count = len(values)
    total = sum(values)
    average = total / count

    ordered = sorted(values)
    mid = count // 2
    if count % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2
    else:
        median = ordered[mid]

    variance = sum((v - average) ** 2 for v in values) / count

    return ConsumptionStats(
        total=total,
        average=average,
        min=ordered[0],
        max=ordered[-1],
        median=median,
        standard_deviation=math.sqrt(variance),
        data_points=count,
        start=series[0].start,
        end=series[-1].end,
    )


def downsample(series: list[ConsumptionInterval], max_points: int) -> list[ConsumptionInterval]:
    """Average consecutive runs of intervals so at most max_points remain."""
    if len(series) <= max_points:
        return list(series)

    step = math.ceil(len(series) / max_points)
    result = []
    for i in range(0, len(series), step):
        group = series[i : i + step]
        result.append(
            ConsumptionInterval(
                consumption=sum(p.consumption for p in group) / len(group),
                start=group[0].start,
                end=group[-1].end,
            )
        )
    return result


def find_high_consumption_periods(
    series: list[ConsumptionInterval], threshold_percentile: float = 90
) -> list[ConsumptionInterval]:
    """Intervals at or above the given consumption percentile."""
    if not series:
        return []
    ordered = sorted(interval.consumption for interval in series)
    index = min(int(threshold_percentile / 100 * len(ordered)), len(ordered) - 1)
    threshold = ordered[index]
    return [interval for interval in series if interval.consumption >= threshold]
