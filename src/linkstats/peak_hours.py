"""
Peak-hour analysis of hourly click histograms.

Bucket percentages here are *ratio-to-peak* (the busiest hour is 100%), used
for proportional bar heights. They are not shares of total; those live in
the statistics deriver and in ``PeakHourAnalysis.peak_share``.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime

from .coercion import share_of_total, to_histogram
from .core.models import HOURS_PER_DAY, HourBucket, PeakHourAnalysis
from .labels import format_hour_label, format_hour_range
from .timezones import DEFAULT_TIMEZONE, remap_to_timezone

# Smallest denominator used for ratios against the hourly average
EPSILON = 1e-9


def find_peak_hour(histogram: Mapping | Sequence) -> tuple[int, int]:
    """
    Busiest hour and its count.

    Scans hours 0 -> 23 and keeps the first maximum, so ties resolve to the
    lowest hour. An all-zero histogram peaks at hour 0 with 0 clicks.
    """
    counts = to_histogram(histogram)
    peak_hour, peak_count = 0, counts[0]
    for hour in range(1, HOURS_PER_DAY):
        if counts[hour] > peak_count:
            peak_hour, peak_count = hour, counts[hour]
    return peak_hour, peak_count


def ratio_to_peak(histogram: Mapping | Sequence) -> list[float]:
    """Each slot as a percentage of the busiest slot (all zeros when empty)."""
    counts = to_histogram(histogram)
    max_count = max(counts)
    if max_count <= 0:
        return [0.0] * HOURS_PER_DAY
    return [count / max_count * 100 for count in counts]


def build_hour_buckets(histogram: Mapping | Sequence, use_12_hour: bool = True) -> list[HourBucket]:
    """The 24 hour slots ready for bar rendering."""
    counts = to_histogram(histogram)
    percentages = ratio_to_peak(counts)
    return [
        HourBucket(
            hour=hour,
            label=format_hour_label(hour, use_12_hour),
            count=counts[hour],
            percentage=round(percentages[hour], 1),
        )
        for hour in range(HOURS_PER_DAY)
    ]


def peak_vs_average(peak_count: int, average_per_hour: float) -> float | str:
    """How many times the hourly average the peak is; 'N/A' with no traffic."""
    if average_per_hour <= 0:
        return "N/A"
    return round(peak_count / max(average_per_hour, EPSILON), 1)


def _insights(peak_hour: int, peak_count: int, total: int, average: float, use_12_hour: bool) -> list[str]:
    if peak_count <= 0:
        return []

    insights = [
        f"Peak activity occurs at {format_hour_range(peak_hour, use_12_hour)}",
        f"This hour accounts for {share_of_total(peak_count, total)}% of daily traffic",
    ]
    if peak_count > average:
        insights.append(
            f"Peak hour traffic is {peak_vs_average(peak_count, average)} times higher than average"
        )
    else:
        insights.append("Traffic is relatively evenly distributed")

    if 9 <= peak_hour <= 17:
        insights.append("Peak aligns with standard business hours")
    elif peak_hour >= 18:
        insights.append("Peak aligns with evening/night hours")
    else:
        insights.append("Peak aligns with early morning hours")
    return insights


def analyze_peak_hours(
    utc_histogram: Mapping | Sequence,
    zone: str = DEFAULT_TIMEZONE,
    now: datetime | None = None,
    use_12_hour: bool = True,
) -> PeakHourAnalysis:
    """
    Peak-hour view of a UTC histogram in a display timezone.

    Args:
        utc_histogram: Hourly clicks indexed by UTC hour
        zone: IANA timezone to display in (unknown zones fall back to UTC)
        now: Reference date for the timezone offset
        use_12_hour: "2PM" style labels instead of "14:00"

    Returns:
        PeakHourAnalysis with local buckets, peak, averages and insights
    """
    local = remap_to_timezone(utc_histogram, zone, now=now)
    total = sum(local)
    average = total / HOURS_PER_DAY
    peak_hour, peak_count = find_peak_hour(local)

    return PeakHourAnalysis(
        timezone=zone,
        buckets=build_hour_buckets(local, use_12_hour),
        peak_hour=peak_hour,
        peak_count=peak_count,
        peak_range=format_hour_range(peak_hour, use_12_hour),
        total_clicks=total,
        average_per_hour=round(average, 1),
        peak_share=share_of_total(peak_count, total),
        peak_vs_average=peak_vs_average(peak_count, average),
        insights=_insights(peak_hour, peak_count, total, average, use_12_hour),
    )
