"""
Statistics derived from a canonical snapshot.

Everything here reads only the normalized ``AnalyticsSnapshot``; raw payload
shapes never reach this module. Percentages are share-of-total with a
guarded denominator, so an empty snapshot yields zeros, never NaN.
"""

import logging

from .coercion import share_of_total
from .core.models import (
    HOURS_PER_DAY,
    AnalyticsSnapshot,
    CategoryShare,
    SnapshotStatistics,
)
from .labels import format_peak_hour
from .peak_hours import find_peak_hour, peak_vs_average
from .referrer import CATEGORY_ORDER, top_referrer

logger = logging.getLogger(__name__)

DEVICE_LABELS = ("Desktop", "Mobile", "Tablet")


def category_shares(labels: list[str], counts: list[int]) -> list[CategoryShare]:
    """Pair each label with its count and share of the summed counts."""
    total = sum(counts)
    return [
        CategoryShare(label=label, count=count, percentage=share_of_total(count, total))
        for label, count in zip(labels, counts)
    ]


def _referrer_shares(snapshot: AnalyticsSnapshot) -> list[CategoryShare]:
    categories = snapshot.referrer_breakdown.categories
    labels = [category.value for category in CATEGORY_ORDER]
    labels += [name for name in categories if name not in labels]
    return category_shares(labels, [categories.get(label, 0) for label in labels])


def derive_statistics(snapshot: AnalyticsSnapshot) -> AnalyticsSnapshot:
    """
    Compute display statistics for a snapshot.

    Args:
        snapshot: Output of ``normalize``

    Returns:
        A copy of the snapshot with ``statistics`` set. ``detailed_metrics``
        peak hour and top referrer are filled in when upstream left them at
        their defaults.
    """
    engagement = snapshot.engagement
    engaged_total = engagement.bounced + engagement.engaged

    average = snapshot.total_clicks / HOURS_PER_DAY
    peak_hour, peak_count = find_peak_hour(snapshot.hourly_clicks)

    statistics = SnapshotStatistics(
        device_shares=category_shares(list(DEVICE_LABELS), snapshot.device_distribution.devices),
        country_shares=category_shares(snapshot.top_countries.countries, snapshot.top_countries.visits),
        browser_shares=category_shares(snapshot.browser_distribution.labels, snapshot.browser_distribution.values),
        os_shares=category_shares(snapshot.os_distribution.labels, snapshot.os_distribution.values),
        referrer_shares=_referrer_shares(snapshot),
        bounce_percentage=share_of_total(engagement.bounced, engaged_total),
        engaged_percentage=share_of_total(engagement.engaged, engaged_total),
        unique_ratio=share_of_total(snapshot.unique_clicks, snapshot.total_clicks),
        returning_share=share_of_total(snapshot.returning_visitors, snapshot.unique_clicks),
        average_per_hour=round(average, 1),
        peak_hour=peak_hour,
        peak_count=peak_count,
        peak_vs_average=peak_vs_average(peak_count, average),
    )

    metrics = snapshot.detailed_metrics.model_copy()
    if metrics.peak_hour == "N/A" and peak_count > 0:
        metrics.peak_hour = format_peak_hour(peak_hour)

    busiest_source = top_referrer(snapshot.referrer_breakdown)
    if metrics.top_referrer == "Direct" and busiest_source is not None:
        metrics.top_referrer = busiest_source

    logger.debug(
        f"Derived statistics: {snapshot.total_clicks} clicks, peak hour {peak_hour} ({peak_count})"
    )
    return snapshot.model_copy(update={"statistics": statistics, "detailed_metrics": metrics})
