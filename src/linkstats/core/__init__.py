"""
Core analytics module.

Contains the canonical snapshot models.
"""

from .models import (
    AnalyticsSnapshot,
    Breakdown,
    CategoryShare,
    CityVisits,
    ClickEvent,
    ClicksOverTime,
    CountryVisits,
    DetailedMetrics,
    DeviceDistribution,
    Engagement,
    HourBucket,
    LinkPerformance,
    PeakHourAnalysis,
    ReferrerBreakdown,
    SnapshotStatistics,
    TopCountries,
)

__all__ = [
    "AnalyticsSnapshot",
    "ClicksOverTime", "TopCountries", "CountryVisits", "DeviceDistribution", "Engagement",
    "ClickEvent", "DetailedMetrics", "Breakdown", "ReferrerBreakdown",
    "LinkPerformance", "CityVisits",
    "SnapshotStatistics", "CategoryShare",
    "HourBucket", "PeakHourAnalysis",
]
