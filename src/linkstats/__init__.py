"""
Analytics reconciliation for a URL-shortener dashboard.

Usage:
    from linkstats import setup_analytics

    analytics = setup_analytics(timezone="America/New_York")

    # Any response shape the analytics service has ever produced
    snapshot = analytics.snapshot(response_json)
    chart_data = snapshot.to_dict()

    # Hourly chart in the viewer's timezone
    peak = analytics.peak_hours(snapshot)
"""

import logging
from datetime import datetime
from typing import Any

from .config import AnalyticsConfig, InvalidTimezoneError
from .core.models import AnalyticsSnapshot, PeakHourAnalysis
from .normalizer import normalize, unwrap_payload
from .peak_hours import analyze_peak_hours
from .statistics import derive_statistics
from .timezones import remap_to_timezone

__version__ = "0.3.0"
__all__ = [
    "setup_analytics",
    "build_snapshot",
    "normalize",
    "derive_statistics",
    "remap_to_timezone",
    "analyze_peak_hours",
    "AnalyticsConfig",
    "AnalyticsSnapshot",
    "InvalidTimezoneError",
]

logger = logging.getLogger(__name__)


def build_snapshot(raw: Any, config: AnalyticsConfig | None = None) -> AnalyticsSnapshot:
    """
    Normalize a response and derive its statistics in one step.

    The response envelope (``{"analytics": ...}`` or ``{"data": ...}``) is
    stripped first.
    """
    config = config or AnalyticsConfig()
    snapshot = normalize(
        unwrap_payload(raw),
        config.is_overall,
        top_countries_limit=config.top_countries_limit,
    )
    return derive_statistics(snapshot)


class Analytics:
    """Dashboard analytics for one viewer's settings."""

    def __init__(self, config: AnalyticsConfig):
        self.config = config

    def snapshot(self, raw: Any) -> AnalyticsSnapshot:
        """Canonical snapshot, with statistics, for a raw response."""
        return build_snapshot(raw, self.config)

    def peak_hours(self, snapshot: AnalyticsSnapshot, now: datetime | None = None) -> PeakHourAnalysis:
        """Peak-hour analysis of a snapshot in the configured timezone."""
        return analyze_peak_hours(
            snapshot.hourly_clicks,
            self.config.timezone,
            now=now,
            use_12_hour=self.config.use_12_hour_labels,
        )


def setup_analytics(
    timezone: str = "UTC",
    is_overall: bool = False,
    top_countries_limit: int = 10,
    use_12_hour_labels: bool = True,
) -> Analytics:
    """
    Set up analytics for a dashboard view.

    Args:
        timezone: IANA timezone for the hourly chart (e.g., "Europe/Berlin")
        is_overall: True for the account-wide dashboard, False for one link
        top_countries_limit: Number of countries to keep
        use_12_hour_labels: "2PM" style hour labels instead of "14:00"

    Returns:
        Analytics instance with snapshot() and peak_hours()

    Raises:
        InvalidTimezoneError: If the timezone is unknown
    """
    config = AnalyticsConfig(
        timezone=timezone,
        is_overall=is_overall,
        top_countries_limit=top_countries_limit,
        use_12_hour_labels=use_12_hour_labels,
    )
    logger.debug(f"Analytics set up for {config.zone_display_name}")
    return Analytics(config)
