"""
Pydantic models for the canonical analytics snapshot.

Attributes are snake_case; every model also accepts and emits the camelCase
names chart consumers read (``snapshot.model_dump(by_alias=True)``).
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HOURS_PER_DAY = 24


class CanonicalModel(BaseModel):
    """Base for canonical models: camelCase aliases, either name on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Snapshot Parts
# =============================================================================

class ClicksOverTime(CanonicalModel):
    """Chronological click series. ``labels`` and ``values`` are always equal length."""
    labels: list[str] = Field(default_factory=list)
    values: list[int] = Field(default_factory=list)


class CountryVisits(CanonicalModel):
    """Visits for a single country."""
    country: str
    visits: int


class TopCountries(CanonicalModel):
    """Top countries, sorted by visits descending."""
    countries: list[str] = Field(default_factory=list)
    visits: list[int] = Field(default_factory=list)
    raw_data: list[CountryVisits] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[CountryVisits]) -> "TopCountries":
        return cls(
            countries=[r.country for r in records],
            visits=[r.visits for r in records],
            raw_data=records,
        )


class DeviceDistribution(CanonicalModel):
    """Device split as [desktop, mobile, tablet]."""
    devices: list[int] = Field(default_factory=lambda: [0, 0, 0])

    @property
    def desktop(self) -> int:
        return self.devices[0]

    @property
    def mobile(self) -> int:
        return self.devices[1]

    @property
    def tablet(self) -> int:
        return self.devices[2]


class Engagement(CanonicalModel):
    """Bounced vs engaged clicks. ``bounce_rate`` is a 0-100 percentage."""
    bounced: int = 0
    engaged: int = 0
    bounce_rate: float = 0


class ClickEvent(CanonicalModel):
    """A single recent click."""
    timestamp: str | None = None
    ip_address: str = "N/A"
    country: str = "Unknown"
    device: str = "Unknown"
    browser: str = "Unknown"
    referrer: str = "Direct"


class Breakdown(CanonicalModel):
    """Labelled counts for a fixed set of families (browsers, operating systems)."""
    labels: list[str] = Field(default_factory=list)
    values: list[int] = Field(default_factory=list)


class ReferrerBreakdown(CanonicalModel):
    """Clicks per referrer category, plus per-source detail within each category."""
    categories: dict[str, int] = Field(default_factory=dict)
    details: dict[str, dict[str, int]] = Field(default_factory=dict)


class LinkPerformance(CanonicalModel):
    """A short link's clicks compared with the previous period."""
    rank: int
    alias: str = "Untitled"
    short_id: str = ""
    destination: str = ""
    clicks: int = 0
    previous_clicks: int = 0
    change: int = 0
    change_percent: float = 0  # 100 when there is no previous count


class CityVisits(CanonicalModel):
    """Clicks from one city."""
    rank: int
    city: str
    country: str = ""
    count: int = 0
    percentage: float = 0  # share of the listed cities, 0-100


class DetailedMetrics(CanonicalModel):
    """Free-form display metrics. Values are display strings or numbers."""
    avg_time_to_click: str = "N/A"
    avg_scroll_depth: str = "N/A"
    peak_hour: str = "N/A"
    top_referrer: str = "Direct"
    avg_session_duration: str = "N/A"
    conversion_rate: str = "0%"
    pages_per_session: str | float = "N/A"


# =============================================================================
# Derived Statistics
# =============================================================================

class CategoryShare(CanonicalModel):
    """A category count with its share-of-total percentage."""
    label: str
    count: int
    percentage: float  # 0-100, one decimal


class SnapshotStatistics(CanonicalModel):
    """Figures derived from a canonical snapshot."""
    device_shares: list[CategoryShare] = Field(default_factory=list)
    country_shares: list[CategoryShare] = Field(default_factory=list)
    browser_shares: list[CategoryShare] = Field(default_factory=list)
    os_shares: list[CategoryShare] = Field(default_factory=list)
    referrer_shares: list[CategoryShare] = Field(default_factory=list)

    bounce_percentage: float = 0
    engaged_percentage: float = 0
    unique_ratio: float = 0  # unique clicks as % of total clicks
    returning_share: float = 0  # returning visitors as % of unique clicks

    average_per_hour: float = 0
    peak_hour: int = 0
    peak_count: int = 0
    peak_vs_average: float | str = "N/A"


class AnalyticsSnapshot(CanonicalModel):
    """The canonical representation every chart and table reads."""
    clicks_over_time: ClicksOverTime = Field(default_factory=ClicksOverTime)
    top_countries: TopCountries = Field(default_factory=TopCountries)
    device_distribution: DeviceDistribution = Field(default_factory=DeviceDistribution)
    engagement: Engagement = Field(default_factory=Engagement)

    total_clicks: int = 0
    unique_clicks: int = 0
    returning_visitors: int = 0

    recent_clicks: list[ClickEvent] = Field(default_factory=list)
    detailed_metrics: DetailedMetrics = Field(default_factory=DetailedMetrics)

    # Hour-of-day histogram, UTC indexed
    hourly_clicks: list[int] = Field(default_factory=lambda: [0] * HOURS_PER_DAY)

    browser_distribution: Breakdown = Field(default_factory=Breakdown)
    os_distribution: Breakdown = Field(default_factory=Breakdown)
    referrer_breakdown: ReferrerBreakdown = Field(default_factory=ReferrerBreakdown)

    top_links: list[LinkPerformance] = Field(default_factory=list)
    top_cities: list[CityVisits] = Field(default_factory=list)

    statistics: SnapshotStatistics | None = None

    def to_dict(self) -> dict:
        """JSON-ready dict using the camelCase contract."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Hourly Analysis
# =============================================================================

class HourBucket(CanonicalModel):
    """One hour slot prepared for bar rendering."""
    hour: int
    label: str
    count: int
    percentage: float  # ratio-to-peak, 0-100


class PeakHourAnalysis(CanonicalModel):
    """Peak-hour view of an hourly histogram in a display timezone."""
    timezone: str
    buckets: list[HourBucket]
    peak_hour: int
    peak_count: int
    peak_range: str
    total_clicks: int
    average_per_hour: float
    peak_share: float  # % of total
    peak_vs_average: float | str
    insights: list[str] = Field(default_factory=list)
