"""
Shape normalization for upstream analytics payloads.

The analytics service has changed its response format several times and
different endpoints still answer in different shapes. This module turns any
of them into one ``AnalyticsSnapshot``.

Each metric has an ordered table of shape recognizers: a name, a predicate
that checks whether the payload has that shape, and an extractor that reads
it. The first recognizer whose predicate holds wins.

Key Design Decisions:
- Order matters! Some payloads satisfy more than one recognizer, and the
  first one listed silently wins. Reordering a table changes behavior.
- Never raise: missing, null or mistyped fields become 0, [] or 'N/A'
- Unrecognized shapes fall through to an empty but well-formed default
- Pure function of its arguments; no state is kept between calls
"""

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .coercion import (
    clamp,
    first_count,
    first_present,
    has_any,
    share_of_total,
    to_count,
    to_histogram,
    to_hour,
    to_number,
)
from .core.models import (
    HOURS_PER_DAY,
    AnalyticsSnapshot,
    Breakdown,
    ClickEvent,
    CityVisits,
    ClicksOverTime,
    CountryVisits,
    DetailedMetrics,
    DeviceDistribution,
    Engagement,
    LinkPerformance,
    ReferrerBreakdown,
    TopCountries,
)
from .labels import format_date, format_peak_hour, format_period_label
from .referrer import BACKEND_CATEGORY_KEYS, empty_breakdown, summarize_referrers
from .technology import BROWSER_FAMILIES, OS_FAMILIES, get_browser_summary, get_os_summary

logger = logging.getLogger(__name__)

TOP_COUNTRIES_LIMIT = 10
TOP_LINKS_LIMIT = 10
TOP_CITIES_LIMIT = 10


@dataclass(frozen=True)
class Vocabulary:
    """
    Field names for one family of responses.

    Account-wide ("overall") responses and single-link responses name some
    fields differently, and only single-link responses carry enough recent
    clicks to rebuild a daily series from.
    """
    time_series_keys: tuple[str, ...]
    total_keys: tuple[str, ...]
    unique_keys: tuple[str, ...]
    day_bucket_fallback: bool


LINK_VOCABULARY = Vocabulary(
    time_series_keys=("timeSeries", "clicksOverTime", "clicksByDay"),
    total_keys=("totalClicks", "total_clicks", "clicks"),
    unique_keys=("uniqueClicks", "unique_clicks", "uniqueVisitors"),
    day_bucket_fallback=True,
)

OVERALL_VOCABULARY = Vocabulary(
    time_series_keys=("timeSeries", "clicksOverTime", "clicksByDate", "dailyClicks"),
    total_keys=("totalClicks", "total_clicks", "totalClicksAllLinks"),
    unique_keys=("uniqueClicks", "unique_clicks", "uniqueVisitors", "totalUniqueVisitors"),
    day_bucket_fallback=False,
)


@dataclass(frozen=True)
class ShapeContext:
    """What a recognizer looks at: the whole payload plus the metric's own field."""
    payload: Mapping
    source: Any
    vocabulary: Vocabulary


@dataclass(frozen=True)
class ShapeRecognizer:
    """One accepted encoding of a metric."""
    name: str
    matches: Callable[[ShapeContext], bool]
    extract: Callable[[ShapeContext], Any]


# =============================================================================
# FIELD ALIASES
# =============================================================================

COUNTRY_SOURCE_KEYS = ("topCountries", "countries", "countryData")
COUNTRY_NAME_KEYS = ("country", "_id", "name", "countryName", "country_code")
COUNTRY_COUNT_KEYS = ("clicks", "count", "visits", "value")

LABEL_KEYS = ("label", "date", "_id", "x")
VALUE_KEYS = ("value", "count", "y", "total")

DEVICE_SOURCE_KEYS = ("deviceDistribution", "devices", "deviceCounts")
DEVICE_ALIASES = (
    ("desktop", "Desktop", "D"),
    ("mobile", "Mobile", "M"),
    ("tablet", "Tablet", "T"),
)

BOUNCED_KEYS = ("bounced", "bounceCount")
ENGAGED_KEYS = ("engaged", "engagedCount")
BOUNCE_RATE_KEYS = ("bounceRate", "bounce_rate")

RETURNING_KEYS = ("returningVisitors", "returningVisitorsCount", "returning_visitors")
RECENT_CLICKS_KEYS = ("recentClicks", "recent_clicks")
HOURLY_SOURCE_KEYS = ("hourlyClicks", "peakHours", "clicksByHour", "hourlyDistribution")
BROWSER_SOURCE_KEYS = ("browserDistribution", "browsers", "browserStats")
OS_SOURCE_KEYS = ("osDistribution", "os", "osStats", "operatingSystems")
REFERRER_SOURCE_KEYS = ("referrerBreakdown", "referrers", "topReferrers", "referrerStats")
LINK_SOURCE_KEYS = ("topLinks", "links", "topPerformingLinks")
LINK_CLICK_KEYS = ("clicks", "count", "totalClicks")
PREVIOUS_CLICK_KEYS = ("previousClicks", "previous_clicks")
CITY_SOURCE_KEYS = ("topCities", "cities", "cityData")

CLICK_EVENT_ALIASES = {
    "timestamp": ("timestamp", "clickedAt", "createdAt"),
    "ip_address": ("ipAddress", "ip", "ip_address"),
    "country": ("country", "countryName", "country_code"),
    "device": ("device", "deviceType", "device_type"),
    "browser": ("browser",),
    "referrer": ("referrer", "referer", "source"),
}

DETAILED_METRIC_ALIASES = {
    "avg_time_to_click": ("avgTimeToClick", "averageTimeToClick"),
    "avg_scroll_depth": ("avgScrollDepth", "averageScrollDepth"),
    "peak_hour": ("peakHour", "peakHourOfDay"),
    "top_referrer": ("topReferrer", "topReferrerDomain"),
    "avg_session_duration": ("avgSessionDuration",),
    "conversion_rate": ("conversionRate",),
    "pages_per_session": ("pagesPerSession",),
}


def _mappings(items: Any) -> list[Mapping]:
    """The mapping elements of a list; anything else yields nothing."""
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# CLICKS OVER TIME
# =============================================================================

def _is_labels_values(ctx: ShapeContext) -> bool:
    source = ctx.source
    return (
        isinstance(source, Mapping)
        and _is_list(source.get("labels"))
        and _is_list(source.get("values"))
    )


def _extract_labels_values(ctx: ShapeContext) -> ClicksOverTime:
    labels, values = ctx.source["labels"], ctx.source["values"]
    size = min(len(labels), len(values))
    return ClicksOverTime(
        labels=["" if label is None else str(label) for label in labels[:size]],
        values=[to_count(value) for value in values[:size]],
    )


def _is_series_records(ctx: ShapeContext) -> bool:
    return bool(_mappings(ctx.source))


def _extract_series_records(ctx: ShapeContext) -> ClicksOverTime:
    series = ClicksOverTime()
    for record in _mappings(ctx.source):
        series.labels.append(format_period_label(first_present(record, *LABEL_KEYS)))
        series.values.append(to_count(first_present(record, *VALUE_KEYS)))
    return series


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a click timestamp into an aware UTC datetime.

    Accepts ISO 8601 strings (a trailing "Z" included), datetimes, and epoch
    milliseconds. Returns None for anything else.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _has_recent_clicks_for_days(ctx: ShapeContext) -> bool:
    if not ctx.vocabulary.day_bucket_fallback:
        return False
    return bool(_mappings(first_present(ctx.payload, *RECENT_CLICKS_KEYS)))


def _extract_recent_click_days(ctx: ShapeContext) -> ClicksOverTime:
    per_day: dict = {}
    for click in _mappings(first_present(ctx.payload, *RECENT_CLICKS_KEYS)):
        clicked_at = parse_timestamp(first_present(click, *CLICK_EVENT_ALIASES["timestamp"]))
        if clicked_at is None:
            continue
        day = clicked_at.date()
        per_day[day] = per_day.get(day, 0) + 1

    days = sorted(per_day)
    return ClicksOverTime(
        labels=[format_date(day) for day in days],
        values=[per_day[day] for day in days],
    )


CLICKS_OVER_TIME_RECOGNIZERS = (
    ShapeRecognizer("labels_values", _is_labels_values, _extract_labels_values),
    ShapeRecognizer("records", _is_series_records, _extract_series_records),
    ShapeRecognizer("recent_click_days", _has_recent_clicks_for_days, _extract_recent_click_days),
)


# =============================================================================
# TOP COUNTRIES
# =============================================================================

def rank_countries(records: list, limit: int = TOP_COUNTRIES_LIMIT) -> TopCountries:
    """
    Read country records, drop empty ones, sort by visits and keep the top ``limit``.

    Equal counts keep their input order.
    """
    ranked = []
    for record in _mappings(records):
        name = first_present(record, *COUNTRY_NAME_KEYS, default="Unknown")
        visits = first_count(record, *COUNTRY_COUNT_KEYS)
        name = str(name).strip()
        if name and visits > 0:
            ranked.append(CountryVisits(country=name, visits=visits))

    ranked.sort(key=lambda entry: entry.visits, reverse=True)
    return TopCountries.from_records(ranked[:limit])


def _is_country_raw_data(ctx: ShapeContext) -> bool:
    return isinstance(ctx.source, Mapping) and _is_list(first_present(ctx.source, "rawData", "raw_data"))


def _country_raw_data(ctx: ShapeContext) -> list:
    return first_present(ctx.source, "rawData", "raw_data")


def _is_country_records(ctx: ShapeContext) -> bool:
    return _is_list(ctx.source)


def _country_records(ctx: ShapeContext) -> list:
    return ctx.source


def _is_country_parallel_arrays(ctx: ShapeContext) -> bool:
    return (
        isinstance(ctx.source, Mapping)
        and _is_list(ctx.source.get("countries"))
        and _is_list(ctx.source.get("visits"))
    )


def _country_parallel_arrays(ctx: ShapeContext) -> list:
    return [
        {"country": country, "visits": visits}
        for country, visits in zip(ctx.source["countries"], ctx.source["visits"])
    ]


def _is_country_count_mapping(ctx: ShapeContext) -> bool:
    return isinstance(ctx.source, Mapping) and len(ctx.source) > 0


def _country_count_mapping(ctx: ShapeContext) -> list:
    return [
        {"country": code, "visits": count}
        for code, count in ctx.source.items()
        if isinstance(code, str)
    ]


# Extractors here return raw records; ranking and truncation happen once after dispatch
TOP_COUNTRIES_RECOGNIZERS = (
    ShapeRecognizer("raw_data", _is_country_raw_data, _country_raw_data),
    ShapeRecognizer("records", _is_country_records, _country_records),
    ShapeRecognizer("parallel_arrays", _is_country_parallel_arrays, _country_parallel_arrays),
    ShapeRecognizer("count_mapping", _is_country_count_mapping, _country_count_mapping),
)


# =============================================================================
# DEVICE DISTRIBUTION
# =============================================================================

def _is_keyed_devices(ctx: ShapeContext) -> bool:
    if not isinstance(ctx.source, Mapping):
        return False
    return any(key in ctx.source for aliases in DEVICE_ALIASES for key in aliases)


def _extract_keyed_devices(ctx: ShapeContext) -> DeviceDistribution:
    return DeviceDistribution(devices=[first_count(ctx.source, *aliases) for aliases in DEVICE_ALIASES])


def _indexed_devices(source: Any) -> Any:
    if isinstance(source, Mapping):
        return source.get("devices")
    return source


def _is_indexed_devices(ctx: ShapeContext) -> bool:
    return _is_list(_indexed_devices(ctx.source))


def _extract_indexed_devices(ctx: ShapeContext) -> DeviceDistribution:
    values = [to_count(value) for value in _indexed_devices(ctx.source)[:3]]
    return DeviceDistribution(devices=values + [0] * (3 - len(values)))


DEVICE_RECOGNIZERS = (
    ShapeRecognizer("keyed", _is_keyed_devices, _extract_keyed_devices),
    ShapeRecognizer("indexed", _is_indexed_devices, _extract_indexed_devices),
)


# =============================================================================
# ENGAGEMENT
# =============================================================================

def _engagement_pair(bounced: int, engaged: int) -> Engagement:
    """Build engagement with a bounce rate consistent with its counts."""
    return Engagement(
        bounced=bounced,
        engaged=engaged,
        bounce_rate=share_of_total(bounced, bounced + engaged),
    )


def _pair_holder(ctx: ShapeContext) -> Mapping | None:
    """The mapping that carries bounced/engaged counts, nested one first."""
    for holder in (ctx.source, ctx.payload):
        if has_any(holder, *BOUNCED_KEYS, *ENGAGED_KEYS):
            return holder
    return None


def _is_explicit_pair(ctx: ShapeContext) -> bool:
    return _pair_holder(ctx) is not None


def _extract_explicit_pair(ctx: ShapeContext) -> Engagement:
    holder = _pair_holder(ctx)
    return _engagement_pair(first_count(holder, *BOUNCED_KEYS), first_count(holder, *ENGAGED_KEYS))


def _is_array_pair(ctx: ShapeContext) -> bool:
    return _is_list(ctx.source) and len(ctx.source) >= 2


def _extract_array_pair(ctx: ShapeContext) -> Engagement:
    return _engagement_pair(to_count(ctx.source[0]), to_count(ctx.source[1]))


def _rate_holder(ctx: ShapeContext) -> Mapping | None:
    for holder in (ctx.source, ctx.payload):
        if has_any(holder, *BOUNCE_RATE_KEYS) and has_any(holder, *ctx.vocabulary.total_keys):
            return holder
    return None


def _is_rate_and_total(ctx: ShapeContext) -> bool:
    return _rate_holder(ctx) is not None


def _extract_rate_and_total(ctx: ShapeContext) -> Engagement:
    holder = _rate_holder(ctx)
    total = first_count(holder, *ctx.vocabulary.total_keys)
    rate = clamp(to_number(first_present(holder, *BOUNCE_RATE_KEYS)), 0, 100)
    bounced = _round_half_up(total * rate / 100)
    return _engagement_pair(bounced, max(0, total - bounced))


ENGAGEMENT_RECOGNIZERS = (
    ShapeRecognizer("explicit_pair", _is_explicit_pair, _extract_explicit_pair),
    ShapeRecognizer("array_pair", _is_array_pair, _extract_array_pair),
    ShapeRecognizer("rate_and_total", _is_rate_and_total, _extract_rate_and_total),
)


# =============================================================================
# HOURLY CLICKS
# =============================================================================

def _is_hourly_counts(ctx: ShapeContext) -> bool:
    return _is_list(ctx.source) and not _mappings(ctx.source)


def _extract_hourly_counts(ctx: ShapeContext) -> list[int]:
    return to_histogram(ctx.source)


def _is_hourly_records(ctx: ShapeContext) -> bool:
    return bool(_mappings(ctx.source))


def _extract_hourly_records(ctx: ShapeContext) -> list[int]:
    histogram = [0] * HOURS_PER_DAY
    for record in _mappings(ctx.source):
        hour = to_hour(first_present(record, "hour", "_id"))
        if hour is not None:
            histogram[hour] += first_count(record, "count", "clicks")
    return histogram


def _is_hourly_mapping(ctx: ShapeContext) -> bool:
    return isinstance(ctx.source, Mapping)


HOURLY_RECOGNIZERS = (
    ShapeRecognizer("counts", _is_hourly_counts, _extract_hourly_counts),
    ShapeRecognizer("records", _is_hourly_records, _extract_hourly_records),
    ShapeRecognizer("hour_mapping", _is_hourly_mapping, _extract_hourly_counts),
)


# =============================================================================
# BROWSERS / OPERATING SYSTEMS
# =============================================================================

def _extract_breakdown(ctx: ShapeContext) -> Breakdown:
    labels, values = ctx.source["labels"], ctx.source["values"]
    size = min(len(labels), len(values))
    return Breakdown(
        labels=["" if label is None else str(label) for label in labels[:size]],
        values=[to_count(value) for value in values[:size]],
    )


BROWSER_RECOGNIZERS = (
    ShapeRecognizer("labels_values", _is_labels_values, _extract_breakdown),
    ShapeRecognizer("records", _is_series_records, lambda ctx: get_browser_summary(_mappings(ctx.source))),
)

OS_RECOGNIZERS = (
    ShapeRecognizer("labels_values", _is_labels_values, _extract_breakdown),
    ShapeRecognizer("records", _is_series_records, lambda ctx: get_os_summary(_mappings(ctx.source))),
)


# =============================================================================
# REFERRERS
# =============================================================================

def _is_referrer_categories(ctx: ShapeContext) -> bool:
    return isinstance(ctx.source, Mapping) and isinstance(ctx.source.get("categories"), Mapping)


def _extract_referrer_categories(ctx: ShapeContext) -> ReferrerBreakdown:
    breakdown = empty_breakdown()
    for name, count in ctx.source["categories"].items():
        breakdown.categories[str(name)] = to_count(count)
    details = ctx.source.get("details")
    if isinstance(details, Mapping):
        for name, sources in details.items():
            if isinstance(sources, Mapping):
                breakdown.details[str(name)] = {str(k): to_count(v) for k, v in sources.items()}
    return breakdown


def _is_backend_categories(ctx: ShapeContext) -> bool:
    return isinstance(ctx.source, Mapping) and any(key in ctx.source for key in BACKEND_CATEGORY_KEYS)


def _extract_backend_categories(ctx: ShapeContext) -> ReferrerBreakdown:
    breakdown = empty_breakdown()
    for key, category in BACKEND_CATEGORY_KEYS.items():
        entry = ctx.source.get(key)
        if isinstance(entry, Mapping):
            breakdown.categories[category.value] = first_count(entry, "total")
            details = entry.get("details")
            if isinstance(details, Mapping):
                breakdown.details[category.value] = {str(k): to_count(v) for k, v in details.items()}
        else:
            breakdown.categories[category.value] = to_count(entry)
    return breakdown


REFERRER_RECOGNIZERS = (
    ShapeRecognizer("categories", _is_referrer_categories, _extract_referrer_categories),
    ShapeRecognizer("backend_categories", _is_backend_categories, _extract_backend_categories),
    ShapeRecognizer("records", _is_series_records, lambda ctx: summarize_referrers(_mappings(ctx.source))),
)


# =============================================================================
# TOP LINKS / TOP CITIES
# =============================================================================

def _first_text(source: Any, *keys: str) -> str:
    """The first aliased value that is non-blank text (numbers included), else ""."""
    if not isinstance(source, Mapping):
        return ""
    for key in keys:
        value = source.get(key)
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def _change_percent(clicks: int, previous: int) -> float:
    if previous > 0:
        return round((clicks - previous) / previous * 100, 1)
    return 100.0 if clicks > 0 else 0.0


def rank_links(records: list, limit: int = TOP_LINKS_LIMIT) -> list[LinkPerformance]:
    """
    Sort link records by clicks and keep the top ``limit``.

    Change is measured against ``previousClicks``; a link with no previous
    clicks counts as +100%.
    """
    rows = [(first_count(record, *LINK_CLICK_KEYS), record) for record in _mappings(records)]
    rows.sort(key=lambda row: row[0], reverse=True)

    links = []
    for rank, (clicks, record) in enumerate(rows[:limit], start=1):
        previous = first_count(record, *PREVIOUS_CLICK_KEYS)
        links.append(LinkPerformance(
            rank=rank,
            alias=_first_text(record, "alias", "customName", "shortId") or "Untitled",
            short_id=_first_text(record, "shortId", "_id"),
            destination=_first_text(record, "destinationUrl", "destination"),
            clicks=clicks,
            previous_clicks=previous,
            change=clicks - previous,
            change_percent=_change_percent(clicks, previous),
        ))
    return links


def rank_cities(records: list, limit: int = TOP_CITIES_LIMIT) -> list[CityVisits]:
    """
    Sort city records by clicks and keep the top ``limit`` known cities.

    City and country may sit on the record or inside a grouped ``_id``.
    Percentages are shares of the cities kept.
    """
    rows = []
    for record in _mappings(records):
        grouped = record.get("_id")
        city = _first_text(record, "city") or _first_text(grouped, "city")
        if not city or city.lower() == "unknown":
            continue
        country = _first_text(record, "country") or _first_text(grouped, "country")
        rows.append((city.title(), country.title(), first_count(record, "count", "clicks")))

    rows.sort(key=lambda row: row[2], reverse=True)
    rows = rows[:limit]
    total = sum(count for _, _, count in rows)
    return [
        CityVisits(rank=rank, city=city, country=country, count=count, percentage=share_of_total(count, total))
        for rank, (city, country, count) in enumerate(rows, start=1)
    ]


def _nested_records(key: str) -> Callable[[ShapeContext], Any]:
    return lambda ctx: ctx.source[key]


def _has_nested_records(key: str) -> Callable[[ShapeContext], bool]:
    return lambda ctx: isinstance(ctx.source, Mapping) and _is_list(ctx.source.get(key))


# Extractors return raw records; ranking happens once after dispatch
TOP_LINKS_RECOGNIZERS = (
    ShapeRecognizer("records", lambda ctx: _is_list(ctx.source), lambda ctx: ctx.source),
    ShapeRecognizer("nested_links", _has_nested_records("links"), _nested_records("links")),
)

TOP_CITIES_RECOGNIZERS = (
    ShapeRecognizer("records", lambda ctx: _is_list(ctx.source), lambda ctx: ctx.source),
    ShapeRecognizer("nested_cities", _has_nested_records("topCities"), _nested_records("topCities")),
)


# =============================================================================
# DISPATCH
# =============================================================================

def recognize(metric: str, recognizers: tuple, ctx: ShapeContext, default: Callable[[], Any]) -> Any:
    """
    Run a metric's recognizers in order and return the first match's extraction.

    Falls back to ``default()`` when nothing matches. A recognizer that
    raises is logged and also yields the default, so one bad metric never
    breaks the snapshot.
    """
    for recognizer in recognizers:
        try:
            if recognizer.matches(ctx):
                logger.debug(f"{metric}: matched {recognizer.name!r} shape")
                return recognizer.extract(ctx)
        except Exception:
            logger.exception(f"{metric}: {recognizer.name!r} recognizer failed, using default")
            return default()
    logger.debug(f"{metric}: no recognized shape, using default")
    return default()


def _context(payload: Mapping, keys: tuple[str, ...], vocabulary: Vocabulary) -> ShapeContext:
    return ShapeContext(payload=payload, source=first_present(payload, *keys), vocabulary=vocabulary)


def _to_click_event(record: Mapping) -> ClickEvent:
    values = {}
    for field, aliases in CLICK_EVENT_ALIASES.items():
        value = first_present(record, *aliases)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool) and str(value).strip():
            values[field] = str(value)
    return ClickEvent(**values)


def _display_value(field: str, value: Any) -> Any:
    """A detailed-metric value in display form, or None to keep the default."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value == 0:
            return None
        if field == "peak_hour":
            hour = to_hour(value)
            return format_peak_hour(hour) if hour is not None else None
        if field == "pages_per_session":
            return float(value)
        return str(value)
    return None


def _detailed_metrics(payload: Mapping) -> DetailedMetrics:
    nested = payload.get("detailedMetrics")
    values = {}
    for field, aliases in DETAILED_METRIC_ALIASES.items():
        for holder in (nested, payload):
            value = _display_value(field, first_present(holder, *aliases))
            if value is not None:
                values[field] = value
                break
    return DetailedMetrics(**values)


def unwrap_payload(body: Any) -> Any:
    """
    Strip the API response envelope.

    The analytics endpoints answer either ``{"analytics": {...}}``,
    ``{"data": {...}}`` or the bare payload.
    """
    if not isinstance(body, Mapping):
        return body
    for key in ("analytics", "data"):
        if isinstance(body.get(key), Mapping):
            return body[key]
    return body


def normalize(
    raw: Any,
    is_overall: bool = False,
    *,
    top_countries_limit: int = TOP_COUNTRIES_LIMIT,
) -> AnalyticsSnapshot:
    """
    Convert an upstream analytics payload into the canonical snapshot.

    Args:
        raw: Payload from the analytics service (None and non-mappings are
             treated as empty)
        is_overall: True for account-wide dashboard stats, False for a
                    single link's analytics
        top_countries_limit: How many countries to keep

    Returns:
        AnalyticsSnapshot. Never raises; every missing or unrecognized
        metric gets its neutral default.

    Examples:
        >>> normalize({"bounceRate": 30, "totalClicks": 100}).engagement
        Engagement(bounced=30, engaged=70, bounce_rate=30.0)

        >>> normalize(None).clicks_over_time
        ClicksOverTime(labels=[], values=[])
    """
    payload = raw if isinstance(raw, Mapping) else {}
    vocabulary = OVERALL_VOCABULARY if is_overall else LINK_VOCABULARY

    clicks_over_time = recognize(
        "clicks_over_time",
        CLICKS_OVER_TIME_RECOGNIZERS,
        _context(payload, vocabulary.time_series_keys, vocabulary),
        ClicksOverTime,
    )

    country_records = recognize(
        "top_countries",
        TOP_COUNTRIES_RECOGNIZERS,
        _context(payload, COUNTRY_SOURCE_KEYS, vocabulary),
        list,
    )

    device_distribution = recognize(
        "device_distribution",
        DEVICE_RECOGNIZERS,
        _context(payload, DEVICE_SOURCE_KEYS, vocabulary),
        DeviceDistribution,
    )

    engagement = recognize(
        "engagement",
        ENGAGEMENT_RECOGNIZERS,
        _context(payload, ("engagement",), vocabulary),
        Engagement,
    )

    hourly_clicks = recognize(
        "hourly_clicks",
        HOURLY_RECOGNIZERS,
        _context(payload, HOURLY_SOURCE_KEYS, vocabulary),
        lambda: [0] * HOURS_PER_DAY,
    )

    browser_distribution = recognize(
        "browser_distribution",
        BROWSER_RECOGNIZERS,
        _context(payload, BROWSER_SOURCE_KEYS, vocabulary),
        lambda: Breakdown(labels=list(BROWSER_FAMILIES), values=[0] * len(BROWSER_FAMILIES)),
    )

    os_distribution = recognize(
        "os_distribution",
        OS_RECOGNIZERS,
        _context(payload, OS_SOURCE_KEYS, vocabulary),
        lambda: Breakdown(labels=list(OS_FAMILIES), values=[0] * len(OS_FAMILIES)),
    )

    referrer_breakdown = recognize(
        "referrer_breakdown",
        REFERRER_RECOGNIZERS,
        _context(payload, REFERRER_SOURCE_KEYS, vocabulary),
        empty_breakdown,
    )

    link_records = recognize(
        "top_links",
        TOP_LINKS_RECOGNIZERS,
        _context(payload, LINK_SOURCE_KEYS, vocabulary),
        list,
    )

    city_records = recognize(
        "top_cities",
        TOP_CITIES_RECOGNIZERS,
        _context(payload, CITY_SOURCE_KEYS, vocabulary),
        list,
    )

    recent_clicks = [
        _to_click_event(record)
        for record in _mappings(first_present(payload, *RECENT_CLICKS_KEYS))
    ]

    return AnalyticsSnapshot(
        clicks_over_time=clicks_over_time,
        top_countries=rank_countries(country_records, top_countries_limit),
        device_distribution=device_distribution,
        engagement=engagement,
        total_clicks=first_count(payload, *vocabulary.total_keys),
        unique_clicks=first_count(payload, *vocabulary.unique_keys),
        returning_visitors=first_count(payload, *RETURNING_KEYS),
        recent_clicks=recent_clicks,
        detailed_metrics=_detailed_metrics(payload),
        hourly_clicks=hourly_clicks,
        browser_distribution=browser_distribution,
        os_distribution=os_distribution,
        referrer_breakdown=referrer_breakdown,
        top_links=rank_links(link_records),
        top_cities=rank_cities(city_records),
    )
