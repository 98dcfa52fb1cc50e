"""
Timezone support for hourly click analysis.

The analytics service buckets clicks by UTC hour of day. Viewers want to see
when *their* audience clicks, so the 24 UTC buckets are re-bucketed into a
chosen IANA timezone before peak-hour analysis.

Key Design Decisions:
- Counts are added into the local slot, never overwritten: several UTC hours
  may land on the same local hour, and the total must be conserved
- Each UTC hour is converted using a reference instant on *today's* date
  (or the date of ``now``). Historical clicks on the other side of a DST
  change can be off by one hour. This is a known approximation.
- An unknown or malformed zone name never raises; the UTC histogram is
  returned unchanged
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .coercion import to_histogram
from .core.models import HOURS_PER_DAY

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class TimezoneOption:
    """A selectable display timezone."""
    value: str  # IANA identifier
    label: str
    country: str | None = None  # ISO 3166-1 alpha-2


# =============================================================================
# TIMEZONE CATALOGUE
# =============================================================================

TIMEZONES = (
    TimezoneOption("UTC", "UTC (Coordinated Universal Time)"),

    # North America
    TimezoneOption("America/New_York", "Eastern Time (US & Canada)", "US"),
    TimezoneOption("America/Chicago", "Central Time (US & Canada)", "US"),
    TimezoneOption("America/Denver", "Mountain Time (US & Canada)", "US"),
    TimezoneOption("America/Los_Angeles", "Pacific Time (US & Canada)", "US"),
    TimezoneOption("America/Toronto", "Eastern Time - Toronto", "CA"),
    TimezoneOption("America/Vancouver", "Pacific Time - Vancouver", "CA"),
    TimezoneOption("America/Mexico_City", "Central Time - Mexico City", "MX"),

    # Europe
    TimezoneOption("Europe/London", "London", "GB"),
    TimezoneOption("Europe/Paris", "Paris", "FR"),
    TimezoneOption("Europe/Berlin", "Berlin", "DE"),
    TimezoneOption("Europe/Rome", "Rome", "IT"),
    TimezoneOption("Europe/Madrid", "Madrid", "ES"),
    TimezoneOption("Europe/Amsterdam", "Amsterdam", "NL"),
    TimezoneOption("Europe/Brussels", "Brussels", "BE"),
    TimezoneOption("Europe/Zurich", "Zurich", "CH"),
    TimezoneOption("Europe/Stockholm", "Stockholm", "SE"),
    TimezoneOption("Europe/Oslo", "Oslo", "NO"),
    TimezoneOption("Europe/Helsinki", "Helsinki", "FI"),
    TimezoneOption("Europe/Warsaw", "Warsaw", "PL"),
    TimezoneOption("Europe/Prague", "Prague", "CZ"),
    TimezoneOption("Europe/Budapest", "Budapest", "HU"),
    TimezoneOption("Europe/Vienna", "Vienna", "AT"),
    TimezoneOption("Europe/Dublin", "Dublin", "IE"),
    TimezoneOption("Europe/Lisbon", "Lisbon", "PT"),
    TimezoneOption("Europe/Athens", "Athens", "GR"),
    TimezoneOption("Europe/Istanbul", "Istanbul", "TR"),
    TimezoneOption("Europe/Moscow", "Moscow", "RU"),

    # Asia
    TimezoneOption("Asia/Tokyo", "Tokyo", "JP"),
    TimezoneOption("Asia/Shanghai", "Shanghai", "CN"),
    TimezoneOption("Asia/Hong_Kong", "Hong Kong", "HK"),
    TimezoneOption("Asia/Singapore", "Singapore", "SG"),
    TimezoneOption("Asia/Seoul", "Seoul", "KR"),
    TimezoneOption("Asia/Bangkok", "Bangkok", "TH"),
    TimezoneOption("Asia/Kolkata", "India (Kolkata)", "IN"),
    TimezoneOption("Asia/Dubai", "Dubai", "AE"),
    TimezoneOption("Asia/Jerusalem", "Jerusalem", "IL"),
    TimezoneOption("Asia/Riyadh", "Riyadh", "SA"),
    TimezoneOption("Asia/Karachi", "Karachi", "PK"),
    TimezoneOption("Asia/Dhaka", "Dhaka", "BD"),
    TimezoneOption("Asia/Jakarta", "Jakarta", "ID"),
    TimezoneOption("Asia/Manila", "Manila", "PH"),
    TimezoneOption("Asia/Taipei", "Taipei", "TW"),
    TimezoneOption("Asia/Ho_Chi_Minh", "Ho Chi Minh City", "VN"),

    # Australia / Pacific
    TimezoneOption("Australia/Sydney", "Sydney", "AU"),
    TimezoneOption("Australia/Melbourne", "Melbourne", "AU"),
    TimezoneOption("Australia/Brisbane", "Brisbane", "AU"),
    TimezoneOption("Australia/Perth", "Perth", "AU"),
    TimezoneOption("Pacific/Auckland", "Auckland", "NZ"),
    TimezoneOption("Pacific/Honolulu", "Honolulu", "US"),

    # South America
    TimezoneOption("America/Sao_Paulo", "São Paulo", "BR"),
    TimezoneOption("America/Buenos_Aires", "Buenos Aires", "AR"),
    TimezoneOption("America/Lima", "Lima", "PE"),
    TimezoneOption("America/Bogota", "Bogota", "CO"),
    TimezoneOption("America/Santiago", "Santiago", "CL"),
    TimezoneOption("America/Caracas", "Caracas", "VE"),

    # Africa
    TimezoneOption("Africa/Cairo", "Cairo", "EG"),
    TimezoneOption("Africa/Johannesburg", "Johannesburg", "ZA"),
    TimezoneOption("Africa/Lagos", "Lagos", "NG"),
    TimezoneOption("Africa/Nairobi", "Nairobi", "KE"),
    TimezoneOption("Africa/Casablanca", "Casablanca", "MA"),
    TimezoneOption("Africa/Tunis", "Tunis", "TN"),
    TimezoneOption("Africa/Addis_Ababa", "Addis Ababa", "ET"),
)


def resolve_timezone(zone: str | None) -> tzinfo | None:
    """
    Look up an IANA zone.

    Returns None when the name is empty, malformed or unknown to the
    timezone database.
    """
    if not isinstance(zone, str) or not zone.strip():
        return None
    name = zone.strip()
    if name.upper() == DEFAULT_TIMEZONE:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def is_valid_timezone(zone: str | None) -> bool:
    """Check whether a zone name resolves."""
    return resolve_timezone(zone) is not None


def _reference_instant(hour: int, now: datetime | None) -> datetime:
    """Today's date (UTC) at the given UTC hour."""
    anchor = now or datetime.now(timezone.utc)
    if anchor.tzinfo is None:
        anchor = anchor.replace(tzinfo=timezone.utc)
    return anchor.astimezone(timezone.utc).replace(hour=hour, minute=0, second=0, microsecond=0)


def _local_hour(utc_hour: int, tz: tzinfo, now: datetime | None) -> int:
    return _reference_instant(utc_hour, now).astimezone(tz).hour % HOURS_PER_DAY


def convert_utc_hour(utc_hour: int, zone: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> int:
    """
    Convert a UTC hour of day to the civil hour in ``zone``.

    Half-hour and 45-minute offsets floor to the containing hour
    (09:00 UTC in Asia/Kolkata is 14:30, hour 14). Unknown zones return the
    hour unchanged.
    """
    tz = resolve_timezone(zone)
    if tz is None:
        return utc_hour % HOURS_PER_DAY
    return _local_hour(utc_hour % HOURS_PER_DAY, tz, now)


def remap_to_timezone(
    utc_histogram: Mapping | Sequence,
    zone: str = DEFAULT_TIMEZONE,
    now: datetime | None = None,
) -> list[int]:
    """
    Re-bucket a UTC hour-of-day histogram into local hours of ``zone``.

    Args:
        utc_histogram: 24 counts indexed by UTC hour, or a {hour: count} mapping
        zone: IANA timezone identifier (e.g. "America/New_York")
        now: Reference date for the offset lookup; defaults to the current time

    Returns:
        24 counts indexed by local hour. The sum always equals the source sum.
        For an unresolvable zone the source histogram is returned as-is.

    Examples:
        >>> remap_to_timezone({9: 10, 21: 5}, "Etc/GMT+4")[5]
        10
    """
    source = to_histogram(utc_histogram)
    tz = resolve_timezone(zone)
    if tz is None:
        logger.warning(f"Unknown timezone {zone!r}, showing hourly clicks in UTC")
        return source

    local = [0] * HOURS_PER_DAY
    for utc_hour, count in enumerate(source):
        if count:
            local[_local_hour(utc_hour, tz, now)] += count
    return local


def get_timezone_offset(zone: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> float:
    """Current offset of ``zone`` from UTC in hours (0 for unknown zones)."""
    tz = resolve_timezone(zone)
    if tz is None:
        return 0.0
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    offset = instant.astimezone(tz).utcoffset()
    return offset.total_seconds() / 3600 if offset is not None else 0.0


def get_current_time_in_timezone(zone: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> str:
    """Wall-clock time in ``zone`` as HH:MM:SS ("00:00:00" for unknown zones)."""
    tz = resolve_timezone(zone)
    if tz is None:
        return "00:00:00"
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz).strftime("%H:%M:%S")


def get_timezones_by_country(country_code: str | None) -> list[TimezoneOption]:
    """Catalogue entries for a country code or label fragment (all entries if blank)."""
    if not country_code:
        return list(TIMEZONES)
    lower = country_code.lower()
    return [
        tz for tz in TIMEZONES
        if (tz.country and tz.country.lower() == lower) or lower in tz.label.lower()
    ]


def search_timezones(query: str | None) -> list[TimezoneOption]:
    """Catalogue entries whose label, identifier or country contains ``query``."""
    if not query:
        return list(TIMEZONES)
    lower = query.lower()
    return [
        tz for tz in TIMEZONES
        if lower in tz.label.lower()
        or lower in tz.value.lower()
        or (tz.country and lower in tz.country.lower())
    ]


def get_timezone_display_name(zone: str | None = DEFAULT_TIMEZONE) -> str:
    """
    Friendly name for a zone.

    Catalogue label when known, otherwise the city part of the identifier
    ("America/Port_of_Spain" -> "Port of Spain").
    """
    if not isinstance(zone, str) or not zone.strip() or zone == DEFAULT_TIMEZONE:
        return DEFAULT_TIMEZONE
    for tz in TIMEZONES:
        if tz.value == zone:
            return tz.label
    city = zone.split("/")[-1].replace("_", " ")
    return city or zone
