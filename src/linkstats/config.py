"""
Configuration for linkstats.
"""
import logging
from dataclasses import dataclass

from .normalizer import TOP_COUNTRIES_LIMIT
from .timezones import (
    DEFAULT_TIMEZONE,
    get_timezone_display_name,
    get_timezone_offset,
    is_valid_timezone,
)

logger = logging.getLogger(__name__)


class InvalidTimezoneError(ValueError):
    """Raised when the display timezone is not a known IANA zone."""
    pass


def validate_timezone(zone: str) -> None:
    """Validate a display timezone.

    Args:
        zone: IANA identifier such as "Europe/Paris"

    Raises:
        InvalidTimezoneError: If the zone cannot be resolved
    """
    if not is_valid_timezone(zone):
        raise InvalidTimezoneError(
            f"Unknown timezone {zone!r}. "
            f"Use an IANA identifier such as 'America/New_York' or 'UTC'."
        )


@dataclass
class AnalyticsConfig:
    """Settings for turning analytics payloads into dashboard data.

    Usage:
        config = AnalyticsConfig(timezone="Asia/Tokyo", use_12_hour_labels=False)
        snapshot = build_snapshot(payload, config)
    """

    # Display settings
    timezone: str = DEFAULT_TIMEZONE  # Viewer timezone for hourly charts
    use_12_hour_labels: bool = True  # "2PM" instead of "14:00"

    # Normalization
    top_countries_limit: int = TOP_COUNTRIES_LIMIT
    is_overall: bool = False  # Account-wide stats instead of a single link

    @property
    def zone_display_name(self) -> str:
        """Friendly name of the display timezone."""
        return get_timezone_display_name(self.timezone)

    @property
    def utc_offset_hours(self) -> float:
        """Current offset of the display timezone from UTC."""
        return get_timezone_offset(self.timezone)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_timezone()
        self._validate_limits()

    def _validate_timezone(self) -> None:
        validate_timezone(self.timezone)
        if self.timezone != DEFAULT_TIMEZONE:
            logger.debug(f"Displaying hourly clicks in {self.timezone}")

    def _validate_limits(self) -> None:
        if self.top_countries_limit <= 0:
            raise ValueError(
                f"top_countries_limit must be positive. Got {self.top_countries_limit}."
            )
        if self.top_countries_limit > TOP_COUNTRIES_LIMIT:
            logger.warning(
                f"top_countries_limit {self.top_countries_limit} is above the "
                f"dashboard's {TOP_COUNTRIES_LIMIT} country rows"
            )
