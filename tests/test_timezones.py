"""Tests for timezone re-bucketing and timezone helpers."""

import logging
from datetime import datetime, timezone

import pytest
from linkstats.timezones import (
    TIMEZONES,
    convert_utc_hour,
    get_current_time_in_timezone,
    get_timezone_display_name,
    get_timezone_offset,
    get_timezones_by_country,
    is_valid_timezone,
    remap_to_timezone,
    search_timezones,
)

JANUARY = datetime(2024, 1, 15, tzinfo=timezone.utc)
JULY = datetime(2024, 7, 15, tzinfo=timezone.utc)


class TestRemapToTimezone:
    """Test re-bucketing of UTC hour histograms."""

    def test_fixed_negative_offset(self):
        local = remap_to_timezone({9: 10, 21: 5}, "Etc/GMT+4")
        assert local[5] == 10
        assert local[17] == 5
        assert sum(local) == 15

    def test_wraps_past_midnight(self):
        local = remap_to_timezone({20: 3}, "Asia/Tokyo", now=JANUARY)
        assert local[5] == 3

    def test_half_hour_offset_floors(self):
        local = remap_to_timezone({9: 4}, "Asia/Kolkata")
        assert local[14] == 4

    def test_quarter_hour_offset_floors(self):
        local = remap_to_timezone({9: 4}, "Asia/Kathmandu")
        assert local[14] == 4

    def test_utc_is_identity(self):
        source = list(range(24))
        assert remap_to_timezone(source, "UTC") == source

    @pytest.mark.parametrize("zone", [
        "America/New_York", "Australia/Adelaide", "Pacific/Chatham", "Asia/Kolkata", "Etc/GMT-14",
    ])
    def test_total_is_conserved(self, zone):
        source = [hour + 1 for hour in range(24)]
        local = remap_to_timezone(source, zone, now=JULY)
        assert len(local) == 24
        assert sum(local) == sum(source)

    def test_collisions_accumulate(self):
        # New York springs forward at 07:00 UTC on this date: 00:00 UTC is
        # 19:00 EST and 23:00 UTC is 19:00 EDT, while 02:00 local never occurs
        local = remap_to_timezone([1] * 24, "America/New_York", now=datetime(2024, 3, 10, tzinfo=timezone.utc))
        assert local[19] == 2
        assert local[2] == 0
        assert sum(local) == 24

    def test_invalid_zone_returns_source(self, caplog):
        source = {9: 10, 21: 5}
        with caplog.at_level(logging.WARNING, logger="linkstats.timezones"):
            local = remap_to_timezone(source, "Mars/Olympus_Mons")
        assert local[9] == 10
        assert local[21] == 5
        assert "Mars/Olympus_Mons" in caplog.text

    @pytest.mark.parametrize("zone", ["", None, "../etc/passwd", 42])
    def test_malformed_zone_returns_source(self, zone):
        assert remap_to_timezone([1, 2, 3], zone) == [1, 2, 3] + [0] * 21

    def test_garbage_histogram(self):
        assert remap_to_timezone("nope", "Asia/Tokyo") == [0] * 24


class TestDaylightSavingLimitation:
    """
    The offset is taken from the reference date, not from each click's date.

    A histogram of January clicks viewed in July uses the summer offset, so
    clicks are shown one hour later than their true local time. This is a
    known approximation.
    """

    def test_offset_follows_reference_date_not_click_date(self):
        winter = remap_to_timezone({12: 1}, "America/New_York", now=JANUARY)
        summer = remap_to_timezone({12: 1}, "America/New_York", now=JULY)
        assert winter[7] == 1
        assert summer[8] == 1

    def test_convert_utc_hour_uses_reference_date(self):
        assert convert_utc_hour(12, "Europe/London", now=JANUARY) == 12
        assert convert_utc_hour(12, "Europe/London", now=JULY) == 13


class TestTimezoneHelpers:
    """Test offset, validity and clock helpers."""

    def test_is_valid_timezone(self):
        assert is_valid_timezone("Europe/Paris") is True
        assert is_valid_timezone("UTC") is True
        assert is_valid_timezone("Nowhere/Special") is False
        assert is_valid_timezone("") is False

    def test_offsets(self):
        assert get_timezone_offset("Asia/Kolkata") == 5.5
        assert get_timezone_offset("Etc/GMT+4") == -4.0
        assert get_timezone_offset("America/New_York", now=JANUARY) == -5.0
        assert get_timezone_offset("Nowhere/Special") == 0.0

    def test_convert_utc_hour(self):
        assert convert_utc_hour(23, "Asia/Tokyo") == 8
        assert convert_utc_hour(5, "Nowhere/Special") == 5

    def test_current_time(self):
        now = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        assert get_current_time_in_timezone("Asia/Tokyo", now=now) == "09:00:00"
        assert get_current_time_in_timezone("Nowhere/Special", now=now) == "00:00:00"


class TestTimezoneCatalogue:
    """Test the display-timezone catalogue."""

    def test_catalogue_zones_resolve(self):
        for option in TIMEZONES:
            assert is_valid_timezone(option.value), option.value

    def test_search_by_label(self):
        assert [tz.value for tz in search_timezones("tokyo")] == ["Asia/Tokyo"]

    def test_search_by_identifier(self):
        values = [tz.value for tz in search_timezones("australia/")]
        assert "Australia/Sydney" in values
        assert "Pacific/Auckland" not in values

    def test_blank_search_returns_everything(self):
        assert len(search_timezones("")) == len(TIMEZONES)

    def test_by_country(self):
        assert [tz.value for tz in get_timezones_by_country("JP")] == ["Asia/Tokyo"]

    def test_display_names(self):
        assert get_timezone_display_name("UTC") == "UTC"
        assert get_timezone_display_name("America/New_York") == "Eastern Time (US & Canada)"
        assert get_timezone_display_name("America/Port_of_Spain") == "Port of Spain"

    def test_display_name_without_zone(self):
        assert get_timezone_display_name(None) == "UTC"
        assert get_timezone_display_name("") == "UTC"
        assert get_timezone_display_name(42) == "UTC"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
