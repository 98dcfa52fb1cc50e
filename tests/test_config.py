"""Tests for configuration and the package entry points."""

from datetime import datetime, timezone

import pytest
from linkstats import AnalyticsConfig, InvalidTimezoneError, build_snapshot, setup_analytics


class TestAnalyticsConfig:
    """Test configuration validation."""

    def test_defaults(self):
        config = AnalyticsConfig()
        assert config.timezone == "UTC"
        assert config.top_countries_limit == 10
        assert config.use_12_hour_labels is True
        assert config.is_overall is False

    def test_unknown_timezone_rejected(self):
        with pytest.raises(InvalidTimezoneError) as exc_info:
            AnalyticsConfig(timezone="Moon/Tranquility")
        assert "Moon/Tranquility" in str(exc_info.value)

    def test_invalid_timezone_is_value_error(self):
        with pytest.raises(ValueError):
            AnalyticsConfig(timezone="")

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(ValueError, match="top_countries_limit"):
            AnalyticsConfig(top_countries_limit=limit)

    def test_large_limit_warns(self, caplog):
        AnalyticsConfig(top_countries_limit=25)
        assert "top_countries_limit 25" in caplog.text

    def test_zone_properties(self):
        config = AnalyticsConfig(timezone="Asia/Kolkata")
        assert config.zone_display_name == "India (Kolkata)"
        assert config.utc_offset_hours == 5.5


class TestBuildSnapshot:
    """Test normalize-and-derive in one call."""

    RAW = {
        "analytics": {
            "totalClicks": 24,
            "bounceRate": 50,
            "countries": [{"country": c, "clicks": n} for c, n in [("US", 9), ("DE", 5), ("JP", 2), ("BR", 1)]],
            "hourlyClicks": {"9": 20, "21": 4},
        }
    }

    def test_envelope_is_unwrapped(self):
        snapshot = build_snapshot(self.RAW)
        assert snapshot.total_clicks == 24
        assert snapshot.engagement.bounced == 12

    def test_statistics_are_derived(self):
        stats = build_snapshot(self.RAW).statistics
        assert stats is not None
        assert stats.average_per_hour == 1.0
        assert stats.peak_hour == 9
        assert stats.peak_vs_average == 20.0

    def test_config_limit_applied(self):
        snapshot = build_snapshot(self.RAW, AnalyticsConfig(top_countries_limit=2))
        assert snapshot.top_countries.countries == ["US", "DE"]

    def test_overall_mode(self):
        raw = {"data": {"totalClicksAllLinks": 7}}
        assert build_snapshot(raw, AnalyticsConfig(is_overall=True)).total_clicks == 7
        assert build_snapshot(raw).total_clicks == 0

    def test_json_contract(self):
        data = build_snapshot(self.RAW).to_dict()
        assert data["topCountries"]["rawData"][0] == {"country": "US", "visits": 9}
        assert data["engagement"]["bounceRate"] == 50.0
        assert len(data["hourlyClicks"]) == 24
        assert "peakVsAverage" in data["statistics"]


class TestSetupAnalytics:
    """Test the configured analytics view."""

    def test_peak_hours_in_viewer_timezone(self):
        analytics = setup_analytics(timezone="Etc/GMT+4")
        snapshot = analytics.snapshot(TestBuildSnapshot.RAW)
        peak = analytics.peak_hours(snapshot)
        assert peak.peak_hour == 5
        assert peak.peak_range == "5AM - 6AM"
        assert sum(bucket.count for bucket in peak.buckets) == 24

    def test_24_hour_labels(self):
        analytics = setup_analytics(timezone="Europe/London", use_12_hour_labels=False)
        snapshot = analytics.snapshot(TestBuildSnapshot.RAW)
        peak = analytics.peak_hours(snapshot, now=datetime(2024, 7, 1, tzinfo=timezone.utc))
        assert peak.peak_range == "10:00 - 11:00"

    def test_invalid_timezone(self):
        with pytest.raises(InvalidTimezoneError):
            setup_analytics(timezone="Not/AZone")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
