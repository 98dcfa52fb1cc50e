"""Tests for peak-hour analysis."""

import pytest
from linkstats.peak_hours import (
    analyze_peak_hours,
    build_hour_buckets,
    find_peak_hour,
    peak_vs_average,
    ratio_to_peak,
)


def _histogram(counts: dict) -> list[int]:
    histogram = [0] * 24
    for hour, count in counts.items():
        histogram[hour] = count
    return histogram


class TestFindPeakHour:
    """Test peak detection and tie-breaking."""

    def test_single_peak(self):
        assert find_peak_hour(_histogram({14: 9, 2: 3})) == (14, 9)

    def test_ties_resolve_to_lowest_hour(self):
        assert find_peak_hour(_histogram({7: 5, 3: 5, 20: 5})) == (3, 5)

    def test_empty_histogram(self):
        assert find_peak_hour([0] * 24) == (0, 0)
        assert find_peak_hour({}) == (0, 0)


class TestHourBuckets:
    """Test bar-ready hour buckets."""

    def test_ratio_to_peak(self):
        buckets = build_hour_buckets(_histogram({14: 10, 2: 5}))
        assert len(buckets) == 24
        assert buckets[14].percentage == 100.0
        assert buckets[2].percentage == 50.0
        assert buckets[0].percentage == 0.0

    def test_labels(self):
        buckets = build_hour_buckets([0] * 24)
        assert [buckets[h].label for h in (0, 9, 12, 17)] == ["12AM", "9AM", "12PM", "5PM"]

    def test_24_hour_labels(self):
        assert build_hour_buckets([0] * 24, use_12_hour=False)[9].label == "09:00"

    def test_all_zero_ratios(self):
        assert ratio_to_peak([0] * 24) == [0.0] * 24


class TestPeakVsAverage:
    """Test the peak-to-average ratio."""

    def test_ratio(self):
        assert peak_vs_average(10, 2.0) == 5.0

    def test_no_traffic(self):
        assert peak_vs_average(0, 0) == "N/A"


class TestAnalyzePeakHours:
    """Test the full peak-hour analysis."""

    def test_business_hours_peak(self):
        analysis = analyze_peak_hours({14: 12})
        assert analysis.peak_hour == 14
        assert analysis.peak_count == 12
        assert analysis.peak_range == "2PM - 3PM"
        assert analysis.total_clicks == 12
        assert analysis.average_per_hour == 0.5
        assert analysis.peak_share == 100.0
        assert analysis.peak_vs_average == 24.0
        assert analysis.insights == [
            "Peak activity occurs at 2PM - 3PM",
            "This hour accounts for 100.0% of daily traffic",
            "Peak hour traffic is 24.0 times higher than average",
            "Peak aligns with standard business hours",
        ]

    def test_evening_peak(self):
        analysis = analyze_peak_hours({23: 4})
        assert analysis.peak_range == "11PM - 12AM"
        assert analysis.insights[-1] == "Peak aligns with evening/night hours"

    def test_timezone_applied(self):
        analysis = analyze_peak_hours({9: 10, 21: 5}, "Etc/GMT+4")
        assert analysis.timezone == "Etc/GMT+4"
        assert analysis.peak_hour == 5
        assert analysis.buckets[17].count == 5
        assert analysis.insights[-1] == "Peak aligns with early morning hours"

    def test_no_traffic(self):
        analysis = analyze_peak_hours([0] * 24)
        assert analysis.peak_vs_average == "N/A"
        assert analysis.peak_share == 0
        assert analysis.insights == []

    def test_24_hour_range(self):
        assert analyze_peak_hours({14: 1}, use_12_hour=False).peak_range == "14:00 - 15:00"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
