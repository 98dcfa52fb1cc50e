"""
Display labels for time buckets.

Upstream time series label their points with whatever the aggregation
query produced: month keys ("2024-03"), ISO dates or timestamps
("2024-03-15", "2024-03-15T00:00:00Z"), or already-formatted strings.
Month keys become "Mar 2024", dates become US-style "3/15/2024", anything
else is passed through untouched.
"""

import re
from datetime import date, datetime

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Order matters: a date label also starts with a month key
MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
DATE_PREFIX_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

TIME_RANGE_LABELS = {
    "today": "Today",
    "7days": "Last 7 Days",
    "30days": "Last 30 Days",
    "90days": "Last 3 Months",
    "180days": "Last 6 Months",
    "365days": "Last Year",
    "all": "Overall",
}


def format_date(value: date) -> str:
    """Format a date the way en-US locale date strings look (M/D/YYYY)."""
    return f"{value.month}/{value.day}/{value.year}"


def format_period_label(label) -> str:
    """
    Turn a raw time-series label into a display label.

    Examples:
        >>> format_period_label("2024-03")
        'Mar 2024'
        >>> format_period_label("2024-03-15T10:00:00Z")
        '3/15/2024'
        >>> format_period_label("Week 12")
        'Week 12'
    """
    if label is None:
        return ""
    if isinstance(label, datetime):
        return format_date(label.date())
    if isinstance(label, date):
        return format_date(label)
    if not isinstance(label, str):
        return str(label)

    match = MONTH_KEY_PATTERN.match(label)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            return f"{MONTH_NAMES[month - 1]} {year}"
        return label

    match = DATE_PREFIX_PATTERN.match(label)
    if match:
        try:
            parsed = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return label
        return format_date(parsed)

    return label


def format_hour_label(hour: int, use_12_hour: bool = True) -> str:
    """
    Label an hour of the day.

    12-hour labels are compact ("12AM", "9AM", "12PM", "5PM"); 24-hour labels
    are zero padded ("09:00").
    """
    hour = hour % 24
    if not use_12_hour:
        return f"{hour:02d}:00"
    if hour == 0:
        return "12AM"
    if hour == 12:
        return "12PM"
    return f"{hour}AM" if hour < 12 else f"{hour - 12}PM"


def format_hour_range(hour: int, use_12_hour: bool = True) -> str:
    """Label the one-hour window starting at ``hour`` ("11PM - 12AM")."""
    return f"{format_hour_label(hour, use_12_hour)} - {format_hour_label(hour + 1, use_12_hour)}"


def format_peak_hour(hour: int) -> str:
    """Spaced 12-hour label used in the detailed metrics panel ("2 PM")."""
    hour = hour % 24
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display} {suffix}"


def get_time_range_label(time_range: str) -> str:
    """Human label for a dashboard range key, falling back to the key itself."""
    return TIME_RANGE_LABELS.get(time_range, time_range)
