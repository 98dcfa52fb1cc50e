"""
Browser and operating-system family bucketing.

The analytics service reports browser and OS names as free text
("Chrome Mobile", "Mobile Safari", "Mac OS X", "Windows 10"). Charts show a
fixed set of families, so names are matched against ordered patterns and
their counts summed per family.

Key Design Decisions:
- Order matters: check specific names before generic ones (Edge before Chrome)
- Fixed family lists so charts always get the same labels in the same order
- Unknown browsers land in "Others"; unknown operating systems are dropped
"""

import re

from .coercion import first_count, first_present
from .core.models import Breakdown

# =============================================================================
# BROWSER FAMILIES
# =============================================================================
# Each tuple: (pattern_in_name, family)

BROWSER_FAMILIES = ("Chrome", "Safari", "Firefox", "Edge", "Others")

BROWSER_PATTERNS = (
    (r"edg", "Edge"),
    (r"chrome|crios|chromium", "Chrome"),
    (r"firefox|fxios", "Firefox"),
    (r"safari", "Safari"),
)

# =============================================================================
# OS FAMILIES
# =============================================================================

OS_FAMILIES = ("Windows", "macOS", "Android", "iOS")

OS_PATTERNS = (
    (r"\bwin", "Windows"),  # not "darwin"
    (r"mac|os x|darwin", "macOS"),
    (r"android", "Android"),
    (r"ios|iphone|ipad", "iOS"),
)

NAME_KEYS = ("_id", "name", "label")
COUNT_KEYS = ("count", "clicks", "value", "visits")


def detect_browser_family(name: str) -> str | None:
    """Map a browser name to its family; None for a blank name."""
    if not name or not str(name).strip():
        return None
    for pattern, family in BROWSER_PATTERNS:
        if re.search(pattern, str(name), re.IGNORECASE):
            return family
    return "Others"


def detect_os_family(name: str) -> str | None:
    """Map an OS name to its family; None when it is blank or unrecognized."""
    if not name or not str(name).strip():
        return None
    for pattern, family in OS_PATTERNS:
        if re.search(pattern, str(name), re.IGNORECASE):
            return family
    return None


def _summarize(records, families, detect, name_keys) -> Breakdown:
    counts = {family: 0 for family in families}
    for record in records:
        name = first_present(record, *name_keys)
        family = detect(name) if isinstance(name, str) else None
        if family is None:
            continue
        counts[family] += first_count(record, *COUNT_KEYS)
    return Breakdown(labels=list(counts), values=list(counts.values()))


def get_browser_summary(records: list) -> Breakdown:
    """
    Sum browser records into families.

    Args:
        records: [{_id|browser|name, count|clicks}, ...]

    Returns:
        Breakdown with labels in BROWSER_FAMILIES order
    """
    return _summarize(records, BROWSER_FAMILIES, detect_browser_family, ("browser",) + NAME_KEYS)


def get_os_summary(records: list) -> Breakdown:
    """
    Sum OS records into families.

    Args:
        records: [{_id|os|name, count|clicks}, ...]

    Returns:
        Breakdown with labels in OS_FAMILIES order
    """
    return _summarize(records, OS_FAMILIES, detect_os_family, ("os",) + NAME_KEYS)
