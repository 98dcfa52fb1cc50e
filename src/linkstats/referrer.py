"""
Referrer classification for the traffic-source breakdown.

Short-link clicks are grouped into the categories the dashboard shows:
- Direct: No referrer (typed URL, QR scan, messaging apps that strip it)
- Social Media: Social platforms (Facebook, Twitter, LinkedIn, etc.)
- Search: Search engines (Google, Bing, DuckDuckGo, etc.)
- Email: Webmail and newsletter platforms
- Others: Everything else

Referrer sources arrive as URLs, bare domains or names ("Facebook"), so
matching is done on lowercase substrings rather than parsed hosts.
"""

from enum import Enum

from .coercion import first_count, first_present
from .core.models import ReferrerBreakdown


class ReferrerCategory(str, Enum):
    """Traffic source category, valued by its display name."""

    SOCIAL = "Social Media"
    SEARCH = "Search"
    EMAIL = "Email"
    DIRECT = "Direct"
    OTHERS = "Others"


# Display order for charts
CATEGORY_ORDER = (
    ReferrerCategory.SOCIAL,
    ReferrerCategory.SEARCH,
    ReferrerCategory.EMAIL,
    ReferrerCategory.DIRECT,
    ReferrerCategory.OTHERS,
)

# Keys the analytics service uses for its pre-categorized response
BACKEND_CATEGORY_KEYS = {
    "social": ReferrerCategory.SOCIAL,
    "search": ReferrerCategory.SEARCH,
    "email": ReferrerCategory.EMAIL,
    "direct": ReferrerCategory.DIRECT,
    "others": ReferrerCategory.OTHERS,
}

# =============================================================================
# REFERRER SOURCE DATABASE
# =============================================================================

SOCIAL_PLATFORMS = (
    "facebook", "fb.com", "fb.me",
    "instagram", "threads.net",
    "twitter",
    "linkedin", "lnkd.in",
    "whatsapp", "wa.me",
    "pinterest", "pin.it",
    "tiktok",
    "reddit",
    "youtube", "youtu.be",
    "telegram",
    "snapchat",
    "discord",
)

SEARCH_ENGINES = (
    "google",
    "bing",
    "yahoo",
    "duckduckgo",
    "baidu",
    "yandex",
    "ecosia",
    "brave.com/search", "search.brave.com",
)

# Webmail hosts and generic email indicators
EMAIL_INDICATORS = (
    "mail",
    "newsletter",
    "outlook",
    "list-manage.com",
    "sendgrid",
)

DIRECT_NAMES = ("", "direct", "(direct)", "none", "null")


def classify_referrer(source: str | None) -> ReferrerCategory:
    """
    Classify a referrer source into a dashboard category.

    Email is checked before search so that "mail.google.com" is email,
    not organic search.

    Examples:
        >>> classify_referrer("https://www.facebook.com/post/1")
        <ReferrerCategory.SOCIAL: 'Social Media'>
        >>> classify_referrer("mail.google.com")
        <ReferrerCategory.EMAIL: 'Email'>
        >>> classify_referrer(None)
        <ReferrerCategory.DIRECT: 'Direct'>
    """
    if source is None:
        return ReferrerCategory.DIRECT

    lowered = str(source).strip().lower()
    if lowered in DIRECT_NAMES:
        return ReferrerCategory.DIRECT

    if any(indicator in lowered for indicator in EMAIL_INDICATORS):
        return ReferrerCategory.EMAIL

    if any(engine in lowered for engine in SEARCH_ENGINES):
        return ReferrerCategory.SEARCH

    if any(platform in lowered for platform in SOCIAL_PLATFORMS):
        return ReferrerCategory.SOCIAL

    return ReferrerCategory.OTHERS


def empty_breakdown() -> ReferrerBreakdown:
    """Breakdown with every category present and zeroed."""
    return ReferrerBreakdown(
        categories={category.value: 0 for category in CATEGORY_ORDER},
        details={category.value: {} for category in CATEGORY_ORDER},
    )


def summarize_referrers(records: list) -> ReferrerBreakdown:
    """
    Sum referrer records into categories.

    Args:
        records: [{_id|referrer|source, count|clicks}, ...]

    Returns:
        ReferrerBreakdown with every category present
    """
    breakdown = empty_breakdown()
    for record in records:
        source = first_present(record, "_id", "referrer", "source", "domain")
        count = first_count(record, "count", "clicks", "value", "visits")
        if count <= 0:
            continue
        category = classify_referrer(source if isinstance(source, str) else None)
        name = str(source).strip() if isinstance(source, str) and source.strip() else category.value
        breakdown.categories[category.value] += count
        detail = breakdown.details[category.value]
        detail[name] = detail.get(name, 0) + count
    return breakdown


def top_referrer(breakdown: ReferrerBreakdown) -> str | None:
    """
    The single source with the most clicks across all categories.

    Ties resolve to the category listed first in CATEGORY_ORDER, then to the
    first-seen source. Returns None when there is no referrer traffic.
    """
    best_name, best_count = None, 0
    for category in CATEGORY_ORDER:
        for name, count in breakdown.details.get(category.value, {}).items():
            if count > best_count:
                best_name, best_count = name, count
    return best_name
