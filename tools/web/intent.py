"""Intent detection deciding which provider adapters a query needs."""

import re
from datetime import date

YEAR_TOKEN = re.compile(r"\b(?:19|20)\d{2}\b")
RECENT_YEAR_SPAN = 1


def mentions_recent_year(text: str, today: date | None = None) -> bool:
    """True if text names the current year or one of the RECENT_YEAR_SPAN years before it."""
    current = (today or date.today()).year
    years = (int(year) for year in YEAR_TOKEN.findall(text))
    return any(current - RECENT_YEAR_SPAN <= year <= current for year in years)


def is_current_events_query(text: str) -> bool:
    """
    Detect if a query is about current events and should consult news sources.

    Args:
        text: Query text

    Returns:
        True if the query uses current-events vocabulary or mentions a recent year
    """
    text_lower = text.lower().strip()

    current_events_terms = [
        "latest",
        "recent",
        "current",
        "today",
        "news",
        "breaking",
        "happening",
        "now",
        "update",
    ]

    for term in current_events_terms:
        if re.search(rf"\b{re.escape(term)}", text_lower):
            return True

    return mentions_recent_year(text_lower)


def is_academic_query(text: str) -> bool:
    """
    Detect if a query asks for scholarly material.

    Args:
        text: Query text

    Returns:
        True if the query uses scholarly-intent vocabulary
    """
    text_lower = text.lower().strip()

    academic_terms = [
        "research",
        "study",
        "studies",
        "analysis",
        "paper",
        "journal",
        "academic",
        "scholarly",
        "peer-reviewed",
        "peer reviewed",
        "thesis",
        "dissertation",
    ]

    for term in academic_terms:
        if term in text_lower:
            return True

    return False


def is_crisis_context(context: str | None) -> bool:
    """Crisis committees get an extra 'recent developments' section in synthesis."""
    return bool(context) and "crisis" in context.lower()


def normalize_query_text(text: str) -> str:
    """
    Normalize query text for cache keys.

    Lowercases, collapses whitespace and drops trailing punctuation so that
    "UN  resolutions?" and "un resolutions" share a key.

    Args:
        text: Input query text

    Returns:
        Normalized text
    """
    normalized = " ".join(text.lower().split())
    return normalized.rstrip("?!. ")


def query_terms(text: str) -> list[str]:
    """Split query text into lower-cased, non-empty terms."""
    return [term for term in re.split(r"\s+", text.lower().strip()) if term]
