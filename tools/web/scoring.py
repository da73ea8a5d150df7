"""Relevance and credibility heuristics for candidate sources."""

from .classification import (
    ACADEMIC_CREDIBILITY,
    ACADEMIC_INDICATORS,
    BASELINE_CREDIBILITY,
    CREDIBILITY_CEILING,
    CREDIBILITY_FLOOR,
    EDU_GOV_BOOST,
    HIGH_CREDIBILITY_NEWS,
    HIGH_NEWS_CREDIBILITY,
    MEDIUM_CREDIBILITY_NEWS,
    MEDIUM_NEWS_CREDIBILITY,
    ORG_BOOST,
    PENALIZED_ADJUSTMENT,
    TRUSTED_CREDIBILITY,
    TRUSTED_SOURCES,
    is_penalized_source,
    matches_any,
)
from .intent import query_terms

TITLE_TERM_WEIGHT = 0.3
BODY_TERM_WEIGHT = 0.1
OCCURRENCES_PER_TERM = 10


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def relevance(query: str, title: str, body: str = "") -> float:
    """
    Term-overlap relevance.

    Each query term present in the title adds TITLE_TERM_WEIGHT, each term
    present in the body adds BODY_TERM_WEIGHT. Clamped to 1.0.
    """
    title_lower = (title or "").lower()
    body_lower = (body or "").lower()

    score = 0.0
    for term in query_terms(query):
        if term in title_lower:
            score += TITLE_TERM_WEIGHT
        if body_lower and term in body_lower:
            score += BODY_TERM_WEIGHT
    return _clamp(score)


def content_relevance(query: str, body: str) -> float:
    """Term occurrences in the body, normalized by term count. Clamped to 1.0."""
    terms = query_terms(query)
    if not terms or not body:
        return 0.0
    body_lower = body.lower()
    matches = sum(body_lower.count(term) for term in terms)
    return _clamp(matches / (len(terms) * OCCURRENCES_PER_TERM))


def effective_relevance(query: str, title: str, body: str) -> float:
    """Best of the overlap and frequency scores; fetched content can only raise relevance."""
    return max(relevance(query, title, body), content_relevance(query, body))


def general_credibility(domain: str) -> float:
    """Baseline with suffix boosts and a social-media penalty, floored at CREDIBILITY_FLOOR."""
    domain = domain.lower()
    score = BASELINE_CREDIBILITY

    if domain.endswith(".edu") or domain.endswith(".gov"):
        score += EDU_GOV_BOOST
    if domain.endswith(".org"):
        score += ORG_BOOST

    if is_penalized_source(domain):
        score += PENALIZED_ADJUSTMENT

    return _clamp(score, CREDIBILITY_FLOOR, CREDIBILITY_CEILING)


def credibility(domain: str) -> float:
    """
    Credibility weight for a domain.

    Ordered lookup: trusted/official, academic, high then medium credibility
    news, then the general suffix/penalty rules which fall back to the
    neutral baseline.
    """
    if matches_any(domain, TRUSTED_SOURCES):
        return TRUSTED_CREDIBILITY
    if matches_any(domain, ACADEMIC_INDICATORS):
        return ACADEMIC_CREDIBILITY
    if matches_any(domain, HIGH_CREDIBILITY_NEWS):
        return HIGH_NEWS_CREDIBILITY
    if matches_any(domain, MEDIUM_CREDIBILITY_NEWS):
        return MEDIUM_NEWS_CREDIBILITY
    return general_credibility(domain)
