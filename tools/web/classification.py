"""Domain classification tables used for credibility scoring and adapter filtering."""

from urllib.parse import urlsplit

# Official / UN-family sources searched and trusted first
TRUSTED_SOURCES = (
    "un.org",
    "news.un.org",
    "undocs.org",
    "securitycouncilreport.org",
    "icrc.org",
    "who.int",
    "unhcr.org",
    "worldbank.org",
    "imf.org",
    "oecd.org",
)

# Subset of TRUSTED_SOURCES that gets a site-scoped sub-query on every research call
TRUSTED_SEARCH_DOMAINS = ("un.org", "undocs.org", "unhcr.org")

ACADEMIC_INDICATORS = (
    ".edu",
    "scholar.google.com",
    "jstor.org",
    "sciencedirect.com",
    "springer.com",
    "nature.com",
    "cell.com",
    "academic.oup.com",
    "researchgate.net",
    "semanticscholar.org",
    "arxiv.org",
)

HIGH_CREDIBILITY_NEWS = (
    "reuters.com",
    "ap.org",
    "apnews.com",
    "bbc.com",
    "bbc.co.uk",
    "npr.org",
    "aljazeera.com",
    "theguardian.com",
    "washingtonpost.com",
    "nytimes.com",
    "wsj.com",
)

MEDIUM_CREDIBILITY_NEWS = (
    "cnn.com",
    "msnbc.com",
    "foxnews.com",
    "politico.com",
    "bloomberg.com",
)

PENALIZED_DOMAINS = (
    "facebook.com",
    "twitter.com",
    "x.com",
    "tiktok.com",
    "youtube.com",
    "instagram.com",
    "reddit.com",
)

# Domains excluded from the general web sub-query
EXCLUDED_WEB_SITES = ("facebook.com", "twitter.com")

TRUSTED_CREDIBILITY = 0.95
ACADEMIC_CREDIBILITY = 0.85
HIGH_NEWS_CREDIBILITY = 0.85
MEDIUM_NEWS_CREDIBILITY = 0.70
BASELINE_CREDIBILITY = 0.5
EDU_GOV_BOOST = 0.3
ORG_BOOST = 0.2
PENALIZED_ADJUSTMENT = -0.2
CREDIBILITY_FLOOR = 0.1
CREDIBILITY_CEILING = 1.0


def domain_of(url: str) -> str:
    """Lower-cased host of a URL without port or leading 'www.'."""
    host = (urlsplit(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def matches_domain(domain: str, entry: str) -> bool:
    """
    True when ``domain`` belongs to a table ``entry``.

    Entries starting with '.' are suffixes ('.edu'); other entries match the host
    itself or any of its subdomains, so 'news.un.org' matches 'un.org' but
    'fun.org' does not.
    """
    domain = domain.lower().strip(".")
    if entry.startswith("."):
        return domain.endswith(entry)
    return domain == entry or domain.endswith("." + entry)


def matches_any(domain: str, entries) -> bool:
    return any(matches_domain(domain, entry) for entry in entries)


def is_trusted_source(domain: str) -> bool:
    return matches_any(domain, TRUSTED_SOURCES)


def is_academic_source(domain: str) -> bool:
    return matches_any(domain, ACADEMIC_INDICATORS)


def is_penalized_source(domain: str) -> bool:
    return matches_any(domain, PENALIZED_DOMAINS)
