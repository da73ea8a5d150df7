"""
Provider adapters: one per source category.

An adapter turns a Query into category-specific search queries, runs them on
its search backend, fetches each candidate's content, and returns scored
Sources. Adapters never raise: any failure is logged and yields fewer (or no)
sources.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from models.research import Query, Source
from utils.async_utils import settle_all
from utils.logger import get_logger

from . import scoring
from .classification import (
    ACADEMIC_CREDIBILITY,
    EXCLUDED_WEB_SITES,
    TRUSTED_CREDIBILITY,
    TRUSTED_SEARCH_DOMAINS,
    is_academic_source,
    is_trusted_source,
    matches_any,
)
from .contracts import SearchResult
from .fetcher import BaseContentFetcher
from .intent import is_academic_query, is_current_events_query
from .search_backends import BaseSearchBackend

logger = get_logger(__name__)


class BaseProviderAdapter(ABC):
    """Uniform interface to one source category."""

    name: str = "provider"

    def __init__(
        self,
        backend: BaseSearchBackend,
        fetcher: BaseContentFetcher,
        *,
        max_results: int = 5,
        min_content_chars: int = 100,
    ):
        self.backend = backend
        self.fetcher = fetcher
        self.max_results = max_results
        self.min_content_chars = min_content_chars

    def applies_to(self, query: Query) -> bool:
        """Whether this adapter should run for query."""
        return True

    @abstractmethod
    def build_queries(self, query: Query) -> list[str]:
        """Category-specific search strings for query."""

    def accepts(self, hit: SearchResult, query: Query) -> bool:
        return True

    @abstractmethod
    def credibility_for(self, domain: str, query: Query) -> float:
        """Credibility weight for a hit from this category."""

    async def search(self, query: Query, max_results: int | None = None) -> list[Source]:
        """
        Search this category for query.

        Args:
            query: The research query
            max_results: Per search-string result cap (defaults to the adapter's)

        Returns:
            Scored sources in backend order; empty on any failure
        """
        try:
            hits = await self._collect_hits(query, max_results or self.max_results)
            return await self._score_hits(query, hits)
        except Exception as e:
            logger.warning(
                f"Provider {self.name} failed",
                extra={
                    "extra_fields": {
                        "provider": self.name,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                },
            )
            return []

    async def _collect_hits(self, query: Query, max_results: int) -> list[SearchResult]:
        search_strings = self.build_queries(query)
        outcomes = await settle_all(
            (s, self.backend.search(s, max_results)) for s in search_strings
        )

        hits: list[SearchResult] = []
        seen: set[str] = set()
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    f"Search failed for {outcome.label!r}",
                    extra={
                        "extra_fields": {
                            "provider": self.name,
                            "search_query": outcome.label,
                            "error": str(outcome.error),
                            "error_type": type(outcome.error).__name__,
                        }
                    },
                )
                continue
            for hit in outcome.value or []:
                if hit.url in seen or not self.accepts(hit, query):
                    continue
                seen.add(hit.url)
                hits.append(hit)
        return hits

    async def _score_hit(self, query: Query, hit: SearchResult) -> Source | None:
        body = await self.fetcher.fetch(hit.url)
        if not body or len(body) < self.min_content_chars:
            return None

        domain = hit.domain
        return Source(
            url=hit.url,
            title=hit.title,
            domain=domain,
            relevance_score=scoring.effective_relevance(query.text, hit.title, body),
            credibility_score=self.credibility_for(domain, query),
            last_accessed=datetime.now(timezone.utc),
        )

    async def _score_hits(self, query: Query, hits: list[SearchResult]) -> list[Source]:
        outcomes = await settle_all((hit.url, self._score_hit(query, hit)) for hit in hits)
        sources = []
        for outcome in outcomes:
            if outcome.ok and outcome.value is not None:
                sources.append(outcome.value)
            elif not outcome.ok:
                logger.warning(
                    f"Dropping candidate {outcome.label}",
                    extra={"extra_fields": {"provider": self.name, "error": str(outcome.error)}},
                )

        logger.info(
            f"Provider {self.name} returned {len(sources)} sources",
            extra={
                "extra_fields": {
                    "provider": self.name,
                    "candidate_count": len(hits),
                    "source_count": len(sources),
                }
            },
        )
        return sources


class TrustedSourceAdapter(BaseProviderAdapter):
    """Official / UN-family sources via one site-scoped query per trusted domain."""

    name = "trusted"

    def __init__(self, *args, search_domains=TRUSTED_SEARCH_DOMAINS, **kwargs):
        super().__init__(*args, **kwargs)
        self.search_domains = tuple(search_domains)

    def _domains(self, query: Query) -> list[str]:
        domains = list(self.search_domains)
        for hint in sorted(query.requested_source_hints):
            if hint not in domains:
                domains.append(hint)
        return domains

    def build_queries(self, query: Query) -> list[str]:
        return [f"{query.text} site:{domain}" for domain in self._domains(query)]

    def accepts(self, hit: SearchResult, query: Query) -> bool:
        domain = hit.domain
        return is_trusted_source(domain) or matches_any(domain, query.requested_source_hints)

    def credibility_for(self, domain: str, query: Query) -> float:
        if is_trusted_source(domain):
            return TRUSTED_CREDIBILITY
        return scoring.credibility(domain)


class NewsAdapter(BaseProviderAdapter):
    """News coverage, only for current-events queries."""

    name = "news"

    def applies_to(self, query: Query) -> bool:
        return is_current_events_query(query.text)

    def build_queries(self, query: Query) -> list[str]:
        return [f"{query.text} latest news"]

    def credibility_for(self, domain: str, query: Query) -> float:
        return scoring.credibility(domain)


class WebAdapter(BaseProviderAdapter):
    """General web search with social media excluded."""

    name = "web"

    def build_queries(self, query: Query) -> list[str]:
        exclusions = " ".join(f"-site:{site}" for site in EXCLUDED_WEB_SITES)
        return [f"{query.text} {exclusions}"]

    def credibility_for(self, domain: str, query: Query) -> float:
        return scoring.credibility(domain)


class AcademicAdapter(BaseProviderAdapter):
    """Scholarly sources, only for research-intent queries."""

    name = "academic"

    def applies_to(self, query: Query) -> bool:
        return is_academic_query(query.text)

    def build_queries(self, query: Query) -> list[str]:
        return [f"{query.text} research academic"]

    def accepts(self, hit: SearchResult, query: Query) -> bool:
        return is_academic_source(hit.domain)

    def credibility_for(self, domain: str, query: Query) -> float:
        return ACADEMIC_CREDIBILITY
