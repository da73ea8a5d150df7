"""Aggregator: fan out to provider adapters and merge their sources."""

from collections.abc import Sequence
from urllib.parse import urlsplit, urlunsplit

from models.research import Query, Source
from utils.async_utils import settle_all
from utils.logger import get_logger

from .providers import BaseProviderAdapter

logger = get_logger(__name__)

DEFAULT_TOP_K = 10


def canonical_url(url: str) -> str:
    """
    Canonical form used for deduplication.

    Lower-cases scheme and host, drops a leading 'www.', the fragment and any
    trailing slash on the path. Query strings are kept since they can select
    different documents.
    """
    parts = urlsplit(url.strip())
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), host, path, parts.query, ""))


def dedupe_sources(sources: Sequence[Source]) -> list[Source]:
    """Drop later sources whose canonical url was already seen."""
    seen: set[str] = set()
    unique: list[Source] = []
    for source in sources:
        key = canonical_url(source.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)
    return unique


def rank_sources(sources: Sequence[Source], top_k: int = DEFAULT_TOP_K) -> list[Source]:
    """Stable sort by relevance * credibility, best first, truncated to top_k."""
    ranked = sorted(sources, key=lambda s: s.rank_key, reverse=True)
    return ranked[: max(0, top_k)]


class Aggregator:
    """
    Run every applicable adapter concurrently and merge what succeeds.

    A failing or misbehaving adapter contributes zero sources; it never fails
    the aggregation.
    """

    def __init__(self, adapters: Sequence[BaseProviderAdapter], *, top_k: int = DEFAULT_TOP_K):
        self.adapters = list(adapters)
        self.top_k = top_k

    def select_adapters(self, query: Query) -> list[BaseProviderAdapter]:
        return [adapter for adapter in self.adapters if adapter.applies_to(query)]

    async def aggregate(self, query: Query, *, query_id: str | None = None) -> list[Source]:
        """
        Gather, deduplicate, rank and truncate sources for query.

        Returns:
            Up to top_k sources, best first; possibly empty
        """
        adapters = self.select_adapters(query)
        outcomes = await settle_all((adapter.name, adapter.search(query)) for adapter in adapters)

        collected: list[Source] = []
        failed: list[str] = []
        for outcome in outcomes:
            if outcome.ok:
                collected.extend(outcome.value or [])
            else:
                failed.append(outcome.label)
                logger.warning(
                    f"Provider {outcome.label} failed during aggregation",
                    extra={
                        "extra_fields": {
                            "query_id": query_id,
                            "provider": outcome.label,
                            "error": str(outcome.error),
                            "error_type": type(outcome.error).__name__,
                        }
                    },
                )

        unique = dedupe_sources(collected)
        ranked = rank_sources(unique, self.top_k)

        logger.info(
            f"Aggregation complete: {len(ranked)} sources",
            extra={
                "extra_fields": {
                    "query_id": query_id,
                    "providers": [a.name for a in adapters],
                    "failed_providers": failed,
                    "candidate_count": len(collected),
                    "unique_count": len(unique),
                    "source_count": len(ranked),
                }
            },
        )
        return ranked
