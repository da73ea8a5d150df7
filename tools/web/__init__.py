"""Source aggregation tools for the research engine."""

from .aggregator import Aggregator
from .cache import ResearchResultCache, make_cache_key
from .contracts import SearchResult
from .factory import create_research_orchestrator_from_env

__all__ = [
    "Aggregator",
    "ResearchResultCache",
    "SearchResult",
    "create_research_orchestrator_from_env",
    "make_cache_key",
]
