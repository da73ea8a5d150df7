"""
Models package: research records and generation-collaborator responses.
"""

from .research import FactCheckResult, Priority, Query, ResearchResult, Source, Verdict
from .unified_response import NormalizedError, TokenUsage, UnifiedResponse

__all__ = [
    "FactCheckResult",
    "NormalizedError",
    "Priority",
    "Query",
    "ResearchResult",
    "Source",
    "TokenUsage",
    "UnifiedResponse",
    "Verdict",
]
