"""
Research data model.

All records are frozen dataclasses: a Query is fixed once submitted, Sources are
fixed once scored, and a ResearchResult is fixed once the orchestrator builds it
(it is the unit stored in the result cache).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Verdict(str, Enum):
    TRUE = "true"
    FALSE = "false"
    MISLEADING = "misleading"
    UNVERIFIABLE = "unverifiable"


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class Query:
    """
    A single research request.

    Attributes:
        text: Natural-language question (must not be blank)
        context: Optional framing, e.g. "UNSC debate preparation"
        requested_source_hints: Domains the caller would like searched first
        priority: Caller priority, carried through to logs and results
    """

    text: str
    context: str | None = None
    requested_source_hints: frozenset[str] = frozenset()
    priority: Priority = Priority.MEDIUM

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValueError("Query text must be a non-empty string")
        hints = frozenset(
            h.strip().lower() for h in (self.requested_source_hints or ()) if h and h.strip()
        )
        object.__setattr__(self, "requested_source_hints", hints)
        if not isinstance(self.priority, Priority):
            object.__setattr__(self, "priority", Priority(str(self.priority).lower()))


@dataclass(frozen=True)
class Source:
    url: str
    title: str
    domain: str
    relevance_score: float
    credibility_score: float
    last_accessed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        object.__setattr__(self, "relevance_score", _clamp_unit(self.relevance_score))
        object.__setattr__(self, "credibility_score", _clamp_unit(self.credibility_score))

    @property
    def rank_key(self) -> float:
        """Combined ordering key: relevance weighted by credibility."""
        return self.relevance_score * self.credibility_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "domain": self.domain,
            "relevance_score": self.relevance_score,
            "credibility_score": self.credibility_score,
            "last_accessed": self.last_accessed.isoformat(),
        }


@dataclass(frozen=True)
class FactCheckResult:
    claim: str
    verdict: Verdict
    confidence: float
    explanation: str = ""
    supporting_sources: tuple[str, ...] = ()
    conflicting_sources: tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.verdict, Verdict):
            object.__setattr__(self, "verdict", Verdict(str(self.verdict).lower()))
        object.__setattr__(self, "confidence", _clamp_unit(self.confidence))
        object.__setattr__(self, "supporting_sources", tuple(self.supporting_sources))
        object.__setattr__(self, "conflicting_sources", tuple(self.conflicting_sources))

    def to_dict(self) -> dict[str, Any]:
        return {
            "claim": self.claim,
            "verdict": self.verdict.value,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "supporting_sources": list(self.supporting_sources),
            "conflicting_sources": list(self.conflicting_sources),
        }


@dataclass(frozen=True)
class ResearchResult:
    query_id: str
    content: str
    sources: tuple[Source, ...]
    confidence: float
    processing_time_ms: int
    fact_checks: tuple[FactCheckResult, ...] | None = None

    def __post_init__(self):
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "confidence", _clamp_unit(self.confidence))
        if self.fact_checks is not None:
            object.__setattr__(self, "fact_checks", tuple(self.fact_checks))

    def to_dict(self) -> dict[str, Any]:
        return {
            "query_id": self.query_id,
            "content": self.content,
            "sources": [s.to_dict() for s in self.sources],
            "confidence": self.confidence,
            "fact_checks": (
                [fc.to_dict() for fc in self.fact_checks] if self.fact_checks is not None else None
            ),
            "processing_time_ms": self.processing_time_ms,
        }
