"""Pydantic response models (DTOs) for FastAPI endpoints."""

from pydantic import BaseModel, Field


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str


class SourceDTO(BaseModel):
    url: str
    title: str
    domain: str
    relevance_score: float = Field(..., ge=0.0, le=1.0)
    credibility_score: float = Field(..., ge=0.0, le=1.0)
    last_accessed: str


class FactCheckDTO(BaseModel):
    claim: str
    verdict: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    explanation: str = ""
    supporting_sources: list[str] = Field(default_factory=list)
    conflicting_sources: list[str] = Field(default_factory=list)


class ResearchResponseDTO(BaseModel):
    query_id: str
    content: str
    sources: list[SourceDTO]
    confidence: float = Field(..., ge=0.0, le=1.0)
    fact_checks: list[FactCheckDTO] | None = None
    processing_time_ms: int

    @classmethod
    def from_research_result(cls, result):
        """Convert ResearchResult to DTO."""
        return cls.model_validate(result.to_dict())
