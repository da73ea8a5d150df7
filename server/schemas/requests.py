"""Pydantic request models for FastAPI endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.research import Query


class ResearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    context: Optional[str] = Field(None, max_length=2000)
    source_hints: List[str] = Field(default_factory=list, max_length=10)
    priority: str = Field("medium", pattern="^(low|medium|high)$")

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value

    def to_query(self) -> Query:
        return Query(
            text=self.query,
            context=self.context,
            requested_source_hints=frozenset(self.source_hints),
            priority=self.priority,
        )
