"""Fact-check coordinator: best-effort claim extraction over synthesized content."""

import json
from typing import Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from api.base_client import BaseAIClient
from config.config import ResearchSettings
from models.research import FactCheckResult, Verdict
from orchestrator.generation import safe_completion
from orchestrator.response_validator import ResponseValidator, strip_json_fence
from tools.web.research_pack import build_fact_check_prompt
from utils.logger import get_logger

logger = get_logger(__name__)


class FactCheckItem(BaseModel):
    """Wire shape of one fact-check entry returned by the model."""

    claim: str = Field(..., min_length=1)
    verdict: Literal["true", "false", "misleading", "unverifiable"]
    confidence: float = Field(..., ge=0.0, le=1.0)
    explanation: str = ""
    supporting_sources: list[str] = Field(default_factory=list)
    conflicting_sources: list[str] = Field(default_factory=list)

    @field_validator("verdict", mode="before")
    @classmethod
    def normalize_verdict(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def to_result(self) -> FactCheckResult:
        return FactCheckResult(
            claim=self.claim,
            verdict=Verdict(self.verdict),
            confidence=self.confidence,
            explanation=self.explanation,
            supporting_sources=tuple(self.supporting_sources),
            conflicting_sources=tuple(self.conflicting_sources),
        )


_ITEMS = TypeAdapter(list[FactCheckItem])


def parse_fact_checks(text: str) -> list[FactCheckResult]:
    """
    Parse a model response into fact-check results.

    Accepts a bare JSON array or an object wrapping the array under
    "results" / "fact_checks" / "claims", optionally inside a ```json fence.

    Raises:
        ValueError: if the text is not JSON of the expected shape
    """
    payload = json.loads(strip_json_fence(text))
    if isinstance(payload, dict):
        for key in ("results", "fact_checks", "claims"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        raise ValueError("Fact-check response is not a JSON array")
    return [item.to_result() for item in _ITEMS.validate_python(payload)]


class FactCheckCoordinator:
    def __init__(
        self,
        client: BaseAIClient,
        settings: ResearchSettings | None = None,
        validator: ResponseValidator | None = None,
    ):
        self.client = client
        self.settings = settings or ResearchSettings()
        self.validator = validator or ResponseValidator()

    async def fact_check(self, content: str, *, query_id: str | None = None) -> list[FactCheckResult]:
        """
        Extract and grade the claims in content.

        Returns:
            Fact-check results; empty when the call fails or the response does
            not parse. Never raises for collaborator failures.
        """
        if not content or not content.strip():
            return []

        response = await safe_completion(
            self.client,
            build_fact_check_prompt(content),
            self.settings.generation_timeout_s,
            max_tokens=self.settings.fact_check_max_tokens,
            temperature=self.settings.fact_check_temperature,
        )
        validation = self.validator.validate(response, json_only=True)
        if not validation.ok:
            logger.warning(
                "Fact-checking failed",
                extra={"extra_fields": {"query_id": query_id, "reason": validation.reason}},
            )
            return []

        try:
            results = parse_fact_checks(response.text)
        except (ValueError, ValidationError) as e:
            logger.warning(
                "Fact-check response did not parse",
                extra={
                    "extra_fields": {
                        "query_id": query_id,
                        "error": str(e)[:300],
                        "error_type": type(e).__name__,
                    }
                },
            )
            return []

        logger.info(
            f"Fact-check produced {len(results)} results",
            extra={"extra_fields": {"query_id": query_id, "claim_count": len(results)}},
        )
        return results
