"""
Synthesis coordinator: turn ranked sources into one answer with a single
generation call, degrading to templated text when that call is unusable.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from api.base_client import BaseAIClient
from config.config import ResearchSettings
from models.research import Query, Source
from models.unified_response import UnifiedResponse
from orchestrator.generation import safe_completion, stream_chunks
from orchestrator.response_validator import ResponseValidator
from tools.web.research_pack import (
    build_fallback_listing,
    build_not_found_message,
    build_synthesis_prompt,
)
from utils.logger import get_logger

logger = get_logger(__name__)

ChunkCallback = Callable[[str], Awaitable[None]]


class SynthesisStatus(str, Enum):
    SYNTHESIZED = "synthesized"
    FALLBACK = "fallback"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SynthesisOutcome:
    content: str
    confidence: float
    status: SynthesisStatus

    @property
    def degraded(self) -> bool:
        return self.status is not SynthesisStatus.SYNTHESIZED


def response_confidence(
    sources: Sequence[Source], content_length: int, settings: ResearchSettings
) -> float:
    """
    Blend source quality and response shape into a confidence in [0, 1].

    Mean credibility, mean relevance, a length factor saturating at
    length_saturation_chars and a count factor saturating at
    source_count_saturation, weighted by the settings' confidence weights.
    """
    if not sources:
        return settings.not_found_confidence

    avg_credibility = sum(s.credibility_score for s in sources) / len(sources)
    avg_relevance = sum(s.relevance_score for s in sources) / len(sources)
    length_factor = min(content_length / settings.length_saturation_chars, 1.0)
    source_factor = min(len(sources) / settings.source_count_saturation, 1.0)

    confidence = (
        avg_credibility * settings.credibility_weight
        + avg_relevance * settings.relevance_weight
        + length_factor * settings.length_weight
        + source_factor * settings.source_count_weight
    )
    return max(0.0, min(1.0, confidence))


class SynthesisCoordinator:
    def __init__(
        self,
        client: BaseAIClient,
        settings: ResearchSettings | None = None,
        validator: ResponseValidator | None = None,
    ):
        self.client = client
        self.settings = settings or ResearchSettings()
        self.validator = validator or ResponseValidator()

    def _fallback(self, sources: Sequence[Source], reason: str, query_id: str | None) -> SynthesisOutcome:
        logger.warning(
            "Research synthesis failed, returning source listing",
            extra={
                "extra_fields": {
                    "query_id": query_id,
                    "reason": reason,
                    "source_count": len(sources),
                }
            },
        )
        return SynthesisOutcome(
            content=build_fallback_listing(sources, self.settings.fallback_listing_size),
            confidence=self.settings.fallback_confidence,
            status=SynthesisStatus.FALLBACK,
        )

    async def synthesize(
        self,
        query: Query,
        sources: Sequence[Source],
        *,
        query_id: str | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> SynthesisOutcome:
        """
        Produce the answer for query from ranked sources.

        Args:
            query: The research query
            sources: Ranked sources, best first
            query_id: Correlation id for logs
            on_chunk: When given, the completion is streamed and each text chunk
                is passed to this callback as it arrives

        Returns:
            SynthesisOutcome; never raises for collaborator failures
        """
        if not sources:
            return SynthesisOutcome(
                content=build_not_found_message(query),
                confidence=self.settings.not_found_confidence,
                status=SynthesisStatus.NOT_FOUND,
            )

        prompt = build_synthesis_prompt(query, sources)
        generation_kwargs = {
            "max_tokens": self.settings.synthesis_max_tokens,
            "temperature": self.settings.synthesis_temperature,
        }

        if on_chunk is None:
            response = await safe_completion(
                self.client, prompt, self.settings.generation_timeout_s, **generation_kwargs
            )
        else:
            response = await self._streamed_response(prompt, on_chunk, generation_kwargs)

        validation = self.validator.validate(response)
        if not validation.ok:
            return self._fallback(sources, validation.reason, query_id)

        content = response.text.strip()
        return SynthesisOutcome(
            content=content,
            confidence=response_confidence(sources, len(content), self.settings),
            status=SynthesisStatus.SYNTHESIZED,
        )

    async def _streamed_response(
        self, prompt: str, on_chunk: ChunkCallback, generation_kwargs: dict
    ) -> UnifiedResponse:
        """Stream the completion into on_chunk and return it as one UnifiedResponse."""
        parts: list[str] = []
        try:
            async for chunk in stream_chunks(
                self.client, prompt, self.settings.generation_timeout_s, **generation_kwargs
            ):
                parts.append(chunk)
                await on_chunk(chunk)
        except Exception as e:
            return self.client._create_error_response(
                request_id=self.client._generate_request_id(),
                error=self.client._normalize_error(e),
                latency_ms=0,
                model=self.client.model_name,
            )

        return UnifiedResponse(
            request_id=self.client._generate_request_id(),
            text="".join(parts),
            provider=self.client.provider_name,
            model=self.client.model_name or "unknown",
            latency_ms=0,
            finish_reason="stop",
        )
