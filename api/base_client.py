import asyncio
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator

import openai

from models.unified_response import NormalizedError, UnifiedResponse


class BaseAIClient(ABC):
    """
    Abstract base class for text-generation clients.

    get_completion never raises: provider failures come back as a
    UnifiedResponse carrying a NormalizedError.
    """

    provider_name: str = "unknown"

    def __init__(self, api_key: str, **kwargs):
        """
        Initialize the AI client.

        Args:
            api_key: API key for the AI service
            **kwargs: Additional model-specific parameters
        """
        if not api_key:
            raise ValueError(f"API key is required for {self.provider_name}")
        self.api_key = api_key
        self.model_name = kwargs.get('model_name')

    @abstractmethod
    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list | None = None,
        **kwargs,
    ) -> UnifiedResponse:
        """
        Get a completion from the AI model.

        Args:
            prompt: Single user prompt
            messages: Chat messages; takes precedence over prompt
            **kwargs: model, temperature, max_tokens overrides

        Returns:
            UnifiedResponse, with error set on failure
        """

    def stream_completion(self, prompt: str, **kwargs) -> Iterator[str]:
        """
        Yield the completion as text chunks.

        The default implementation yields the whole completion at once.
        Unlike get_completion this raises on provider errors, since a partial
        stream cannot be expressed as a single response.
        """
        response = self.get_completion(prompt, **kwargs)
        if response.is_error:
            raise RuntimeError(response.error.message)
        if response.text:
            yield response.text

    # ---------- helpers ----------

    @staticmethod
    def _generate_request_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _measure_latency(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    @staticmethod
    def _normalize_input(prompt: str | None = None, messages: list | None = None) -> list[dict]:
        if messages:
            return list(messages)
        if prompt is None or not str(prompt).strip():
            raise ValueError("Either prompt or messages must be provided")
        return [{"role": "user", "content": prompt}]

    @staticmethod
    def _normalize_finish_reason(reason: str | None) -> str | None:
        if reason in {"stop", "length", "content_filter"}:
            return reason
        if reason in {"tool_calls", "function_call"}:
            return "stop"
        return reason

    def _normalize_error(self, exc: Exception) -> NormalizedError:
        """Map SDK exceptions onto the normalized error codes."""
        if isinstance(exc, (openai.APITimeoutError, asyncio.TimeoutError, TimeoutError)):
            code, retryable = "timeout", True
        elif isinstance(exc, openai.AuthenticationError):
            code, retryable = "auth", False
        elif isinstance(exc, openai.RateLimitError):
            code, retryable = "rate_limit", True
        elif isinstance(exc, openai.BadRequestError):
            code, retryable = "bad_request", False
        elif isinstance(exc, (openai.APIConnectionError, openai.APIStatusError)):
            code, retryable = "provider_error", True
        elif isinstance(exc, ValueError):
            code, retryable = "bad_request", False
        else:
            code, retryable = "unknown", False

        return NormalizedError(
            code=code,
            message=str(exc) or type(exc).__name__,
            provider=self.provider_name,
            retryable=retryable,
            details={"exception_type": type(exc).__name__},
        )

    def _create_error_response(
        self, *, request_id: str, error: NormalizedError, latency_ms: int, model: str | None
    ) -> UnifiedResponse:
        return UnifiedResponse(
            request_id=request_id,
            text="",
            provider=self.provider_name,
            model=model or self.model_name or "unknown",
            latency_ms=latency_ms,
            finish_reason="error",
            error=error,
        )
