import time
from collections.abc import Iterator

import openai

from models.unified_response import TokenUsage, UnifiedResponse
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class OpenAIClient(BaseAIClient):
    """
    OpenAI chat-completions client returning UnifiedResponse.

    Also serves OpenAI-compatible providers through base_url.
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o-mini",
        *,
        base_url: str | None = None,
        timeout_s: float = 60.0,
        **kwargs,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: The OpenAI API key
            model_name: The name of the model to use (default: gpt-4o-mini)
            base_url: Alternate endpoint for OpenAI-compatible APIs
            timeout_s: Request timeout passed to the SDK
            **kwargs: Additional keyword arguments
        """
        super().__init__(api_key, model_name=model_name, **kwargs)
        self.client = openai.OpenAI(api_key=api_key, base_url=base_url, timeout=timeout_s)
        self.model_name = model_name

    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list | None = None,
        **kwargs,
    ) -> UnifiedResponse:
        """
        Get a completion from the chat-completions API.

        Args:
            prompt: Single string prompt, converted to messages format
            messages: List of message dicts with 'role' and 'content' keys
            **kwargs: Additional parameters:
                - model: Override the default model for this call
                - temperature: Controls randomness (0.0 to 2.0)
                - max_tokens: Maximum number of tokens to generate

        Returns:
            UnifiedResponse: Normalized response object

        IMPORTANT: Never raises exceptions - returns UnifiedResponse with error instead
        """
        request_id = self._generate_request_id()
        start_time = time.time()

        model = kwargs.get("model", self.model_name)
        temperature = kwargs.get("temperature", 0.7)
        max_tokens = kwargs.get("max_tokens", 1500)

        try:
            normalized_messages = self._normalize_input(prompt=prompt, messages=messages)

            response = self.client.chat.completions.create(
                model=model,
                messages=normalized_messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            latency_ms = self._measure_latency(start_time)
            choice = response.choices[0] if response.choices else None
            text = (choice.message.content if choice else "") or ""

            usage = getattr(response, "usage", None)
            token_usage = TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            )

            logger.info(
                f"{self.provider_name} completion successful",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "latency_ms": latency_ms,
                        "tokens": token_usage.total_tokens,
                    }
                },
            )

            return UnifiedResponse(
                request_id=request_id,
                text=text,
                provider=self.provider_name,
                model=model,
                latency_ms=latency_ms,
                token_usage=token_usage,
                finish_reason=self._normalize_finish_reason(choice.finish_reason if choice else None),
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            error = self._normalize_error(e)

            logger.error(
                f"{self.provider_name} completion failed: {error.code}",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "error_code": error.code,
                        "error_message": error.message,
                        "retryable": error.retryable,
                    }
                },
            )

            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=latency_ms, model=model
            )

    def stream_completion(self, prompt: str, **kwargs) -> Iterator[str]:
        """Yield completion text deltas as they arrive. Raises on provider errors."""
        stream = self.client.chat.completions.create(
            model=kwargs.get("model", self.model_name),
            messages=self._normalize_input(prompt=prompt),
            temperature=kwargs.get("temperature", 0.7),
            max_tokens=kwargs.get("max_tokens", 1500),
            stream=True,
        )
        for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta
