"""
Timeout-bounded calls to the generation collaborator.

Clients are synchronous; calls run in the default executor under
asyncio.wait_for so one slow completion never blocks other research work.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator

from api.base_client import BaseAIClient
from models.unified_response import NormalizedError, UnifiedResponse
from utils.async_utils import run_in_thread
from utils.logger import get_logger

logger = get_logger(__name__)

_STREAM_END = object()


def _error_response(
    client: BaseAIClient, request_id: str, latency_ms: int, error: NormalizedError
) -> UnifiedResponse:
    return UnifiedResponse(
        request_id=request_id,
        text="",
        provider=client.provider_name,
        model=client.model_name or "unknown",
        latency_ms=latency_ms,
        finish_reason="error",
        error=error,
    )


async def safe_completion(
    client: BaseAIClient, prompt: str, timeout_s: float, **kwargs
) -> UnifiedResponse:
    """
    Call client.get_completion with a timeout.

    Returns:
        The client's response, or an error UnifiedResponse on timeout or
        unexpected exception. Never raises.
    """
    request_id = str(uuid.uuid4())
    loop = asyncio.get_running_loop()
    start_time = loop.time()

    try:
        return await asyncio.wait_for(
            run_in_thread(client.get_completion, prompt, **kwargs),
            timeout=timeout_s,
        )

    except asyncio.TimeoutError:
        elapsed_ms = int((loop.time() - start_time) * 1000)
        logger.warning(
            f"Generation timed out for {client.provider_name}/{client.model_name}",
            extra={
                "extra_fields": {
                    "provider": client.provider_name,
                    "model": client.model_name,
                    "timeout_s": timeout_s,
                }
            },
        )
        error = NormalizedError(
            code="timeout",
            message=f"Request timed out after {timeout_s}s",
            provider=client.provider_name,
            retryable=True,
            details={"timeout_seconds": timeout_s},
        )
        return _error_response(client, request_id, elapsed_ms, error)

    except Exception as e:
        elapsed_ms = int((loop.time() - start_time) * 1000)
        logger.error(
            f"Unexpected generation error for {client.provider_name}/{client.model_name}: {e}",
            extra={
                "extra_fields": {
                    "provider": client.provider_name,
                    "model": client.model_name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            },
        )
        error = NormalizedError(
            code="unknown",
            message=f"Unexpected error: {e!s}",
            provider=client.provider_name,
            details={"exception_type": type(e).__name__},
        )
        return _error_response(client, request_id, elapsed_ms, error)


async def stream_chunks(
    client: BaseAIClient, prompt: str, timeout_s: float, **kwargs
) -> AsyncIterator[str]:
    """
    Iterate client.stream_completion without blocking the event loop.

    timeout_s is a deadline for the whole stream, not for each chunk; passing
    it raises asyncio.TimeoutError. Errors propagate to the caller.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s

    def remaining() -> float:
        left = deadline - loop.time()
        if left <= 0:
            raise asyncio.TimeoutError(f"Stream exceeded {timeout_s}s")
        return left

    iterator = await asyncio.wait_for(
        run_in_thread(lambda: iter(client.stream_completion(prompt, **kwargs))),
        timeout=remaining(),
    )
    while True:
        chunk = await asyncio.wait_for(
            run_in_thread(next, iterator, _STREAM_END),
            timeout=remaining(),
        )
        if chunk is _STREAM_END:
            return
        yield chunk
