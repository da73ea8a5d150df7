from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

FinishReason = Optional[Literal["stop", "length", "content_filter", "error"]]

ERROR_CODES = {"timeout", "auth", "rate_limit", "bad_request", "provider_error", "unknown"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if self.total_tokens == 0 and (self.prompt_tokens > 0 or self.completion_tokens > 0):
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.completion_tokens)


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    provider: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.code not in ERROR_CODES:
            object.__setattr__(self, "code", "unknown")


@dataclass(frozen=True)
class UnifiedResponse:
    """One completion from the generation collaborator, successful or not."""

    request_id: str
    text: str
    provider: str
    model: str
    latency_ms: int
    token_usage: TokenUsage = field(default_factory=TokenUsage)

    finish_reason: FinishReason = None
    error: NormalizedError | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    timestamp: str = field(default_factory=_utc_now_iso)

    def __post_init__(self):
        if self.finish_reason not in {"stop", "length", "content_filter", "error", None}:
            md = dict(self.metadata)
            md.setdefault("provider_finish_reason", self.finish_reason)
            object.__setattr__(self, "metadata", md)
            object.__setattr__(self, "finish_reason", None)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None
