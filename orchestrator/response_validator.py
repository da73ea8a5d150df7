import json
import re
from dataclasses import dataclass

from models.unified_response import UnifiedResponse

MIN_SYNTHESIS_CHARS = 40
JSON_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S | re.I)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str  # "ok"|"empty"|"too_short"|"refusal"|"format_violation"|error code


def strip_json_fence(text: str) -> str:
    """Remove a surrounding ```json fence if the model added one."""
    stripped = (text or "").strip()
    match = JSON_FENCE.match(stripped)
    return match.group(1) if match else stripped


class ResponseValidator:
    """Decide whether a generation response is usable."""

    def __init__(self, min_chars: int = MIN_SYNTHESIS_CHARS):
        self._min_chars = min_chars

    def validate(self, response: UnifiedResponse, *, json_only: bool = False) -> ValidationResult:
        if response.is_error:
            return ValidationResult(ok=False, reason=response.error.code)

        text = (response.text or "").strip()
        if not text:
            return ValidationResult(ok=False, reason="empty")

        if json_only:
            if not self._is_valid_json(strip_json_fence(text)):
                return ValidationResult(ok=False, reason="format_violation")
            return ValidationResult(ok=True, reason="ok")

        if self._looks_like_refusal(text):
            return ValidationResult(ok=False, reason="refusal")

        if len(text) < self._min_chars:
            return ValidationResult(ok=False, reason="too_short")

        return ValidationResult(ok=True, reason="ok")

    def _is_valid_json(self, text: str) -> bool:
        try:
            json.loads(text)
            return True
        except (TypeError, ValueError):
            return False

    def _looks_like_refusal(self, text: str) -> bool:
        text_lower = text.lower()[:400]
        refusal_phrases = [
            "i'm sorry, but i can't assist",
            "i am sorry, but i can't assist",
            "i'm sorry, but i cannot assist",
            "i am sorry, but i cannot assist",
            "i can't assist with",
            "i cannot assist with",
            "i can't help with",
            "i cannot help with",
            "i'm unable to help with",
            "i am unable to help with",
        ]
        return any(phrase in text_lower for phrase in refusal_phrases)
