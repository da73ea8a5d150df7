"""Shared utilities for FastAPI routes."""

import json
from collections.abc import Mapping
from typing import Any

SENSITIVE_HEADERS = {"x-api-key", "authorization"}


def redact_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Redact auth-bearing headers before logging.
    """
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS and value:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def format_sse(event: str, data: Any) -> str:
    """Encode one server-sent event with a JSON payload."""
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"
