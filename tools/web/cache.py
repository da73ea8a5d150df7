"""Thread-safe TTL cache for research results."""

import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Callable

from models.research import Query, ResearchResult
from utils.logger import get_logger

from .intent import normalize_query_text

logger = get_logger(__name__)

Clock = Callable[[], float]


def make_cache_key(query: Query) -> str:
    """
    Deterministic cache key for a query.

    Built from the normalized text, the normalized context and the sorted
    source hints, then hashed with sha256 (first 16 hex chars). Priority does
    not take part: it does not change what is researched.
    """
    parts = [
        normalize_query_text(query.text),
        normalize_query_text(query.context or ""),
        ",".join(sorted(query.requested_source_hints)),
    ]
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class CacheEntry:
    key: str
    result: ResearchResult
    stored_at: float


class ResearchResultCache:
    """
    In-memory cache of completed research results with a fixed TTL.

    Expired entries are evicted lazily by get() and proactively by sweep().
    A threading.Lock guards the dict because the cache is shared by every
    research call in the process, including ones run from worker threads.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        """
        Initialize cache with TTL.

        Args:
            ttl_seconds: Time to live in seconds for cached entries
            clock: Returns the current time in seconds; injectable for tests
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds

    def get(self, key: str) -> ResearchResult | None:
        """Return the cached result for key, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.result

    def put(self, key: str, result: ResearchResult) -> None:
        """Store result under key; replaces any existing entry."""
        with self._lock:
            self._entries[key] = CacheEntry(key=key, result=result, stored_at=self._clock())

    def sweep(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in expired:
                del self._entries[key]
            remaining = len(self._entries)

        if expired:
            logger.info(
                f"Cache sweep removed {len(expired)} entries",
                extra={"extra_fields": {"removed": len(expired), "remaining": remaining}},
            )
        return len(expired)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
