"""
Research orchestrator: the single entry point that turns a Query into a
ResearchResult.

Flow per call:
    START -> CACHE_LOOKUP -> HIT -> DONE
                          -> MISS -> AGGREGATE -> SYNTHESIZE -> FACT_CHECK
                                  -> CACHE_WRITE -> DONE

Each collaborator degrades on its own, so the only exception that escapes
research() is ResearchError, raised for failures outside that contract.
"""

import asyncio
import concurrent.futures
import hashlib
import itertools
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from config.config import ResearchSettings
from models.research import Query, ResearchResult
from orchestrator.fact_check import FactCheckCoordinator
from orchestrator.synthesis import SynthesisCoordinator
from tools.web.aggregator import Aggregator
from tools.web.cache import ResearchResultCache, make_cache_key
from utils.logger import get_logger

logger = get_logger(__name__)

_query_counter = itertools.count()
_STREAM_DONE = object()


class ResearchState(str, Enum):
    START = "start"
    CACHE_LOOKUP = "cache_lookup"
    HIT = "hit"
    MISS = "miss"
    AGGREGATE = "aggregate"
    SYNTHESIZE = "synthesize"
    FACT_CHECK = "fact_check"
    CACHE_WRITE = "cache_write"
    DONE = "done"


class ResearchError(Exception):
    """Unrecoverable failure while researching a query."""

    def __init__(self, message: str, *, query_id: str | None = None, state: ResearchState | None = None):
        super().__init__(message)
        self.query_id = query_id
        self.state = state


@dataclass(frozen=True)
class ResearchEvent:
    """Item yielded by research_stream: a synthesis chunk or the final result."""

    type: str  # "chunk" | "complete"
    text: str = ""
    result: ResearchResult | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.type == "complete" and self.result is not None:
            return {"type": self.type, "result": self.result.to_dict()}
        return {"type": self.type, "text": self.text}


def generate_query_id(text: str) -> str:
    """Query id from the text, a nanosecond timestamp and a process counter."""
    seed = f"{text}|{time.time_ns()}|{next(_query_counter)}"
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:16]


class ResearchOrchestrator:
    """
    Coordinates cache, aggregation, synthesis and fact-checking.

    The orchestrator owns a background task that sweeps the cache every TTL.
    It is started by start() (or lazily by the first research call) and
    stopped by aclose(); `async with` does both.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        synthesis: SynthesisCoordinator,
        fact_checker: FactCheckCoordinator | None,
        cache: ResearchResultCache,
        settings: ResearchSettings | None = None,
        *,
        closeables: list | None = None,
    ):
        self.aggregator = aggregator
        self.synthesis = synthesis
        self.fact_checker = fact_checker
        self.cache = cache
        self.settings = settings or ResearchSettings()
        self._closeables = list(closeables or [])
        self._sweeper: asyncio.Task | None = None

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Start the cache sweeper on the running loop; no-op if already running."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        loop = asyncio.get_running_loop()
        self._sweeper = loop.create_task(self._sweep_loop(), name="research-cache-sweeper")

    async def _sweep_loop(self) -> None:
        interval = self.cache.ttl_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                self.cache.sweep()
            except Exception as e:
                logger.error(
                    f"Cache sweep failed: {e}",
                    extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
                )

    async def aclose(self) -> None:
        """Stop the sweeper and release network clients."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and not sweeper.done():
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        for resource in self._closeables:
            await resource.aclose()
        self._closeables = []

    async def __aenter__(self) -> "ResearchOrchestrator":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ---------- research ----------

    def _transition(self, query_id: str, state: ResearchState, **fields) -> None:
        logger.debug(
            f"Research {query_id} -> {state.value}",
            extra={"extra_fields": {"query_id": query_id, "state": state.value, **fields}},
        )

    async def research(self, query: Query, *, on_chunk=None) -> ResearchResult:
        """
        Research a query.

        Args:
            query: The query to research
            on_chunk: Optional async callback receiving synthesis text chunks

        Returns:
            ResearchResult; a cached one when an unexpired entry exists

        Raises:
            ResearchError: on failures the collaborators could not absorb
        """
        if not isinstance(query, Query):
            raise TypeError(f"Expected Query, got {type(query).__name__}")

        start_time = time.perf_counter()
        query_id = generate_query_id(query.text)
        state = ResearchState.START
        self._transition(query_id, state, priority=query.priority.value)

        try:
            self.start()

            state = ResearchState.CACHE_LOOKUP
            self._transition(query_id, state)
            cache_key = make_cache_key(query)
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._transition(query_id, ResearchState.HIT, cached_query_id=cached.query_id)
                logger.info(
                    "Research served from cache",
                    extra={
                        "extra_fields": {
                            "query_id": cached.query_id,
                            "cache_hit": True,
                            "priority": query.priority.value,
                        }
                    },
                )
                return cached
            self._transition(query_id, ResearchState.MISS)

            state = ResearchState.AGGREGATE
            self._transition(query_id, state)
            sources = await self.aggregator.aggregate(query, query_id=query_id)

            state = ResearchState.SYNTHESIZE
            self._transition(query_id, state, source_count=len(sources))
            outcome = await self.synthesis.synthesize(
                query, sources, query_id=query_id, on_chunk=on_chunk
            )

            fact_checks = None
            if self.fact_checker is not None and self.settings.enable_fact_check and not outcome.degraded:
                state = ResearchState.FACT_CHECK
                self._transition(query_id, state)
                fact_checks = await self.fact_checker.fact_check(outcome.content, query_id=query_id)

            result = ResearchResult(
                query_id=query_id,
                content=outcome.content,
                sources=tuple(sources),
                confidence=outcome.confidence,
                processing_time_ms=int((time.perf_counter() - start_time) * 1000),
                fact_checks=fact_checks,
            )

            if sources and not outcome.degraded:
                state = ResearchState.CACHE_WRITE
                self._transition(query_id, state)
                self.cache.put(cache_key, result)

        except asyncio.CancelledError:
            raise
        except ResearchError:
            raise
        except Exception as e:
            logger.error(
                f"Research failed in state {state.value}: {e}",
                extra={
                    "extra_fields": {
                        "query_id": query_id,
                        "state": state.value,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                },
            )
            raise ResearchError(f"Research failed: {e}", query_id=query_id, state=state) from e

        self._transition(query_id, ResearchState.DONE)
        logger.info(
            "Research complete",
            extra={
                "extra_fields": {
                    "query_id": query_id,
                    "cache_hit": False,
                    "priority": query.priority.value,
                    "source_count": len(result.sources),
                    "confidence": round(result.confidence, 3),
                    "synthesis_status": outcome.status.value,
                    "fact_check_count": len(fact_checks) if fact_checks is not None else None,
                    "processing_time_ms": result.processing_time_ms,
                }
            },
        )
        return result

    async def research_stream(self, query: Query) -> AsyncIterator[ResearchEvent]:
        """
        Research a query, yielding synthesis chunks as they arrive.

        Yields "chunk" events and then one "complete" event carrying the
        ResearchResult, whose content is authoritative (a synthesis that fails
        mid-stream is replaced by the fallback listing). When nothing was
        streamed (cache hit, not found, fallback) the final content is sent as
        a single chunk first.

        Raises:
            ResearchError: as research()
        """
        queue: asyncio.Queue = asyncio.Queue()
        streamed = False

        async def on_chunk(text: str) -> None:
            await queue.put(text)

        async def run() -> ResearchResult:
            try:
                return await self.research(query, on_chunk=on_chunk)
            finally:
                queue.put_nowait(_STREAM_DONE)

        task = asyncio.create_task(run())
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_DONE:
                    break
                streamed = True
                yield ResearchEvent(type="chunk", text=item)

            result = await task
            if not streamed and result.content:
                yield ResearchEvent(type="chunk", text=result.content)
            yield ResearchEvent(type="complete", result=result)
        finally:
            if not task.done():
                task.cancel()
                try:
                    await task
                except (asyncio.CancelledError, ResearchError):
                    pass

    def research_sync(self, query: Query) -> ResearchResult:
        """
        Synchronous wrapper for research.

        Handles the case where an event loop is already running by executing
        in a separate thread with its own loop.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._research_once(query))

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(asyncio.run, self._research_once(query))
            return future.result()

    async def _research_once(self, query: Query) -> ResearchResult:
        # A sweeper started here belongs to a loop that closes with this call.
        previous = self._sweeper
        try:
            return await self.research(query)
        finally:
            sweeper, self._sweeper = self._sweeper, previous
            if sweeper is not None and sweeper is not previous and not sweeper.done():
                sweeper.cancel()
