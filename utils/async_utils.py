"""Helpers for settle-all fan-out and blocking calls inside the event loop."""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one task in a settle-all join: a value or the exception it raised."""

    label: str
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _settle(label: str, awaitable: Awaitable[T], timeout_s: float | None) -> Settled[T]:
    try:
        if timeout_s is None:
            value = await awaitable
        else:
            value = await asyncio.wait_for(awaitable, timeout=timeout_s)
        return Settled(label=label, value=value)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        return Settled(label=label, error=exc)


async def settle_all(
    labelled: Iterable[tuple[str, Awaitable[T]]],
    *,
    timeout_s: float | None = None,
) -> list[Settled[T]]:
    """
    Run awaitables concurrently and wait for every one of them to finish.

    A failure or timeout in one task is captured in its Settled record and never
    cancels or fails its siblings. Results keep input order.

    Args:
        labelled: (label, awaitable) pairs; the label identifies the task in logs
        timeout_s: Optional per-task timeout

    Returns:
        One Settled record per input, in input order
    """
    tasks = [_settle(label, aw, timeout_s) for label, aw in labelled]
    if not tasks:
        return []
    return list(await asyncio.gather(*tasks))


async def run_in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Execute a blocking callable in the default executor and await its result."""
    loop = asyncio.get_running_loop()
    if kwargs:
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
    return await loop.run_in_executor(None, func, *args)


class LoopBound(Generic[T]):
    """
    One lazily built resource per event loop.

    Async HTTP clients pool connections on the loop that opened them, so a
    client created under one asyncio.run() call is unusable under the next.
    Entries for loops that have been garbage collected disappear with them.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        close: Callable[[T], Awaitable[None]] | None = None,
    ):
        self._factory = factory
        self._close = close
        self._per_loop: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    def get(self) -> T:
        loop = asyncio.get_running_loop()
        value = self._per_loop.get(loop)
        if value is None:
            value = self._factory()
            self._per_loop[loop] = value
        return value

    async def aclose(self) -> None:
        """Close the running loop's resource and forget the rest."""
        value = self._per_loop.pop(asyncio.get_running_loop(), None)
        self._per_loop.clear()
        if value is not None and self._close is not None:
            await self._close(value)
