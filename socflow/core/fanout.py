"""
Fan-out strategies for per-item remote work.

Workflows hand a list of items and an async worker to a strategy and receive
the results in input order. Sequential execution is the default; a bounded
concurrency variant can be swapped in without changing caller contracts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Protocol, Sequence, TypeVar

logger = logging.getLogger("SocFlow.Fanout")

T = TypeVar("T")
R = TypeVar("R")


class Fanout(Protocol):
    async def run(self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]) -> List[R]:
        ...


class SequentialFanout:
    """Await each item to completion before starting the next."""

    async def run(self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]) -> List[R]:
        results: List[R] = []
        for item in items:
            results.append(await worker(item))
        return results


class BoundedFanout:
    """Run up to ``max_concurrency`` items at once; results keep input order."""

    def __init__(self, max_concurrency: int = 4) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.max_concurrency = max_concurrency

    async def run(self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]) -> List[R]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _guarded(item: T) -> R:
            async with semaphore:
                return await worker(item)

        return list(await asyncio.gather(*(_guarded(item) for item in items)))


def make_fanout(concurrency: int) -> Fanout:
    if concurrency <= 1:
        return SequentialFanout()
    logger.debug("Using bounded fan-out with concurrency=%d", concurrency)
    return BoundedFanout(concurrency)
