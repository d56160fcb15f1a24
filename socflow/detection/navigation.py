"""
Cancellable delayed callbacks for post-detection navigation.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol, Tuple


class ScheduledCallback(Protocol):
    def cancel(self) -> None:
        ...

    def cancelled(self) -> bool:
        ...


class NavigationScheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCallback:
        ...


class LoopScheduler:
    """Schedule on the running asyncio loop with ``call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class _ManualHandle:
    def __init__(self) -> None:
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """
    Records scheduled callbacks without a clock.

    Used by tests and headless runs: ``fire_all()`` runs every pending,
    uncancelled callback immediately.
    """

    def __init__(self) -> None:
        self.scheduled: List[Tuple[float, Callable[[], None], _ManualHandle]] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        self.scheduled.append((delay, callback, handle))
        return handle

    @property
    def pending(self) -> List[float]:
        return [delay for delay, _cb, handle in self.scheduled if not handle.cancelled() and not handle.fired]

    def fire_all(self) -> int:
        fired = 0
        for _delay, callback, handle in self.scheduled:
            if handle.cancelled() or handle.fired:
                continue
            handle.fired = True
            callback()
            fired += 1
        return fired
