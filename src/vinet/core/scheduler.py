"""Single source of deferred work for the core.

Batched store flushes, message auto-clear, key-sequence deadlines and the
reattach delay all run through one Scheduler, so tests can drive time with
ManualScheduler and observe a deterministic order.

Times are milliseconds.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_soon(self, fn: Callable[[], None]) -> Handle: ...

    def call_later(self, delay_ms: float, fn: Callable[[], None]) -> Handle: ...


# ─── Event-loop scheduler ─────────────────────────────────────────────────────


class AsyncioScheduler:
    """Scheduler backed by the running asyncio loop (Textual's loop in the app)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_soon(self, fn: Callable[[], None]) -> Handle:
        return self.loop.call_soon(fn)

    def call_later(self, delay_ms: float, fn: Callable[[], None]) -> Handle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, fn)


# ─── Virtual-clock scheduler ──────────────────────────────────────────────────


class _Timer:
    __slots__ = ("due", "fn", "cancelled")

    def __init__(self, due: float, fn: Callable[[], None]):
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler with a virtual clock.

    Nothing runs until run_pending() or advance() is called. Timers due at
    the same instant run in the order they were scheduled.
    """

    def __init__(self, start_ms: float = 0.0):
        self._clock = float(start_ms)
        self._heap: list[tuple[float, int, _Timer]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock

    def call_soon(self, fn: Callable[[], None]) -> Handle:
        return self.call_later(0, fn)

    def call_later(self, delay_ms: float, fn: Callable[[], None]) -> Handle:
        timer = _Timer(self._clock + max(0.0, delay_ms), fn)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def run_pending(self) -> int:
        """Run every timer due at the current time, including ones they schedule."""
        return self._run_until(self._clock)

    def advance(self, ms: float) -> int:
        """Move the clock forward by ms, firing timers in due order."""
        return self._run_until(self._clock + ms)

    def _run_until(self, target: float) -> int:
        ran = 0
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            self._clock = max(self._clock, due)
            timer.fn()
            ran += 1
        self._clock = max(self._clock, target)
        return ran
