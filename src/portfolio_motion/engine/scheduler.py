"""
Scheduler - timer facility for reveals and reset timers

Two implementations share one protocol:
- AsyncioScheduler: loop.call_later on the running event loop
- VirtualScheduler: deterministic virtual clock, advanced explicitly
  (tests, offline timeline computation)

Every scheduled callback gets a CancelHandle. A handle that was cancelled
but still fires (cancellation race) is ignored, never raises.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple

from portfolio_motion.models.enums import LogCategory
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.SCHEDULER)

_handle_ids = itertools.count(1)


class CancelHandle:
    """
    Identity of one scheduled callback

    Attributes:
        id: unique, increasing per process
        due_ms: scheduler time the callback is due at
        label: free text for logs
    """

    def __init__(self, due_ms: float, callback: Callable[[], None], label: str = ""):
        self.id = next(_handle_ids)
        self.due_ms = due_ms
        self.label = label
        self.cancelled = False
        self.fired = False
        self._callback = callback
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> bool:
        """Cancel; returns False when the handle already fired or was cancelled"""
        if not self.active:
            return False
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        return True

    def fire(self) -> None:
        """Run the callback once, unless cancelled"""
        if self.cancelled:
            log.debug(f"Ignoring cancelled handle #{self.id}", label=self.label)
            return
        if self.fired:
            return
        self.fired = True
        self._callback()

    def __repr__(self):
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"CancelHandle(#{self.id} {self.label!r} due={self.due_ms}ms {state})"


class Scheduler(Protocol):

    def now_ms(self) -> float:
        """Current scheduler time in milliseconds"""
        ...

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> CancelHandle:
        """Run callback after delay_ms; delay 0 still defers to the next tick"""
        ...

    def cancel(self, handle: Optional[CancelHandle]) -> None:
        ...


class AsyncioScheduler:
    """Scheduler backed by the asyncio event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> CancelHandle:
        delay_ms = max(0.0, delay_ms)
        handle = CancelHandle(self.now_ms() + delay_ms, callback, label)
        handle._timer = self.loop.call_later(delay_ms / 1000, handle.fire)
        return handle

    def cancel(self, handle: Optional[CancelHandle]) -> None:
        if handle is not None:
            handle.cancel()


class VirtualScheduler:
    """
    Deterministic scheduler with a manually advanced clock

    Callbacks due at the same time run in scheduling order.

    Example:
        sched = VirtualScheduler()
        sched.schedule(100, lambda: print("tick"))
        sched.advance(99)   # nothing
        sched.advance(1)    # prints "tick"
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._queue: List[Tuple[float, int, CancelHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def schedule(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> CancelHandle:
        handle = CancelHandle(self._now + max(0.0, delay_ms), callback, label)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def cancel(self, handle: Optional[CancelHandle]) -> None:
        if handle is not None:
            handle.cancel()

    def pending(self) -> List[CancelHandle]:
        """Handles still waiting to fire, in due order"""
        return [h for _, _, h in sorted(self._queue) if h.active]

    def advance(self, ms: float) -> int:
        """
        Move the clock forward by ms, firing everything that becomes due.

        Callbacks scheduled while advancing fire too if they fall inside the
        window. Returns the number of callbacks that actually ran.
        """
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards by {ms}ms")
        target = self._now + ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now = due
            if handle.active:
                handle.fire()
                ran += 1
        self._now = target
        return ran

    def run_all(self, limit_ms: float = 60_000) -> int:
        """Fire everything pending (bounded so self-rescheduling callbacks terminate)"""
        deadline = self._now + limit_ms
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            ran += self.advance(self._queue[0][0] - self._now)
        return ran
