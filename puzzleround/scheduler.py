"""Continuation scheduling for the match engine.

The engine only needs ``call_later(delay_seconds, callback)`` returning a
handle with ``cancel()``. An ``asyncio`` event loop satisfies that directly;
``ManualScheduler`` is a virtual-clock version for synchronous front ends and
tests.
"""

import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


class ScheduledCall:
    """A pending callback on a ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Runs callbacks against a virtual clock that only moves when told to.

    Callbacks due at the same time run in the order they were scheduled.
    Callbacks may schedule further callbacks; ``advance`` picks those up if
    they fall inside the window.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        call = ScheduledCall(self.now + delay, callback)
        heapq.heappush(self._queue, (call.when, next(self._counter), call))
        return call

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def _run_next(self) -> None:
        when, _, call = heapq.heappop(self._queue)
        self.now = max(self.now, when)
        call.callback()

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running everything that becomes due.

        Returns:
            Number of callbacks executed.
        """
        target = self.now + seconds
        ran = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            self._run_next()
            ran += 1
        self.now = target
        return ran

    def run_all(self, sleep: Optional[Callable[[float], None]] = None) -> int:
        """Run every pending callback, including ones scheduled while running.

        With ``sleep`` (e.g. ``time.sleep``) the real wait between callbacks is
        honoured, which is how the terminal UI plays the confirmation and
        mistake delays.
        """
        ran = 0
        while True:
            due = self.next_due()
            if due is None:
                return ran
            if sleep is not None and due > self.now:
                sleep(due - self.now)
            self._run_next()
            ran += 1

