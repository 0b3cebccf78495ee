"""
Increment Coalescer - Debounced Write Batching

Rapid taps are folded into one deferred write:

    IDLE --tap--> ACCUMULATING --(quiet for `debounce`)--> FLUSHING --> IDLE
                    ^     |
                    +-tap-+   (every tap restarts the quiet window)

Each tap bumps an optimistic ``pending`` counter right away, so the screen
reacts instantly, and queues ``(key, pending)``. Only the latest queued event
is written once the taps stop, and a write only ever carries taps that
no earlier write has posted.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from .errors import IncrementFlushFailure
from .load_state import DONE, Error, Loaded
from .observable import Observable, Scope


class CoalescerState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


class IncrementCoalescer:
    """
    Debounced, capped increment batching for one scope.

    A successful write of n taps takes n off ``pending``; taps made while it
    was in flight stay pending and are written by the next flush. A failed
    write is logged and reported through ``flush_state``; ``pending`` is
    left as is and nothing is retried.
    """

    DEBOUNCE_SECONDS = 0.5
    MAX_APPLY_COUNT = 50

    def __init__(
        self,
        scope: Scope,
        write: Callable[[Any, int], Awaitable[None]],
        debounce: Optional[float] = None,
        max_count: Optional[int] = None,
        key: str = "increment",
    ):
        self._write = write
        self.debounce = self.DEBOUNCE_SECONDS if debounce is None else debounce
        self.max_count = self.MAX_APPLY_COUNT if max_count is None else max_count
        if self.max_count < 1:
            raise ValueError(f"max_count must be at least 1, got {self.max_count}")

        self.pending: Observable = scope.observable(0, key=f"{key}$pending")
        self.flush_state: Observable = scope.observable(DONE, key=f"{key}$flush")

        # Unbounded: a tap is never dropped before it reaches the debounce stage
        self._events: "asyncio.Queue[Tuple[Any, int]]" = asyncio.Queue()
        self._state = CoalescerState.IDLE
        self._task = scope.launch(self._run())

    @property
    def state(self) -> CoalescerState:
        return self._state

    def tap(self, key: Any) -> int:
        """Record one tap for ``key`` and return the new pending count."""
        incremented = min(self.pending.value + 1, self.max_count)
        self.pending.set(incremented)
        self._events.put_nowait((key, incremented))
        return incremented
    async def _run(self) -> None:
        while True:
            latest = await self._events.get()
            self._state = CoalescerState.ACCUMULATING

            while True:
                try:
                    latest = await asyncio.wait_for(self._events.get(), self.debounce)
                except asyncio.TimeoutError:
                    break

            key, count = latest
            # Taps past the cap during an earlier write rebase to nothing
            if count <= 0:
                self._state = CoalescerState.IDLE
                continue

            self._state = CoalescerState.FLUSHING
            try:
                await self._flush(key, count)
            finally:
                self._state = CoalescerState.IDLE

    async def _flush(self, key: Any, count: int) -> None:
        try:
            await self._write(key, count)
        except Exception as e:
            # TODO: roll back or retry failed increments instead of only reporting them
            logging.error(f"Failed to post increment {count} for {key}: {e!r}")
            self.flush_state.set(Error(IncrementFlushFailure(e)))
            return

        logging.debug(f"Increment {count} posted for {key}")
        self.flush_state.set(Loaded(count))
        self._rebase(count)

    def _rebase(self, posted: int) -> None:
        """Remove ``posted`` taps from the counter and from events queued meanwhile."""
        queued = []
        while not self._events.empty():
            queued.append(self._events.get_nowait())
        for key, count in queued:
            self._events.put_nowait((key, count - posted))

        self.pending.set(max(self.pending.value - posted, 0))


__all__ = ["CoalescerState", "IncrementCoalescer"]
