"""
Observable - Reactive Values and Their Lifetime Scope

Core Principles:
1. An Observable holds exactly one current value
2. Every set is one emission - subscribers are called synchronously, in order;
   sets made from inside a subscriber are delivered after the current one
3. Subscription returns its own unsubscribe function
4. A Scope owns the observables, tasks and cleanups of one screen and
   tears all of them down together
"""

import asyncio
import logging
import threading
from collections import deque
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, List, Optional, Set

from .errors import ScopeClosedError


# ============================================================================
# PROPAGATION
# ============================================================================


class PropagationContext:
    """Delivers notifications breadth-first, in the order values were set."""

    _local = threading.local()

    @classmethod
    def _get_state(cls) -> dict:
        if not hasattr(cls._local, "state"):
            cls._local.state = {"is_propagating": False, "pending": deque()}
        return cls._local.state

    @classmethod
    def _enqueue_notifications(cls, callbacks: List[Callable], value: Any) -> None:
        pending = cls._get_state()["pending"]
        for callback in callbacks:
            pending.append((callback, value))

    @classmethod
    def _process_notifications(cls) -> None:
        state = cls._get_state()
        # A set made by a subscriber is queued behind the current emission
        if state["is_propagating"]:
            return

        state["is_propagating"] = True
        try:
            while state["pending"]:
                callback, value = state["pending"].popleft()
                callback(value)
        except BaseException:
            state["pending"].clear()
            raise
        finally:
            state["is_propagating"] = False


# ============================================================================
# OBSERVABLE
# ============================================================================


class Observable:
    """
    Observable: a single reactive value.

    Unlike a change-detecting store, an Observable does not compare the new
    value with the old one. Setting a value equal to the current one still
    notifies every subscriber, so downstream consumers see one notification
    per upstream event.
    """

    __slots__ = ("_key", "_value", "_callbacks")

    def __init__(self, key: str = "<unnamed>", initial_value: Any = None):
        self._key = key
        self._value = initial_value
        self._callbacks: List[Callable[[Any], None]] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any):
        self._value = new_value
        # Snapshot so callbacks may unsubscribe while we iterate
        PropagationContext._enqueue_notifications(list(self._callbacks), new_value)
        PropagationContext._process_notifications()

    def set(self, new_value: Any) -> None:
        """Explicit setter (alias for value property)."""
        self.value = new_value

    def get(self) -> Any:
        """Explicit getter (alias for value property)."""
        return self.value

    def subscribe(
        self, callback: Callable[[Any], None], call_immediately: bool = False
    ) -> Callable[[], None]:
        """
        Register ``callback`` for every future value.

        Args:
            callback: Called with each new value
            call_immediately: Also call it once with the current value

        Returns:
            Unsubscribe function (safe to call more than once)
        """
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        if call_immediately:
            callback(self._value)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"Observable({self._key}={self._value!r})"


# ============================================================================
# SCOPE - Lifetime Coordination
# ============================================================================


class Scope:
    """
    Scope: lifetime owner for one screen's reactive state.

    Provides:
    - Scoped observables
    - Tracked asyncio tasks, cancelled together on close
    - Cleanup callbacks (unsubscribers, disposers)
    """

    def __init__(self):
        self._observables: Dict[str, Observable] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._cleanups: List[Callable[[], None]] = []
        self._key_counter = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def observable(self, initial_value: Any = None, key: Optional[str] = None) -> Observable:
        """Create a new observable owned by this scope."""
        self._key_counter += 1
        key = key or f"obs${self._key_counter}"
        obs = Observable(key, initial_value)
        self._observables[key] = obs
        return obs

    def launch(self, coro: Awaitable[Any]) -> asyncio.Task:
        """
        Run ``coro`` as a task on the running event loop.

        The task lives until it finishes or the scope closes. Failures that
        reach the task boundary are logged.
        """
        if self._closed:
            # Avoid "coroutine was never awaited" noise
            if asyncio.iscoroutine(coro):
                coro.close()
            raise ScopeClosedError("Cannot launch work on a closed scope")

        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logging.error(f"Unhandled error in scope task {task.get_name()}: {error!r}")

    def collect_into(self, target: Observable, source: AsyncIterable[Any]) -> asyncio.Task:
        """Launch a task that sets every item of ``source`` into ``target``."""

        async def collect():
            async for item in source:
                target.set(item)

        return self.launch(collect())

    def add_cleanup(self, cleanup: Callable[[], None]) -> None:
        """Register a callback run once when the scope closes."""
        if self._closed:
            cleanup()
            return
        self._cleanups.append(cleanup)

    def close(self) -> None:
        """Cancel tasks and run cleanups. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        cleanups, self._cleanups = self._cleanups, []
        for cleanup in reversed(cleanups):
            cleanup()

        self._observables.clear()
        self._key_counter = 0

    def stats(self) -> dict:
        """Get scope statistics for debugging."""
        return {
            "observable_count": len(self._observables),
            "active_tasks": len(self._tasks),
            "cleanups": len(self._cleanups),
            "closed": self._closed,
        }

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Scope(observables={len(self._observables)}, tasks={len(self._tasks)}, {state})"


__all__ = ["Observable", "Scope"]
