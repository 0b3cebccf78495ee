"""
Factory functions and fakes for sessionview tests.

Everything touching asyncio primitives must be created inside a running
event loop, i.e. inside the coroutine handed to ``asyncio.run``.
"""

import asyncio
from typing import List, Optional, Tuple

from sessionview import Session, SessionCollection, SessionId, Speaker


def create_subscription_tracker():
    """Provides a helper for tracking subscription notifications

    Returns:
        Tracker: Object with record() method and values list
    """

    class Tracker:
        def __init__(self):
            self.values = []

        def record(self, value):
            self.values.append(value)

        @property
        def last(self):
            return self.values[-1]

    return Tracker()


def create_session(session_id: str = "s1", title: str = "Keynote", **kwargs) -> Session:
    """Creates a session with a single speaker"""
    kwargs.setdefault("speakers", (Speaker("sp1", "Ada"),))
    kwargs.setdefault("description", f"About {title}")
    return Session(id=SessionId(session_id), title=title, **kwargs)


def create_collection(*sessions: Session) -> SessionCollection:
    """Creates a collection, defaulting to a single keynote session"""
    return SessionCollection(sessions or (create_session(),))


async def settle(rounds: int = 20) -> None:
    """Let every ready task run until the loop goes quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeStream:
    """Async iterable whose items and failure are pushed by the test."""

    _FAIL = object()

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.subscribers = 0

    def emit(self, value) -> None:
        self._queue.put_nowait((None, value))

    def fail(self, error: BaseException) -> None:
        self._queue.put_nowait((self._FAIL, error))

    def __aiter__(self):
        self.subscribers += 1
        return self._iterate()

    async def _iterate(self):
        while True:
            marker, payload = await self._queue.get()
            if marker is self._FAIL:
                raise payload
            yield payload


class FakeSessionRepository:
    """In-memory SessionRepository recording every write."""

    def __init__(self):
        self.contents = FakeStream()
        self.counts = FakeStream()
        self.count_requests: List[SessionId] = []
        self.toggle_calls: List[SessionId] = []
        self.increment_calls: List[Tuple[SessionId, int]] = []
        self.toggle_error: Optional[Exception] = None
        self.increment_error: Optional[Exception] = None
        # When set, toggles wait on it before completing
        self.toggle_gate: Optional[asyncio.Event] = None
        # Per-call (gate, error) pairs, consumed in call order before the above
        self.toggle_script: List[Tuple[asyncio.Event, Optional[Exception]]] = []

    def session_contents(self):
        return self.contents

    def thumbs_up_counts(self, session_id):
        self.count_requests.append(session_id)
        return self.counts

    async def toggle_favorite_with_worker(self, session_id) -> None:
        self.toggle_calls.append(session_id)
        if self.toggle_script:
            gate, error = self.toggle_script.pop(0)
            await gate.wait()
            if error is not None:
                raise error
            return
        if self.toggle_gate is not None:
            await self.toggle_gate.wait()
        if self.toggle_error is not None:
            raise self.toggle_error

    async def increment_thumbs_up_count(self, session_id, count: int) -> None:
        self.increment_calls.append((session_id, count))
        if self.increment_error is not None:
            raise self.increment_error
