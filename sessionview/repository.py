"""
Repository contract consumed by the session detail controller.

The library ships no implementation: network and database access live
outside this package.
"""

from typing import AsyncIterable, Protocol, runtime_checkable

from .model import SessionCollection, SessionId


@runtime_checkable
class SessionRepository(Protocol):
    """Data source for sessions, favorites and thumbs-up counts."""

    def session_contents(self) -> AsyncIterable[SessionCollection]:
        """Stream of the full session collection; failures end the stream."""
        ...

    def thumbs_up_counts(self, session_id: SessionId) -> AsyncIterable[int]:
        """Stream of the persisted thumbs-up total for one session."""
        ...

    async def toggle_favorite_with_worker(self, session_id: SessionId) -> None:
        """Flip the favorite flag of one session. May fail."""
        ...

    async def increment_thumbs_up_count(self, session_id: SessionId, count: int) -> None:
        """Persist ``count`` additional thumbs-up for one session. May fail."""
        ...


__all__ = ["SessionRepository"]
